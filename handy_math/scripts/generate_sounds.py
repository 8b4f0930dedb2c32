#!/usr/bin/env python3
"""
Generate the feedback sound effects for HandyMath.
Creates a rising two-note chime for correct answers and a low falling buzz
for wrong ones, as 16-bit mono WAV files.
"""

import sys
import wave
from pathlib import Path

import numpy as np

# Configuration
OUTPUT_DIR = Path(__file__).parent.parent / 'assets' / 'sounds'
SAMPLE_RATE = 44100
AMPLITUDE = 0.5

# (frequency Hz, duration s) per note
SOUND_NOTES = {
    'correct': [(880.0, 0.12), (1318.5, 0.22)],   # A5 -> E6
    'incorrect': [(220.0, 0.18), (164.8, 0.30)],  # A3 -> E3
}

# square-ish timbre for the wrong buzz, pure sine for the chime
SOUND_HARMONICS = {
    'correct': [1.0],
    'incorrect': [1.0, 0.0, 0.33, 0.0, 0.2],
}


def tone(frequency: float, duration: float, harmonics=(1.0,), sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """One note with a short attack and exponential decay, as floats in -1..1."""
    t = np.arange(int(duration * sample_rate)) / sample_rate
    wave_data = np.zeros_like(t)
    for i, weight in enumerate(harmonics, start=1):
        if weight:
            wave_data += weight * np.sin(2 * np.pi * frequency * i * t)
    wave_data /= max(1e-9, np.max(np.abs(wave_data)))

    attack = min(len(t), int(0.01 * sample_rate))
    envelope = np.exp(-3.0 * t / max(duration, 1e-3))
    envelope[:attack] *= np.linspace(0.0, 1.0, attack)
    return wave_data * envelope


def synthesize(name: str, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Concatenate the notes of a named effect into int16 samples."""
    harmonics = SOUND_HARMONICS.get(name, [1.0])
    notes = [tone(freq, dur, harmonics, sample_rate) for freq, dur in SOUND_NOTES[name]]
    samples = np.concatenate(notes) * AMPLITUDE
    return np.clip(samples * 32767, -32768, 32767).astype(np.int16)


def write_wav(path: Path, samples: np.ndarray, sample_rate: int = SAMPLE_RATE):
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), 'wb') as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(samples.tobytes())


def generate_all_sounds(output_dir: Path = OUTPUT_DIR):
    """Write every effect in SOUND_NOTES to output_dir. Returns the written paths."""
    print(f"Generating sounds in: {output_dir}")
    print("-" * 60)

    written = []
    for name in SOUND_NOTES:
        path = Path(output_dir) / f"{name}.wav"
        write_wav(path, synthesize(name))
        written.append(path)
        print(f"✓ Generated: {path.name}")

    print("-" * 60)
    print(f"✓ Successfully generated {len(written)} sounds")
    return written


def main():
    output_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else OUTPUT_DIR
    try:
        generate_all_sounds(output_dir)
    except OSError as e:
        print(f"\n❌ Error generating sounds: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
