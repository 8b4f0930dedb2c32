import unittest
import tempfile
import wave
import sys
import os
from contextlib import redirect_stdout
from io import StringIO
from pathlib import Path

import numpy as np

# Add path to source
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from handy_math.scripts.generate_sounds import SAMPLE_RATE, SOUND_NOTES, generate_all_sounds, synthesize
from handy_math.utils.sound_player import SOUND_NAMES


class TestGenerateSounds(unittest.TestCase):
    def test_every_game_sound_has_notes(self):
        self.assertEqual(set(SOUND_NAMES), set(SOUND_NOTES))

    def test_synthesize(self):
        samples = synthesize('correct')
        expected = sum(int(d * SAMPLE_RATE) for _, d in SOUND_NOTES['correct'])

        self.assertEqual(samples.dtype, np.int16)
        self.assertEqual(len(samples), expected)
        self.assertGreater(int(np.max(np.abs(samples))), 1000)

    def test_generate_all_sounds(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with redirect_stdout(StringIO()):
                written = generate_all_sounds(Path(tmpdir) / 'sounds')

            self.assertEqual(sorted(p.name for p in written), ['correct.wav', 'incorrect.wav'])
            for path in written:
                with wave.open(str(path), 'rb') as wav:
                    self.assertEqual(wav.getnchannels(), 1)
                    self.assertEqual(wav.getsampwidth(), 2)
                    self.assertEqual(wav.getframerate(), SAMPLE_RATE)
                    self.assertGreater(wav.getnframes(), 0)


if __name__ == '__main__':
    unittest.main()
