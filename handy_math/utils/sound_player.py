"""
Sound feedback for HandyMath

The round controller gets a SoundPlayer injected and calls
`play("correct")` / `play("incorrect")`. Playback is fire-and-forget: a
missing file or a broken audio device is logged and otherwise ignored.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

import pygame


logger = logging.getLogger(__name__)

SOUND_NAMES = ('correct', 'incorrect')


class SoundPlayer:
    """Interface. The base class plays nothing."""

    def play(self, name: str):
        pass

    def close(self):
        pass


class NullSoundPlayer(SoundPlayer):
    """Silent player for tests and --no-sound runs. Remembers what was asked."""

    def __init__(self):
        self.played = []

    def play(self, name: str):
        self.played.append(name)


class PygameSoundPlayer(SoundPlayer):
    """
    Plays short effects through pygame.mixer.

    Args:
        sound_files: {name: path} of effects to preload
        volume: 0..1
    """

    def __init__(self, sound_files: Dict[str, str], volume: float = 1.0):
        self.sound_files = dict(sound_files)
        self.volume = max(0.0, min(1.0, float(volume)))
        self.enabled = True
        self.sounds: Dict[str, 'pygame.mixer.Sound'] = {}

        try:
            pygame.mixer.init()
        except Exception as e:
            logger.warning("⚠ pygame.mixer init failed, sound disabled: %s", e)
            self.enabled = False
            return

        for name, path in self.sound_files.items():
            if not os.path.exists(path):
                logger.warning("⚠ Sound file %s not found: %s", name, path)
                continue
            try:
                sound = pygame.mixer.Sound(path)
                sound.set_volume(self.volume)
                self.sounds[name] = sound
            except Exception as e:
                logger.warning("⚠ Failed to load sound %s from %s: %s", name, path, e)

        logger.info("✓ Loaded %d sound(s): %s", len(self.sounds), sorted(self.sounds))

    def play(self, name: str):
        if not self.enabled:
            return
        sound = self.sounds.get(name)
        if sound is None:
            logger.warning("⚠ No sound loaded for '%s'", name)
            return
        try:
            sound.play()
        except Exception as e:
            logger.warning("⚠ Failed to play sound %s: %s", name, e)

    def close(self):
        if not self.enabled:
            return
        try:
            pygame.mixer.quit()
        except Exception as e:
            logger.warning("⚠ Error closing mixer: %s", e)


def resolve_sound_files(config) -> Dict[str, str]:
    """Map sound names to absolute paths using the `sound` config section."""
    base = config.get('sound', 'assets_path', default='../assets/sounds')
    if not os.path.isabs(base):
        base = str(Path(config.config_path).parent / base)
    files = {}
    for name in SOUND_NAMES:
        filename = config.get('sound', name, default=f"{name}.wav")
        if not filename:
            continue
        files[name] = filename if os.path.isabs(filename) else os.path.join(base, filename)
    return files


def create_sound_player(config, enabled: Optional[bool] = None) -> SoundPlayer:
    """Build the player the config asks for; falls back to a silent one."""
    if enabled is None:
        enabled = config.get('sound', 'enabled', default=True)
    if not enabled:
        logger.info("Sound disabled")
        return NullSoundPlayer()
    volume = config.get('sound', 'volume', default=1.0)
    return PygameSoundPlayer(resolve_sound_files(config), volume=volume)
