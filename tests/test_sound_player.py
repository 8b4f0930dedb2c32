import unittest
from unittest.mock import MagicMock, patch
import tempfile
import sys
import os

# Add path to source
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from handy_math.utils.sound_player import (
    NullSoundPlayer,
    PygameSoundPlayer,
    create_sound_player,
    resolve_sound_files,
)


def fake_config(values, config_path='/opt/handy/config/config.json'):
    config = MagicMock()
    config.config_path = config_path
    config.get.side_effect = lambda *keys, default=None: values.get(keys, default)
    return config


class TestPygameSoundPlayer(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.correct_path = os.path.join(self.tmpdir.name, 'correct.wav')
        with open(self.correct_path, 'wb') as f:
            f.write(b'RIFF')
        self.files = {
            'correct': self.correct_path,
            'incorrect': os.path.join(self.tmpdir.name, 'missing.wav'),
        }

    def tearDown(self):
        self.tmpdir.cleanup()

    @patch('handy_math.utils.sound_player.pygame')
    def test_loads_existing_files_only(self, mock_pygame):
        player = PygameSoundPlayer(self.files, volume=0.5)

        mock_pygame.mixer.init.assert_called_once()
        mock_pygame.mixer.Sound.assert_called_once_with(self.correct_path)
        mock_pygame.mixer.Sound.return_value.set_volume.assert_called_once_with(0.5)
        self.assertEqual(sorted(player.sounds), ['correct'])

    @patch('handy_math.utils.sound_player.pygame')
    def test_play(self, mock_pygame):
        player = PygameSoundPlayer(self.files)
        player.play('correct')
        mock_pygame.mixer.Sound.return_value.play.assert_called_once()

        with self.assertLogs('handy_math.utils.sound_player', level='WARNING'):
            player.play('incorrect')

    @patch('handy_math.utils.sound_player.pygame')
    def test_play_errors_are_swallowed(self, mock_pygame):
        mock_pygame.mixer.Sound.return_value.play.side_effect = RuntimeError("device gone")
        player = PygameSoundPlayer(self.files)

        with self.assertLogs('handy_math.utils.sound_player', level='WARNING'):
            player.play('correct')

    @patch('handy_math.utils.sound_player.pygame')
    def test_mixer_init_failure_disables_sound(self, mock_pygame):
        mock_pygame.mixer.init.side_effect = RuntimeError("no audio")
        player = PygameSoundPlayer(self.files)

        self.assertFalse(player.enabled)
        player.play('correct')
        player.close()
        mock_pygame.mixer.Sound.assert_not_called()
        mock_pygame.mixer.quit.assert_not_called()

    @patch('handy_math.utils.sound_player.pygame')
    def test_volume_is_clamped(self, mock_pygame):
        self.assertEqual(PygameSoundPlayer({}, volume=3).volume, 1.0)
        self.assertEqual(PygameSoundPlayer({}, volume=-1).volume, 0.0)

    @patch('handy_math.utils.sound_player.pygame')
    def test_close_quits_mixer(self, mock_pygame):
        PygameSoundPlayer({}).close()
        mock_pygame.mixer.quit.assert_called_once()


class TestSoundFactory(unittest.TestCase):
    def test_null_player_records(self):
        player = NullSoundPlayer()
        player.play('correct')
        player.play('incorrect')
        self.assertEqual(player.played, ['correct', 'incorrect'])

    def test_resolve_relative_to_config(self):
        config = fake_config({('sound', 'assets_path'): '../assets/sounds'})
        files = resolve_sound_files(config)

        expected_dir = os.path.join('/opt/handy/config', '../assets/sounds')
        self.assertEqual(files['correct'], os.path.join(expected_dir, 'correct.wav'))
        self.assertEqual(files['incorrect'], os.path.join(expected_dir, 'incorrect.wav'))

    def test_resolve_absolute_entries(self):
        config = fake_config({
            ('sound', 'assets_path'): '/srv/sounds',
            ('sound', 'correct'): 'ding.ogg',
            ('sound', 'incorrect'): '/tmp/buzz.wav',
        })
        files = resolve_sound_files(config)
        self.assertEqual(files, {'correct': '/srv/sounds/ding.ogg', 'incorrect': '/tmp/buzz.wav'})

    def test_disabled_gives_null_player(self):
        config = fake_config({('sound', 'enabled'): False})
        self.assertIsInstance(create_sound_player(config), NullSoundPlayer)
        self.assertIsInstance(create_sound_player(fake_config({}), enabled=False), NullSoundPlayer)

    @patch('handy_math.utils.sound_player.pygame')
    def test_enabled_gives_pygame_player(self, mock_pygame):
        config = fake_config({('sound', 'volume'): 0.3})
        player = create_sound_player(config)
        self.assertIsInstance(player, PygameSoundPlayer)
        self.assertEqual(player.volume, 0.3)


if __name__ == '__main__':
    unittest.main()
