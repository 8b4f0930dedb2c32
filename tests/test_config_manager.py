import unittest
import json
import tempfile
import sys
import os
from pathlib import Path

# Add path to source
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from handy_math.config import config_manager
from handy_math.config.config_manager import Config

BUNDLED_CONFIG = Path(config_manager.__file__).parent / 'config.json'


class TestConfig(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, 'config.json')
        self.original_path = Config().config_path

    def tearDown(self):
        Config(self.original_path)
        self.tmpdir.cleanup()

    def write(self, data):
        with open(self.path, 'w') as f:
            json.dump(data, f)

    def test_singleton(self):
        self.assertIs(Config(), Config())
        self.assertIs(Config(), config_manager.config)

    def test_value_description_format(self):
        self.write({'game': {'total_rounds': [7, "Questions per game"], 'plain': 3}})
        config = Config(self.path)

        self.assertEqual(config.get('game', 'total_rounds'), 7)
        self.assertEqual(config.get('game', 'plain'), 3)
        self.assertEqual(config.get_with_description('game', 'total_rounds'), (7, "Questions per game"))
        self.assertEqual(config.get_with_description('game', 'plain'), (3, ""))
        self.assertEqual(config.get('game', 'missing', default=1), 1)
        self.assertEqual(config.get_with_description('nope', default=2), (2, ""))

    def test_missing_file_uses_defaults(self):
        config = Config(os.path.join(self.tmpdir.name, 'absent.json'))
        self.assertEqual(config.get('game', 'total_rounds'), 10)
        self.assertEqual(config.get('stability', 'lock_duration_seconds'), 2.0)
        self.assertEqual(config.get('detection', 'joint_confidence_threshold'), 0.6)
        self.assertEqual(config.get('display', 'colors', 'joint'), [0, 255, 0])

    def test_malformed_file_uses_defaults(self):
        with open(self.path, 'w') as f:
            f.write('{ not json')
        config = Config(self.path)
        self.assertEqual(config.get('stability', 'tick_interval_seconds'), 0.1)

    def test_set_keeps_description_and_saves(self):
        self.write({'app_control': {'pause': [False, "Pause flag"]}})
        config = Config(self.path)
        config.set('app_control', 'pause', value=True)
        config.set('app_control', 'restart', value=True)
        config.save()

        with open(self.path) as f:
            saved = json.load(f)
        self.assertEqual(saved['app_control']['pause'], [True, "Pause flag"])
        self.assertEqual(saved['app_control']['restart'], True)

        config.reload()
        self.assertTrue(config.get('app_control', 'pause'))

    def test_bundled_config_matches_defaults(self):
        with open(BUNDLED_CONFIG) as f:
            bundled = json.load(f)
        defaults = Config()._get_defaults()

        self.assertEqual(set(bundled), set(defaults))
        for section in defaults:
            self.assertEqual(set(bundled[section]), set(defaults[section]), section)

        config = Config(str(BUNDLED_CONFIG))
        for section, values in defaults.items():
            for key, value in values.items():
                if isinstance(value, dict):
                    continue
                self.assertEqual(config.get(section, key), value, f"{section}.{key}")


if __name__ == '__main__':
    unittest.main()
