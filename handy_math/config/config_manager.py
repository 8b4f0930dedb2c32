"""
Configuration Management for HandyMath

Loads and provides access to configuration from config.json.
Allows runtime configuration of detection, timing, sound and display parameters.
Supports both plain values and the [value, description] format.
"""

import json
import logging
from typing import Dict, Any, Optional, Tuple
from pathlib import Path


logger = logging.getLogger(__name__)


class Config:
    """
    Singleton configuration manager that loads from config.json
    """
    _instance = None
    _config_data: Dict[str, Any] = {}
    _config_path: str = ""

    def __new__(cls, *args, **kwargs):
        # Config(path) must still hand back the one instance
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
        return cls._instance

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration from JSON file.

        Args:
            config_path: Path to config.json. If provided, force reload from
                         that path. If None, load from the default location
                         only on first initialization.
        """
        if config_path is not None:
            self._config_path = str(config_path)
            self.reload()
            return

        if not self._config_data:  # Only load once
            self._config_path = str(Path(__file__).parent / "config.json")
            self.reload()

    @property
    def config_path(self) -> str:
        return self._config_path

    def reload(self):
        """Reload configuration from file."""
        try:
            with open(self._config_path, 'r') as f:
                self._config_data = json.load(f)
            logger.info("✓ Loaded configuration from %s", self._config_path)
        except FileNotFoundError:
            logger.warning("⚠ Config file not found: %s, using default values", self._config_path)
            self._config_data = self._get_defaults()
        except json.JSONDecodeError as e:
            logger.warning("⚠ Error parsing config file: %s, using default values", e)
            self._config_data = self._get_defaults()

    def save(self):
        """Save current configuration back to file."""
        try:
            with open(self._config_path, 'w') as f:
                json.dump(self._config_data, f, indent=2)
            logger.info("✓ Saved configuration to %s", self._config_path)
        except OSError as e:
            logger.error("✗ Error saving config: %s", e)

    def get(self, *keys, default=None) -> Any:
        """
        Get configuration value by key path.
        Handles both plain values and the [value, description] format.

        Examples:
            config.get('camera', 'width')  # Returns 640
            config.get('stability', 'lock_duration_seconds')

        Args:
            keys: Path to value (e.g., 'game', 'total_rounds')
            default: Default value if path doesn't exist

        Returns:
            Configuration value or default
        """
        current = self._config_data
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        if isinstance(current, list) and len(current) >= 1:
            return current[0]

        return current

    def get_with_description(self, *keys, default=None) -> Tuple[Any, str]:
        """
        Get configuration value AND description.

        Returns:
            Tuple of (value, description) or (default, "")
        """
        current = self._config_data
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return (default, "")

        if isinstance(current, list):
            if len(current) >= 2:
                return (current[0], current[1])
            elif len(current) == 1:
                return (current[0], "")

        return (current, "")

    def set(self, *keys, value):
        """
        Set configuration value by key path. An existing description is kept.

        Example:
            config.set('game', 'total_rounds', value=5)
        """
        if len(keys) == 0:
            return

        current = self._config_data
        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        existing = current.get(keys[-1])
        if isinstance(existing, list) and len(existing) >= 2:
            current[keys[-1]] = [value, existing[1]]
        else:
            current[keys[-1]] = value

    def _get_defaults(self) -> Dict:
        """Return default configuration values."""
        return {
            "camera": {
                "index": 0,
                "width": 640,
                "height": 480,
                "fps": 30,
                "flip_horizontal": True
            },
            "detection": {
                "joint_confidence_threshold": 0.6,
                "min_detection_confidence": 0.7,
                "min_tracking_confidence": 0.5,
                "use_gpu": True,
                "max_hands": 1
            },
            "stability": {
                "tick_interval_seconds": 0.1,
                "lock_duration_seconds": 2.0
            },
            "game": {
                "total_rounds": 10,
                "feedback_duration_seconds": 2.0
            },
            "sound": {
                "enabled": True,
                "assets_path": "../assets/sounds",
                "correct": "correct.wav",
                "incorrect": "incorrect.wav",
                "volume": 0.8
            },
            "display": {
                "window_width": 1024,
                "window_height": 720,
                "show_camera": True,
                "show_hand_points": True,
                "colors": {
                    "joint": [[0, 255, 0], "Joint dot color (RGB)"],
                    "correct": [[60, 200, 90], "Correct feedback color (RGB)"],
                    "wrong": [[230, 60, 60], "Wrong feedback color (RGB)"],
                    "progress": [[255, 200, 0], "Locking ring color (RGB)"]
                }
            },
            "app_control": {
                "exit": False,
                "pause": False,
                "restart": False
            }
        }

    @property
    def data(self) -> Dict:
        """Get entire configuration dictionary."""
        return self._config_data


# Global configuration instance
config = Config()
