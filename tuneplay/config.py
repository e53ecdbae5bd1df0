"""Configuration management using XDG Base Directory Specification.

This module provides centralized configuration management following Linux
standards for config and data directories.
"""

import configparser
import os
from pathlib import Path
from typing import Optional

from tuneplay.exceptions import ConfigurationError


class Config:
    """
    Configuration manager using XDG Base Directory Specification.

    Follows Linux standards:
    - Config: ~/.config/tuneplay/ (or XDG_CONFIG_HOME)
    - Data: ~/.local/share/tuneplay/ (or XDG_DATA_HOME)
    """

    _instance: Optional['Config'] = None

    def __init__(self) -> None:
        """
        Initialize configuration manager.

        Sets up XDG Base Directory paths and loads or creates configuration.
        """
        if Config._instance is not None:
            return

        # XDG Base Directory paths
        self.config_home = Path(os.getenv('XDG_CONFIG_HOME', Path.home() / '.config'))
        self.data_home = Path(os.getenv('XDG_DATA_HOME', Path.home() / '.local' / 'share'))

        # Application-specific directories
        self.app_name = 'tuneplay'
        self.config_dir = self.config_home / self.app_name
        self.data_dir = self.data_home / self.app_name

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self.config_file = self.config_dir / 'config.ini'
        self.config = configparser.ConfigParser()

        self._load_config()

        Config._instance = self

    @classmethod
    def get_instance(cls) -> 'Config':
        """Get the singleton config instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def _load_config(self) -> None:
        """Load configuration from file or create defaults."""
        if self.config_file.exists():
            self.config.read(self.config_file, encoding='utf-8')
        else:
            self._create_default_config()

    def _create_default_config(self) -> None:
        """Create default configuration with sensible defaults."""
        self.config['playback'] = {
            'tick_interval_ms': '10',
            'volume': '1.0',
        }

        # MPRIS2 settings
        self.config['media_controls'] = {
            'enabled': 'true',
            'name': 'tuneplay',
            'identity': 'TunePlay',
            'queue_size': '64',
        }

        self.config['playlist'] = {
            'directory': str(self.data_dir / 'playlists'),
        }

        self.save()

    def save(self) -> None:
        """
        Save configuration to file.

        Writes current configuration state to the config file.
        """
        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                self.config.write(f)
        except OSError as e:
            from tuneplay.logging import get_logger
            logger = get_logger(__name__)
            logger.error("Failed to save config: %s", e, exc_info=True)

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """Get a configuration value."""
        return self.config.get(section, key, fallback=fallback)

    def get_bool(self, section: str, key: str, fallback: bool = False) -> bool:
        """Get a boolean configuration value."""
        try:
            return self.config.getboolean(section, key, fallback=fallback)
        except ValueError as e:
            raise ConfigurationError(f"[{section}] {key}: {e}") from e

    def get_int(self, section: str, key: str, fallback: int = 0) -> int:
        """Get an integer configuration value."""
        try:
            return self.config.getint(section, key, fallback=fallback)
        except ValueError as e:
            raise ConfigurationError(f"[{section}] {key}: {e}") from e

    def get_float(self, section: str, key: str, fallback: float = 0.0) -> float:
        """Get a float configuration value."""
        try:
            return self.config.getfloat(section, key, fallback=fallback)
        except ValueError as e:
            raise ConfigurationError(f"[{section}] {key}: {e}") from e

    def get_path(self, section: str, key: str, fallback: Optional[Path] = None) -> Optional[Path]:
        """Get a path configuration value."""
        value = self.get(section, key)
        if value:
            return Path(value).expanduser()
        return fallback

    # Convenience properties
    @property
    def tick_interval_ms(self) -> int:
        """Interval between controller ticks, in milliseconds."""
        interval = self.get_int('playback', 'tick_interval_ms', 10)
        if interval <= 0:
            raise ConfigurationError(f"tick_interval_ms must be positive, got {interval}")
        return interval

    @property
    def initial_volume(self) -> float:
        """Volume applied to the output at startup."""
        return self.get_float('playback', 'volume', 1.0)

    @property
    def media_controls_enabled(self) -> bool:
        return self.get_bool('media_controls', 'enabled', True)

    @property
    def media_controls_name(self) -> str:
        """Suffix of the org.mpris.MediaPlayer2.* bus name."""
        return self.get('media_controls', 'name', 'tuneplay')

    @property
    def media_controls_identity(self) -> str:
        return self.get('media_controls', 'identity', 'TunePlay')

    @property
    def media_event_queue_size(self) -> int:
        size = self.get_int('media_controls', 'queue_size', 64)
        if size <= 0:
            raise ConfigurationError(f"queue_size must be positive, got {size}")
        return size

    @property
    def playlists_dir(self) -> Path:
        """Get playlist directory."""
        playlists_dir = self.get_path('playlist', 'directory', self.data_dir / 'playlists')
        playlists_dir.mkdir(parents=True, exist_ok=True)
        return playlists_dir

    @property
    def log_dir(self) -> Path:
        """Get log directory."""
        log_dir = self.data_dir / 'logs'
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir


# Convenience function
def get_config() -> Config:
    """Get the configuration instance."""
    return Config.get_instance()
