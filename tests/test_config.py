"""Tests for configuration management."""

import pytest
from pathlib import Path
from tuneplay.config import Config, get_config
from tuneplay.exceptions import ConfigurationError


class TestConfig:
    """Test Config class."""

    def test_get_instance(self, mock_config):
        """Test singleton pattern."""
        config1 = get_config()
        config2 = get_config()
        assert config1 is config2

    def test_xdg_directories(self, mock_config, temp_dir):
        """Test XDG directory resolution."""
        assert mock_config.config_dir == temp_dir / 'config' / 'tuneplay'
        assert mock_config.data_dir == temp_dir / 'data' / 'tuneplay'
        assert mock_config.config_file.exists()

    def test_defaults(self, mock_config):
        """Test default playback and media-control settings."""
        assert mock_config.tick_interval_ms == 10
        assert mock_config.initial_volume == 1.0
        assert mock_config.media_controls_enabled is True
        assert mock_config.media_controls_name == 'tuneplay'
        assert mock_config.media_controls_identity == 'TunePlay'
        assert mock_config.media_event_queue_size == 64

    def test_config_get(self, mock_config):
        """Test reading raw and boolean config values."""
        mock_config.config.set('media_controls', 'enabled', 'false')
        assert mock_config.get('media_controls', 'enabled') == 'false'
        assert mock_config.get_bool('media_controls', 'enabled') is False

    def test_settings_persist(self, mock_config):
        """Test values survive a reload from disk."""
        mock_config.config.set('playback', 'volume', '0.4')
        mock_config.save()
        Config._instance = None
        assert get_config().initial_volume == 0.4

    def test_invalid_number(self, mock_config):
        """Test malformed numbers raise ConfigurationError."""
        mock_config.config.set('playback', 'tick_interval_ms', 'fast')
        with pytest.raises(ConfigurationError):
            mock_config.tick_interval_ms

    def test_non_positive_interval(self, mock_config):
        """Test a zero tick interval is rejected."""
        mock_config.config.set('playback', 'tick_interval_ms', '0')
        with pytest.raises(ConfigurationError):
            mock_config.tick_interval_ms

    def test_config_properties(self, mock_config):
        """Test config convenience properties."""
        assert isinstance(mock_config.playlists_dir, Path)
        assert mock_config.playlists_dir.is_dir()
        assert mock_config.log_dir.is_dir()
