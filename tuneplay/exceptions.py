"""Custom exception hierarchy for the playback engine.

This module provides a structured exception hierarchy for consistent
error handling across the application.
"""


class TuneplayError(Exception):
    """Base exception for all playback engine errors."""

    pass


class PlayerError(TuneplayError):
    """Errors related to the audio output."""

    pass


class SeekError(PlayerError):
    """Seek target outside the stream, or output not ready to seek."""

    pass


class DecodeError(TuneplayError):
    """Unsupported or corrupt audio data."""

    pass


class FileAccessError(TuneplayError):
    """A file could not be opened, read or written."""

    pass


class MetadataError(TuneplayError):
    """Errors related to metadata probing."""

    pass


class ConfigurationError(TuneplayError):
    """Errors related to configuration."""

    pass


class MediaControlError(TuneplayError):
    """Errors related to the OS media-control bridge."""

    pass
