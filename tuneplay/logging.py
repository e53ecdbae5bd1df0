"""Logging for the playback engine.

Everything logs under the "tuneplay" logger. Warnings and errors go to
stderr as soon as the first logger is handed out. The entry point then
calls LinuxLogger(log_dir=...) to add a rotating file that receives
everything from DEBUG up.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "tuneplay"
DEBUG_ENV_VAR = "TUNEPLAY_DEBUG"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "tuneplay.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class LinuxLogger:
    """
    Process-wide handler setup for the "tuneplay" logger.

    The first instance sets the level and the stderr handler. Any instance
    given a log_dir (re)attaches the rotating file handler there. Set
    TUNEPLAY_DEBUG to log at DEBUG instead of INFO.
    """

    _instance: Optional["LinuxLogger"] = None
    _file_handler: Optional[logging.handlers.RotatingFileHandler] = None

    def __init__(self, log_dir: Optional[Path] = None):
        self.logger = logging.getLogger(ROOT_LOGGER_NAME)
        self.formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        if LinuxLogger._instance is None:
            LinuxLogger._instance = self
            self.logger.setLevel(logging.DEBUG if os.getenv(DEBUG_ENV_VAR) else logging.INFO)
            if not self.logger.handlers:
                console = logging.StreamHandler(sys.stderr)
                console.setLevel(logging.WARNING)
                console.setFormatter(self.formatter)
                self.logger.addHandler(console)

        if log_dir is not None:
            self._attach_file_handler(Path(log_dir))

    def _attach_file_handler(self, log_dir: Path) -> None:
        """Log to a rotating file; stay on stderr only if the directory is unusable."""
        log_file = log_dir / LOG_FILE_NAME
        current = LinuxLogger._file_handler
        if current is not None and current.baseFilename == os.path.abspath(log_file):
            return

        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        except OSError as e:
            self.logger.warning("File logging disabled (%s): %s", log_dir, e)
            return
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(self.formatter)

        LinuxLogger.remove_file_handler()
        self.logger.addHandler(handler)
        LinuxLogger._file_handler = handler

    @classmethod
    def remove_file_handler(cls) -> None:
        """Detach and close the rotating file handler, if any."""
        handler = cls._file_handler
        if handler is None:
            return
        cls._file_handler = None
        logging.getLogger(ROOT_LOGGER_NAME).removeHandler(handler)
        handler.close()

    @classmethod
    def get_logger(cls, name: str = ROOT_LOGGER_NAME) -> logging.Logger:
        """
        Get the application logger or one of its children.

        Args:
            name: Module name; a leading "tuneplay." is dropped

        Returns:
            Logger instance
        """
        if cls._instance is None:
            cls()
        root = logging.getLogger(ROOT_LOGGER_NAME)
        if name == ROOT_LOGGER_NAME:
            return root
        if name.startswith(ROOT_LOGGER_NAME + "."):
            name = name[len(ROOT_LOGGER_NAME) + 1:]
        return root.getChild(name)

    @classmethod
    def set_level(cls, level: int) -> None:
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a logger instance."""
    return LinuxLogger.get_logger(name)
