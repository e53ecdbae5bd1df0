"""Periodic tick source on the GLib main loop."""

from typing import Callable, Optional

import gi
gi.require_version('GLib', '2.0')
from gi.repository import GLib

from tuneplay.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TICK_INTERVAL_MS = 10


class TickDriver:
    """
    Calls a function every interval_ms milliseconds on the main loop.

    The callback runs on the main-loop thread, so it may touch the
    controller directly. An exception in the callback is logged and the
    timer keeps running.
    """

    def __init__(self, callback: Callable[[], None], interval_ms: int = DEFAULT_TICK_INTERVAL_MS):
        if interval_ms <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval_ms}")
        self._callback = callback
        self.interval_ms = interval_ms
        self._timeout_id: Optional[int] = None

    @property
    def running(self) -> bool:
        return self._timeout_id is not None

    def start(self) -> None:
        """Start ticking. Does nothing if already started."""
        if self._timeout_id is not None:
            return
        self._timeout_id = GLib.timeout_add(self.interval_ms, self._on_timeout)
        logger.debug("Tick driver started (%d ms)", self.interval_ms)

    def stop(self) -> None:
        """Stop ticking. Does nothing if not started."""
        if self._timeout_id is None:
            return
        GLib.source_remove(self._timeout_id)
        self._timeout_id = None
        logger.debug("Tick driver stopped")

    def _on_timeout(self) -> bool:
        try:
            self._callback()
        except Exception as e:
            logger.error("Tick failed: %s", e, exc_info=True)
        # GLib keeps the source while this returns True
        return self._timeout_id is not None
