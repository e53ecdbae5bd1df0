"""Messages exchanged with the OS media-control surface.

Inbound events are produced by the bridge (possibly on another thread) and
only ever travel through a MediaEventQueue; the controller thread drains it.
Outbound values describe what the controller wants the OS to display.
"""

import queue
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from tuneplay.logging import get_logger

logger = get_logger(__name__)


# ============================================================================
# Inbound
# ============================================================================
class SeekDirection(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


class MediaControlEvent:
    """Base class of inbound media-control commands."""


@dataclass(frozen=True)
class Play(MediaControlEvent):
    pass


@dataclass(frozen=True)
class Pause(MediaControlEvent):
    pass


@dataclass(frozen=True)
class Next(MediaControlEvent):
    pass


@dataclass(frozen=True)
class Previous(MediaControlEvent):
    pass


@dataclass(frozen=True)
class SetVolume(MediaControlEvent):
    volume: float


@dataclass(frozen=True)
class SetPosition(MediaControlEvent):
    position: float


@dataclass(frozen=True)
class SeekRelative(MediaControlEvent):
    direction: SeekDirection
    amount: float


def seek_from_offset(offset_us: int) -> SeekRelative:
    """Convert a signed microsecond offset (MPRIS Seek) to a SeekRelative."""
    direction = SeekDirection.BACKWARD if offset_us < 0 else SeekDirection.FORWARD
    return SeekRelative(direction, abs(offset_us) / 1_000_000.0)


class MediaEventQueue:
    """Bounded, non-blocking hand-off from the bridge to the controller thread."""

    def __init__(self, maxsize: int = 64):
        self._queue: "queue.Queue[MediaControlEvent]" = queue.Queue(maxsize=maxsize)

    def push(self, event: MediaControlEvent) -> bool:
        """Enqueue without blocking; drops the event when the queue is full."""
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            logger.warning("Media control queue full, dropping %s", event)
            return False
        return True

    def pop(self) -> Optional[MediaControlEvent]:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None


# ============================================================================
# Outbound
# ============================================================================
class MediaPlaybackState(Enum):
    PLAYING = "Playing"
    PAUSED = "Paused"
    STOPPED = "Stopped"


@dataclass(frozen=True)
class MediaStatus:
    state: MediaPlaybackState
    elapsed: Optional[float] = None


@dataclass(frozen=True)
class MediaMetadata:
    track_id: str
    title: str
    duration: float
    artist: Optional[str] = None
    album: Optional[str] = None
    path: Optional[Path] = None
