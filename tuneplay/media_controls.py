"""Glue between the OS media-control bridge and the playback controller.

Inbound: each tick, pending events are drained from the bridge and replayed
as controller calls. Outbound: after controller mutations, the current
track, status, volume and navigation state are pushed to the bridge.
"""

from typing import Any, Callable, Optional, Tuple

from tuneplay.exceptions import MediaControlError
from tuneplay.logging import get_logger
from tuneplay.media_events import (
    MediaControlEvent,
    MediaMetadata,
    MediaPlaybackState,
    MediaStatus,
    Next,
    Pause,
    Play,
    Previous,
    SeekDirection,
    SeekRelative,
    SetPosition,
    SetVolume,
)
from tuneplay.playback_controller import PlaybackController, PlaybackStatus
from tuneplay.track import Track

logger = get_logger(__name__)

TRACK_ID_PREFIX = '/org/tuneplay/track/'

_UNSET: Any = object()


def media_metadata(track: Optional[Track], index: Optional[int]) -> Optional[MediaMetadata]:
    """Describe the track at playlist position index for the OS."""
    if track is None or index is None:
        return None
    return MediaMetadata(
        track_id=f"{TRACK_ID_PREFIX}{index}",
        title=track.display_title,
        duration=track.duration,
        artist=track.artist,
        album=track.album,
        path=track.path,
    )


class MediaControlAdapter:
    """Drives a PlaybackController from a media-control bridge and back.

    The bridge must provide receive_event(), update_metadata(),
    update_status(), update_volume(), update_navigation(), notify_seeked(),
    set_quit_callback() and cleanup(); see mpris2.MediaControlBridge.
    """

    def __init__(self, bridge: Any):
        self._bridge = bridge
        self._published_track: Tuple[Any, Any] = (_UNSET, _UNSET)

    def dispatch_pending(self, controller: PlaybackController) -> int:
        """Apply every queued event to the controller. Returns how many ran."""
        count = 0
        while True:
            event = self._bridge.receive_event()
            if event is None:
                return count
            self._apply(controller, event)
            count += 1

    def _apply(self, controller: PlaybackController, event: MediaControlEvent) -> None:
        logger.debug("Media control event: %s", event)
        if isinstance(event, Play):
            controller.play()
        elif isinstance(event, Pause):
            controller.pause()
        elif isinstance(event, Next):
            controller.next()
        elif isinstance(event, Previous):
            controller.previous()
        elif isinstance(event, SetVolume):
            controller.set_volume(event.volume)
        elif isinstance(event, SetPosition):
            controller.set_position(event.position)
        elif isinstance(event, SeekRelative):
            current = controller.position()
            if event.direction is SeekDirection.FORWARD:
                controller.set_position(current + event.amount)
            else:
                controller.set_position(max(0.0, current - event.amount))
        else:
            logger.warning("Unhandled media control event: %r", event)

    def publish(self, controller: PlaybackController) -> None:
        """Push the controller's current state to the bridge."""
        track = controller.current_track()
        index = controller.playlist_index()
        status = controller.status()
        if status is PlaybackStatus.PLAYING:
            media_status = MediaStatus(MediaPlaybackState.PLAYING, controller.position())
        elif status is PlaybackStatus.PAUSED:
            media_status = MediaStatus(MediaPlaybackState.PAUSED, controller.position())
        else:
            media_status = MediaStatus(MediaPlaybackState.STOPPED)

        try:
            if self._published_track != (index, track):
                self._bridge.update_metadata(media_metadata(track, index))
                self._published_track = (index, track)
            self._bridge.update_status(media_status)
            self._bridge.update_volume(controller.volume())
            self._bridge.update_navigation(controller.has_next(), controller.has_previous())
        except MediaControlError as e:
            logger.warning("Media control update failed: %s", e)

    def notify_seeked(self, position: float) -> None:
        try:
            self._bridge.notify_seeked(position)
        except MediaControlError as e:
            logger.warning("Media control update failed: %s", e)

    def set_quit_callback(self, callback: Optional[Callable[[], None]]) -> None:
        """Called when the OS asks the player to quit."""
        self._bridge.set_quit_callback(callback)

    def close(self) -> None:
        self._bridge.cleanup()
