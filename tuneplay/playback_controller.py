"""Playback controller - owns the playlist cursor and the audio output.

All state changes happen on the thread that calls into the controller:
direct transport calls and the periodic tick(). The tick detects the end of
a track, advances, and replays queued media-control events.
"""

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Tuple, Union

from tuneplay.audio_decoder import Decoder
from tuneplay.exceptions import DecodeError, FileAccessError, PlayerError, SeekError
from tuneplay.logging import get_logger
from tuneplay.metadata import Prober
from tuneplay.playlist import Playlist, read_playlist_file, write_playlist_file
from tuneplay.track import Track

if TYPE_CHECKING:
    from tuneplay.audio_output import AudioOutput
    from tuneplay.media_controls import MediaControlAdapter

logger = get_logger(__name__)


class PlaybackStatus(Enum):
    """Derived playback state, computed in one place by the controller."""

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


class PlaybackController:
    """Playlist cursor + audio output + media-control reconciliation."""

    def __init__(
        self,
        output: "AudioOutput",
        decoder: Optional[Decoder] = None,
        prober: Optional[Prober] = None,
        media: Optional["MediaControlAdapter"] = None,
    ):
        self._output = output
        self._decoder = decoder or Decoder()
        self._prober = prober or Prober()
        self._media = media
        self._playlist = Playlist()
        self._status = PlaybackStatus.IDLE

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def playlist(self) -> Tuple[Track, ...]:
        return self._playlist.tracks()

    def playlist_index(self) -> Optional[int]:
        return self._playlist.cursor

    def current_track(self) -> Optional[Track]:
        return self._playlist.current()

    def current_lyrics(self) -> Optional[str]:
        track = self._playlist.current()
        return track.lyrics if track else None

    def has_next(self) -> bool:
        return self._playlist.has_next()

    def has_previous(self) -> bool:
        return self._playlist.has_previous()

    def is_paused(self) -> bool:
        return self._output.is_paused()

    def status(self) -> PlaybackStatus:
        """
        Derive the playback status.

        IDLE when there is no current track or the output holds nothing
        (not primed yet, or the last track finished); otherwise PAUSED or
        PLAYING from the output's paused flag.
        """
        if self._playlist.current() is None or self._output.is_empty():
            status = PlaybackStatus.IDLE
        elif self._output.is_paused():
            status = PlaybackStatus.PAUSED
        else:
            status = PlaybackStatus.PLAYING

        if status is not self._status:
            logger.info("Playback status: %s -> %s", self._status.value, status.value)
            self._status = status
        return status

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def play(self) -> None:
        """Start or resume; re-primes the current track if the output ran dry."""
        if self._playlist.current() is None:
            logger.debug("Play ignored: nothing to play")
            return
        if self._output.is_empty():
            self._swap()
        self._output.play()
        self._publish()

    def pause(self) -> None:
        if self._playlist.current() is None:
            logger.debug("Pause ignored: nothing playing")
            return
        self._output.pause()
        self._publish()

    def volume(self) -> float:
        return self._output.volume()

    def set_volume(self, volume: float) -> None:
        self._output.set_volume(volume)
        self._publish()

    def position(self) -> float:
        """Elapsed seconds of the current source."""
        return self._output.position()

    def normalized_position(self) -> Optional[float]:
        """Elapsed fraction of the current track, for sliders."""
        track = self._playlist.current()
        if track is None or track.duration <= 0:
            return None
        return min(1.0, self._output.position() / track.duration)

    def set_position(self, position: float) -> None:
        """Seek to an absolute position in seconds. Best effort: failures are ignored."""
        if self._playlist.current() is None:
            return
        try:
            self._output.seek(position)
        except SeekError as e:
            logger.debug("Seek to %.2fs ignored: %s", position, e)
            return
        if self._media is not None:
            self._media.notify_seeked(position)
        self._publish()

    def set_normalized_position(self, fraction: float) -> None:
        """Seek to a fraction of the current track's duration."""
        track = self._playlist.current()
        if track is None or track.duration <= 0:
            return
        self.set_position(fraction * track.duration)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def next(self) -> None:
        self._navigate(self._playlist.advance())

    def previous(self) -> None:
        self._navigate(self._playlist.retreat())

    def jump_to(self, index: int) -> None:
        self._navigate(self._playlist.jump_to(index))

    def _navigate(self, moved: bool) -> None:
        if not moved:
            return
        logger.debug("Cursor moved to %s", self._playlist.cursor)
        self._swap()
        self._publish()

    def _swap(self) -> None:
        """Replace the output's source with the current track, keeping the paused flag."""
        if not self._output.is_empty():
            self._output.skip_current()

        track = self._playlist.current()
        if track is None:
            return
        try:
            source = self._decoder.decode(track.path)
            self._output.enqueue(source)
        except (FileAccessError, DecodeError, PlayerError) as e:
            # Output stays empty; the next tick advances past this track
            logger.warning("Cannot play %s: %s", track.path, e)
            return
        logger.info("Now playing: %s", track.display_title)

    # ------------------------------------------------------------------
    # Playlist editing
    # ------------------------------------------------------------------
    def add_track(self, track: Track) -> None:
        """Append a track; the first track of an empty playlist starts playing."""
        was_empty = len(self._playlist) == 0
        self._playlist.add(track)
        if was_empty:
            self.next()
        else:
            self._publish()

    def add_file(self, path: Union[str, Path]) -> Track:
        """
        Load a file and append it.

        Raises:
            FileAccessError, DecodeError, MetadataError: The file cannot be loaded
        """
        track = Track.load(path, self._decoder, self._prober)
        self.add_track(track)
        return track

    def clear(self) -> None:
        """Empty the playlist and discard whatever the output holds."""
        self._playlist.clear()
        self._swap()
        self._publish()

    def load_playlist(self, path: Union[str, Path]) -> None:
        """
        Replace the playlist with the entries of a playlist file.

        Every entry is loaded before the current playlist is touched, so a
        failure leaves it intact.

        Raises:
            FileAccessError, DecodeError, MetadataError: First entry that fails
        """
        tracks = [
            Track.load(track_path, self._decoder, self._prober)
            for track_path in read_playlist_file(path)
        ]
        self.clear()
        for track in tracks:
            self.add_track(track)
        logger.info("Loaded %d tracks from %s", len(tracks), path)

    def export_playlist(self, path: Union[str, Path]) -> None:
        """
        Write the playlist paths, one per line.

        Raises:
            FileAccessError: The file cannot be written
        """
        write_playlist_file(path, (track.playlist_entry for track in self._playlist))

    # ------------------------------------------------------------------
    # Periodic work
    # ------------------------------------------------------------------
    def tick(self) -> None:
        """Auto-advance a finished track, then apply pending media-control events."""
        if self._playlist.current() is not None and self._output.is_empty():
            self.next()
        if self._media is not None:
            self._media.dispatch_pending(self)
        self._publish()

    def _publish(self) -> None:
        if self._media is not None:
            self._media.publish(self)

    def shutdown(self) -> None:
        """Release the audio output and the media-control bridge."""
        logger.info("Shutting down playback")
        if self._media is not None:
            self._media.close()
            self._media = None
        self._output.cleanup()
