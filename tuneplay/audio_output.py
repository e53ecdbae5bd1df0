"""GStreamer-based audio output.

The AudioOutput class owns a single playbin for the lifetime of the process
and plays a FIFO of Sources through it. It never blocks: end-of-stream and
error messages are drained from the pipeline bus whenever the output is
polled, so the owner decides when to react to a finished source.
"""

from collections import deque
from typing import Deque, Optional, Tuple

import gi
gi.require_version('Gst', '1.0')
from gi.repository import Gst

from tuneplay.audio_decoder import Source
from tuneplay.exceptions import PlayerError, SeekError
from tuneplay.logging import get_logger

logger = get_logger(__name__)


# GStreamer playbin flags
GST_FLAG_AUDIO = 0x02
GST_FLAG_SOFT_VOLUME = 0x10


class AudioOutput:
    """
    Queue-based audio sink on top of a GStreamer playbin.

    The paused flag is sticky: it survives source changes, so a source
    enqueued while paused is prerolled but does not start.
    """

    def __init__(self):
        if not Gst.is_initialized():
            Gst.init(None)

        self.playbin: Optional[Gst.Element] = None
        self._queue: Deque[Tuple[Source, str]] = deque()
        self._current: Optional[Source] = None
        self._paused: bool = False
        self._volume: float = 1.0

        self._setup_pipeline()

    def _setup_pipeline(self):
        """Set up the GStreamer playbin pipeline."""
        self.playbin = Gst.ElementFactory.make("playbin", "playbin")
        if not self.playbin:
            raise PlayerError("Failed to create GStreamer playbin")

        audio_sink = Gst.ElementFactory.make("autoaudiosink", "audiosink")
        if audio_sink:
            self.playbin.set_property("audio-sink", audio_sink)

        try:
            self.playbin.set_property("flags", GST_FLAG_AUDIO | GST_FLAG_SOFT_VOLUME)
        except (AttributeError, TypeError):
            # Older playbin builds may not expose flags
            pass

        self.playbin.set_property("volume", self._volume)

    def _poll_bus(self) -> None:
        """Drain pending EOS/ERROR messages without blocking."""
        if not self.playbin:
            return
        bus = self.playbin.get_bus()
        while True:
            message = bus.pop_filtered(Gst.MessageType.EOS | Gst.MessageType.ERROR)
            if message is None:
                break
            if message.type == Gst.MessageType.ERROR:
                err, debug = message.parse_error()
                logger.error("Playback error: %s", err.message)
                if debug:
                    logger.debug("GStreamer debug: %s", debug)
                self._log_codec_help(err.message, debug or "")
            else:
                logger.debug("End of stream: %r", self._current)
            self._finish_current()

    def _log_codec_help(self, error: str, debug: str) -> None:
        """Log helpful messages for missing codecs."""
        combined = (error + debug).lower()
        if 'flac' in combined:
            logger.warning("Missing FLAC support: install gst-plugins-good")
        elif 'missing' in combined or 'decoder' in combined:
            logger.warning("Missing codec: install gst-plugins-good / gst-plugins-bad / gst-libav")

    def _finish_current(self) -> None:
        if self.playbin:
            self.playbin.set_state(Gst.State.NULL)
        self._current = None
        self._start_next()

    def _start_next(self) -> None:
        if self._current is not None or not self._queue:
            return
        source, uri = self._queue.popleft()
        self.playbin.set_property("uri", uri)
        target = Gst.State.PAUSED if self._paused else Gst.State.PLAYING
        ret = self.playbin.set_state(target)
        if ret == Gst.StateChangeReturn.FAILURE:
            logger.error("Failed to start %r", source)
            self.playbin.set_state(Gst.State.NULL)
            self._start_next()
            return
        self._current = source

    def enqueue(self, source: Source) -> None:
        """
        Queue a source; it starts at once if nothing is loaded.

        Raises:
            PlayerError: The source was already consumed
        """
        uri = source.consume()
        self._queue.append((source, uri))
        self._start_next()

    def skip_current(self) -> None:
        """Drop the loaded source and start the next queued one, if any."""
        if self._current is None:
            return
        logger.debug("Skipping %r", self._current)
        self._finish_current()

    def play(self) -> None:
        """Start or resume playback."""
        self._paused = False
        if self._current is not None:
            ret = self.playbin.set_state(Gst.State.PLAYING)
            if ret == Gst.StateChangeReturn.FAILURE:
                logger.error("Failed to start playback")

    def pause(self) -> None:
        """Pause playback."""
        self._paused = True
        if self._current is not None:
            self.playbin.set_state(Gst.State.PAUSED)

    def is_paused(self) -> bool:
        return self._paused

    def is_empty(self) -> bool:
        """True when no source is loaded or queued."""
        self._poll_bus()
        return self._current is None and not self._queue

    def volume(self) -> float:
        return self._volume

    def set_volume(self, volume: float) -> None:
        """
        Set volume (0.0 to 1.0).

        Args:
            volume: Volume level from 0.0 to 1.0 (will be clamped)
        """
        self._volume = max(0.0, min(1.0, float(volume)))
        if self.playbin:
            self.playbin.set_property("volume", self._volume)

    def position(self) -> float:
        """Elapsed seconds of the loaded source."""
        if self._current is None or not self.playbin:
            return 0.0
        success, position = self.playbin.query_position(Gst.Format.TIME)
        if not success or position < 0:
            return 0.0
        return position / Gst.SECOND

    def seek(self, position: float) -> None:
        """
        Seek the loaded source to position seconds.

        Raises:
            SeekError: Nothing loaded, target outside the stream, or the
                pipeline refused the seek
        """
        if self._current is None or not self.playbin:
            raise SeekError("Nothing to seek: no source loaded")
        if position < 0:
            raise SeekError(f"Cannot seek to negative position {position:.2f}s")
        duration = self._current.total_duration()
        if duration is not None and position > duration:
            raise SeekError(f"Seek to {position:.2f}s is past the end ({duration:.2f}s)")

        success = self.playbin.seek_simple(
            Gst.Format.TIME,
            Gst.SeekFlags.FLUSH | Gst.SeekFlags.KEY_UNIT,
            int(position * Gst.SECOND),
        )
        if not success:
            raise SeekError(f"Seek failed for position {position:.2f}s")

    def cleanup(self) -> None:
        """
        Clean up resources.

        Stops playback and releases the GStreamer pipeline.
        """
        self._queue.clear()
        self._current = None
        if self.playbin:
            self.playbin.set_state(Gst.State.NULL)
            self.playbin = None
