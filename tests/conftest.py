"""Pytest configuration and fixtures."""

import pytest
import tempfile
import shutil
from collections import deque
from pathlib import Path

# Mock GStreamer and GLib before imports
import sys
from unittest.mock import MagicMock

# Mock gi.repository
sys.modules['gi'] = MagicMock()
sys.modules['gi.repository'] = MagicMock()
sys.modules['gi.repository.Gst'] = MagicMock()
sys.modules['gi.repository.GLib'] = MagicMock()

from tuneplay.audio_decoder import Source
from tuneplay.exceptions import DecodeError, FileAccessError, SeekError, MediaControlError
from tuneplay.metadata import Metadata
from tuneplay.track import Track


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def mock_config(monkeypatch, temp_dir):
    """Configuration rooted in a temporary directory."""
    from tuneplay.config import Config

    monkeypatch.setenv('XDG_CONFIG_HOME', str(temp_dir / 'config'))
    monkeypatch.setenv('XDG_DATA_HOME', str(temp_dir / 'data'))
    Config._instance = None

    yield Config.get_instance()

    Config._instance = None


@pytest.fixture(autouse=True)
def detach_log_file():
    """Close any log file a test attached before its directory is removed."""
    from tuneplay.logging import LinuxLogger

    yield
    LinuxLogger.remove_file_handler()


# ============================================================================
# Fakes for the playback collaborators
# ============================================================================
class FakeSource(Source):
    """Source that remembers which path it was decoded from."""

    def __init__(self, path, duration):
        super().__init__(duration)
        self.path = Path(path)

    def _uri(self):
        return f"fake://{self.path}"


class FakeDecoder:
    """Decoder backed by a path -> duration table."""

    def __init__(self):
        self.durations = {}
        self.failures = {}
        self.decoded = []

    def register(self, path, duration=10.0):
        self.durations[Path(path)] = duration

    def fail(self, path, error=None):
        self.failures[Path(path)] = error or DecodeError(f"Unsupported audio format: {path}")

    def decode(self, byte_source):
        path = Path(byte_source)
        self.decoded.append(path)
        if path in self.failures:
            raise self.failures[path]
        if path not in self.durations:
            raise FileAccessError(f"Cannot open {path}: No such file")
        return FakeSource(path, self.durations[path])


class FakeProber:
    """Prober that titles every file after its stem."""

    def __init__(self):
        self.probed = []

    def probe(self, path):
        path = Path(path)
        self.probed.append(path)
        return Metadata(title=path.stem.upper(), artist='Artist')


class FakeOutput:
    """In-memory AudioOutput with the same queue and paused-flag semantics."""

    def __init__(self):
        self.queue = deque()
        self.current = None
        self.paused = False
        self._volume = 1.0
        self.elapsed = 0.0
        self.seeks = []
        self.skipped = []
        self.cleaned_up = False

    def _start_next(self):
        if self.current is None and self.queue:
            self.current = self.queue.popleft()
            self.elapsed = 0.0

    def finish(self):
        """Simulate end of stream of the loaded source."""
        self.current = None
        self._start_next()

    def enqueue(self, source):
        source.consume()
        self.queue.append(source)
        self._start_next()

    def skip_current(self):
        if self.current is not None:
            self.skipped.append(self.current)
        self.finish()

    def play(self):
        self.paused = False

    def pause(self):
        self.paused = True

    def is_paused(self):
        return self.paused

    def is_empty(self):
        return self.current is None and not self.queue

    def volume(self):
        return self._volume

    def set_volume(self, volume):
        self._volume = max(0.0, min(1.0, volume))

    def position(self):
        return self.elapsed if self.current is not None else 0.0

    def seek(self, position):
        self.seeks.append(position)
        if self.current is None:
            raise SeekError("Nothing to seek: no source loaded")
        duration = self.current.total_duration()
        if position < 0 or (duration is not None and position > duration):
            raise SeekError(f"Seek to {position}s is outside the stream")
        self.elapsed = position

    def cleanup(self):
        self.cleaned_up = True
        self.queue.clear()
        self.current = None


class FakeBridge:
    """Media-control bridge recording every outbound update."""

    def __init__(self):
        self.events = deque()
        self.metadata = []
        self.statuses = []
        self.volumes = []
        self.navigation = []
        self.seeked = []
        self.quit_callback = None
        self.cleaned_up = False
        self.broken = False

    def push(self, event):
        self.events.append(event)

    def receive_event(self):
        return self.events.popleft() if self.events else None

    def _check(self):
        if self.broken:
            raise MediaControlError("MPRIS2: org.freedesktop.DBus.Error.Disconnected")

    def update_metadata(self, metadata):
        self._check()
        self.metadata.append(metadata)

    def update_status(self, status):
        self._check()
        self.statuses.append(status)

    def update_volume(self, volume):
        self._check()
        self.volumes.append(volume)

    def update_navigation(self, can_go_next, can_go_previous):
        self._check()
        self.navigation.append((can_go_next, can_go_previous))

    def notify_seeked(self, position):
        self._check()
        self.seeked.append(position)

    def set_quit_callback(self, callback):
        self.quit_callback = callback

    def cleanup(self):
        self.cleaned_up = True


@pytest.fixture
def fake_decoder():
    return FakeDecoder()


@pytest.fixture
def fake_prober():
    return FakeProber()


@pytest.fixture
def fake_output():
    return FakeOutput()


@pytest.fixture
def fake_bridge():
    return FakeBridge()


@pytest.fixture
def make_track(fake_decoder):
    """Build a Track the fake decoder knows how to play."""

    def _make(name, duration=10.0, **tags):
        path = Path('/music') / f'{name}.mp3'
        fake_decoder.register(path, duration)
        return Track(path=path, duration=duration, **tags)

    return _make


@pytest.fixture
def controller(fake_output, fake_decoder, fake_prober):
    """PlaybackController wired to fakes, without media controls."""
    from tuneplay.playback_controller import PlaybackController
    return PlaybackController(fake_output, decoder=fake_decoder, prober=fake_prober)


@pytest.fixture
def media_controller(fake_output, fake_decoder, fake_prober, fake_bridge):
    """PlaybackController wired to fakes and a recording media bridge."""
    from tuneplay.media_controls import MediaControlAdapter
    from tuneplay.playback_controller import PlaybackController
    return PlaybackController(
        fake_output,
        decoder=fake_decoder,
        prober=fake_prober,
        media=MediaControlAdapter(fake_bridge),
    )
