"""Tests for the MPRIS2 service (not exported on a bus)."""

import pytest
from pathlib import Path

dbus = pytest.importorskip('dbus')

from tuneplay.media_events import (
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
from tuneplay.mpris2 import (
    MPRIS2_NO_TRACK,
    MPRIS2_PLAYER_INTERFACE,
    MPRIS2_ROOT_INTERFACE,
    MPRIS2Service,
)


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def service(emitted):
    """Off-bus service collecting emitted events."""
    return MPRIS2Service('TunePlay', emitted.append)


@pytest.fixture
def metadata():
    return MediaMetadata(
        track_id='/org/tuneplay/track/0',
        title='Song',
        duration=90.0,
        artist='Someone',
        album='Record',
        path=Path('/music/song.mp3'),
    )


class TestMethods:
    """Test D-Bus methods become queued events."""

    def test_transport(self, service, emitted):
        """Test Play, Pause, Next and Previous."""
        service.Play()
        service.Pause()
        service.Next()
        service.Previous()
        assert emitted == [Play(), Pause(), Next(), Previous()]

    def test_stop_pauses(self, service, emitted):
        """Test Stop maps to Pause."""
        service.Stop()
        assert emitted == [Pause()]

    def test_play_pause_toggles_on_status(self, service, emitted):
        """Test PlayPause follows the last published status."""
        service.PlayPause()
        service.set_status(MediaStatus(MediaPlaybackState.PLAYING, 1.0))
        service.PlayPause()
        assert emitted == [Play(), Pause()]

    def test_seek(self, service, emitted):
        """Test Seek offsets in microseconds."""
        service.Seek(dbus.Int64(3_000_000))
        service.Seek(dbus.Int64(-1_500_000))
        assert emitted == [
            SeekRelative(SeekDirection.FORWARD, 3.0),
            SeekRelative(SeekDirection.BACKWARD, 1.5),
        ]

    def test_set_position(self, service, emitted, metadata):
        """Test SetPosition for the current track."""
        service.set_metadata(metadata)
        service.SetPosition(dbus.ObjectPath(metadata.track_id), dbus.Int64(2_000_000))
        assert emitted == [SetPosition(2.0)]

    def test_set_position_stale_track(self, service, emitted, metadata):
        """Test SetPosition for another track id is ignored."""
        service.set_metadata(metadata)
        service.SetPosition(dbus.ObjectPath('/org/tuneplay/track/7'), dbus.Int64(2_000_000))
        service.SetPosition(dbus.ObjectPath(metadata.track_id), dbus.Int64(-1))
        assert emitted == []

    def test_open_uri_not_supported(self, service):
        """Test OpenUri is rejected."""
        with pytest.raises(dbus.exceptions.DBusException):
            service.OpenUri('file:///music/other.mp3')

    def test_quit(self, service):
        """Test Quit calls the quit callback."""
        calls = []
        service.on_quit = lambda: calls.append(True)
        service.Quit()
        assert calls == [True]


class TestProperties:
    """Test the Properties interface."""

    def test_root_properties(self, service):
        """Test identity and capabilities."""
        props = service.GetAll(MPRIS2_ROOT_INTERFACE)
        assert props['Identity'] == 'TunePlay'
        assert bool(props['CanRaise']) is False
        assert bool(props['CanQuit']) is False

    def test_player_properties_without_track(self, service):
        """Test the initial player state."""
        props = service.GetAll(MPRIS2_PLAYER_INTERFACE)
        assert props['PlaybackStatus'] == 'Stopped'
        assert str(props['Metadata']['mpris:trackid']) == MPRIS2_NO_TRACK
        assert bool(props['CanPlay']) is False

    def test_metadata_property(self, service, metadata):
        """Test published metadata fields."""
        service.set_metadata(metadata)
        props = service.GetAll(MPRIS2_PLAYER_INTERFACE)
        assert str(props['Metadata']['mpris:trackid']) == metadata.track_id
        assert int(props['Metadata']['mpris:length']) == 90_000_000
        assert str(props['Metadata']['xesam:title']) == 'Song'
        assert list(props['Metadata']['xesam:artist']) == ['Someone']
        assert bool(props['CanPlay']) is True

    def test_status_and_position(self, service):
        """Test status and position follow set_status."""
        service.set_status(MediaStatus(MediaPlaybackState.PAUSED, 12.5))
        assert service.Get(MPRIS2_PLAYER_INTERFACE, 'PlaybackStatus') == 'Paused'
        assert int(service.Get(MPRIS2_PLAYER_INTERFACE, 'Position')) == 12_500_000

    def test_navigation(self, service):
        """Test CanGoNext/CanGoPrevious."""
        service.set_navigation(True, False)
        props = service.GetAll(MPRIS2_PLAYER_INTERFACE)
        assert bool(props['CanGoNext']) is True
        assert bool(props['CanGoPrevious']) is False

    def test_set_volume(self, service, emitted):
        """Test writing Volume emits a clamped SetVolume."""
        service.Set(MPRIS2_PLAYER_INTERFACE, 'Volume', dbus.Double(1.7))
        assert emitted == [SetVolume(1.0)]

    def test_read_only_property(self, service):
        """Test other properties cannot be written."""
        with pytest.raises(dbus.exceptions.DBusException):
            service.Set(MPRIS2_PLAYER_INTERFACE, 'PlaybackStatus', 'Playing')

    def test_unknown_property(self, service):
        """Test Get on an unknown property."""
        with pytest.raises(dbus.exceptions.DBusException):
            service.Get(MPRIS2_PLAYER_INTERFACE, 'Shuffle')
