"""MPRIS2 (Media Player Remote Interfacing Specification) D-Bus interface.

This module implements MPRIS2 for desktop integration, allowing:
- Media key support (PlayPause, Next, Previous)
- Lock-screen and panel widgets (metadata, playback status, position)
- Remote control via D-Bus

D-Bus method calls never touch playback state. They are turned into
media_events objects and pushed onto a bounded queue that the controller
drains on its own thread.
"""

from typing import Any, Callable, Dict, Optional

import dbus
import dbus.service
from dbus.mainloop.glib import DBusGMainLoop

from tuneplay.exceptions import MediaControlError
from tuneplay.logging import get_logger
from tuneplay import media_events
from tuneplay.media_events import MediaControlEvent, MediaEventQueue, MediaMetadata, MediaStatus

logger = get_logger(__name__)


# MPRIS2 interfaces
MPRIS2_BUS_NAME_PREFIX = 'org.mpris.MediaPlayer2.'
MPRIS2_OBJECT_PATH = '/org/mpris/MediaPlayer2'
MPRIS2_ROOT_INTERFACE = 'org.mpris.MediaPlayer2'
MPRIS2_PLAYER_INTERFACE = 'org.mpris.MediaPlayer2.Player'
MPRIS2_NO_TRACK = '/org/mpris/MediaPlayer2/TrackList/NoTrack'

SUPPORTED_MIME_TYPES = ['audio/mpeg', 'audio/flac', 'audio/ogg', 'audio/x-wav', 'audio/mp4']


def _mpris_metadata(metadata: Optional[MediaMetadata]) -> Dict[str, Any]:
    """Build the a{sv} Metadata property from a MediaMetadata."""
    if metadata is None:
        return {'mpris:trackid': dbus.ObjectPath(MPRIS2_NO_TRACK)}

    result: Dict[str, Any] = {
        'mpris:trackid': dbus.ObjectPath(metadata.track_id),
        'mpris:length': dbus.Int64(int(metadata.duration * 1_000_000)),
        'xesam:title': dbus.String(metadata.title),
    }
    if metadata.artist:
        result['xesam:artist'] = dbus.Array([metadata.artist], signature='s')
    if metadata.album:
        result['xesam:album'] = dbus.String(metadata.album)
    if metadata.path is not None:
        result['xesam:url'] = dbus.String(metadata.path.resolve().as_uri())
    return result


class MPRIS2Service(dbus.service.Object):
    """org.mpris.MediaPlayer2 and org.mpris.MediaPlayer2.Player on one object.

    Without a bus_name the object is not exported; it still translates calls,
    which is how it is exercised off-bus.
    """

    def __init__(
        self,
        identity: str,
        emit: Callable[[MediaControlEvent], Any],
        bus_name: Optional[dbus.service.BusName] = None,
    ):
        if bus_name is not None:
            super().__init__(bus_name=bus_name, object_path=MPRIS2_OBJECT_PATH)
        else:
            super().__init__()
        self._identity = identity
        self._emit = emit
        self.on_quit: Optional[Callable[[], None]] = None

        self._playback_status = 'Stopped'  # Playing, Paused, Stopped
        self._metadata: Dict[str, Any] = _mpris_metadata(None)
        self._volume = 1.0
        self._position = 0.0
        self._can_go_next = False
        self._can_go_previous = False

    @property
    def _has_track(self) -> bool:
        return str(self._metadata['mpris:trackid']) != MPRIS2_NO_TRACK

    # ------------------------------------------------------------------
    # org.mpris.MediaPlayer2
    # ------------------------------------------------------------------
    @dbus.service.method(MPRIS2_ROOT_INTERFACE, in_signature='', out_signature='')
    def Raise(self):
        """No window to raise."""
        logger.debug("MPRIS2: Raise requested (ignored)")

    @dbus.service.method(MPRIS2_ROOT_INTERFACE, in_signature='', out_signature='')
    def Quit(self):
        """Quit the application."""
        logger.info("MPRIS2: Quit requested")
        if self.on_quit:
            self.on_quit()

    # ------------------------------------------------------------------
    # org.mpris.MediaPlayer2.Player
    # ------------------------------------------------------------------
    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='', out_signature='')
    def Next(self):
        logger.info("MPRIS2: Next requested")
        self._emit(media_events.Next())

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='', out_signature='')
    def Previous(self):
        logger.info("MPRIS2: Previous requested")
        self._emit(media_events.Previous())

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='', out_signature='')
    def Pause(self):
        logger.info("MPRIS2: Pause requested")
        self._emit(media_events.Pause())

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='', out_signature='')
    def PlayPause(self):
        """Toggle play/pause based on the last published status."""
        logger.info("MPRIS2: PlayPause requested")
        if self._playback_status == 'Playing':
            self._emit(media_events.Pause())
        else:
            self._emit(media_events.Play())

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='', out_signature='')
    def Stop(self):
        """There is no stopped transport state; Stop pauses."""
        logger.info("MPRIS2: Stop requested")
        self._emit(media_events.Pause())

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='', out_signature='')
    def Play(self):
        logger.info("MPRIS2: Play requested")
        self._emit(media_events.Play())

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='x', out_signature='')
    def Seek(self, offset):
        """Seek forward or backward by offset microseconds."""
        logger.debug("MPRIS2: Seek requested: %d microseconds", offset)
        self._emit(media_events.seek_from_offset(int(offset)))

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='ox', out_signature='')
    def SetPosition(self, track_id, position):
        """Set position in microseconds; ignored for a stale track id."""
        logger.debug("MPRIS2: SetPosition requested: track_id=%s, position=%d", track_id, position)
        if str(track_id) != str(self._metadata['mpris:trackid']) or position < 0:
            logger.debug("MPRIS2: SetPosition ignored")
            return
        self._emit(media_events.SetPosition(int(position) / 1_000_000.0))

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='s', out_signature='')
    def OpenUri(self, uri):
        logger.info("MPRIS2: OpenUri rejected: %s", uri)
        raise dbus.exceptions.DBusException(
            'Opening URIs is not supported',
            name='org.freedesktop.DBus.Error.NotSupported',
        )

    @dbus.service.signal(MPRIS2_PLAYER_INTERFACE, signature='x')
    def Seeked(self, position):
        """Signal emitted after a seek, position in microseconds."""
        pass

    # ------------------------------------------------------------------
    # org.freedesktop.DBus.Properties
    # ------------------------------------------------------------------
    def _root_properties(self) -> Dict[str, Any]:
        return {
            'CanQuit': dbus.Boolean(self.on_quit is not None),
            'CanRaise': dbus.Boolean(False),
            'HasTrackList': dbus.Boolean(False),
            'Identity': dbus.String(self._identity),
            'SupportedUriSchemes': dbus.Array(['file'], signature='s'),
            'SupportedMimeTypes': dbus.Array(SUPPORTED_MIME_TYPES, signature='s'),
        }

    def _player_properties(self) -> Dict[str, Any]:
        has_track = self._has_track
        return {
            'PlaybackStatus': dbus.String(self._playback_status),
            'Rate': dbus.Double(1.0),
            'MinimumRate': dbus.Double(1.0),
            'MaximumRate': dbus.Double(1.0),
            'Metadata': dbus.Dictionary(self._metadata, signature='sv'),
            'Volume': dbus.Double(self._volume),
            'Position': dbus.Int64(int(self._position * 1_000_000)),
            'CanGoNext': dbus.Boolean(self._can_go_next),
            'CanGoPrevious': dbus.Boolean(self._can_go_previous),
            'CanPlay': dbus.Boolean(has_track),
            'CanPause': dbus.Boolean(has_track),
            'CanSeek': dbus.Boolean(has_track),
            'CanControl': dbus.Boolean(True),
        }

    @dbus.service.method(dbus.PROPERTIES_IFACE, in_signature='ss', out_signature='v')
    def Get(self, interface, prop):
        properties = self.GetAll(interface)
        if prop not in properties:
            raise dbus.exceptions.DBusException(
                f'No such property {interface}.{prop}',
                name='org.freedesktop.DBus.Error.UnknownProperty',
            )
        return properties[prop]

    @dbus.service.method(dbus.PROPERTIES_IFACE, in_signature='s', out_signature='a{sv}')
    def GetAll(self, interface):
        if interface == MPRIS2_ROOT_INTERFACE:
            return self._root_properties()
        if interface == MPRIS2_PLAYER_INTERFACE:
            return self._player_properties()
        raise dbus.exceptions.DBusException(
            f'No such interface {interface}',
            name='org.freedesktop.DBus.Error.UnknownInterface',
        )

    @dbus.service.method(dbus.PROPERTIES_IFACE, in_signature='ssv', out_signature='')
    def Set(self, interface, prop, value):
        """Only Player.Volume is writable; the change arrives as an event."""
        if interface == MPRIS2_PLAYER_INTERFACE and prop == 'Volume':
            volume = max(0.0, min(1.0, float(value)))
            logger.debug("MPRIS2: Volume set to %.2f", volume)
            self._emit(media_events.SetVolume(volume))
            return
        raise dbus.exceptions.DBusException(
            f'Property {interface}.{prop} is read-only',
            name='org.freedesktop.DBus.Error.PropertyReadOnly',
        )

    @dbus.service.signal(dbus.PROPERTIES_IFACE, signature='sa{sv}as')
    def PropertiesChanged(self, interface, changed, invalidated):
        """Signal emitted when properties change."""
        pass

    def _changed(self, changed: Dict[str, Any]) -> None:
        self.PropertiesChanged(MPRIS2_PLAYER_INTERFACE, changed, [])

    # ------------------------------------------------------------------
    # Outbound state, called from the controller thread
    # ------------------------------------------------------------------
    def set_metadata(self, metadata: Optional[MediaMetadata]) -> None:
        new_metadata = _mpris_metadata(metadata)
        if new_metadata == self._metadata:
            return
        self._metadata = new_metadata
        has_track = self._has_track
        self._changed({
            'Metadata': dbus.Dictionary(new_metadata, signature='sv'),
            'CanPlay': dbus.Boolean(has_track),
            'CanPause': dbus.Boolean(has_track),
            'CanSeek': dbus.Boolean(has_track),
        })

    def set_status(self, status: MediaStatus) -> None:
        self._position = status.elapsed or 0.0
        value = status.state.value
        if value != self._playback_status:
            self._playback_status = value
            self._changed({'PlaybackStatus': dbus.String(value)})

    def set_volume(self, volume: float) -> None:
        if abs(self._volume - volume) > 0.001:
            self._volume = volume
            self._changed({'Volume': dbus.Double(volume)})

    def set_navigation(self, can_go_next: bool, can_go_previous: bool) -> None:
        changed = {}
        if can_go_next != self._can_go_next:
            self._can_go_next = can_go_next
            changed['CanGoNext'] = dbus.Boolean(can_go_next)
        if can_go_previous != self._can_go_previous:
            self._can_go_previous = can_go_previous
            changed['CanGoPrevious'] = dbus.Boolean(can_go_previous)
        if changed:
            self._changed(changed)

    def seeked(self, position: float) -> None:
        self._position = position
        self.Seeked(dbus.Int64(int(position * 1_000_000)))


class MediaControlBridge:
    """Owns the MPRIS2 bus name, the exported service and the event queue."""

    def __init__(self, name: str = 'tuneplay', identity: str = 'TunePlay', queue_size: int = 64):
        """
        Register on the session bus.

        Raises:
            MediaControlError: No session bus, or the name is already taken
        """
        self._events = MediaEventQueue(queue_size)
        self.bus_name = MPRIS2_BUS_NAME_PREFIX + name
        try:
            DBusGMainLoop(set_as_default=True)
            self.bus = dbus.SessionBus()
            self._bus_name = dbus.service.BusName(self.bus_name, self.bus, do_not_queue=True)
        except dbus.exceptions.DBusException as e:
            raise MediaControlError(f"MPRIS2: cannot acquire {self.bus_name}: {e}") from e

        self.service = MPRIS2Service(identity, self._events.push, bus_name=self._bus_name)
        logger.info("MPRIS2: Acquired bus name %s", self.bus_name)

    def receive_event(self) -> Optional[MediaControlEvent]:
        """Next pending inbound event, or None. Never blocks."""
        return self._events.pop()

    def set_quit_callback(self, callback: Optional[Callable[[], None]]) -> None:
        self.service.on_quit = callback

    def _call(self, func: Callable[..., None], *args: Any) -> None:
        try:
            func(*args)
        except dbus.exceptions.DBusException as e:
            raise MediaControlError(f"MPRIS2: {e.get_dbus_name()}: {e}") from e

    def update_metadata(self, metadata: Optional[MediaMetadata]) -> None:
        self._call(self.service.set_metadata, metadata)

    def update_status(self, status: MediaStatus) -> None:
        self._call(self.service.set_status, status)

    def update_volume(self, volume: float) -> None:
        self._call(self.service.set_volume, volume)

    def update_navigation(self, can_go_next: bool, can_go_previous: bool) -> None:
        self._call(self.service.set_navigation, can_go_next, can_go_previous)

    def notify_seeked(self, position: float) -> None:
        self._call(self.service.seeked, position)

    def cleanup(self) -> None:
        """Clean up MPRIS2 resources."""
        try:
            self.service.remove_from_connection()
            self.bus.release_name(self.bus_name)
            logger.info("MPRIS2: Cleaned up")
        except (dbus.exceptions.DBusException, LookupError) as e:
            logger.error("MPRIS2: Error during cleanup: %s", e, exc_info=True)
