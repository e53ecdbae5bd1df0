#!/usr/bin/env python3
"""TunePlay - Main entry point."""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

import gi
gi.require_version('Gst', '1.0')
gi.require_version('GLib', '2.0')
from gi.repository import GLib, Gst

from tuneplay.audio_output import AudioOutput
from tuneplay.config import get_config
from tuneplay.exceptions import MediaControlError, TuneplayError
from tuneplay.logging import LinuxLogger, get_logger
from tuneplay.media_controls import MediaControlAdapter
from tuneplay.playback_controller import PlaybackController
from tuneplay.tick_driver import TickDriver

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tuneplay',
        description='Play local audio files with OS media-key integration.',
    )
    parser.add_argument('files', nargs='*', help='Audio files to append to the playlist')
    parser.add_argument('-p', '--playlist', help='Playlist file to load (one path per line)')
    parser.add_argument('-v', '--volume', type=float, help='Initial volume, 0.0 to 1.0')
    parser.add_argument(
        '--no-media-controls',
        action='store_true',
        help='Do not register on the session bus (MPRIS2)',
    )
    parser.add_argument('--debug', action='store_true', help='Log at DEBUG level')
    return parser


def _create_media_adapter(config) -> Optional[MediaControlAdapter]:
    # dbus is only needed when media controls are on
    from tuneplay.mpris2 import MediaControlBridge

    try:
        bridge = MediaControlBridge(
            name=config.media_controls_name,
            identity=config.media_controls_identity,
            queue_size=config.media_event_queue_size,
        )
    except MediaControlError as e:
        logger.warning("Media controls unavailable: %s", e)
        return None
    return MediaControlAdapter(bridge)


def resolve_playlist(name: str, playlists_dir: Path) -> Path:
    """Look a bare playlist name up in the playlists directory when it is not a file here."""
    path = Path(name).expanduser()
    if not path.exists() and not path.is_absolute():
        candidate = playlists_dir / path
        if candidate.exists():
            return candidate
    return path


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # Initialize config (creates directories, loads settings)
    config = get_config()

    # Initialize logging (uses config for log directory)
    LinuxLogger(log_dir=config.log_dir)
    if args.debug:
        LinuxLogger.set_level(logging.DEBUG)

    # Initialize GStreamer
    Gst.init(None)

    try:
        tick_interval = config.tick_interval_ms
        volume = args.volume if args.volume is not None else config.initial_volume
        output = AudioOutput()
        output.set_volume(volume)
        media = None
        if config.media_controls_enabled and not args.no_media_controls:
            media = _create_media_adapter(config)
    except TuneplayError as e:
        print(f"tuneplay: {e}", file=sys.stderr)
        return 1

    controller = PlaybackController(output, media=media)
    try:
        if args.playlist:
            controller.load_playlist(resolve_playlist(args.playlist, config.playlists_dir))
        for path in args.files:
            controller.add_file(path)
    except TuneplayError as e:
        print(f"tuneplay: {e}", file=sys.stderr)
        controller.shutdown()
        return 1

    loop = GLib.MainLoop()
    if media is not None:
        media.set_quit_callback(loop.quit)

    def _on_signal():
        logger.info("Signal received, quitting")
        loop.quit()
        return GLib.SOURCE_REMOVE

    GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGINT, _on_signal)
    GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGTERM, _on_signal)

    driver = TickDriver(controller.tick, tick_interval)
    driver.start()
    try:
        loop.run()
    finally:
        driver.stop()
        controller.shutdown()
    return 0


if __name__ == '__main__':
    sys.exit(main())
