"""Playlist bookkeeping and the plain-text playlist file format."""

from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from tuneplay.exceptions import FileAccessError
from tuneplay.logging import get_logger
from tuneplay.track import Track

logger = get_logger(__name__)


class Playlist:
    """Ordered tracks plus a cursor. No I/O, no wraparound.

    The cursor is None (empty playlist, or playback not started) or a valid
    index into the items. Navigation methods return True when the cursor
    moved and False when the call was a no-op.
    """

    def __init__(self) -> None:
        self._items: List[Track] = []
        self._cursor: Optional[int] = None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Track]:
        return iter(self._items)

    @property
    def cursor(self) -> Optional[int]:
        """Index of the current track, or None."""
        return self._cursor

    def tracks(self) -> Tuple[Track, ...]:
        """Snapshot of the items in order."""
        return tuple(self._items)

    def add(self, track: Track) -> None:
        """Append a track. Duplicates are allowed; the cursor is untouched."""
        self._items.append(track)

    def clear(self) -> None:
        """Clear the playlist and reset the cursor."""
        self._items.clear()
        self._cursor = None

    def jump_to(self, index: int) -> bool:
        """Move the cursor to index; out-of-range indexes are ignored."""
        if not 0 <= index < len(self._items):
            logger.debug("Ignoring jump to %d (playlist has %d tracks)", index, len(self._items))
            return False
        changed = self._cursor != index
        self._cursor = index
        return changed

    def advance(self) -> bool:
        """Step forward: None -> 0, stays put on the last index."""
        if not self._items:
            return False
        if self._cursor is None:
            self._cursor = 0
            return True
        if self._cursor >= len(self._items) - 1:
            return False
        self._cursor += 1
        return True

    def retreat(self) -> bool:
        """Step back; no-op without a cursor or at index 0."""
        if self._cursor is None or self._cursor == 0:
            return False
        self._cursor -= 1
        return True

    def current(self) -> Optional[Track]:
        """Get the track at the cursor."""
        if self._cursor is None:
            return None
        return self._items[self._cursor]

    def has_next(self) -> bool:
        if self._cursor is None:
            return bool(self._items)
        return self._cursor < len(self._items) - 1

    def has_previous(self) -> bool:
        return self._cursor is not None and self._cursor > 0


def read_playlist_file(path: Union[str, Path]) -> List[str]:
    """
    Read a playlist file: UTF-8 text, one path per line, no header.

    Blank lines are skipped. Entries are returned as the exact line text, so
    "./a.mp3" or "a//b.mp3" survive a later export unchanged (relative paths
    stay relative to the working directory).

    Raises:
        FileAccessError: The file cannot be read or is not UTF-8
    """
    path = Path(path)
    try:
        # No newline translation: entries are split on "\n" only
        text = path.read_bytes().decode('utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise FileAccessError(f"Cannot read playlist {path}: {e}") from e
    return [line for line in text.split('\n') if line]


def write_playlist_file(path: Union[str, Path], entries: Iterable[Union[str, Path]]) -> None:
    """
    Write one entry per line; str entries are written verbatim.

    The payload is encoded before the file is opened, so a failure leaves an
    existing playlist untouched.

    Raises:
        FileAccessError: The file cannot be written, an entry contains a
            newline, or an entry is not valid UTF-8 (undecodable file name)
    """
    path = Path(path)
    lines = [str(entry) for entry in entries]
    for line in lines:
        if '\n' in line:
            raise FileAccessError(f"Path cannot be stored in a playlist file: {line!r}")
    try:
        data = '\n'.join(lines).encode('utf-8')
    except UnicodeEncodeError as e:
        raise FileAccessError(f"Path cannot be stored as UTF-8 in {path}: {e}") from e
    try:
        path.write_bytes(data)
    except OSError as e:
        raise FileAccessError(f"Cannot write playlist {path}: {e}") from e
    logger.info("Exported %d tracks to %s", len(lines), path)
