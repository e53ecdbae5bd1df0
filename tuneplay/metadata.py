"""Metadata extraction for audio files using mutagen."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from mutagen import File, MutagenError

from tuneplay.exceptions import FileAccessError, MetadataError
from tuneplay.logging import get_logger

logger = get_logger(__name__)


# Tag keys per field, tried in order across containers
TITLE_KEYS = (
    'TITLE',      # FLAC, OGG (Vorbis)
    'TIT2',       # MP3 (ID3v2)
    '\xa9nam',    # MP4 (iTunes)
)
ARTIST_KEYS = (
    'ARTIST',     # FLAC, OGG (Vorbis)
    'TPE1',       # MP3 (ID3v2)
    '\xa9ART',    # MP4 (iTunes)
)
ALBUM_KEYS = (
    'ALBUM',      # FLAC, OGG (Vorbis)
    'TALB',       # MP3 (ID3v2)
    '\xa9alb',    # MP4 (iTunes)
)
LYRICS_KEYS = (
    'LYRICS',          # FLAC, OGG (Vorbis)
    'UNSYNCEDLYRICS',  # FLAC, OGG (foobar2000 style)
    '\xa9lyr',         # MP4 (iTunes)
)
# ID3 lyrics frames are keyed by description and language, e.g. "USLT::eng"
ID3_LYRICS_PREFIX = 'USLT'


@dataclass(frozen=True)
class Metadata:
    """Tag values of one file. Each field is independently optional."""

    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    lyrics: Optional[str] = None


def _tag_text(value: Any) -> Optional[str]:
    """Flatten a tag value (list, tuple, ID3 frame, bytes) to stripped text."""
    # ID3 frames carry their payload in .text (list for text frames, str for USLT)
    if hasattr(value, 'text'):
        value = value.text
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        value = value[0]
    if isinstance(value, bytes):
        value = value.decode('utf-8', errors='ignore')
    if value is None:
        return None
    result = str(value).strip()
    return result or None


def _first_tag(tags: Any, keys: Iterable[str]) -> Optional[str]:
    """Get a tag value trying multiple possible keys."""
    for key in keys:
        try:
            if key not in tags:
                continue
            result = _tag_text(tags[key])
        except (KeyError, ValueError, TypeError):
            continue
        if result:
            return result
    return None


def _id3_lyrics(tags: Any) -> Optional[str]:
    try:
        keys = list(tags.keys())
    except (AttributeError, TypeError):
        return None
    for key in keys:
        if isinstance(key, str) and key.startswith(ID3_LYRICS_PREFIX):
            result = _tag_text(tags[key])
            if result:
                return result
    return None


class Prober:
    """Extracts title/artist/album/lyrics tags from audio files."""

    def probe(self, path: Union[str, Path]) -> Metadata:
        """
        Read the tags of a file.

        Args:
            path: Audio file to inspect

        Returns:
            Metadata with None for every tag that is absent

        Raises:
            FileAccessError: The file cannot be opened
            MetadataError: The container is recognised but cannot be parsed
        """
        path = Path(path)
        try:
            with open(path, 'rb') as fileobj:
                audio_file = File(fileobj)
        except OSError as e:
            raise FileAccessError(f"Cannot read {path}: {e}") from e
        except MutagenError as e:
            raise MetadataError(f"Cannot parse tags of {path}: {e}") from e

        if audio_file is None or audio_file.tags is None:
            logger.debug("No tags in %s", path)
            return Metadata()

        tags = audio_file.tags
        lyrics = _first_tag(tags, LYRICS_KEYS) or _id3_lyrics(tags)
        return Metadata(
            title=_first_tag(tags, TITLE_KEYS),
            artist=_first_tag(tags, ARTIST_KEYS),
            album=_first_tag(tags, ALBUM_KEYS),
            lyrics=lyrics,
        )
