"""Track value type."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from tuneplay.audio_decoder import Decoder
from tuneplay.exceptions import DecodeError
from tuneplay.metadata import Prober


@dataclass(frozen=True)
class Track:
    """One playable item: a file, its tags and its total duration in seconds."""

    path: Path
    duration: float
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    lyrics: Optional[str] = None
    # Path text as given by the user or a playlist file; Path() normalises
    # "./a" and "a//b", which export must not do
    raw_path: Optional[str] = field(default=None, compare=False, repr=False)

    @property
    def display_title(self) -> str:
        """Title tag, or the file name when the file has none."""
        return self.title or self.path.name

    @property
    def playlist_entry(self) -> str:
        """Line written for this track in a playlist file."""
        return self.raw_path if self.raw_path is not None else str(self.path)

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        decoder: Optional[Decoder] = None,
        prober: Optional[Prober] = None,
    ) -> "Track":
        """
        Build a Track from a file on disk.

        Raises:
            FileAccessError: The file cannot be read
            DecodeError: Unsupported audio, or no known duration
            MetadataError: Tags present but unreadable
        """
        raw_path = path if isinstance(path, str) else str(path)
        path = Path(path)
        source = (decoder or Decoder()).decode(path)
        duration = source.total_duration()
        if duration is None:
            raise DecodeError(f"Track has no total duration: {path}")

        metadata = (prober or Prober()).probe(path)
        return cls(
            path=path,
            duration=duration,
            title=metadata.title,
            artist=metadata.artist,
            album=metadata.album,
            lyrics=metadata.lyrics,
            raw_path=raw_path,
        )
