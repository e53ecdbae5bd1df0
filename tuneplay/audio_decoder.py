"""Audio decoder: turns a file or an in-memory buffer into a playable source.

Decoding proper happens inside the GStreamer pipeline of the audio output.
This module validates the data with mutagen, reads the total duration and
wraps the result in a Source that the output consumes exactly once.
"""

import base64
import io
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union

from mutagen import File, MutagenError

from tuneplay.exceptions import DecodeError, FileAccessError, PlayerError
from tuneplay.logging import get_logger

logger = get_logger(__name__)

ByteSource = Union[str, Path, bytes, bytearray]

DEFAULT_MIME_TYPE = 'application/octet-stream'


class Source(ABC):
    """A playable audio stream with a known (or unknown) total duration."""

    def __init__(self, duration: Optional[float]):
        self._duration = duration
        self._consumed = False

    def total_duration(self) -> Optional[float]:
        """Total length in seconds, or None when the container does not say."""
        return self._duration

    def consume(self) -> str:
        """
        Hand the stream over to the output.

        Returns:
            URI the GStreamer playbin can open

        Raises:
            PlayerError: The source was already consumed
        """
        if self._consumed:
            raise PlayerError(f"{self!r} was already consumed")
        self._consumed = True
        return self._uri()

    @abstractmethod
    def _uri(self) -> str:
        ...


class FileSource(Source):
    """Source decoded from a file on disk."""

    def __init__(self, path: Path, duration: Optional[float]):
        super().__init__(duration)
        self.path = path

    def _uri(self) -> str:
        return self.path.resolve().as_uri()

    def __repr__(self) -> str:
        return f"FileSource({str(self.path)!r})"


class MemorySource(Source):
    """Source decoded from an in-memory buffer."""

    def __init__(self, data: bytes, duration: Optional[float], mime_type: str = DEFAULT_MIME_TYPE):
        super().__init__(duration)
        self.data = data
        self.mime_type = mime_type

    def _uri(self) -> str:
        encoded = base64.b64encode(self.data).decode('ascii')
        return f"data:{self.mime_type};base64,{encoded}"

    def __repr__(self) -> str:
        return f"MemorySource({len(self.data)} bytes, {self.mime_type})"


def _duration_of(audio_file: Any) -> Optional[float]:
    length = getattr(audio_file.info, 'length', None)
    if not length or length <= 0:
        return None
    return float(length)


class Decoder:
    """Decodes audio files and buffers into Sources."""

    def decode(self, byte_source: ByteSource) -> Source:
        """
        Decode a file path or an in-memory buffer.

        Args:
            byte_source: Path to an audio file, or the raw bytes of one

        Returns:
            FileSource for paths, MemorySource for buffers

        Raises:
            FileAccessError: The file cannot be opened or read
            DecodeError: The data is not a supported audio format
        """
        if isinstance(byte_source, (bytes, bytearray)):
            data = bytes(byte_source)
            audio_file = self._inspect(io.BytesIO(data), '<memory>')
            mime_type = audio_file.mime[0] if getattr(audio_file, 'mime', None) else DEFAULT_MIME_TYPE
            return MemorySource(data, _duration_of(audio_file), mime_type)

        path = Path(byte_source)
        try:
            with open(path, 'rb') as fileobj:
                audio_file = self._inspect(fileobj, str(path))
        except OSError as e:
            raise FileAccessError(f"Cannot open {path}: {e}") from e
        return FileSource(path, _duration_of(audio_file))

    def _inspect(self, fileobj: BinaryIO, label: str) -> Any:
        try:
            audio_file = File(fileobj)
        except MutagenError as e:
            raise DecodeError(f"Corrupt audio data in {label}: {e}") from e
        if audio_file is None or getattr(audio_file, 'info', None) is None:
            raise DecodeError(f"Unsupported audio format: {label}")
        logger.debug("Decoded %s as %s", label, type(audio_file).__name__)
        return audio_file
