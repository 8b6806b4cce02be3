"""
Data models for SubKit.

Defines the core data structures used throughout the package.
All times are integer microseconds unless stated otherwise.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple


class CueReplacementBehavior(Enum):
    """How newly emitted cues relate to the ones already on screen."""
    MERGE = "merge"
    REPLACE = "replace"


@dataclass(frozen=True)
class RawChunk:
    """A portion of a subtitle byte buffer handed over by the host pipeline."""
    data: bytes
    offset: int = 0
    length: Optional[int] = None  # None means "to the end of data"
    sequence: int = 0

    def payload(self) -> bytes:
        """Return the bytes described by offset and length, clamped to the buffer."""
        start = max(0, min(self.offset, len(self.data)))
        if self.length is None:
            end = len(self.data)
        else:
            end = max(start, min(start + self.length, len(self.data)))
        return bytes(memoryview(self.data)[start:end])


@dataclass(frozen=True)
class FormatHint:
    """Declared format of a stream: a mime type plus format-specific init data."""
    mime_type: Optional[str] = None
    initialization_data: Tuple[bytes, ...] = ()


@dataclass(frozen=True)
class DecodedText:
    """Text decoded from a byte buffer and the charset that produced it."""
    text: str
    encoding: str


@dataclass(frozen=True)
class Bitmap:
    """A decoded bitmap caption. Pixels are ARGB integers, row-major."""
    width: int
    height: int
    pixels: Tuple[int, ...]


@dataclass(frozen=True)
class Cue:
    """
    A single renderable caption.

    Positions are fractions of the video frame (0.0 - 1.0) when set.
    """
    text: Optional[str] = None
    bitmap: Optional[Bitmap] = None
    line: Optional[float] = None
    position: Optional[float] = None
    size: Optional[float] = None
    bitmap_height: Optional[float] = None
    text_alignment: Optional[str] = None  # "start", "center", "end"


@dataclass(frozen=True)
class TimedCue:
    """A group of cues sharing one start time and duration."""
    cues: Tuple[Cue, ...]
    start_time_us: Optional[int]
    duration_us: Optional[int]

    @property
    def end_time_us(self) -> Optional[int]:
        if self.start_time_us is None or self.duration_us is None:
            return None
        return self.start_time_us + self.duration_us

    @property
    def text(self) -> str:
        """Text of all cues joined by newlines (bitmap cues contribute nothing)."""
        return "\n".join(cue.text for cue in self.cues if cue.text)

    def shifted(self, start_time_us: Optional[int]) -> "TimedCue":
        """Copy with a new start time and the same duration."""
        return replace(self, start_time_us=start_time_us)


@dataclass(frozen=True)
class OutputOptions:
    """Which cues a parse call should emit, and in what order."""
    start_time_us: Optional[int] = None
    output_all_cues: bool = False

    @classmethod
    def all_cues(cls) -> "OutputOptions":
        return cls()

    @classmethod
    def only_cues_after(cls, start_time_us: int) -> "OutputOptions":
        return cls(start_time_us=start_time_us, output_all_cues=False)

    @classmethod
    def cues_after_then_remaining(cls, start_time_us: int) -> "OutputOptions":
        return cls(start_time_us=start_time_us, output_all_cues=True)


@dataclass
class DecoderConfig:
    """Configuration for subtitle decoders."""
    strip_bloat: bool = True
    extra_bloat_patterns: List[str] = field(default_factory=list)
    fallback_encoding: str = "utf-8"
    sniff_window: int = 10
