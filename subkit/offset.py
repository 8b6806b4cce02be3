"""
Subtitle synchronization offset.

The playback layer owns the offset and may change it at any time from
another thread; decoders only read it, once per emitted cue, without
locking. Positive offsets make subtitles appear earlier.
"""

import logging
from typing import Optional, Protocol

from .models import TimedCue
from .utils import millis_to_micros

logger = logging.getLogger(__name__)


class OffsetProvider(Protocol):
    """Read-only view of the current synchronization offset."""

    def current_offset_ms(self) -> int:
        ...


class SubtitleOffset:
    """
    Mutable offset cell owned by the playback layer.

    Reads and writes are plain attribute access, so a decoder on the decode
    thread never waits on the thread adjusting the offset.

    Example:
        >>> offset = SubtitleOffset()
        >>> offset.shift(500)
        >>> offset.current_offset_ms()
        500
    """

    def __init__(self, offset_ms: int = 0):
        self._offset_ms = int(offset_ms)

    def __repr__(self) -> str:
        return f"SubtitleOffset({self._offset_ms}ms)"

    def current_offset_ms(self) -> int:
        return self._offset_ms

    def set_offset_ms(self, offset_ms: int) -> None:
        self._offset_ms = int(offset_ms)
        logger.debug(f"Subtitle offset set to {self._offset_ms}ms")

    def shift(self, delta_ms: int) -> None:
        """Move the offset by ``delta_ms`` (e.g. the +/-500ms sync buttons)."""
        self.set_offset_ms(self._offset_ms + int(delta_ms))

    def reset(self) -> None:
        self.set_offset_ms(0)


def apply_offset(timed_cue: TimedCue, offset_ms: int) -> TimedCue:
    """
    Shift a cue's start time by a millisecond offset.

    Cue times are microseconds, so the offset is scaled by 1000 before it
    is subtracted. Cues without a start time are returned unchanged.

    Args:
        timed_cue: Cue as produced by a parser
        offset_ms: Synchronization offset in milliseconds

    Returns:
        A copy with the adjusted start time and the same duration

    Example:
        >>> cue = TimedCue(cues=(), start_time_us=2_000_000, duration_us=1_000_000)
        >>> apply_offset(cue, 500).start_time_us
        1500000
    """
    if timed_cue.start_time_us is None:
        return timed_cue
    return timed_cue.shifted(timed_cue.start_time_us - millis_to_micros(offset_ms))


def read_offset_ms(provider: Optional[OffsetProvider]) -> int:
    """Sample the provider's current offset, treating a missing provider as zero."""
    if provider is None:
        return 0
    return provider.current_offset_ms()
