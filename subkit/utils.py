"""
Shared utility functions for SubKit.

Timestamp conversion between subtitle clock strings and integer
microseconds, the time base every parser emits.
"""

import re

MICROS_PER_SECOND = 1_000_000
MICROS_PER_MILLI = 1_000

_CLOCK_TIME_PATTERN = re.compile(r'^\s*(?:(\d+):)?(\d+):(\d+)(?:[.,](\d+))?\s*$')


def timestamp_to_micros(timestamp: str) -> int:
    """
    Convert a clock timestamp to microseconds.

    Accepts an optional hour field and a fractional part of any precision
    separated by "." or "," (SubRip), so WebVTT, SubRip and SSA times all
    go through here.

    Args:
        timestamp: Timestamp string such as "01:02:03.500", "02:03,5" or "0:00:01.25"

    Returns:
        Time in microseconds

    Raises:
        ValueError: If the string is not a clock timestamp

    Example:
        >>> timestamp_to_micros("00:01:30.500")
        90500000
    """
    match = _CLOCK_TIME_PATTERN.match(timestamp)
    if not match:
        raise ValueError(f"Invalid timestamp: {timestamp!r}")

    hours, minutes, seconds, fraction = match.groups()
    total_seconds = int(hours or 0) * 3600 + int(minutes) * 60 + int(seconds)
    micros = int((fraction or "0")[:6].ljust(6, "0"))
    return total_seconds * MICROS_PER_SECOND + micros


def micros_to_timestamp(micros: int) -> str:
    """
    Convert microseconds to HH:MM:SS.mmm format.

    Example:
        >>> micros_to_timestamp(90500000)
        '00:01:30.500'
    """
    sign = "-" if micros < 0 else ""
    millis = abs(micros) // MICROS_PER_MILLI
    hours, millis = divmod(millis, 3_600_000)
    minutes, millis = divmod(millis, 60_000)
    seconds, millis = divmod(millis, 1000)
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"


def millis_to_micros(millis: int) -> int:
    """Convert a millisecond value (such as a sync offset) to microseconds."""
    return millis * MICROS_PER_MILLI
