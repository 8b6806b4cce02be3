"""
Subtitle format sniffing.

Reads the start of a decoded subtitle to decide which grammar it is written
in instead of trusting the declared mime type, which providers frequently
get wrong. The declared hint is only consulted when the content is not
recognisable.
"""

import logging
import unicodedata
from typing import Optional

from .formats import SubtitleFormat, format_for_hint
from .models import FormatHint

logger = logging.getLogger(__name__)

DEFAULT_SNIFF_WINDOW = 10

# Control (Cc) and format (Cf) characters that some files carry before the header
_INVISIBLE_CATEGORIES = ("Cc", "Cf")


def trim_leading_invisible(text: str) -> str:
    """Strip leading whitespace, control and formatting characters."""
    index = 0
    while index < len(text):
        char = text[index]
        if not (char.isspace() or unicodedata.category(char) in _INVISIBLE_CATEGORIES):
            break
        index += 1
    return text[index:]


def is_webvtt(text: str, window: int = DEFAULT_SNIFF_WINDOW) -> bool:
    return "WEBVTT" in text[:window].upper()


def is_ttml(text: str) -> bool:
    return text[:15].lower() == '<?xml version="'


def is_ssa(text: str) -> bool:
    lowered = text[:13].lower()
    return lowered.startswith("[script info]") or lowered.startswith("title:")


def is_subrip(text: str) -> bool:
    # Weak on purpose: SRT files open with cue number 1. Checked last.
    return text.startswith("1")


def sniff_content(text: str, window: int = DEFAULT_SNIFF_WINDOW) -> Optional[SubtitleFormat]:
    """
    Identify a subtitle format from its leading content alone.

    Args:
        text: Decoded subtitle text
        window: Number of leading characters searched for the WebVTT marker

    Returns:
        The recognised format or None
    """
    trimmed = trim_leading_invisible(text)

    if is_webvtt(trimmed, window):
        return SubtitleFormat.WEBVTT
    if is_ttml(trimmed):
        return SubtitleFormat.TTML
    if is_ssa(trimmed):
        return SubtitleFormat.SSA
    if is_subrip(trimmed):
        return SubtitleFormat.SUBRIP
    return None


def sniff_format(
    text: str,
    hint: Optional[FormatHint] = None,
    window: int = DEFAULT_SNIFF_WINDOW,
) -> Optional[SubtitleFormat]:
    """
    Select the subtitle format for a stream.

    Content checks run first, in priority order WebVTT, TTML, SSA/ASS,
    SubRip; the declared hint is used only when none of them match.

    Args:
        text: Decoded, normalized subtitle text
        hint: Declared format hint from the host pipeline
        window: Number of leading characters searched for the WebVTT marker

    Returns:
        The selected format, or None when nothing matches

    Example:
        >>> sniff_format("WEBVTT\\n\\n00:00.000 --> 00:01.000\\nHi")
        <SubtitleFormat.WEBVTT: 'webvtt'>
    """
    subtitle_format = sniff_content(text, window)
    if subtitle_format is not None:
        logger.debug(f"Sniffed subtitle format from content: {subtitle_format.value}")
        return subtitle_format

    subtitle_format = format_for_hint(hint)
    if subtitle_format is not None:
        logger.debug(f"Using declared subtitle format: {subtitle_format.value}")
    return subtitle_format
