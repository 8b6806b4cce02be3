"""
Text cleanup applied to decoded subtitles before parsing.

- Normalization trims invisible characters and folds unicode space variants
- Bloat stripping removes advertising lines injected by subtitle sites
"""

import logging
import re
from typing import Iterable, List, Optional, Pattern

from .formats import SubtitleFormat

logger = logging.getLogger(__name__)

BYTE_ORDER_MARK = chr(0xFEFF)
ZERO_WIDTH_SPACE = chr(0x200B)

# Non-breaking space and the U+2000 - U+205F space separators
SPACE_VARIANTS = (chr(0x00A0),) + tuple(chr(code) for code in range(0x2000, 0x200B)) + (chr(0x205F),)

_INVISIBLE = re.escape(BYTE_ORDER_MARK + ZERO_WIDTH_SPACE)
_LEADING_INVISIBLE_PATTERN = re.compile(r'^[\s' + _INVISIBLE + r']+')
_TRAILING_INVISIBLE_PATTERN = re.compile(r'[' + _INVISIBLE + r']+\Z')
_SPACE_VARIANTS_PATTERN = re.compile('[' + re.escape(''.join(SPACE_VARIANTS)) + ']')

BLOAT_PATTERNS: List[Pattern[str]] = [
    re.compile(
        r'Support\s+us\s+and\s+become\s+VIP\s+member\s+to\s+remove\s+all\s+ads\s+from\s+(www\.|)OpenSubtitles(\.org|)',
        re.IGNORECASE,
    ),
    re.compile(
        r'Please\s+rate\s+this\s+subtitle\s+at\s+.*\s+Help\s+other\s+users\s+to\s+choose\s+the\s+best\s+subtitles',
        re.IGNORECASE,
    ),
    re.compile(r'Contact\s(www\.|)OpenSubtitles(\.org|)\s+today', re.IGNORECASE),
    re.compile(r'Advertise\s+your\s+product\s+or\s+brand\s+here', re.IGNORECASE),
]


def normalize_text(text: str) -> str:
    """
    Trim invisible characters and fold unicode space variants into spaces.

    Leading whitespace, byte-order marks and zero-width spaces are removed
    from the start; byte-order marks and zero-width spaces from the end.
    Normalizing an already normalized string returns it unchanged.

    Args:
        text: Decoded subtitle text

    Returns:
        Normalized text

    Example:
        >>> normalize_text("\\ufeff  WEBVTT\\u00a0header\\u200b")
        'WEBVTT header'
    """
    text = _LEADING_INVISIBLE_PATTERN.sub('', text)
    text = _TRAILING_INVISIBLE_PATTERN.sub('', text)
    return _SPACE_VARIANTS_PATTERN.sub(' ', text)


def compile_bloat_patterns(extra_patterns: Optional[Iterable[str]] = None) -> List[Pattern[str]]:
    """Built-in bloat patterns followed by any extra case-insensitive patterns."""
    patterns = list(BLOAT_PATTERNS)
    for pattern in extra_patterns or ():
        patterns.append(re.compile(pattern, re.IGNORECASE))
    return patterns


def strip_bloat(
    text: str,
    subtitle_format: Optional[SubtitleFormat],
    patterns: Optional[List[Pattern[str]]] = None,
) -> str:
    """
    Replace known advertising phrases with a line break.

    SSA/ASS text is returned untouched: inserting line breaks there would
    break the style and timing directives of Dialogue lines.

    Args:
        text: Normalized subtitle text
        subtitle_format: Format selected for the stream
        patterns: Patterns to apply in order (default: BLOAT_PATTERNS)

    Returns:
        Cleaned text
    """
    if subtitle_format is SubtitleFormat.SSA:
        return text

    for pattern in patterns if patterns is not None else BLOAT_PATTERNS:
        text, count = pattern.subn('\n', text)
        if count:
            logger.debug(f"Removed {count} bloat occurrence(s) matching {pattern.pattern[:30]!r}")

    return text
