"""
Subtitle format identifiers and declared mime types.

Maps the mime types a host media pipeline declares for a text track onto
the closed set of formats SubKit can parse.
"""

import logging
import os
from enum import Enum
from typing import Optional
from urllib.parse import urlparse

from .models import FormatHint

logger = logging.getLogger(__name__)


class SubtitleFormat(Enum):
    """Formats with a parser in :mod:`subkit.parsers`."""
    WEBVTT = "webvtt"
    SSA = "ssa"
    TTML = "ttml"
    MP4_WEBVTT = "mp4-webvtt"
    SUBRIP = "subrip"
    TX3G = "tx3g"
    DVB = "dvb"
    PGS = "pgs"


class MimeTypes:
    """Sample mime types used by media pipelines for text tracks."""
    TEXT_VTT = "text/vtt"
    TEXT_SSA = "text/x-ssa"
    APPLICATION_MP4VTT = "application/x-mp4-vtt"
    APPLICATION_TTML = "application/ttml+xml"
    APPLICATION_SUBRIP = "application/x-subrip"
    APPLICATION_TX3G = "application/x-quicktime-tx3g"
    APPLICATION_DVBSUBS = "application/dvbsubs"
    APPLICATION_PGS = "application/pgs"
    APPLICATION_CEA608 = "application/cea-608"
    APPLICATION_MP4CEA608 = "application/x-mp4-cea-608"
    APPLICATION_CEA708 = "application/cea-708"


MIME_TYPE_FORMATS = {
    MimeTypes.TEXT_VTT: SubtitleFormat.WEBVTT,
    MimeTypes.TEXT_SSA: SubtitleFormat.SSA,
    MimeTypes.APPLICATION_MP4VTT: SubtitleFormat.MP4_WEBVTT,
    MimeTypes.APPLICATION_TTML: SubtitleFormat.TTML,
    MimeTypes.APPLICATION_SUBRIP: SubtitleFormat.SUBRIP,
    MimeTypes.APPLICATION_TX3G: SubtitleFormat.TX3G,
    MimeTypes.APPLICATION_DVBSUBS: SubtitleFormat.DVB,
    MimeTypes.APPLICATION_PGS: SubtitleFormat.PGS,
}

# Formats whose samples are binary payloads; their bytes are never decoded as text.
BINARY_FORMATS = frozenset({
    SubtitleFormat.MP4_WEBVTT,
    SubtitleFormat.TX3G,
    SubtitleFormat.DVB,
    SubtitleFormat.PGS,
})

# Closed-caption formats are recognised but deliberately not handled here.
UNSUPPORTED_MIME_TYPES = frozenset({
    MimeTypes.APPLICATION_CEA608,
    MimeTypes.APPLICATION_MP4CEA608,
    MimeTypes.APPLICATION_CEA708,
})

_EXTENSION_MIME_TYPES = {
    "vtt": MimeTypes.TEXT_VTT,
    "webvtt": MimeTypes.TEXT_VTT,
    "srt": MimeTypes.APPLICATION_SUBRIP,
    "ssa": MimeTypes.TEXT_SSA,
    "ass": MimeTypes.TEXT_SSA,
    "ttml": MimeTypes.APPLICATION_TTML,
    "dfxp": MimeTypes.APPLICATION_TTML,
    "xml": MimeTypes.APPLICATION_TTML,
    "sup": MimeTypes.APPLICATION_PGS,
}


def _normalize_mime_type(mime_type: Optional[str]) -> Optional[str]:
    if not mime_type:
        return None
    # Drop parameters such as "; charset=utf-8"
    return mime_type.split(";", 1)[0].strip().lower()


def format_for_hint(hint: Optional[FormatHint]) -> Optional[SubtitleFormat]:
    """
    Map a declared format hint onto a subtitle format.

    Args:
        hint: Declared hint from the host pipeline, may be None

    Returns:
        The mapped format, or None when the hint is missing, unknown or
        names an explicitly unsupported caption format

    Example:
        >>> format_for_hint(FormatHint(MimeTypes.APPLICATION_SUBRIP))
        <SubtitleFormat.SUBRIP: 'subrip'>
    """
    if hint is None:
        return None

    mime_type = _normalize_mime_type(hint.mime_type)
    if mime_type is None:
        return None

    if mime_type in UNSUPPORTED_MIME_TYPES:
        logger.warning(f"Rejecting unsupported caption format: {mime_type}")
        return None

    return MIME_TYPE_FORMATS.get(mime_type)


def supports_format(hint: Optional[FormatHint]) -> bool:
    """Return True only when the hint's mime type maps onto a parseable format."""
    if hint is None:
        return False
    return _normalize_mime_type(hint.mime_type) in MIME_TYPE_FORMATS


def mime_type_from_path(path_or_url: str) -> Optional[str]:
    """
    Guess a subtitle mime type from a file path or URL extension.

    Args:
        path_or_url: Local path or URL of a subtitle file

    Returns:
        Mime type string or None if the extension is not a known subtitle type

    Example:
        >>> mime_type_from_path("https://example.com/subs/en.srt?token=abc")
        'application/x-subrip'
    """
    path = urlparse(path_or_url).path if "://" in path_or_url else path_or_url
    extension = os.path.splitext(path)[1].lstrip(".").lower()
    return _EXTENSION_MIME_TYPES.get(extension)
