"""
SubKit - Subtitle Ingestion Toolkit

Turns raw subtitle bytes delivered by a media pipeline into timed cues,
whatever the file claims to be.

Features:
- Charset detection for legacy-encoded subtitle files
- Format sniffing from content (WebVTT, TTML, SSA/ASS, SubRip) with the
  declared mime type as fallback
- Removal of advertising lines injected by subtitle sites
- Parsers for WebVTT, SubRip, SSA/ASS, TTML, MP4 WebVTT, TX3G, PGS and DVB
- User sync offset applied to every emitted cue

Example usage:
    >>> from subkit import SubtitleDecoderFactory, SubtitleOffset, FormatHint, RawChunk
    >>>
    >>> offset = SubtitleOffset()
    >>> factory = SubtitleDecoderFactory(offset_provider=offset)
    >>> decoder = factory.create_decoder(FormatHint(mime_type="text/vtt"))
    >>>
    >>> offset.shift(500)  # show subtitles half a second earlier
    >>> decoder.parse(RawChunk(data), lambda cue: print(cue.start_time_us, cue.text))
"""

import logging

__version__ = "0.1.0"
__author__ = "SubKit Contributors"
__license__ = "MIT"

# Add NullHandler to prevent "No handler found" warnings
# Users should configure logging in their application if they want to see logs
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Core utility functions
from .utils import (
    timestamp_to_micros,
    micros_to_timestamp,
    millis_to_micros,
)

# Text pipeline
from .charset import detect_encoding, decode_bytes
from .cleaner import normalize_text, strip_bloat, compile_bloat_patterns, BLOAT_PATTERNS
from .sniffer import sniff_format, sniff_content

# Formats
from .formats import (
    SubtitleFormat,
    MimeTypes,
    format_for_hint,
    supports_format,
    mime_type_from_path,
)

# Main classes
from .decoder import SubtitleDecoder, CueSet, DecoderState
from .factory import SubtitleDecoderFactory
from .offset import OffsetProvider, SubtitleOffset, apply_offset
from .parsers import create_parser, SubtitleParser

# Data models
from .models import (
    RawChunk,
    FormatHint,
    DecodedText,
    Cue,
    Bitmap,
    TimedCue,
    OutputOptions,
    DecoderConfig,
    CueReplacementBehavior,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",

    # Utility functions
    "timestamp_to_micros",
    "micros_to_timestamp",
    "millis_to_micros",

    # Text pipeline
    "detect_encoding",
    "decode_bytes",
    "normalize_text",
    "strip_bloat",
    "compile_bloat_patterns",
    "BLOAT_PATTERNS",
    "sniff_format",
    "sniff_content",

    # Formats
    "SubtitleFormat",
    "MimeTypes",
    "format_for_hint",
    "supports_format",
    "mime_type_from_path",

    # Main classes
    "SubtitleDecoder",
    "SubtitleDecoderFactory",
    "CueSet",
    "DecoderState",
    "OffsetProvider",
    "SubtitleOffset",
    "apply_offset",
    "create_parser",
    "SubtitleParser",

    # Models
    "RawChunk",
    "FormatHint",
    "DecodedText",
    "Cue",
    "Bitmap",
    "TimedCue",
    "OutputOptions",
    "DecoderConfig",
    "CueReplacementBehavior",
]
