"""
Format parsers and the registry that picks one per stream.

Selection is a plain mapping from SubtitleFormat to parser class; parsers
that need the host's initialization data receive it on construction.
"""

from typing import Callable, Dict, Sequence

from ..formats import SubtitleFormat
from .base import SubtitleParser, emit_cues
from .dvb import DvbParser
from .mp4vtt import Mp4WebvttParser
from .pgs import PgsParser
from .ssa import SsaParser
from .subrip import SubripParser
from .ttml import TtmlParser
from .tx3g import Tx3gParser
from .webvtt import WebvttParser

_PARSER_FACTORIES: Dict[SubtitleFormat, Callable[[Sequence[bytes]], SubtitleParser]] = {
    SubtitleFormat.WEBVTT: lambda init_data: WebvttParser(),
    SubtitleFormat.SSA: SsaParser,
    SubtitleFormat.TTML: lambda init_data: TtmlParser(),
    SubtitleFormat.MP4_WEBVTT: lambda init_data: Mp4WebvttParser(),
    SubtitleFormat.SUBRIP: lambda init_data: SubripParser(),
    SubtitleFormat.TX3G: Tx3gParser,
    SubtitleFormat.DVB: DvbParser,
    SubtitleFormat.PGS: lambda init_data: PgsParser(),
}


def create_parser(subtitle_format: SubtitleFormat, initialization_data: Sequence[bytes] = ()) -> SubtitleParser:
    """
    Create the parser for a subtitle format.

    Args:
        subtitle_format: Format selected for the stream
        initialization_data: Format-specific header bytes from the host

    Returns:
        A fresh parser instance
    """
    return _PARSER_FACTORIES[subtitle_format](tuple(initialization_data))


__all__ = [
    "create_parser",
    "emit_cues",
    "SubtitleParser",
    "WebvttParser",
    "SsaParser",
    "TtmlParser",
    "Mp4WebvttParser",
    "SubripParser",
    "Tx3gParser",
    "DvbParser",
    "PgsParser",
]
