"""
Parser for 3GPP timed text (TX3G) samples.

A sample starts with a 16-bit text length followed by the text, UTF-8 or
UTF-16 when a byte-order mark is present. Style modifier boxes after the
text are ignored. The sample description may move the default line
position.
"""

import struct
from typing import Sequence

from ..formats import SubtitleFormat
from ..models import Cue, CueReplacementBehavior, OutputOptions, TimedCue
from .base import CueOutput, SubtitleParser, emit_cues

DEFAULT_VERTICAL_PLACEMENT = 0.85
MAX_VERTICAL_PLACEMENT = 0.95
CUSTOM_VERTICAL_PLACEMENT_FLAG = 0x20
SAMPLE_DESCRIPTION_SIZES = (48, 53)

_UTF16_BOMS = (b"\xfe\xff", b"\xff\xfe")


def decode_tx3g_text(data: bytes) -> str:
    """
    Extract the text of a TX3G sample.

    Raises:
        ValueError: If the declared text length exceeds the sample
    """
    if len(data) < 2:
        return ""

    (text_length,) = struct.unpack_from(">H", data, 0)
    if text_length == 0:
        return ""
    if 2 + text_length > len(data):
        raise ValueError(f"TX3G text length {text_length} exceeds sample size {len(data)}")

    text_bytes = data[2:2 + text_length]
    if text_bytes[:2] in _UTF16_BOMS:
        return text_bytes.decode("utf-16")
    return text_bytes.decode("utf-8", errors="replace")


def parse_vertical_placement(initialization_data: Sequence[bytes]) -> float:
    """
    Default line position from a TX3G sample description.

    Only the fixed-size descriptions (48 or 53 bytes) are read. When the
    display flags request custom vertical placement, the default text box
    top is taken relative to a track height of 20 times the font size.
    Font and colour defaults are a rendering concern and are not read.
    """
    if len(initialization_data) != 1 or len(initialization_data[0]) not in SAMPLE_DESCRIPTION_SIZES:
        return DEFAULT_VERTICAL_PLACEMENT

    description = initialization_data[0]
    if not description[0] & CUSTOM_VERTICAL_PLACEMENT_FLAG:
        return DEFAULT_VERTICAL_PLACEMENT

    track_height = 20 * description[25]
    if track_height == 0:
        return DEFAULT_VERTICAL_PLACEMENT
    (requested,) = struct.unpack_from(">H", description, 10)
    return min(max(requested / track_height, 0.0), MAX_VERTICAL_PLACEMENT)


class Tx3gParser(SubtitleParser):
    """Parser for TX3G samples."""

    format = SubtitleFormat.TX3G
    replacement_behavior = CueReplacementBehavior.REPLACE
    accepts_text = False

    def __init__(self, initialization_data: Sequence[bytes] = ()):
        self.vertical_placement = parse_vertical_placement(initialization_data)

    def parse(self, data: bytes, options: OutputOptions, output: CueOutput) -> None:
        text = decode_tx3g_text(data)
        cues = (Cue(text=text, line=self.vertical_placement),) if text else ()
        emit_cues([TimedCue(cues=cues, start_time_us=None, duration_us=None)], options, output)
