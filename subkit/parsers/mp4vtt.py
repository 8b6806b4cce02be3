"""
Parser for WebVTT samples embedded in MP4 (ISO/IEC 14496-30).

Each sample is a sequence of boxes: ``vttc`` boxes hold one cue each, with
``payl`` (text) and ``sttg`` (settings) children; a ``vtte`` box marks an
empty sample.
"""

import logging
import struct
from typing import Iterator, List, Tuple

from ..formats import SubtitleFormat
from ..models import Cue, CueReplacementBehavior, OutputOptions, TimedCue
from .base import CueOutput, SubtitleParser, clean_cue_text, emit_cues
from .webvtt import parse_cue_settings

logger = logging.getLogger(__name__)

BOX_HEADER_SIZE = 8
TYPE_VTTC = b"vttc"
TYPE_PAYL = b"payl"
TYPE_STTG = b"sttg"


def iter_boxes(data: bytes) -> Iterator[Tuple[bytes, bytes]]:
    """
    Yield (box type, box payload) pairs from a flat sequence of boxes.

    Raises:
        ValueError: If a box header or body runs past the end of the data
    """
    position = 0
    while position < len(data):
        if len(data) - position < BOX_HEADER_SIZE:
            raise ValueError("Incomplete MP4 box header")
        size, box_type = struct.unpack_from(">I4s", data, position)
        if size < BOX_HEADER_SIZE or position + size > len(data):
            raise ValueError(f"Invalid MP4 box size {size} for {box_type!r}")
        yield box_type, data[position + BOX_HEADER_SIZE:position + size]
        position += size


def _parse_vttc(payload: bytes) -> Cue:
    text = ""
    settings = ""
    for box_type, box_payload in iter_boxes(payload):
        if box_type == TYPE_PAYL:
            text = box_payload.decode("utf-8", errors="replace")
        elif box_type == TYPE_STTG:
            settings = box_payload.decode("utf-8", errors="replace")
    return Cue(text=clean_cue_text(text), **parse_cue_settings(settings))


class Mp4WebvttParser(SubtitleParser):
    """Parser for MP4-embedded WebVTT samples."""

    format = SubtitleFormat.MP4_WEBVTT
    replacement_behavior = CueReplacementBehavior.REPLACE
    accepts_text = False

    def parse(self, data: bytes, options: OutputOptions, output: CueOutput) -> None:
        cues: List[Cue] = []
        for box_type, payload in iter_boxes(data):
            if box_type == TYPE_VTTC:
                cues.append(_parse_vttc(payload))
            # vtte and unknown boxes carry no cue

        # Timing comes from the container sample, so it is left unset here
        emit_cues([TimedCue(cues=tuple(cues), start_time_us=None, duration_us=None)], options, output)
