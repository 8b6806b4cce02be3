"""
WebVTT parser.

Handles plain WebVTT documents. Cue settings for line, position, size and
alignment are kept; styling markup is dropped since rendering is the host's
job.
"""

import logging
import re
from typing import Dict, List, Optional

from ..formats import SubtitleFormat
from ..models import Cue, CueReplacementBehavior, OutputOptions, TimedCue
from ..utils import timestamp_to_micros
from .base import CueOutput, SubtitleParser, clean_cue_text, emit_cues, split_cue_blocks

logger = logging.getLogger(__name__)

# Support any number of hour digits, hours optional
_TIMING_PATTERN = re.compile(
    r'^\s*((?:\d+:)?\d{2}:\d{2}\.\d{3})\s+-->\s+((?:\d+:)?\d{2}:\d{2}\.\d{3})(.*)$'
)

_ALIGNMENTS = {
    "start": "start",
    "left": "start",
    "center": "center",
    "middle": "center",
    "end": "end",
    "right": "end",
}


def _percentage(value: str) -> Optional[float]:
    value = value.split(",", 1)[0].strip()
    if not value.endswith("%"):
        return None
    try:
        return float(value[:-1]) / 100
    except ValueError:
        return None


def parse_cue_settings(settings: str) -> Dict[str, object]:
    """
    Parse a WebVTT cue settings string into Cue keyword arguments.

    Only percentage line values are kept; line numbers depend on the
    renderer's line height.

    Example:
        >>> parse_cue_settings("line:10% position:20% align:left")
        {'line': 0.1, 'position': 0.2, 'text_alignment': 'start'}
    """
    result: Dict[str, object] = {}
    for token in settings.split():
        name, _, value = token.partition(":")
        if not value:
            continue
        if name == "line":
            line = _percentage(value)
            if line is not None:
                result["line"] = line
        elif name == "position":
            position = _percentage(value)
            if position is not None:
                result["position"] = position
        elif name == "size":
            size = _percentage(value)
            if size is not None:
                result["size"] = size
        elif name == "align" and value in _ALIGNMENTS:
            result["text_alignment"] = _ALIGNMENTS[value]
    return result


def parse_webvtt_cues(text: str) -> List[TimedCue]:
    """
    Parse WebVTT text into timed cues in document order.

    Args:
        text: WebVTT document (the WEBVTT header is optional)

    Returns:
        List of TimedCue, one per cue with text
    """
    timed_cues = []
    for match, body_lines in split_cue_blocks(text, _TIMING_PATTERN):
        start_us = timestamp_to_micros(match.group(1))
        end_us = timestamp_to_micros(match.group(2))
        if end_us < start_us:
            logger.warning(f"Skipping WebVTT cue ending before it starts: {match.group(0).strip()}")
            continue

        cue_text = clean_cue_text("\n".join(body_lines))
        if not cue_text:
            continue

        cue = Cue(text=cue_text, **parse_cue_settings(match.group(3)))
        timed_cues.append(TimedCue(cues=(cue,), start_time_us=start_us, duration_us=end_us - start_us))

    return timed_cues


class WebvttParser(SubtitleParser):
    """Parser for WebVTT text."""

    format = SubtitleFormat.WEBVTT
    replacement_behavior = CueReplacementBehavior.MERGE

    def parse(self, data: str, options: OutputOptions, output: CueOutput) -> None:
        emit_cues(parse_webvtt_cues(data), options, output)
