"""
SubRip (SRT) parser.
"""

import logging
import re
from typing import Dict, List

from ..formats import SubtitleFormat
from ..models import Cue, CueReplacementBehavior, OutputOptions, TimedCue
from ..utils import timestamp_to_micros
from .base import CueOutput, SubtitleParser, clean_cue_text, emit_cues, split_cue_blocks

logger = logging.getLogger(__name__)

_TIMING_PATTERN = re.compile(
    r'^\s*((?:\d+:)?\d+:\d+(?:[,.]\d+)?)\s*-->\s*((?:\d+:)?\d+:\d+(?:[,.]\d+)?)'
)
_ALIGNMENT_TAG_PATTERN = re.compile(r'\{\\an([1-9])\}')

# Numpad layout: 1-3 bottom, 4-6 middle, 7-9 top; left, center, right columns
_LINE_FRACTIONS = {0: 0.92, 1: 0.5, 2: 0.08}
_COLUMNS = {0: ("start", 0.08), 1: ("center", 0.5), 2: ("end", 0.92)}


def alignment_settings(alignment: int) -> Dict[str, object]:
    """Cue placement for a numpad-style alignment value (1-9)."""
    row, column = divmod(alignment - 1, 3)
    text_alignment, position = _COLUMNS[column]
    return {
        "line": _LINE_FRACTIONS[row],
        "position": position,
        "text_alignment": text_alignment,
    }


def parse_subrip_cues(text: str) -> List[TimedCue]:
    """
    Parse SubRip text into timed cues in file order.

    Args:
        text: SubRip document

    Returns:
        List of TimedCue, one per cue with text
    """
    timed_cues = []
    for match, body_lines in split_cue_blocks(text, _TIMING_PATTERN):
        start_us = timestamp_to_micros(match.group(1))
        end_us = timestamp_to_micros(match.group(2))
        if end_us < start_us:
            logger.warning(f"Skipping SubRip cue ending before it starts: {match.group(0).strip()}")
            continue

        raw_text = "\n".join(body_lines)
        settings: Dict[str, object] = {}
        alignment = _ALIGNMENT_TAG_PATTERN.search(raw_text)
        if alignment:
            settings = alignment_settings(int(alignment.group(1)))

        cue_text = clean_cue_text(raw_text)
        if not cue_text:
            continue

        timed_cues.append(TimedCue(
            cues=(Cue(text=cue_text, **settings),),
            start_time_us=start_us,
            duration_us=end_us - start_us,
        ))

    return timed_cues


class SubripParser(SubtitleParser):
    """Parser for SubRip text."""

    format = SubtitleFormat.SUBRIP
    replacement_behavior = CueReplacementBehavior.MERGE

    def parse(self, data: str, options: OutputOptions, output: CueOutput) -> None:
        emit_cues(parse_subrip_cues(data), options, output)
