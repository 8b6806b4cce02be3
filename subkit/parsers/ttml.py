"""
TTML (Timed Text Markup Language / DFXP) parser.

Paragraph timing is resolved through the nested time containers (body, div,
p), each clipped to its parent, and the document is emitted as a sequence
of non-overlapping intervals, each carrying every paragraph visible during
it. Timing on spans is not resolved.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..formats import SubtitleFormat
from ..models import Cue, CueReplacementBehavior, OutputOptions, TimedCue
from ..utils import MICROS_PER_SECOND
from .base import CueOutput, SubtitleParser, emit_cues

logger = logging.getLogger(__name__)

DEFAULT_FRAME_RATE = 30.0
DEFAULT_TICK_RATE = 1.0

_CLOCK_TIME_PATTERN = re.compile(
    r'^([0-9][0-9]+):([0-9][0-9]):([0-9][0-9])(?:(\.[0-9]+)|:([0-9][0-9])(?:\.([0-9]+))?)?$'
)
_OFFSET_TIME_PATTERN = re.compile(r'^([0-9]+(?:\.[0-9]+)?)(h|m|s|ms|f|t)$')
_WHITESPACE_PATTERN = re.compile(r'\s+')

_TIMED_ELEMENTS = ("body", "div", "p")


@dataclass(frozen=True)
class TimingParameters:
    frame_rate: float = DEFAULT_FRAME_RATE
    tick_rate: float = DEFAULT_TICK_RATE


@dataclass(frozen=True)
class _Paragraph:
    start_us: int
    end_us: int
    text: str


def _local_name(name: str) -> str:
    return name.rsplit("}", 1)[-1]


def _attribute(element: ET.Element, name: str) -> Optional[str]:
    for key, value in element.attrib.items():
        if _local_name(key) == name:
            return value.strip()
    return None


def parse_time_expression(expression: str, params: TimingParameters = TimingParameters()) -> int:
    """
    Convert a TTML time expression to microseconds.

    Supports clock times ("00:00:01.500", "00:00:01:12" with frames) and
    offset times with the metrics h, m, s, ms, f (frames) and t (ticks).

    Raises:
        ValueError: If the expression is malformed

    Example:
        >>> parse_time_expression("1.5s")
        1500000
    """
    expression = expression.strip()

    match = _CLOCK_TIME_PATTERN.match(expression)
    if match:
        hours, minutes, seconds, fraction, frames, subframes = match.groups()
        total = int(hours) * 3600 + int(minutes) * 60 + int(seconds)
        if fraction:
            total += float(fraction)
        if frames:
            total += int(frames) / params.frame_rate
        if subframes:
            total += float("0." + subframes) / params.frame_rate
        return round(total * MICROS_PER_SECOND)

    match = _OFFSET_TIME_PATTERN.match(expression)
    if match:
        value, metric = float(match.group(1)), match.group(2)
        if metric == "h":
            value *= 3600
        elif metric == "m":
            value *= 60
        elif metric == "ms":
            value /= 1000
        elif metric == "f":
            value /= params.frame_rate
        elif metric == "t":
            value /= params.tick_rate
        return round(value * MICROS_PER_SECOND)

    raise ValueError(f"Malformed TTML time expression: {expression!r}")


def _timing_parameters(root: ET.Element) -> TimingParameters:
    frame_rate = DEFAULT_FRAME_RATE
    tick_rate = DEFAULT_TICK_RATE
    try:
        if _attribute(root, "frameRate"):
            frame_rate = float(_attribute(root, "frameRate"))
            multiplier = _attribute(root, "frameRateMultiplier")
            if multiplier:
                numerator, denominator = multiplier.split()
                frame_rate = frame_rate * float(numerator) / float(denominator)
        if _attribute(root, "tickRate"):
            tick_rate = float(_attribute(root, "tickRate"))
    except (ValueError, ZeroDivisionError):
        logger.warning("Ignoring invalid TTML timing parameters")
    return TimingParameters(frame_rate=frame_rate, tick_rate=tick_rate)


def _element_text(element: ET.Element) -> str:
    """Flatten the text of a paragraph, turning <br/> into line breaks."""
    parts = [element.text or ""]
    for child in element:
        if _local_name(child.tag) == "br":
            parts.append("\n")
        else:
            parts.append(_element_text(child))
        parts.append(child.tail or "")
    return "".join(parts)


def _collapse_whitespace(text: str) -> str:
    lines = (_WHITESPACE_PATTERN.sub(" ", line).strip() for line in text.split("\n"))
    return "\n".join(line for line in lines if line)


def _resolve_interval(
    element: ET.Element,
    parent_start: int,
    parent_end: Optional[int],
    params: TimingParameters,
) -> Tuple[int, Optional[int]]:
    begin = _attribute(element, "begin")
    end = _attribute(element, "end")
    dur = _attribute(element, "dur")

    start_us = parent_start + parse_time_expression(begin, params) if begin else parent_start
    if end:
        end_us = parent_start + parse_time_expression(end, params)
    elif dur:
        end_us = start_us + parse_time_expression(dur, params)
    else:
        end_us = parent_end
    if end_us is not None and parent_end is not None:
        end_us = min(end_us, parent_end)
    return start_us, end_us


def _collect_paragraphs(
    element: ET.Element,
    parent_start: int,
    parent_end: Optional[int],
    params: TimingParameters,
    paragraphs: List[_Paragraph],
) -> None:
    name = _local_name(element.tag)
    start_us, end_us = parent_start, parent_end
    if name in _TIMED_ELEMENTS:
        start_us, end_us = _resolve_interval(element, parent_start, parent_end, params)

    if name == "p":
        text = _collapse_whitespace(_element_text(element))
        if not text:
            return
        if end_us is None:
            logger.debug(f"Skipping TTML paragraph without an end time: {text[:30]!r}")
            return
        if end_us > start_us:
            paragraphs.append(_Paragraph(start_us=start_us, end_us=end_us, text=text))
        return

    for child in element:
        _collect_paragraphs(child, start_us, end_us, params, paragraphs)


def parse_ttml_cues(text: str) -> List[TimedCue]:
    """
    Parse a TTML document into interval cues.

    Args:
        text: TTML document

    Returns:
        List of TimedCue ordered by start time, one per interval in which the
        set of visible paragraphs is constant

    Raises:
        ValueError: If the document is not well-formed XML or not TTML
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ValueError(f"Malformed TTML document: {e}") from e

    if _local_name(root.tag) != "tt":
        raise ValueError(f"Unexpected TTML root element: {_local_name(root.tag)}")

    params = _timing_parameters(root)
    paragraphs: List[_Paragraph] = []
    for child in root:
        _collect_paragraphs(child, 0, None, params, paragraphs)

    event_times = sorted({p.start_us for p in paragraphs} | {p.end_us for p in paragraphs})
    timed_cues = []
    for interval_start, interval_end in zip(event_times, event_times[1:]):
        visible = [p for p in paragraphs if p.start_us <= interval_start < p.end_us]
        if not visible:
            continue
        timed_cues.append(TimedCue(
            cues=tuple(Cue(text=p.text) for p in visible),
            start_time_us=interval_start,
            duration_us=interval_end - interval_start,
        ))

    return timed_cues


class TtmlParser(SubtitleParser):
    """Parser for TTML documents."""

    format = SubtitleFormat.TTML
    replacement_behavior = CueReplacementBehavior.REPLACE

    def parse(self, data: str, options: OutputOptions, output: CueOutput) -> None:
        emit_cues(parse_ttml_cues(data), options, output)
