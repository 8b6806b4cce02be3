"""
Shared parser interface and text helpers.

Every format parser turns one sample (text or bytes) into TimedCue objects
and hands them to an output callable. Parsers may keep state between
samples (bitmap formats build pictures over several segments); ``reset``
drops that state.
"""

import html
import re
from typing import Callable, Iterable, List, Optional, Pattern, Tuple, Union

from ..formats import SubtitleFormat
from ..models import CueReplacementBehavior, OutputOptions, TimedCue

CueOutput = Callable[[TimedCue], None]

_TAG_PATTERN = re.compile(r'<[^>]*>')
_SSA_OVERRIDE_PATTERN = re.compile(r'\{\\[^}]*\}')
_KEYWORD_BLOCK_PATTERN = re.compile(r'^(NOTE|STYLE|REGION)(\s|$)')


class SubtitleParser:
    """Base parser interface for subtitle formats."""

    format: SubtitleFormat
    replacement_behavior = CueReplacementBehavior.MERGE
    # Text parsers get the cleaned string, binary ones the raw sample bytes
    accepts_text = True

    def parse(self, data: Union[str, bytes], options: OutputOptions, output: CueOutput) -> None:
        raise NotImplementedError

    def reset(self) -> None:
        """Drop state carried between samples."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def emit_cues(timed_cues: Iterable[TimedCue], options: Optional[OutputOptions], output: CueOutput) -> None:
    """
    Hand cues to ``output`` honouring the requested start time.

    Cues that end at or after ``options.start_time_us`` go first, in source
    order; earlier cues follow only when ``options.output_all_cues`` is set.
    Cues without timing are always emitted.
    """
    if options is None or options.start_time_us is None:
        for timed_cue in timed_cues:
            output(timed_cue)
        return

    earlier: List[TimedCue] = []
    for timed_cue in timed_cues:
        end_time_us = timed_cue.end_time_us
        if end_time_us is None or end_time_us >= options.start_time_us:
            output(timed_cue)
        elif options.output_all_cues:
            earlier.append(timed_cue)

    for timed_cue in earlier:
        output(timed_cue)


def clean_cue_text(text: str) -> str:
    """Remove markup tags and SSA override blocks, decode entities, trim lines."""
    text = _SSA_OVERRIDE_PATTERN.sub('', text)
    text = _TAG_PATTERN.sub('', text)
    text = html.unescape(text)
    lines = [line.strip() for line in text.split('\n')]
    return '\n'.join(line for line in lines if line)


def split_cue_blocks(text: str, timing_pattern: Pattern[str]) -> List[Tuple["re.Match[str]", List[str]]]:
    """
    Split cue-based text (WebVTT, SubRip) into (timing match, body lines).

    Blocks are delimited by timing lines rather than blank lines, so a cue
    body that picked up blank lines during cleanup keeps its text. A
    non-blank line right before the next timing line is that cue's
    identifier and is not part of the previous body. Body lines stop at a
    NOTE, STYLE or REGION block.
    """
    lines = text.splitlines()
    timings = [
        (index, match)
        for index, match in ((i, timing_pattern.match(line)) for i, line in enumerate(lines))
        if match
    ]

    blocks = []
    for position, (index, match) in enumerate(timings):
        if position + 1 < len(timings):
            next_index = timings[position + 1][0]
            body = lines[index + 1:next_index]
            if body and body[-1].strip():
                body = body[:-1]
        else:
            body = lines[index + 1:]

        body_lines: List[str] = []
        after_blank = False
        for line in body:
            stripped = line.strip()
            if not stripped:
                after_blank = True
                continue
            if after_blank and _KEYWORD_BLOCK_PATTERN.match(stripped):
                break
            body_lines.append(stripped)
            after_blank = False

        blocks.append((match, body_lines))

    return blocks
