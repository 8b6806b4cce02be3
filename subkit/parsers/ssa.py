"""
SubStation Alpha (SSA/ASS) parser.

Reads the [Script Info], [V4+ Styles]/[V4 Styles] and [Events] sections of a
script. When the stream comes from a container (Matroska), samples contain
Dialogue lines only and the header travels in the initialization data:
the first entry is the events Format line, the second the script header.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..formats import SubtitleFormat
from ..models import Cue, CueReplacementBehavior, OutputOptions, TimedCue
from ..utils import timestamp_to_micros
from .base import CueOutput, SubtitleParser, emit_cues
from .subrip import alignment_settings

logger = logging.getLogger(__name__)

DEFAULT_EVENT_FORMAT = ["layer", "start", "end", "style", "name", "marginl", "marginr", "marginv", "effect", "text"]

_OVERRIDE_BLOCK_PATTERN = re.compile(r'\{([^}]*)\}')
_POSITION_PATTERN = re.compile(r'\\pos\(\s*(-?[\d.]+)\s*,\s*(-?[\d.]+)\s*\)')
_ALIGNMENT_PATTERN = re.compile(r'\\an([1-9])')
_NON_BREAKING_SPACE = chr(0x00A0)


@dataclass
class SsaStyle:
    """The parts of an SSA style that affect placement."""
    name: str
    alignment: Optional[int] = None


def _parse_format_line(line: str) -> List[str]:
    _, _, fields = line.partition(":")
    return [field.strip().lower() for field in fields.split(",")]


def _legacy_alignment(value: int) -> int:
    """Convert a V4 (SSA) alignment to the numpad layout used by V4+."""
    column = value & 3
    if value >= 9:
        return 3 + column
    if value >= 5:
        return 6 + column
    return column


class SsaParser(SubtitleParser):
    """Parser for SSA/ASS scripts and Dialogue samples."""

    format = SubtitleFormat.SSA
    replacement_behavior = CueReplacementBehavior.MERGE

    def __init__(self, initialization_data: Sequence[bytes] = ()):
        self.event_format: Optional[List[str]] = None
        self.style_format: Optional[List[str]] = None
        self.styles: Dict[str, SsaStyle] = {}
        self.play_res_x: Optional[float] = None
        self.play_res_y: Optional[float] = None

        if initialization_data:
            self.event_format = _parse_format_line(initialization_data[0].decode("utf-8"))
            if len(initialization_data) > 1:
                # Header lines only configure styles; dialogue found there is discarded
                self._parse_script(initialization_data[1].decode("utf-8"))

    def __repr__(self) -> str:
        return f"SsaParser(styles={len(self.styles)})"

    def parse(self, data: str, options: OutputOptions, output: CueOutput) -> None:
        emit_cues(self._parse_script(data), options, output)

    def _parse_script(self, text: str) -> List[TimedCue]:
        timed_cues = []
        section = ""

        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line or line.startswith(";"):
                continue

            if line.startswith("[") and line.endswith("]"):
                section = line.lower()
                continue

            key = line.split(":", 1)[0].strip().lower()

            if section == "[script info]":
                self._parse_script_info_line(line, key)
            elif section in ("[v4+ styles]", "[v4 styles]"):
                if key == "format":
                    self.style_format = _parse_format_line(line)
                elif key == "style":
                    self._parse_style_line(line, legacy=section == "[v4 styles]")
            elif section == "[events]" and key == "format":
                self.event_format = _parse_format_line(line)

            # Dialogue lines are read wherever they appear; container samples carry no sections
            if key == "dialogue":
                timed_cue = self._parse_dialogue_line(line)
                if timed_cue is not None:
                    timed_cues.append(timed_cue)

        return timed_cues

    def _parse_script_info_line(self, line: str, key: str) -> None:
        value = line.split(":", 1)[1].strip() if ":" in line else ""
        try:
            if key == "playresx":
                self.play_res_x = float(value)
            elif key == "playresy":
                self.play_res_y = float(value)
        except ValueError:
            logger.warning(f"Ignoring invalid script info line: {line}")

    def _parse_style_line(self, line: str, legacy: bool) -> None:
        if not self.style_format:
            logger.warning(f"Skipping style before its Format line: {line}")
            return

        values = [value.strip() for value in line.split(":", 1)[1].split(",", len(self.style_format) - 1)]
        fields = dict(zip(self.style_format, values))
        name = fields.get("name")
        if not name:
            return

        alignment = None
        try:
            if fields.get("alignment"):
                alignment = int(fields["alignment"])
                if legacy:
                    alignment = _legacy_alignment(alignment)
                if not 1 <= alignment <= 9:
                    alignment = None
        except ValueError:
            logger.warning(f"Ignoring invalid alignment in style {name}")

        self.styles[name] = SsaStyle(name=name, alignment=alignment)

    def _parse_dialogue_line(self, line: str) -> Optional[TimedCue]:
        event_format = self.event_format or DEFAULT_EVENT_FORMAT
        if "text" not in event_format:
            raise ValueError("SSA event format has no Text field")

        values = line.split(":", 1)[1].split(",", len(event_format) - 1)
        if len(values) != len(event_format):
            logger.warning(f"Skipping dialogue with {len(values)} fields, expected {len(event_format)}")
            return None

        fields = dict(zip(event_format, values))
        start_us = timestamp_to_micros(fields["start"].strip())
        end_us = timestamp_to_micros(fields["end"].strip())
        if end_us < start_us:
            logger.warning(f"Skipping dialogue ending before it starts: {line}")
            return None

        cue = self._build_cue(fields["text"], fields.get("style", "").strip())
        if cue is None:
            return None
        return TimedCue(cues=(cue,), start_time_us=start_us, duration_us=end_us - start_us)

    def _build_cue(self, raw_text: str, style_name: str) -> Optional[Cue]:
        settings: Dict[str, object] = {}

        style = self.styles.get(style_name) or self.styles.get(style_name.lstrip("*"))
        if style is not None and style.alignment is not None:
            settings.update(alignment_settings(style.alignment))

        for block in _OVERRIDE_BLOCK_PATTERN.findall(raw_text):
            alignment = _ALIGNMENT_PATTERN.search(block)
            if alignment:
                settings.update(alignment_settings(int(alignment.group(1))))
            position = _POSITION_PATTERN.search(block)
            if position and self.play_res_x and self.play_res_y:
                settings["position"] = float(position.group(1)) / self.play_res_x
                settings["line"] = float(position.group(2)) / self.play_res_y

        text = _OVERRIDE_BLOCK_PATTERN.sub("", raw_text)
        text = text.replace("\\N", "\n").replace("\\n", "\n").replace("\\h", _NON_BREAKING_SPACE)
        text = text.strip()
        if not text:
            return None
        return Cue(text=text, **settings)
