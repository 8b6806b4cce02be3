"""
Per-stream subtitle decoder.

A SubtitleDecoder turns raw subtitle chunks into timed cues:

1. Decode bytes with the detected charset
2. Normalize invisible characters and space variants
3. Sniff the format once and keep the selected parser for the stream
   (binary sample formats are taken from the declared hint and skip 1-4)
4. Strip advertising bloat (never for SSA/ASS)
5. Parse, then hand every cue to the output with the sync offset applied

A chunk that fails anywhere in that chain is logged and dropped; the
decoder stays usable for the next chunk.
"""

import bisect
import logging
from enum import Enum
from typing import Iterator, List, Optional, Union

from .charset import decode_bytes
from .cleaner import compile_bloat_patterns, normalize_text, strip_bloat
from .formats import BINARY_FORMATS, SubtitleFormat, format_for_hint
from .models import (
    CueReplacementBehavior,
    DecoderConfig,
    FormatHint,
    OutputOptions,
    RawChunk,
    TimedCue,
)
from .offset import OffsetProvider, apply_offset, read_offset_ms
from .parsers import SubtitleParser, create_parser
from .parsers.base import CueOutput
from .sniffer import sniff_content

logger = logging.getLogger(__name__)


class DecoderState(Enum):
    """Lifecycle of a decoder. Leaving UNINITIALIZED is permanent."""
    UNINITIALIZED = "uninitialized"
    FORMAT_SELECTED = "format_selected"
    PARSING = "parsing"
    RESET = "reset"


class CueSet:
    """
    Cues collected by one legacy ``decode`` call, in emission order.

    Example:
        >>> cue_set = decoder.decode(data)
        >>> for time_us in cue_set.event_times:
        ...     print(time_us, [c.text for c in cue_set.cues_at(time_us)])
    """

    def __init__(self, timed_cues: Optional[List[TimedCue]] = None):
        self.timed_cues: List[TimedCue] = list(timed_cues or [])

    def __len__(self) -> int:
        return len(self.timed_cues)

    def __iter__(self) -> Iterator[TimedCue]:
        return iter(self.timed_cues)

    def __repr__(self) -> str:
        return f"CueSet({len(self.timed_cues)} cues)"

    @property
    def event_times(self) -> List[int]:
        """Sorted distinct start and end times, in microseconds."""
        times = set()
        for timed_cue in self.timed_cues:
            if timed_cue.start_time_us is not None:
                times.add(timed_cue.start_time_us)
            if timed_cue.end_time_us is not None:
                times.add(timed_cue.end_time_us)
        return sorted(times)

    def next_event_index(self, time_us: int) -> int:
        """Index of the first event time strictly after ``time_us``, or -1."""
        times = self.event_times
        index = bisect.bisect_right(times, time_us)
        return index if index < len(times) else -1

    def cues_at(self, time_us: int) -> List[TimedCue]:
        """
        Cues visible at ``time_us``.

        A cue is visible from its start (inclusive) to its end (exclusive).
        Cues without a start time are always visible; cues without a
        duration stay visible once started.
        """
        visible = []
        for timed_cue in self.timed_cues:
            start = timed_cue.start_time_us
            end = timed_cue.end_time_us
            if start is not None and time_us < start:
                continue
            if end is not None and time_us >= end:
                continue
            visible.append(timed_cue)
        return visible


class SubtitleDecoder:
    """
    Decoder for one subtitle stream.

    Created by SubtitleDecoderFactory. The format is sniffed from the first
    chunk with content and never re-evaluated; a new stream needs a new
    decoder.

    Example:
        >>> decoder = SubtitleDecoder(FormatHint("text/vtt"), SubtitleOffset(500))
        >>> decoder.parse(RawChunk(data), print)
    """

    def __init__(
        self,
        hint: Optional[FormatHint] = None,
        offset_provider: Optional[OffsetProvider] = None,
        config: Optional[DecoderConfig] = None,
    ):
        """
        Initialize decoder.

        Args:
            hint: Declared format of the stream, used when content sniffing fails
            offset_provider: Source of the sync offset, read once per emitted cue
            config: Decoder configuration (defaults to DecoderConfig())
        """
        self.hint = hint or FormatHint()
        self.offset_provider = offset_provider
        self.config = config or DecoderConfig()
        self.bloat_patterns = compile_bloat_patterns(self.config.extra_bloat_patterns)
        self._declared_format = format_for_hint(self.hint)
        self._parser: Optional[SubtitleParser] = None
        self._state = DecoderState.UNINITIALIZED

    def __repr__(self) -> str:
        selected = self.selected_format.value if self.selected_format else None
        return f"SubtitleDecoder(hint={self.hint.mime_type!r}, format={selected!r}, state={self._state.value})"

    @property
    def state(self) -> DecoderState:
        return self._state

    @property
    def parser(self) -> Optional[SubtitleParser]:
        return self._parser

    @property
    def selected_format(self) -> Optional[SubtitleFormat]:
        return self._parser.format if self._parser is not None else None

    @property
    def cue_replacement_behavior(self) -> CueReplacementBehavior:
        """Behavior of the selected parser, REPLACE until one is selected."""
        if self._parser is None:
            return CueReplacementBehavior.REPLACE
        return self._parser.replacement_behavior

    def parse(
        self,
        chunk: Union[RawChunk, bytes],
        output: CueOutput,
        options: Optional[OutputOptions] = None,
    ) -> None:
        """
        Decode one chunk and hand its cues to ``output``.

        Each cue's start time is shifted by the offset provider's current
        value, sampled separately for every cue. Failures inside the chunk
        are logged and the chunk emits nothing; exceptions raised by
        ``output`` or by the offset provider propagate to the caller, after
        any cues already handed over.

        Args:
            chunk: RawChunk or raw bytes from the host pipeline
            output: Callable receiving each TimedCue
            options: Which cues to emit and in what order (default: all)
        """
        data = chunk.payload() if isinstance(chunk, RawChunk) else bytes(chunk)
        if not data:
            return

        pending: List[TimedCue] = []
        try:
            self._parse_payload(data, pending.append, options or OutputOptions())
        except Exception as e:
            format_name = self.selected_format.value if self.selected_format else "unknown"
            logger.error(f"Failed to parse {format_name} subtitle chunk ({len(data)} bytes): {str(e)}", exc_info=True)
            return

        for timed_cue in pending:
            output(apply_offset(timed_cue, read_offset_ms(self.offset_provider)))

    def _parse_payload(self, data: bytes, output: CueOutput, options: OutputOptions) -> None:
        if self._parser is None and self._declared_format in BINARY_FORMATS:
            self._use_format(self._declared_format)

        if self._parser is not None and not self._parser.accepts_text:
            self._state = DecoderState.PARSING
            self._parser.parse(data, options, output)
            return

        decoded = decode_bytes(data, self.config.fallback_encoding)
        text = normalize_text(decoded.text)
        if not text.strip():
            return

        if self._parser is None:
            subtitle_format = sniff_content(text, self.config.sniff_window) or self._declared_format
            if subtitle_format is None:
                logger.warning(f"Could not determine subtitle format (hint: {self.hint.mime_type}), dropping chunk")
                return
            self._use_format(subtitle_format)

        self._state = DecoderState.PARSING
        if self.config.strip_bloat:
            text = strip_bloat(text, self._parser.format, self.bloat_patterns)
        self._parser.parse(text, options, output)

    def _use_format(self, subtitle_format: SubtitleFormat) -> None:
        self._parser = create_parser(subtitle_format, self.hint.initialization_data)
        self._state = DecoderState.FORMAT_SELECTED
        logger.info(f"Parser selected: {self._parser!r} for {subtitle_format.value}")

    def reset(self) -> None:
        """Clear the parser's accumulated state. The selected format is kept."""
        if self._parser is None:
            return
        self._parser.reset()
        self._state = DecoderState.RESET
        logger.debug(f"Decoder reset, keeping {self._parser.format.value} parser")

    def decode(self, data: bytes, length: Optional[int] = None, reset: bool = False) -> CueSet:
        """
        Decode a whole buffer at once and return the collected cues.

        Args:
            data: Subtitle bytes
            length: Number of leading bytes to use (default: all)
            reset: Reset the parser before decoding

        Returns:
            CueSet holding every cue emitted for the buffer
        """
        if reset:
            self.reset()

        cues: List[TimedCue] = []
        self.parse(RawChunk(data=bytes(data), length=length), cues.append)
        return CueSet(cues)
