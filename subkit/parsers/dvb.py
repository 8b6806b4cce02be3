"""
Parser for DVB bitmap subtitles (ETSI EN 300 743).

Segments build up a page made of regions; regions reference a colour lookup
table (CLUT) and contain objects whose pixel data is run-length coded at 2, 4
or 8 bits per pixel. The end-of-display-set segment renders every region of
the current page into a bitmap cue.
"""

import logging
import struct
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..formats import SubtitleFormat
from ..models import Bitmap, Cue, CueReplacementBehavior, OutputOptions, TimedCue
from ..utils import MICROS_PER_SECOND
from .base import CueOutput, SubtitleParser, emit_cues
from .bitstream import BitReader, argb, ycrcb_to_argb

logger = logging.getLogger(__name__)

SYNC_BYTE = 0x0F
DATA_IDENTIFIER = 0x20

SEGMENT_TYPE_PAGE_COMPOSITION = 0x10
SEGMENT_TYPE_REGION_COMPOSITION = 0x11
SEGMENT_TYPE_CLUT_DEFINITION = 0x12
SEGMENT_TYPE_OBJECT_DATA = 0x13
SEGMENT_TYPE_DISPLAY_DEFINITION = 0x14
SEGMENT_TYPE_END_OF_DISPLAY_SET = 0x80

PAGE_STATE_NORMAL = 0

DATA_TYPE_2BP_CODE_STRING = 0x10
DATA_TYPE_4BP_CODE_STRING = 0x11
DATA_TYPE_8BP_CODE_STRING = 0x12
DATA_TYPE_24_TABLE_DATA = 0x20
DATA_TYPE_28_TABLE_DATA = 0x21
DATA_TYPE_48_TABLE_DATA = 0x22
DATA_TYPE_END_LINE = 0xF0

OBJECT_CODING_PIXELS = 0

DEFAULT_DISPLAY_WIDTH = 720
DEFAULT_DISPLAY_HEIGHT = 576

DEFAULT_MAP_2_TO_4 = (0x00, 0x07, 0x08, 0x0F)
DEFAULT_MAP_2_TO_8 = (0x00, 0x77, 0x88, 0xFF)
DEFAULT_MAP_4_TO_8 = tuple(i * 0x11 for i in range(16))


def _default_2bit_clut() -> List[int]:
    return [argb(0, 0, 0, 0), argb(255, 255, 255, 255), argb(255, 0, 0, 0), argb(255, 127, 127, 127)]


def _default_4bit_clut() -> List[int]:
    entries = [argb(0, 0, 0, 0)]
    for i in range(1, 16):
        level = 255 if i < 8 else 127
        entries.append(argb(
            255,
            level if i & 0x01 else 0,
            level if i & 0x02 else 0,
            level if i & 0x04 else 0,
        ))
    return entries


def _default_8bit_clut() -> List[int]:
    entries = [argb(0, 0, 0, 0)]
    for i in range(1, 256):
        if i < 8:
            entries.append(argb(
                63,
                255 if i & 0x01 else 0,
                255 if i & 0x02 else 0,
                255 if i & 0x04 else 0,
            ))
            continue

        kind = i & 0x88
        if kind in (0x00, 0x08):
            red = (85 if i & 0x01 else 0) + (170 if i & 0x10 else 0)
            green = (85 if i & 0x02 else 0) + (170 if i & 0x20 else 0)
            blue = (85 if i & 0x04 else 0) + (170 if i & 0x40 else 0)
            entries.append(argb(255 if kind == 0x00 else 127, red, green, blue))
        else:
            base = 127 if kind == 0x80 else 0
            red = base + (43 if i & 0x01 else 0) + (85 if i & 0x10 else 0)
            green = base + (43 if i & 0x02 else 0) + (85 if i & 0x20 else 0)
            blue = base + (43 if i & 0x04 else 0) + (85 if i & 0x40 else 0)
            entries.append(argb(255, red, green, blue))
    return entries


@dataclass
class ClutDefinition:
    """Colour tables for one CLUT id, one table per pixel depth."""
    clut_id: int
    clut_2bit: List[int] = field(default_factory=_default_2bit_clut)
    clut_4bit: List[int] = field(default_factory=_default_4bit_clut)
    clut_8bit: List[int] = field(default_factory=_default_8bit_clut)

    def for_depth(self, depth: int) -> List[int]:
        if depth == 1:
            return self.clut_2bit
        if depth == 2:
            return self.clut_4bit
        return self.clut_8bit


@dataclass
class RegionObject:
    object_id: int
    horizontal_position: int
    vertical_position: int


@dataclass
class RegionComposition:
    region_id: int
    fill: bool
    width: int
    height: int
    depth: int  # 1: 2-bit, 2: 4-bit, 3: 8-bit
    clut_id: int
    pixel_code_8bit: int
    pixel_code_4bit: int
    pixel_code_2bit: int
    objects: List[RegionObject] = field(default_factory=list)


@dataclass
class PageComposition:
    timeout_seconds: int
    state: int
    regions: List[Tuple[int, int, int]]  # (region id, x, y)


@dataclass
class DisplayDefinition:
    width: int = DEFAULT_DISPLAY_WIDTH
    height: int = DEFAULT_DISPLAY_HEIGHT


@dataclass
class SubtitleService:
    """State accumulated from the segments of one subtitle service."""
    page: Optional[PageComposition] = None
    display: DisplayDefinition = field(default_factory=DisplayDefinition)
    regions: Dict[int, RegionComposition] = field(default_factory=dict)
    cluts: Dict[int, ClutDefinition] = field(default_factory=dict)
    objects: Dict[int, Tuple[bytes, bytes]] = field(default_factory=dict)


def _parse_page_composition(reader: BitReader, length: int) -> PageComposition:
    timeout = reader.read_uint8()
    reader.skip_bits(4)  # version
    state = reader.read_bits(2)
    reader.skip_bits(2)
    remaining = length - 2
    regions = []
    while remaining >= 6:
        region_id = reader.read_uint8()
        reader.skip_bits(8)
        x = reader.read_uint16()
        y = reader.read_uint16()
        regions.append((region_id, x, y))
        remaining -= 6
    return PageComposition(timeout_seconds=timeout, state=state, regions=regions)


def _parse_region_composition(reader: BitReader, length: int) -> RegionComposition:
    region_id = reader.read_uint8()
    reader.skip_bits(4)  # version
    fill = reader.read_bit()
    reader.skip_bits(3)
    width = reader.read_uint16()
    height = reader.read_uint16()
    reader.skip_bits(3)  # level of compatibility
    depth = reader.read_bits(3)
    reader.skip_bits(2)
    clut_id = reader.read_uint8()
    pixel_code_8bit = reader.read_uint8()
    pixel_code_4bit = reader.read_bits(4)
    pixel_code_2bit = reader.read_bits(2)
    reader.skip_bits(2)

    region = RegionComposition(
        region_id=region_id,
        fill=fill,
        width=width,
        height=height,
        depth=depth,
        clut_id=clut_id,
        pixel_code_8bit=pixel_code_8bit,
        pixel_code_4bit=pixel_code_4bit,
        pixel_code_2bit=pixel_code_2bit,
    )

    remaining = length - 10
    while remaining >= 6:
        object_id = reader.read_uint16()
        object_type = reader.read_bits(2)
        reader.skip_bits(2)  # provider flag
        horizontal = reader.read_bits(12)
        reader.skip_bits(4)
        vertical = reader.read_bits(12)
        remaining -= 6
        if object_type in (1, 2):
            reader.skip_bits(16)  # foreground and background pixel codes
            remaining -= 2
        region.objects.append(RegionObject(object_id, horizontal, vertical))

    return region


def _parse_clut_definition(reader: BitReader, length: int, clut: ClutDefinition) -> None:
    reader.skip_bits(8)  # version and reserved bits
    remaining = length - 1
    while remaining > 0:
        entry_id = reader.read_uint8()
        in_2bit = reader.read_bit()
        in_4bit = reader.read_bit()
        in_8bit = reader.read_bit()
        reader.skip_bits(4)
        full_range = reader.read_bit()
        if full_range:
            y = reader.read_uint8()
            cr = reader.read_uint8()
            cb = reader.read_uint8()
            t = reader.read_uint8()
            remaining -= 6
        else:
            y = reader.read_bits(6) << 2
            cr = reader.read_bits(4) << 4
            cb = reader.read_bits(4) << 4
            t = reader.read_bits(2) << 6
            remaining -= 4

        if y == 0:
            cr, cb, t = 0, 0, 255

        color = ycrcb_to_argb(y, cr, cb, 255 - t)
        if in_2bit and entry_id < 4:
            clut.clut_2bit[entry_id] = color
        if in_4bit and entry_id < 16:
            clut.clut_4bit[entry_id] = color
        if in_8bit:
            clut.clut_8bit[entry_id] = color


def _parse_object_data(reader: BitReader) -> Tuple[int, Optional[Tuple[bytes, bytes]]]:
    object_id = reader.read_uint16()
    reader.skip_bits(4)  # version
    coding_method = reader.read_bits(2)
    reader.skip_bits(2)
    if coding_method != OBJECT_CODING_PIXELS:
        logger.debug(f"Ignoring DVB object {object_id} with coding method {coding_method}")
        return object_id, None

    top_length = reader.read_uint16()
    bottom_length = reader.read_uint16()
    top_field = reader.read_bytes(top_length)
    bottom_field = reader.read_bytes(bottom_length) if bottom_length else top_field
    return object_id, (top_field, bottom_field)


def _read_2bit_code_string(reader: BitReader) -> List[Tuple[int, int]]:
    runs = []
    while True:
        run_length, color = 0, 0
        peek = reader.read_bits(2)
        if peek != 0:
            run_length, color = 1, peek
        elif reader.read_bit():
            run_length = 3 + reader.read_bits(3)
            color = reader.read_bits(2)
        elif reader.read_bit():
            run_length = 1
        else:
            code = reader.read_bits(2)
            if code == 0:
                break
            if code == 1:
                run_length = 2
            elif code == 2:
                run_length = 12 + reader.read_bits(4)
                color = reader.read_bits(2)
            else:
                run_length = 29 + reader.read_uint8()
                color = reader.read_bits(2)
        runs.append((run_length, color))
    reader.byte_align()
    return runs


def _read_4bit_code_string(reader: BitReader) -> List[Tuple[int, int]]:
    runs = []
    while True:
        run_length, color = 0, 0
        peek = reader.read_bits(4)
        if peek != 0:
            run_length, color = 1, peek
        elif not reader.read_bit():
            peek = reader.read_bits(3)
            if peek == 0:
                break
            run_length = peek + 2
        elif not reader.read_bit():
            run_length = 4 + reader.read_bits(2)
            color = reader.read_bits(4)
        else:
            code = reader.read_bits(2)
            if code == 0:
                run_length = 1
            elif code == 1:
                run_length = 2
            elif code == 2:
                run_length = 9 + reader.read_bits(4)
                color = reader.read_bits(4)
            else:
                run_length = 25 + reader.read_uint8()
                color = reader.read_bits(4)
        runs.append((run_length, color))
    reader.byte_align()
    return runs


def _read_8bit_code_string(reader: BitReader) -> List[Tuple[int, int]]:
    runs = []
    while True:
        run_length, color = 0, 0
        peek = reader.read_uint8()
        if peek != 0:
            run_length, color = 1, peek
        elif not reader.read_bit():
            peek = reader.read_bits(7)
            if peek == 0:
                break
            run_length = peek
        else:
            run_length = reader.read_bits(7)
            color = reader.read_uint8()
        runs.append((run_length, color))
    return runs


def _paint_field(
    field_data: bytes,
    first_line: int,
    x: int,
    depth: int,
    clut: List[int],
    canvas: List[int],
    width: int,
    height: int,
) -> None:
    """Decode one interlaced field of an object onto the region canvas."""
    reader = BitReader(field_data)
    map_2_to_4 = list(DEFAULT_MAP_2_TO_4)
    map_2_to_8 = list(DEFAULT_MAP_2_TO_8)
    map_4_to_8 = list(DEFAULT_MAP_4_TO_8)
    column = x
    line = first_line

    while reader.bits_left() >= 8:
        data_type = reader.read_uint8()
        runs: List[Tuple[int, int]] = []
        color_map: Optional[Sequence[int]] = None

        if data_type == DATA_TYPE_2BP_CODE_STRING:
            runs = _read_2bit_code_string(reader)
            if depth == 2:
                color_map = map_2_to_4
            elif depth == 3:
                color_map = map_2_to_8
        elif data_type == DATA_TYPE_4BP_CODE_STRING:
            runs = _read_4bit_code_string(reader)
            if depth == 3:
                color_map = map_4_to_8
        elif data_type == DATA_TYPE_8BP_CODE_STRING:
            runs = _read_8bit_code_string(reader)
        elif data_type == DATA_TYPE_24_TABLE_DATA:
            map_2_to_4 = [reader.read_bits(4) for _ in range(4)]
            continue
        elif data_type == DATA_TYPE_28_TABLE_DATA:
            map_2_to_8 = [reader.read_uint8() for _ in range(4)]
            continue
        elif data_type == DATA_TYPE_48_TABLE_DATA:
            map_4_to_8 = [reader.read_uint8() for _ in range(16)]
            continue
        elif data_type == DATA_TYPE_END_LINE:
            column = x
            line += 2
            continue
        else:
            logger.debug(f"Unknown DVB pixel data type: {data_type:#x}")
            continue

        for run_length, color_index in runs:
            if color_map is not None:
                color_index = color_map[color_index]
            color = clut[color_index] if color_index < len(clut) else 0
            if 0 <= line < height:
                start = line * width
                for column_index in range(max(column, 0), min(column + run_length, width)):
                    canvas[start + column_index] = color
            column += run_length


class DvbParser(SubtitleParser):
    """Parser for DVB subtitle display sets."""

    format = SubtitleFormat.DVB
    replacement_behavior = CueReplacementBehavior.REPLACE
    accepts_text = False

    def __init__(self, initialization_data: Sequence[bytes] = ()):
        self.subtitle_page_id: Optional[int] = None
        self.ancillary_page_id: Optional[int] = None
        if initialization_data and len(initialization_data[0]) >= 4:
            self.subtitle_page_id, self.ancillary_page_id = struct.unpack_from(">HH", initialization_data[0], 0)
        self.service = SubtitleService()

    def __repr__(self) -> str:
        return f"DvbParser(page={self.subtitle_page_id}, ancillary={self.ancillary_page_id})"

    def reset(self) -> None:
        self.service = SubtitleService()

    def parse(self, data: bytes, options: OutputOptions, output: CueOutput) -> None:
        reader = BitReader(data)
        if len(data) >= 2 and data[0] == DATA_IDENTIFIER and data[1] == 0x00:
            reader.skip_bytes(2)  # PES data identifier and stream id

        timed_cues: List[TimedCue] = []
        while reader.bits_left() >= 48 and data[reader.byte_position] == SYNC_BYTE:
            reader.skip_bytes(1)
            timed_cue = self._parse_segment(reader)
            if timed_cue is not None:
                timed_cues.append(timed_cue)

        emit_cues(timed_cues, options, output)

    def _accepts_page(self, page_id: int, ancillary_allowed: bool) -> bool:
        if self.subtitle_page_id is None:
            return True
        if page_id == self.subtitle_page_id:
            return True
        return ancillary_allowed and page_id == self.ancillary_page_id

    def _parse_segment(self, reader: BitReader) -> Optional[TimedCue]:
        segment_type = reader.read_uint8()
        page_id = reader.read_uint16()
        length = reader.read_uint16()
        segment_end = reader.byte_position + length
        if segment_end > reader.end:
            raise ValueError(f"DVB segment {segment_type:#x} runs past the end of the sample")

        service = self.service
        timed_cue = None

        if segment_type == SEGMENT_TYPE_DISPLAY_DEFINITION and self._accepts_page(page_id, True):
            reader.skip_bits(8)  # version and window flag
            service.display = DisplayDefinition(width=reader.read_uint16() + 1, height=reader.read_uint16() + 1)
        elif segment_type == SEGMENT_TYPE_PAGE_COMPOSITION and self._accepts_page(page_id, False):
            page = _parse_page_composition(reader, length)
            if page.state != PAGE_STATE_NORMAL:
                # Acquisition point or mode change: the page is rebuilt from scratch
                service.regions.clear()
                service.cluts.clear()
                service.objects.clear()
            service.page = page
        elif segment_type == SEGMENT_TYPE_REGION_COMPOSITION and self._accepts_page(page_id, False):
            region = _parse_region_composition(reader, length)
            service.regions[region.region_id] = region
        elif segment_type == SEGMENT_TYPE_CLUT_DEFINITION and self._accepts_page(page_id, True):
            clut_id = reader.read_uint8()
            clut = service.cluts.setdefault(clut_id, ClutDefinition(clut_id))
            _parse_clut_definition(reader, length - 1, clut)
        elif segment_type == SEGMENT_TYPE_OBJECT_DATA and self._accepts_page(page_id, True):
            object_id, fields = _parse_object_data(reader)
            if fields is not None:
                service.objects[object_id] = fields
        elif segment_type == SEGMENT_TYPE_END_OF_DISPLAY_SET and self._accepts_page(page_id, False):
            timed_cue = self._render_page()

        reader.seek_byte(segment_end)
        return timed_cue

    def _render_page(self) -> Optional[TimedCue]:
        service = self.service
        if service.page is None:
            return None

        display = service.display
        cues = []
        for region_id, region_x, region_y in service.page.regions:
            region = service.regions.get(region_id)
            if region is None or region.width == 0 or region.height == 0:
                continue

            clut = (service.cluts.get(region.clut_id) or ClutDefinition(region.clut_id)).for_depth(region.depth)
            canvas = [0] * (region.width * region.height)

            if region.fill:
                fill_code = {1: region.pixel_code_2bit, 2: region.pixel_code_4bit}.get(region.depth, region.pixel_code_8bit)
                canvas = [clut[fill_code]] * len(canvas)

            for region_object in region.objects:
                fields = service.objects.get(region_object.object_id)
                if fields is None:
                    continue
                top_field, bottom_field = fields
                for field_data, first_line in ((top_field, 0), (bottom_field, 1)):
                    _paint_field(
                        field_data,
                        region_object.vertical_position + first_line,
                        region_object.horizontal_position,
                        region.depth,
                        clut,
                        canvas,
                        region.width,
                        region.height,
                    )

            cues.append(Cue(
                bitmap=Bitmap(width=region.width, height=region.height, pixels=tuple(canvas)),
                position=region_x / display.width,
                line=region_y / display.height,
                size=region.width / display.width,
                bitmap_height=region.height / display.height,
            ))

        return TimedCue(
            cues=tuple(cues),
            start_time_us=None,
            duration_us=service.page.timeout_seconds * MICROS_PER_SECOND,
        )
