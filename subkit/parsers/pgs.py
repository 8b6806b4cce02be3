"""
Parser for Presentation Graphic Stream (PGS, Blu-ray .sup) subtitles.

A sample is a sequence of segments: palette (0x14), object/bitmap (0x15),
presentation composition (0x16), window (0x17, ignored) and end of display
set (0x80), which completes one bitmap cue. Samples taken from a .sup file
keep their ``PG`` headers with presentation timestamps; both layouts are
accepted. Samples from Matroska tracks may be zlib-compressed and are
inflated first.
"""

import logging
import zlib
from typing import List, Optional

from ..formats import SubtitleFormat
from ..models import Bitmap, Cue, CueReplacementBehavior, OutputOptions, TimedCue
from .base import CueOutput, SubtitleParser, emit_cues
from .bitstream import BitReader, ycrcb_to_argb

logger = logging.getLogger(__name__)

SECTION_TYPE_PALETTE = 0x14
SECTION_TYPE_BITMAP_PICTURE = 0x15
SECTION_TYPE_IDENTIFIER = 0x16
SECTION_TYPE_END = 0x80

ZLIB_HEADER = b"\x78"
SUP_MAGIC = b"PG"
SUP_HEADER_SIZE = 13  # "PG", PTS, DTS, segment type, segment size
PTS_CLOCK_RATE = 90_000


class PgsCueBuilder:
    """Collects the segments of one display set into a bitmap cue."""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.plane_width = 0
        self.plane_height = 0
        self.bitmap_x = 0
        self.bitmap_y = 0
        self.bitmap_width = 0
        self.bitmap_height = 0
        self.bitmap_data = bytearray()
        self.bitmap_data_length = 0
        self.colors = [0] * 256
        self.colors_set = False

    def parse_palette_section(self, reader: BitReader, length: int) -> None:
        if length % 5 != 2:
            return
        reader.skip_bytes(2)  # palette id and version
        for _ in range((length - 2) // 5):
            entry_id = reader.read_uint8()
            y = reader.read_uint8()
            cr = reader.read_uint8()
            cb = reader.read_uint8()
            alpha = reader.read_uint8()
            self.colors[entry_id] = ycrcb_to_argb(y, cr, cb, alpha)
        self.colors_set = True

    def parse_bitmap_section(self, reader: BitReader, length: int) -> None:
        if length < 4:
            return
        reader.skip_bytes(3)  # object id and version
        is_first_fragment = (reader.read_uint8() & 0x80) != 0
        length -= 4

        if is_first_fragment:
            if length < 7:
                return
            total_length = reader.read_uint24()
            if total_length < 4:
                return
            self.bitmap_width = reader.read_uint16()
            self.bitmap_height = reader.read_uint16()
            self.bitmap_data = bytearray()
            self.bitmap_data_length = total_length - 4
            length -= 7

        remaining = self.bitmap_data_length - len(self.bitmap_data)
        if remaining > 0 and length > 0:
            self.bitmap_data.extend(reader.read_bytes(min(length, remaining)))

    def parse_identifier_section(self, reader: BitReader, length: int) -> None:
        if length < 19:
            return
        self.plane_width = reader.read_uint16()
        self.plane_height = reader.read_uint16()
        reader.skip_bytes(11)
        self.bitmap_x = reader.read_uint16()
        self.bitmap_y = reader.read_uint16()

    def build(self) -> Optional[Cue]:
        if (
            self.plane_width == 0
            or self.plane_height == 0
            or self.bitmap_width == 0
            or self.bitmap_height == 0
            or self.bitmap_data_length == 0
            or len(self.bitmap_data) != self.bitmap_data_length
            or not self.colors_set
        ):
            return None

        pixels = decode_rle_bitmap(bytes(self.bitmap_data), self.bitmap_width * self.bitmap_height, self.colors)
        return Cue(
            bitmap=Bitmap(width=self.bitmap_width, height=self.bitmap_height, pixels=tuple(pixels)),
            position=self.bitmap_x / self.plane_width,
            line=self.bitmap_y / self.plane_height,
            size=self.bitmap_width / self.plane_width,
            bitmap_height=self.bitmap_height / self.plane_height,
        )


def maybe_inflate(data: bytes) -> bytes:
    """Inflate a zlib-compressed sample, returning the input unchanged otherwise."""
    if data[:1] != ZLIB_HEADER:
        return data
    try:
        inflated = zlib.decompressobj().decompress(data)
    except zlib.error as e:
        logger.debug(f"PGS sample starting with 0x78 is not zlib data: {str(e)}")
        return data
    return inflated or data


def decode_rle_bitmap(data: bytes, pixel_count: int, colors: List[int]) -> List[int]:
    """
    Expand PGS run-length encoded palette indices into ARGB pixels.

    Raises:
        ValueError: If the data ends before every pixel is filled
    """
    pixels = [0] * pixel_count
    index = 0
    position = 0

    def next_byte() -> int:
        nonlocal position
        if position >= len(data):
            raise ValueError("PGS bitmap data ended before the picture was complete")
        value = data[position]
        position += 1
        return value

    while index < pixel_count:
        color_index = next_byte()
        if color_index != 0:
            pixels[index] = colors[color_index]
            index += 1
            continue

        switch_bits = next_byte()
        if switch_bits == 0:
            continue  # end of line

        run_length = switch_bits & 0x3F
        if switch_bits & 0x40:
            run_length = (run_length << 8) | next_byte()
        color = colors[next_byte()] if switch_bits & 0x80 else 0

        end = min(index + run_length, pixel_count)
        pixels[index:end] = [color] * (end - index)
        index = end

    return pixels


class PgsParser(SubtitleParser):
    """Parser for PGS display sets."""

    format = SubtitleFormat.PGS
    replacement_behavior = CueReplacementBehavior.REPLACE
    accepts_text = False

    def __init__(self):
        self.cue_builder = PgsCueBuilder()

    def reset(self) -> None:
        self.cue_builder.reset()

    def parse(self, data: bytes, options: OutputOptions, output: CueOutput) -> None:
        data = maybe_inflate(data)
        cues: List[Cue] = []
        start_time_us: Optional[int] = None
        reader = BitReader(data)

        while reader.bytes_left() >= 3:
            if data[reader.byte_position:reader.byte_position + 2] == SUP_MAGIC:
                if reader.bytes_left() < SUP_HEADER_SIZE:
                    break
                reader.skip_bytes(2)
                pts = reader.read_bits(32)
                reader.skip_bytes(4)  # decoding timestamp
                if start_time_us is None:
                    start_time_us = pts * 1_000_000 // PTS_CLOCK_RATE

            cue = self._read_next_section(reader)
            if cue is not None:
                cues.append(cue)

        emit_cues([TimedCue(cues=tuple(cues), start_time_us=start_time_us, duration_us=None)], options, output)

    def _read_next_section(self, reader: BitReader) -> Optional[Cue]:
        section_type = reader.read_uint8()
        section_length = reader.read_uint16()
        next_section = reader.byte_position + section_length
        if next_section > reader.end:
            reader.seek_byte(reader.end)
            return None

        cue = None
        if section_type == SECTION_TYPE_PALETTE:
            self.cue_builder.parse_palette_section(reader, section_length)
        elif section_type == SECTION_TYPE_BITMAP_PICTURE:
            self.cue_builder.parse_bitmap_section(reader, section_length)
        elif section_type == SECTION_TYPE_IDENTIFIER:
            self.cue_builder.parse_identifier_section(reader, section_length)
        elif section_type == SECTION_TYPE_END:
            cue = self.cue_builder.build()
            self.cue_builder.reset()

        reader.seek_byte(next_section)
        return cue
