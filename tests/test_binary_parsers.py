import struct
import zlib

import pytest

from subkit.models import OutputOptions
from subkit.parsers import DvbParser, Mp4WebvttParser, PgsParser, Tx3gParser
from subkit.parsers.bitstream import BitReader, argb, ycrcb_to_argb
from subkit.parsers.mp4vtt import iter_boxes
from subkit.parsers.pgs import decode_rle_bitmap, maybe_inflate
from subkit.parsers.tx3g import decode_tx3g_text, parse_vertical_placement


def box(box_type, payload):
    return struct.pack(">I4s", 8 + len(payload), box_type) + payload


def pgs_section(section_type, payload):
    return struct.pack(">BH", section_type, len(payload)) + payload


def pgs_display_set():
    identifier = struct.pack(">HH", 100, 50) + bytes(11) + struct.pack(">HH", 10, 20)
    palette = bytes([0, 0]) + bytes([1, 235, 128, 128, 255])
    rle = bytes([0x01, 0x01, 0x00, 0x00])
    bitmap = bytes([0, 1, 0, 0x80]) + (len(rle) + 4).to_bytes(3, "big") + struct.pack(">HH", 2, 1) + rle
    return (
        pgs_section(0x16, identifier)
        + pgs_section(0x14, palette)
        + pgs_section(0x15, bitmap)
        + pgs_section(0x80, b"")
    )


def dvb_segment(segment_type, payload, page_id=1):
    return bytes([0x0F, segment_type]) + struct.pack(">HH", page_id, len(payload)) + payload


def dvb_display_set(page_id=1):
    # Page: 5s timeout, acquisition point, one region at (16, 32)
    page = bytes([5, 0x04]) + bytes([0, 0]) + struct.pack(">HH", 16, 32)
    # Region 0: filled, 2x2, 4-bit depth, CLUT 0, 4-bit fill code 1
    region = bytes([0, 0x08]) + struct.pack(">HH", 2, 2) + bytes([0x08, 0, 0, 0x10])
    return (
        bytes([0x20, 0x00])
        + dvb_segment(0x10, page, page_id)
        + dvb_segment(0x11, region, page_id)
        + dvb_segment(0x80, b"", page_id)
    )


def collect(parser, data):
    emitted = []
    parser.parse(data, OutputOptions(), emitted.append)
    return emitted


def test_mp4_webvtt_sample():
    sample = box(b"vttc", box(b"sttg", b"align:end line:90%") + box(b"payl", b"Hello <i>there</i>")) + box(b"vtte", b"")
    emitted = collect(Mp4WebvttParser(), sample)

    assert len(emitted) == 1
    assert emitted[0].start_time_us is None
    cue = emitted[0].cues[0]
    assert cue.text == "Hello there"
    assert cue.text_alignment == "end"
    assert cue.line == pytest.approx(0.9)


def test_mp4_webvtt_empty_sample():
    emitted = collect(Mp4WebvttParser(), box(b"vtte", b""))
    assert len(emitted) == 1
    assert emitted[0].cues == ()


def test_mp4_box_overrunning_sample_is_rejected():
    truncated = box(b"vttc", box(b"payl", b"Hello"))[:-2]
    with pytest.raises(ValueError):
        list(iter_boxes(truncated))


def test_tx3g_utf8_and_utf16_text():
    assert decode_tx3g_text(struct.pack(">H", 5) + b"Hello") == "Hello"
    utf16 = "Hi".encode("utf-16")
    assert decode_tx3g_text(struct.pack(">H", len(utf16)) + utf16) == "Hi"
    assert decode_tx3g_text(b"\x00\x00") == ""


def test_tx3g_length_overrun_is_rejected():
    with pytest.raises(ValueError):
        decode_tx3g_text(struct.pack(">H", 20) + b"short")


def test_tx3g_parser_places_cue_near_bottom():
    emitted = collect(Tx3gParser(), struct.pack(">H", 5) + b"Hello")
    assert emitted[0].text == "Hello"
    assert emitted[0].cues[0].line == pytest.approx(0.85)


def tx3g_sample_description(display_flags, box_top, font_size):
    description = bytearray(48)
    description[0] = display_flags
    struct.pack_into(">H", description, 10, box_top)
    description[25] = font_size
    return bytes(description)


def test_tx3g_sample_description_moves_default_line():
    description = tx3g_sample_description(0x20, box_top=100, font_size=10)
    parser = Tx3gParser((description,))

    emitted = collect(parser, struct.pack(">H", 2) + b"Hi")
    assert emitted[0].cues[0].line == pytest.approx(0.5)


def test_tx3g_vertical_placement_defaults_and_clamp():
    assert parse_vertical_placement(()) == pytest.approx(0.85)
    assert parse_vertical_placement((b"\x20" * 12,)) == pytest.approx(0.85)
    assert parse_vertical_placement((tx3g_sample_description(0x00, 100, 10),)) == pytest.approx(0.85)
    assert parse_vertical_placement((tx3g_sample_description(0x20, 1000, 10),)) == pytest.approx(0.95)


def test_pgs_display_set_builds_bitmap_cue():
    emitted = collect(PgsParser(), pgs_display_set())

    assert len(emitted) == 1
    cue = emitted[0].cues[0]
    color = ycrcb_to_argb(235, 128, 128, 255)
    assert cue.bitmap.width == 2
    assert cue.bitmap.height == 1
    assert cue.bitmap.pixels == (color, color)
    assert cue.position == pytest.approx(0.1)
    assert cue.line == pytest.approx(0.4)
    assert cue.size == pytest.approx(0.02)


def test_pgs_file_headers_provide_start_time():
    sections = pgs_display_set()
    pts = 90_000 * 2  # 2 seconds at 90 kHz
    with_headers = b""
    position = 0
    while position < len(sections):
        length = struct.unpack_from(">H", sections, position + 1)[0]
        with_headers += b"PG" + struct.pack(">II", pts, 0) + sections[position:position + 3 + length]
        position += 3 + length

    emitted = collect(PgsParser(), with_headers)
    assert emitted[0].start_time_us == 2_000_000
    assert len(emitted[0].cues) == 1


def test_pgs_reset_discards_partial_display_set():
    sections = pgs_display_set()
    end_section = pgs_section(0x80, b"")
    parser = PgsParser()

    collect(parser, sections[:-len(end_section)])
    parser.reset()
    emitted = collect(parser, end_section)
    assert emitted[0].cues == ()


def test_pgs_zlib_compressed_sample_is_inflated():
    compressed = zlib.compress(pgs_display_set())
    assert compressed[:1] == b"\x78"

    emitted = collect(PgsParser(), compressed)
    assert len(emitted[0].cues) == 1
    assert emitted[0].cues[0].bitmap.width == 2


def test_maybe_inflate_keeps_data_that_is_not_zlib():
    plain = pgs_display_set()
    assert maybe_inflate(plain) == plain
    assert maybe_inflate(b"\x78\x00\x01") == b"\x78\x00\x01"


def test_rle_runs_and_transparent_fill():
    colors = [0] * 256
    colors[3] = argb(255, 1, 2, 3)
    # 4 pixels of colour 3, then 2 transparent pixels
    data = bytes([0x00, 0x80 | 4, 3, 0x00, 0x02])
    assert decode_rle_bitmap(data, 6, colors) == [colors[3]] * 4 + [0, 0]


def test_rle_truncated_data_is_rejected():
    with pytest.raises(ValueError):
        decode_rle_bitmap(bytes([0x01]), 4, [0] * 256)


def test_dvb_display_set_renders_filled_region():
    emitted = collect(DvbParser(), dvb_display_set())

    assert len(emitted) == 1
    timed_cue = emitted[0]
    assert timed_cue.start_time_us is None
    assert timed_cue.duration_us == 5_000_000

    cue = timed_cue.cues[0]
    assert cue.bitmap.width == 2
    assert cue.bitmap.height == 2
    assert set(cue.bitmap.pixels) == {argb(255, 255, 0, 0)}
    assert cue.position == pytest.approx(16 / 720)
    assert cue.line == pytest.approx(32 / 576)


def test_dvb_ignores_other_pages():
    init_data = struct.pack(">HH", 2, 3)
    emitted = collect(DvbParser([init_data]), dvb_display_set(page_id=1))
    assert emitted == []


def test_dvb_truncated_segment_is_rejected():
    data = dvb_display_set()
    with pytest.raises(ValueError):
        collect(DvbParser(), data[:12])


def test_bit_reader_reads_across_byte_boundaries():
    reader = BitReader(bytes([0b10110011, 0b01010101]))
    assert reader.read_bits(3) == 0b101
    assert reader.read_bits(7) == 0b1001101
    assert reader.bits_left() == 6
    with pytest.raises(ValueError):
        reader.read_bits(7)
