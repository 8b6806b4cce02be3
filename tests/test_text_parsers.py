import pytest

from subkit.formats import SubtitleFormat
from subkit.models import OutputOptions
from subkit.parsers import SsaParser, SubripParser, TtmlParser, WebvttParser, create_parser
from subkit.parsers.subrip import parse_subrip_cues
from subkit.parsers.ttml import TimingParameters, parse_time_expression, parse_ttml_cues
from subkit.parsers.webvtt import parse_cue_settings, parse_webvtt_cues

WEBVTT_DOCUMENT = """WEBVTT

NOTE this is a comment

intro
00:00:01.000 --> 00:00:02.000 line:10% position:20% align:left
<b>Hello</b> &amp; welcome

00:01:02.500 --> 00:01:04.000
Second cue

NOTE trailing comment
ignored
"""

SUBRIP_DOCUMENT = r"""1
00:00:01,000 --> 00:00:02,000
{\an8}<i>Top text</i>

2
00:00:03,500 --> 00:00:05,000
Line one
Line two
"""

SSA_DOCUMENT = r"""[Script Info]
Title: Test
PlayResX: 640
PlayResY: 480

[V4+ Styles]
Format: Name, Fontname, Fontsize, Alignment
Style: Default,Arial,20,2
Style: Top,Arial,20,8

[Events]
Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text
Dialogue: 0,0:00:01.00,0:00:02.50,Default,,0,0,0,,Hello\Nworld
Dialogue: 0,0:00:03.00,0:00:04.00,Top,,0,0,0,,{\pos(320,240)}Centered, with comma
Comment: 0,0:00:05.00,0:00:06.00,Default,,0,0,0,,Not shown
"""

TTML_DOCUMENT = """<?xml version="1.0" encoding="UTF-8"?>
<tt xmlns="http://www.w3.org/ns/ttml" xmlns:ttp="http://www.w3.org/ns/ttml#parameter" ttp:tickRate="10000000">
  <body>
    <div begin="1s">
      <p begin="00:00:00.000" end="00:00:02.000">First<br/>line</p>
      <p begin="10000000t" dur="2s">Second</p>
    </div>
  </body>
</tt>
"""


def collect(parser, data, options=None):
    emitted = []
    parser.parse(data, options or OutputOptions(), emitted.append)
    return emitted


def test_webvtt_cues_with_settings_and_markup():
    cues = parse_webvtt_cues(WEBVTT_DOCUMENT)
    assert len(cues) == 2

    first = cues[0]
    assert first.start_time_us == 1_000_000
    assert first.duration_us == 1_000_000
    assert first.text == "Hello & welcome"
    assert first.cues[0].line == pytest.approx(0.1)
    assert first.cues[0].position == pytest.approx(0.2)
    assert first.cues[0].text_alignment == "start"

    second = cues[1]
    assert second.start_time_us == 62_500_000
    assert second.duration_us == 1_500_000
    assert second.text == "Second cue"


def test_webvtt_tolerates_blank_lines_inside_cue_body():
    cues = parse_webvtt_cues("WEBVTT\n\n00:00:01.000 --> 00:00:02.000\n\n\nHello")
    assert [cue.text for cue in cues] == ["Hello"]


def test_webvtt_skips_cue_ending_before_start():
    cues = parse_webvtt_cues("WEBVTT\n\n00:00:05.000 --> 00:00:02.000\nBackwards\n")
    assert cues == []


def test_cue_settings_ignore_line_numbers():
    assert parse_cue_settings("line:-1 align:middle size:50%") == {"text_alignment": "center", "size": 0.5}


def test_subrip_cues_and_alignment_override():
    cues = parse_subrip_cues(SUBRIP_DOCUMENT)
    assert len(cues) == 2

    first = cues[0]
    assert first.start_time_us == 1_000_000
    assert first.text == "Top text"
    assert first.cues[0].line == pytest.approx(0.08)
    assert first.cues[0].text_alignment == "center"

    second = cues[1]
    assert second.start_time_us == 3_500_000
    assert second.duration_us == 1_500_000
    assert second.text == "Line one\nLine two"


def test_subrip_parser_emits_in_file_order():
    emitted = collect(SubripParser(), SUBRIP_DOCUMENT)
    assert [cue.start_time_us for cue in emitted] == [1_000_000, 3_500_000]


def test_ssa_script_with_styles_and_positioning():
    emitted = collect(SsaParser(), SSA_DOCUMENT)
    assert len(emitted) == 2

    first = emitted[0]
    assert first.start_time_us == 1_000_000
    assert first.duration_us == 1_500_000
    assert first.text == "Hello\nworld"
    assert first.cues[0].line == pytest.approx(0.92)
    assert first.cues[0].text_alignment == "center"

    second = emitted[1]
    assert second.text == "Centered, with comma"
    assert second.cues[0].position == pytest.approx(0.5)
    assert second.cues[0].line == pytest.approx(0.5)


def test_ssa_dialogue_samples_use_initialization_data():
    format_line = b"Format: Start, End, Style, Text"
    header = b"[Script Info]\nPlayResX: 100\nPlayResY: 100\n\n[V4+ Styles]\nFormat: Name, Alignment\nStyle: Sign,7\n"
    parser = SsaParser(initialization_data=(format_line, header))

    emitted = collect(parser, r"Dialogue: 0:00:10.00,0:00:11.00,Sign,Upper\hleft")
    assert len(emitted) == 1
    assert emitted[0].start_time_us == 10_000_000
    assert emitted[0].text == "Upper" + chr(0x00A0) + "left"
    assert emitted[0].cues[0].text_alignment == "start"
    assert emitted[0].cues[0].line == pytest.approx(0.08)


def test_ssa_legacy_v4_alignment():
    script = r"""[V4 Styles]
Format: Name, Alignment
Style: Top,6

[Events]
Format: Start, End, Style, Text
Dialogue: 0:00:01.00,0:00:02.00,Top,Hi
"""
    emitted = collect(SsaParser(), script)
    assert emitted[0].cues[0].line == pytest.approx(0.08)
    assert emitted[0].cues[0].text_alignment == "center"


def test_ttml_intervals_from_nested_timing():
    cues = parse_ttml_cues(TTML_DOCUMENT)
    assert [(cue.start_time_us, cue.end_time_us) for cue in cues] == [
        (1_000_000, 2_000_000),
        (2_000_000, 3_000_000),
        (3_000_000, 4_000_000),
    ]
    assert cues[0].text == "First\nline"
    assert cues[1].text == "First\nline\nSecond"
    assert cues[2].text == "Second"


def test_ttml_paragraph_end_is_clipped_to_container():
    document = (
        '<tt xmlns="http://www.w3.org/ns/ttml"><body>'
        '<div begin="0s" end="3s"><p begin="1s" end="10s">Long</p><p begin="4s" end="5s">Late</p></div>'
        "</body></tt>"
    )
    cues = parse_ttml_cues(document)
    assert [(cue.start_time_us, cue.end_time_us, cue.text) for cue in cues] == [(1_000_000, 3_000_000, "Long")]


def test_ttml_rejects_malformed_document():
    with pytest.raises(ValueError):
        parse_ttml_cues('<?xml version="1.0"?><tt><body><p begin="0s"')


def test_ttml_rejects_non_ttml_root():
    with pytest.raises(ValueError):
        parse_ttml_cues('<?xml version="1.0"?><html/>')


def test_ttml_time_expressions():
    assert parse_time_expression("1.5s") == 1_500_000
    assert parse_time_expression("100ms") == 100_000
    assert parse_time_expression("2m") == 120_000_000
    assert parse_time_expression("00:00:01:15") == 1_500_000
    assert parse_time_expression("00:00:02.250") == 2_250_000
    assert parse_time_expression("5000000t", TimingParameters(tick_rate=10_000_000)) == 500_000
    assert parse_time_expression("12f", TimingParameters(frame_rate=24)) == 500_000
    with pytest.raises(ValueError):
        parse_time_expression("soon")


def test_output_options_put_later_cues_first():
    parser = WebvttParser()
    document = (
        "WEBVTT\n\n"
        "00:00:00.000 --> 00:00:01.000\nA\n\n"
        "00:00:02.000 --> 00:00:03.000\nB\n\n"
        "00:00:04.000 --> 00:00:05.000\nC\n"
    )

    assert [c.text for c in collect(parser, document)] == ["A", "B", "C"]
    assert [c.text for c in collect(parser, document, OutputOptions.only_cues_after(2_500_000))] == ["B", "C"]
    assert [c.text for c in collect(parser, document, OutputOptions.cues_after_then_remaining(2_500_000))] == [
        "B",
        "C",
        "A",
    ]


def test_create_parser_returns_matching_parser():
    assert isinstance(create_parser(SubtitleFormat.WEBVTT), WebvttParser)
    assert isinstance(create_parser(SubtitleFormat.TTML), TtmlParser)
    ssa = create_parser(SubtitleFormat.SSA, [b"Format: Start, End, Text"])
    assert isinstance(ssa, SsaParser)
    assert ssa.event_format == ["start", "end", "text"]
