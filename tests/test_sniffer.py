from subkit.formats import MimeTypes, SubtitleFormat
from subkit.models import FormatHint
from subkit.sniffer import sniff_content, sniff_format, trim_leading_invisible


def test_webvtt_wins_over_declared_ttml():
    hint = FormatHint(mime_type=MimeTypes.APPLICATION_TTML)
    assert sniff_format("WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nHi", hint) == SubtitleFormat.WEBVTT


def test_webvtt_marker_is_case_insensitive():
    assert sniff_format("webvtt\n") == SubtitleFormat.WEBVTT


def test_webvtt_marker_outside_window_is_ignored():
    assert sniff_content("X" * 10 + "WEBVTT") is None
    assert sniff_content("X" * 10 + "WEBVTT", window=20) == SubtitleFormat.WEBVTT


def test_ttml_detected_from_xml_prologue():
    text = '<?xml version="1.0" encoding="utf-8"?>\n<tt xmlns="http://www.w3.org/ns/ttml"/>'
    assert sniff_format(text) == SubtitleFormat.TTML


def test_ssa_detected_from_script_info_or_title():
    assert sniff_format("[Script Info]\nTitle: Test") == SubtitleFormat.SSA
    assert sniff_format("title: Movie\nScriptType: v4.00+") == SubtitleFormat.SSA


def test_subrip_detected_from_leading_cue_number():
    assert sniff_format("1\n00:00:01,000 --> 00:00:02,000\nHello") == SubtitleFormat.SUBRIP


def test_ssa_wins_over_declared_subrip():
    hint = FormatHint(mime_type=MimeTypes.APPLICATION_SUBRIP)
    assert sniff_format("[Script Info]\n", hint) == SubtitleFormat.SSA


def test_hint_used_when_content_unrecognised():
    hint = FormatHint(mime_type=MimeTypes.APPLICATION_SUBRIP)
    assert sniff_format("00:00:01,000 --> 00:00:02,000\nHello", hint) == SubtitleFormat.SUBRIP


def test_nothing_selected_without_match_or_hint():
    assert sniff_format("just some words") is None


def test_unsupported_caption_hint_is_rejected(caplog):
    hint = FormatHint(mime_type=MimeTypes.APPLICATION_CEA608)
    assert sniff_format("just some words", hint) is None
    assert "unsupported" in caplog.text.lower()


def test_leading_control_characters_are_ignored():
    text = "\x00\x01 \n" + chr(0xFEFF) + "WEBVTT"
    assert trim_leading_invisible(text) == "WEBVTT"
    assert sniff_content(text) == SubtitleFormat.WEBVTT
