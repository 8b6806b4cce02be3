from subkit.cleaner import (
    BYTE_ORDER_MARK,
    SPACE_VARIANTS,
    ZERO_WIDTH_SPACE,
    compile_bloat_patterns,
    normalize_text,
    strip_bloat,
)
from subkit.formats import SubtitleFormat

NBSP = chr(0x00A0)
EM_SPACE = chr(0x2003)
MEDIUM_MATH_SPACE = chr(0x205F)


def test_normalize_trims_leading_whitespace_and_invisible_characters():
    text = BYTE_ORDER_MARK + "  \n" + ZERO_WIDTH_SPACE + "WEBVTT"
    assert normalize_text(text) == "WEBVTT"


def test_normalize_trims_trailing_invisible_characters_only():
    text = "Hello  " + ZERO_WIDTH_SPACE + BYTE_ORDER_MARK
    assert normalize_text(text) == "Hello  "


def test_normalize_folds_space_variants():
    text = "a" + NBSP + "b" + EM_SPACE + "c" + MEDIUM_MATH_SPACE + "d"
    assert normalize_text(text) == "a b c d"


def test_normalize_replaces_every_listed_space_variant():
    text = "x".join(SPACE_VARIANTS)
    assert normalize_text("y" + text + "y") == "y" + "x".join(" " * len(SPACE_VARIANTS)) + "y"


def test_normalize_is_idempotent():
    samples = [
        "",
        "plain text",
        BYTE_ORDER_MARK + BYTE_ORDER_MARK + "WEBVTT\n\n",
        NBSP + ZERO_WIDTH_SPACE + "x" + NBSP + ZERO_WIDTH_SPACE,
        "x" + NBSP + BYTE_ORDER_MARK,
        "x" + ZERO_WIDTH_SPACE + NBSP,
        "\t" + EM_SPACE + BYTE_ORDER_MARK + " 1\n00:00:01,000 --> 00:00:02,000\nHi" + ZERO_WIDTH_SPACE,
        ZERO_WIDTH_SPACE * 3,
    ]
    for sample in samples:
        once = normalize_text(sample)
        assert normalize_text(once) == once


def test_strip_bloat_replaces_phrase_with_newline():
    text = "Hello\nAdvertise your product or brand here\nBye"
    assert strip_bloat(text, SubtitleFormat.SUBRIP) == "Hello\n\n\nBye"


def test_strip_bloat_is_case_insensitive():
    text = "CONTACT www.OpenSubtitles.org TODAY"
    assert strip_bloat(text, SubtitleFormat.WEBVTT) == "\n"


def test_strip_bloat_handles_rate_this_subtitle_phrase():
    text = "Please rate this subtitle at www.osdb.link/abc\nHelp other users to choose the best subtitles"
    assert strip_bloat(text, SubtitleFormat.TTML) == "\n"


def test_strip_bloat_skips_ssa():
    text = "Dialogue: 0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Advertise your product or brand here"
    assert strip_bloat(text, SubtitleFormat.SSA) == text


def test_strip_bloat_without_format_still_strips():
    assert strip_bloat("Advertise your product or brand here", None) == "\n"


def test_extra_bloat_patterns_follow_builtin_ones():
    patterns = compile_bloat_patterns([r"Subtitles\s+by\s+\w+"])
    text = "Hello\nsubtitles BY somebody\n"
    assert strip_bloat(text, SubtitleFormat.SUBRIP, patterns) == "Hello\n\n\n"
