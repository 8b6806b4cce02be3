from subkit.formats import (
    MimeTypes,
    SubtitleFormat,
    format_for_hint,
    mime_type_from_path,
    supports_format,
)
from subkit.models import FormatHint


def test_supports_each_declared_format():
    for mime_type in (
        MimeTypes.TEXT_VTT,
        MimeTypes.TEXT_SSA,
        MimeTypes.APPLICATION_MP4VTT,
        MimeTypes.APPLICATION_TTML,
        MimeTypes.APPLICATION_SUBRIP,
        MimeTypes.APPLICATION_TX3G,
        MimeTypes.APPLICATION_DVBSUBS,
        MimeTypes.APPLICATION_PGS,
    ):
        assert supports_format(FormatHint(mime_type=mime_type)), mime_type


def test_rejects_closed_caption_and_unknown_formats():
    assert not supports_format(FormatHint(mime_type=MimeTypes.APPLICATION_CEA608))
    assert not supports_format(FormatHint(mime_type=MimeTypes.APPLICATION_CEA708))
    assert not supports_format(FormatHint(mime_type="video/mp4"))
    assert not supports_format(FormatHint())
    assert not supports_format(None)


def test_mime_type_parameters_and_case_are_ignored():
    hint = FormatHint(mime_type="Text/VTT; charset=utf-8")
    assert supports_format(hint)
    assert format_for_hint(hint) == SubtitleFormat.WEBVTT


def test_format_for_hint_maps_one_to_one():
    assert format_for_hint(FormatHint(MimeTypes.APPLICATION_MP4VTT)) == SubtitleFormat.MP4_WEBVTT
    assert format_for_hint(FormatHint(MimeTypes.APPLICATION_DVBSUBS)) == SubtitleFormat.DVB
    assert format_for_hint(FormatHint(MimeTypes.APPLICATION_CEA708)) is None


def test_mime_type_from_path():
    assert mime_type_from_path("movie.en.srt") == MimeTypes.APPLICATION_SUBRIP
    assert mime_type_from_path("/subs/Episode 1.ASS") == MimeTypes.TEXT_SSA
    assert mime_type_from_path("captions.dfxp") == MimeTypes.APPLICATION_TTML
    assert mime_type_from_path("https://cdn.example.com/track/en.vtt?token=abc#t=1") == MimeTypes.TEXT_VTT
    assert mime_type_from_path("movie.mkv") is None
    assert mime_type_from_path("README") is None
