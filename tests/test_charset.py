import subkit.charset as charset
from subkit.charset import decode_bytes, detect_encoding

E_ACUTE = chr(0x00E9)
O_UMLAUT = chr(0x00F6)


def test_decode_utf8_text():
    text = f"1\n00:00:01,000 --> 00:00:02,000\nCaf{E_ACUTE} cr{E_ACUTE}me br{O_UMLAUT}l{E_ACUTE}e, s'il vous pla{chr(0x00EE)}t\n"
    decoded = decode_bytes(text.encode("utf-8"))
    assert decoded.text == text


def test_decode_plain_ascii():
    decoded = decode_bytes(b"WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nHello\n")
    assert decoded.text == "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nHello\n"


def test_detection_failure_falls_back_to_utf8(monkeypatch):
    def broken_detector(data):
        raise RuntimeError("detector exploded")

    monkeypatch.setattr(charset, "from_bytes", broken_detector)

    assert detect_encoding(b"anything") is None
    decoded = decode_bytes(f"Gr{O_UMLAUT}{chr(0x00DF)}e".encode("utf-8"))
    assert decoded.text == f"Gr{O_UMLAUT}{chr(0x00DF)}e"
    assert decoded.encoding == "utf-8"


def test_configured_fallback_used_when_nothing_detected(monkeypatch):
    class NoMatches:
        def best(self):
            return None

    monkeypatch.setattr(charset, "from_bytes", lambda data: NoMatches())

    decoded = decode_bytes(f"caf{E_ACUTE}".encode("cp1252"), fallback_encoding="cp1252")
    assert decoded.text == f"caf{E_ACUTE}"
    assert decoded.encoding == "cp1252"


def test_failed_decode_falls_back_to_lossy_utf8(monkeypatch):
    monkeypatch.setattr(charset, "detect_encoding", lambda data: "ascii")

    decoded = decode_bytes(f"caf{E_ACUTE}".encode("utf-8"))
    assert decoded.text == f"caf{E_ACUTE}"
    assert decoded.encoding == "utf-8"


def test_unknown_codec_falls_back_to_lossy_utf8(monkeypatch):
    monkeypatch.setattr(charset, "detect_encoding", lambda data: "no-such-codec")

    decoded = decode_bytes(b"ok \xff")
    assert decoded.text == "ok " + chr(0xFFFD)
    assert decoded.encoding == "utf-8"
