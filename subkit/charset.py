"""
Charset detection for raw subtitle buffers.

Subtitle files in the wild arrive in every legacy code page imaginable, so
bytes are decoded with a statistical guess and a UTF-8 safety net. Nothing
in here raises: the worst case is mis-decoded text.
"""

import logging
from typing import Optional

from charset_normalizer import from_bytes

from .models import DecodedText

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "utf-8"


def detect_encoding(data: bytes) -> Optional[str]:
    """
    Run statistical charset detection over a byte buffer.

    Args:
        data: Raw subtitle bytes

    Returns:
        Detected encoding name, or None when detection failed or found nothing
    """
    try:
        best = from_bytes(data).best()
    except Exception as e:
        logger.warning(f"Charset detection failed: {str(e)}")
        return None

    if best is None:
        return None

    logger.debug(f"Detected encoding with charset {best.encoding}")
    return best.encoding


def decode_bytes(data: bytes, fallback_encoding: str = DEFAULT_ENCODING) -> DecodedText:
    """
    Decode subtitle bytes into text using the detected charset.

    Falls back to ``fallback_encoding`` when detection reports nothing, and to
    lossy UTF-8 when decoding with the detected charset fails.

    Args:
        data: Raw subtitle bytes
        fallback_encoding: Encoding used when detection reports nothing

    Returns:
        DecodedText carrying the text and the encoding actually used
    """
    encoding = detect_encoding(data) or fallback_encoding

    try:
        return DecodedText(text=data.decode(encoding), encoding=encoding)
    except (LookupError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to decode using encoding {encoding}: {str(e)}, falling back to {DEFAULT_ENCODING}")

    return DecodedText(text=data.decode(DEFAULT_ENCODING, errors="replace"), encoding=DEFAULT_ENCODING)
