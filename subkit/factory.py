"""
Factory creating one SubtitleDecoder per subtitle stream.
"""

import logging
import weakref
from typing import Optional

from .decoder import SubtitleDecoder
from .formats import supports_format
from .models import DecoderConfig, FormatHint
from .offset import OffsetProvider

logger = logging.getLogger(__name__)


class SubtitleDecoderFactory:
    """
    Creates subtitle decoders sharing one offset provider and configuration.

    The factory keeps a weak reference to the most recently created decoder
    for diagnostics; it never keeps a decoder alive.

    Example:
        >>> offset = SubtitleOffset()
        >>> factory = SubtitleDecoderFactory(offset_provider=offset)
        >>> hint = FormatHint(mime_type="text/vtt")
        >>> if factory.supports_format(hint):
        ...     decoder = factory.create_decoder(hint)
    """

    def __init__(
        self,
        offset_provider: Optional[OffsetProvider] = None,
        config: Optional[DecoderConfig] = None,
    ):
        self.offset_provider = offset_provider
        self.config = config or DecoderConfig()
        self._latest_decoder: Optional["weakref.ReferenceType[SubtitleDecoder]"] = None

    def supports_format(self, hint: Optional[FormatHint]) -> bool:
        """Whether the hint declares a format this package can decode."""
        return supports_format(hint)

    def create_decoder(self, hint: Optional[FormatHint] = None) -> SubtitleDecoder:
        """
        Create a decoder for a new stream.

        The hint is not re-validated; callers check supports_format first.
        A decoder created for an unsupported hint still sniffs content.

        Args:
            hint: Declared format of the stream

        Returns:
            A fresh SubtitleDecoder
        """
        decoder = SubtitleDecoder(hint=hint, offset_provider=self.offset_provider, config=self.config)
        self._latest_decoder = weakref.ref(decoder)
        logger.debug(f"Created decoder for {decoder.hint.mime_type}")
        return decoder

    @property
    def latest_decoder(self) -> Optional[SubtitleDecoder]:
        """The most recently created decoder, or None once it was collected."""
        if self._latest_decoder is None:
            return None
        return self._latest_decoder()
