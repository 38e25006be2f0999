"""
=============================================================================
ACCEPT-ENCODING NEGOTIATION
=============================================================================

Decides which content codings the client advertises.

    decompress=False             →  no accept-encoding header at all
    brotli decoder installed     →  "gzip, deflate, br"
    otherwise                    →  "gzip, deflate"

gzip and deflate are always decodable through zlib from the standard
library. Brotli needs a third-party decoder ("brotli" or "brotlicffi"),
so its availability is probed once per process and handed to the
negotiator as a constructor argument.

A user-supplied accept-encoding (even "") is never replaced: the
negotiated value is only a default.

=============================================================================
"""

from functools import lru_cache
from typing import Optional
import importlib.util
import logging


logger = logging.getLogger(__name__)

BROTLI_MODULES = ("brotli", "brotlicffi")


@lru_cache(maxsize=1)
def supports_brotli() -> bool:
    """Whether a Brotli decoder is importable. Computed once per process."""
    available = any(importlib.util.find_spec(name) is not None for name in BROTLI_MODULES)
    logger.debug(f"Brotli decompression available: {available}")
    return available


class EncodingNegotiator:
    """
    Computes the default accept-encoding value.

    Example:
        negotiator = EncodingNegotiator(brotli_supported=supports_brotli())
        negotiator.negotiate(decompress=True)   # "gzip, deflate, br"
        negotiator.negotiate(decompress=False)  # None
    """

    BASE_ENCODINGS = ("gzip", "deflate")

    def __init__(self, brotli_supported: bool):
        self.brotli_supported = brotli_supported

    def negotiate(self, decompress: bool = True) -> Optional[str]:
        if not decompress:
            return None

        encodings = list(self.BASE_ENCODINGS)
        if self.brotli_supported:
            encodings.append("br")
        return ", ".join(encodings)
