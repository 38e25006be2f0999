"""
=============================================================================
NORMALIZATION ERRORS
=============================================================================

Exceptions raised while turning request options into a finalized request.

Every failure is local to one normalization pass. Nothing here retries:
retry and backoff belong to whoever drives the transport.

    NormalizationError
    ├── InvalidHeaderValue   - header value of an unsupported type
    ├── InvalidOption        - unknown or conflicting option, bad target
    └── BodyInspectionError  - stream length probe failed

=============================================================================
"""

from typing import Any, Optional


class NormalizationError(Exception):
    """Base class for every error raised while building a request."""


class InvalidHeaderValue(NormalizationError):
    """
    Raised when a header value is not a string, a list of strings,
    None (delete) or UNCHANGED.

    Surfaced synchronously, before any network I/O begins.
    """

    def __init__(self, name: str, value: Any, reason: Optional[str] = None):
        super().__init__(
            f"Invalid value for header {name!r}: "
            + (reason or f"expected str, got {type(value).__name__}")
        )
        self.name = name
        self.value = value


class InvalidOption(NormalizationError):
    """Raised for unknown, conflicting or malformed request options."""

    def __init__(self, message: str, option: Optional[str] = None):
        super().__init__(message)
        self.option = option  # Offending option key, if any


class BodyInspectionError(NormalizationError):
    """
    Raised when the length of a stream body cannot be determined.

    The stream handle has already been closed when this propagates.
    """

    def __init__(self, message: str, stream: Any = None):
        super().__init__(message)
        self.stream = stream
