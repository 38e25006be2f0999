"""
HTTP request building blocks.

Header names are case-insensitive ("Content-Type" = "content-type"), but
the name as last written is what goes on the wire. Bodies are measured
in encoded bytes, never characters.
"""

from .body import (
    ABSENT,
    Absent,
    BodyDescriptor,
    InlineBytes,
    Multipart,
    Stream,
    describe_body,
    probe_length,
)
from .encoding import EncodingNegotiator, supports_brotli
from .errors import BodyInspectionError, InvalidHeaderValue, InvalidOption, NormalizationError
from .headers import DELETED, UNCHANGED, Deleted, HeaderTable, Present, Unchanged
from .host import host_header, is_implicit_port
from .mime_types import get_mime_type
from .multipart import FormData
from .request import (
    Request,
    RequestDraft,
    RequestNormalizer,
    RequestOptions,
    Target,
    derive_body_headers,
    resolve_target,
)

__all__ = [
    # Headers
    "HeaderTable",
    "Present",
    "Deleted",
    "Unchanged",
    "DELETED",
    "UNCHANGED",

    # Bodies
    "BodyDescriptor",
    "Absent",
    "ABSENT",
    "InlineBytes",
    "Stream",
    "Multipart",
    "describe_body",
    "probe_length",
    "FormData",
    "get_mime_type",

    # Host / encoding
    "host_header",
    "is_implicit_port",
    "EncodingNegotiator",
    "supports_brotli",

    # Normalization
    "Request",
    "RequestDraft",
    "RequestNormalizer",
    "RequestOptions",
    "Target",
    "derive_body_headers",
    "resolve_target",

    # Errors
    "NormalizationError",
    "InvalidHeaderValue",
    "InvalidOption",
    "BodyInspectionError",
]
