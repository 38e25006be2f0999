"""
=============================================================================
HTTPCLIENT - Request Normalization for HTTP/1.1 Clients
=============================================================================

Takes a loosely specified request (URL or components, headers, body,
options) and produces a fully determined outbound request:

    - case-insensitive header merging with delete / keep semantics
    - user-agent, accept, accept-encoding and host defaults
    - exact content-length for strings, buffers, files and multipart forms
    - content-type defaults for json, url-encoded and multipart bodies

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httpclient/
    ├── __init__.py          # This file - package exports
    ├── client.py            # HTTPClient facade
    ├── config.py            # ClientConfig dataclass
    ├── core/
    │   └── transport.py     # Transport protocol (socket layer boundary)
    └── http/
        ├── errors.py        # Exception hierarchy
        ├── headers.py       # HeaderTable + tagged header values
        ├── body.py          # Body descriptors + stream length probe
        ├── multipart.py     # FormData encoder
        ├── mime_types.py    # Upload content-type guessing
        ├── host.py          # Host header / implicit port rule
        ├── encoding.py      # Brotli probe + accept-encoding negotiation
        └── request.py       # RequestNormalizer

=============================================================================
QUICK START
=============================================================================

    from httpclient import HTTPClient, FormData

    client = HTTPClient()

    form = FormData()
    form.append("a", "b")

    request = await client.prepare("http://localhost:8080/upload",
                                   method="POST", body=form)
    request.headers["content-length"]   # "157"

=============================================================================
"""

__version__ = "1.0.0"

from .client import HTTPClient
from .config import ClientConfig
from .core import Transport
from .http import (
    UNCHANGED,
    BodyInspectionError,
    FormData,
    HeaderTable,
    InvalidHeaderValue,
    InvalidOption,
    NormalizationError,
    Request,
    RequestNormalizer,
    RequestOptions,
)

__all__ = [
    "HTTPClient",
    "ClientConfig",
    "Transport",
    "FormData",
    "HeaderTable",
    "UNCHANGED",
    "Request",
    "RequestNormalizer",
    "RequestOptions",
    "NormalizationError",
    "InvalidHeaderValue",
    "InvalidOption",
    "BodyInspectionError",
    "__version__",
]
