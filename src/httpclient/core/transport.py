"""
=============================================================================
TRANSPORT BOUNDARY
=============================================================================

The normalizer stops at a finalized Request. Everything after that -
sockets, TLS, writing the request line and header block, reading the
response - belongs to a transport:

    Request ──► transport.send(request) ──► whatever the transport returns

    request.to_bytes()      request line + "Name: value\\r\\n" per header
    request.iter_body()     body bytes (in memory, multipart or file)
    request.body            the descriptor, for async/chunked streaming

=============================================================================
"""

from typing import Any, Protocol, runtime_checkable

from ..http.request import Request


@runtime_checkable
class Transport(Protocol):
    """Anything that can put a finalized request on the wire."""

    async def send(self, request: Request) -> Any:
        ...
