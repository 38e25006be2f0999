"""
=============================================================================
HOST HEADER
=============================================================================

HTTP/1.1 requires a Host header (RFC 7230 §5.4). Its port part is only
sent when it differs from the scheme's default:

    http://example.com          →  Host: example.com
    http://example.com:80       →  Host: example.com
    https://example.com:443     →  Host: example.com
    http://example.com:8080     →  Host: example.com:8080
    https://example.com:80      →  Host: example.com:80
    http://[::1]:8080           →  Host: [::1]:8080

The rule is applied to the parsed port, so a URL string and the same
target given as hostname/port/protocol components produce identical
headers.

=============================================================================
"""

from typing import Optional


DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
}


def normalize_scheme(scheme: str) -> str:
    """Lowercase and drop a trailing colon: "HTTPS:" → "https"."""
    return scheme.rstrip(":").lower()


def default_port(scheme: str) -> Optional[int]:
    return DEFAULT_PORTS.get(normalize_scheme(scheme))


def is_implicit_port(port: Optional[int], scheme: str) -> bool:
    """True when the port can be left out of the Host header."""
    return port is None or port == default_port(scheme)


def host_header(hostname: str, port: Optional[int], scheme: str) -> str:
    """
    Build the Host header value.

    Args:
        hostname: Host name or IP literal, without brackets.
        port: Explicit port, or None when the target gave none.
        scheme: "http" or "https" (a trailing colon is accepted).
    """
    # IPv6 literals need brackets so the port separator is unambiguous
    if ":" in hostname and not hostname.startswith("["):
        hostname = f"[{hostname}]"

    if is_implicit_port(port, scheme):
        return hostname
    return f"{hostname}:{port}"
