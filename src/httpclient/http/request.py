"""
=============================================================================
REQUEST NORMALIZATION
=============================================================================

Turns a loosely specified request (URL or components, headers, body,
options) into a fully determined, protocol-correct outbound request.

=============================================================================
PIPELINE
=============================================================================

    RequestOptions / mapping
          │
          ▼
    ┌───────────────────────────────────────────────────────────────────┐
    │  build()  - synchronous, no I/O                                   │
    ├───────────────────────────────────────────────────────────────────┤
    │                                                                    │
    │  1. Check option keys ──────────────► unknown? InvalidOption      │
    │  2. Resolve target (URL or components) → scheme/host/port/path    │
    │  3. Default headers                                               │
    │       user-agent, accept (response_type="json"), accept-encoding  │
    │  4. Merge user headers ──────────────► bad value? InvalidHeaderValue
    │  5. Derive host                                                   │
    │  6. Describe body (str/bytes/json/form/FormData/stream)           │
    │                                                                    │
    └───────────────────────────────────────────────────────────────────┘
          │ RequestDraft
          ▼
    ┌───────────────────────────────────────────────────────────────────┐
    │  finalize()  - async, suspends only to probe a stream's size      │
    ├───────────────────────────────────────────────────────────────────┤
    │                                                                    │
    │  7. Probe stream length (skipped if content-length was given)     │
    │  8. Derive content-type / content-length                          │
    │  9. Freeze headers → Request                                      │
    │                                                                    │
    └───────────────────────────────────────────────────────────────────┘

=============================================================================
CONTENT-LENGTH RULES
=============================================================================

    ┌──────────────────────────────┬──────────────────────────────────┐
    │ Situation                    │ content-length                   │
    ├──────────────────────────────┼──────────────────────────────────┤
    │ caller set it (even "0")     │ caller's value, verbatim         │
    │ FormData body                │ exact multipart byte count       │
    │ str / bytes / json / form    │ encoded byte length              │
    │ stream of known size         │ that size                        │
    │ stream of unknown size       │ absent (transport goes chunked)  │
    │ caller set transfer-encoding │ absent                           │
    │ no body, PUT                 │ "0"                              │
    │ no body, other methods       │ absent                           │
    └──────────────────────────────┴──────────────────────────────────┘

An explicit content-length is trusted even when it disagrees with the
body. Whatever the transport does with the mismatch is the caller's call.

=============================================================================
"""

from dataclasses import dataclass, field, fields
from typing import Any, Iterator, Mapping, Optional
from urllib.parse import urlencode, urlsplit
import json
import logging

from ..config import ClientConfig
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
from .encoding import EncodingNegotiator
from .errors import InvalidOption
from .headers import TOKEN_PATTERN, HeaderTable
from .host import DEFAULT_PORTS, host_header, normalize_scheme


logger = logging.getLogger(__name__)

# Header values never written to logs
SENSITIVE_HEADERS = {"authorization", "proxy-authorization", "cookie"}

RESPONSE_TYPES = {"text", "json", "buffer"}


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


# Distinguishes "no json option" from json=None (which encodes to "null")
MISSING: Any = _Missing()


@dataclass
class RequestOptions:
    """
    The recognized request options.

    The target is either a full `url` or structured components
    (`protocol`, `hostname`, `port`, `path`); both converge on the same
    headers.
    """

    method: str = "GET"

    # Target: a URL string...
    url: Optional[str] = None
    # ...or structured components
    protocol: Optional[str] = None
    hostname: Optional[str] = None
    port: Optional[int] = None
    path: Optional[str] = None
    params: Optional[Mapping[str, Any]] = None

    headers: Optional[Mapping[str, Any]] = None

    # At most one of these
    body: Any = None
    json: Any = MISSING
    form: Optional[Mapping[str, Any]] = None

    decompress: Optional[bool] = None   # None → ClientConfig.decompress
    response_type: Optional[str] = None  # "text" | "json" | "buffer"

    @classmethod
    def recognized_keys(cls) -> frozenset:
        return frozenset(f.name for f in fields(cls))

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any], strict: bool = True) -> "RequestOptions":
        """
        Build options from a plain mapping.

        Unknown keys raise InvalidOption when strict, otherwise they are
        logged and dropped.
        """
        known = cls.recognized_keys()
        accepted = {}
        for key, value in options.items():
            if key in known:
                accepted[key] = value
            elif strict:
                raise InvalidOption(f"Unknown request option: {key!r}", option=key)
            else:
                logger.warning(f"Ignoring unknown request option: {key!r}")
        return cls(**accepted)


@dataclass(frozen=True)
class Target:
    """Where the request goes, after URL parsing or component resolution."""

    scheme: str
    hostname: str
    port: Optional[int]
    path: str  # Path plus query string, as sent in the request line

    @property
    def host(self) -> str:
        return host_header(self.hostname, self.port, self.scheme)

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}{self.path}"


@dataclass
class RequestDraft:
    """A request whose headers are merged but whose body headers are not derived yet."""

    method: str
    target: Target
    headers: HeaderTable
    body: BodyDescriptor


@dataclass(frozen=True)
class Request:
    """
    A finalized request, ready for the transport.

    Headers are frozen; the body is bytes in memory, a FormData, or a
    stream for the transport to read.
    """

    method: str
    target: Target
    headers: HeaderTable
    body: BodyDescriptor = field(default=ABSENT)

    @property
    def url(self) -> str:
        return self.target.url

    @property
    def request_line(self) -> str:
        return f"{self.method} {self.target.path} HTTP/1.1"

    def to_bytes(self) -> bytes:
        """
        Serialize the request line and header block.

            PUT /items/1 HTTP/1.1\\r\\n
            user-agent: httpclient/1.0.0 (...)\\r\\n
            X-Request-Id: abc\\r\\n      ← name as the caller wrote it
            content-length: 0\\r\\n
            \\r\\n
        """
        lines = [self.request_line]
        lines.extend(f"{name}: {value}" for name, value in self.headers.wire_items())
        lines.append("")
        return "\r\n".join(lines).encode("latin-1") + b"\r\n"

    def iter_body(self) -> Iterator[bytes]:
        body = self.body
        if isinstance(body, InlineBytes):
            if body.data:
                yield body.data
        elif isinstance(body, Multipart):
            yield from body.form.iter_chunks()
        elif isinstance(body, Stream):
            yield from body.iter_chunks()


# =============================================================================
# TARGET RESOLUTION
# =============================================================================

def _check_port(port: Any) -> Optional[int]:
    if port is None:
        return None
    if isinstance(port, str) and port.isdigit():
        port = int(port)
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        raise InvalidOption(f"Invalid port: {port!r}", option="port")
    return port


def _check_scheme(scheme: str) -> str:
    scheme = normalize_scheme(scheme)
    if scheme not in DEFAULT_PORTS:
        raise InvalidOption(f"Unsupported protocol: {scheme!r}", option="protocol")
    return scheme


def resolve_target(options: RequestOptions, default_scheme: str = "http") -> Target:
    """
    Resolve a URL string or structured components into a Target.

    Raises:
        InvalidOption: Both or neither target shapes given, missing
            hostname, unsupported scheme or bad port.
    """
    components = (options.protocol, options.hostname, options.port, options.path)

    if options.url is not None:
        if any(value is not None for value in components):
            raise InvalidOption(
                "Pass either url or hostname/port/protocol/path, not both",
                option="url",
            )
        parts = urlsplit(options.url)
        if not parts.hostname:
            raise InvalidOption(f"URL has no host: {options.url!r}", option="url")
        try:
            port = parts.port
        except ValueError as e:
            raise InvalidOption(f"Invalid port in URL {options.url!r}: {e}", option="url") from e
        scheme = _check_scheme(parts.scheme or default_scheme)
        hostname = parts.hostname
        path = parts.path or "/"
        if parts.query:
            path = f"{path}?{parts.query}"
    else:
        if not options.hostname:
            raise InvalidOption("A url or a hostname is required", option="hostname")
        scheme = _check_scheme(options.protocol or default_scheme)
        # urlsplit lowercases hostnames; match it so both shapes converge
        hostname = options.hostname.strip("[]").lower()
        port = _check_port(options.port)
        path = options.path or "/"
        if not path.startswith("/"):
            path = f"/{path}"

    if options.params:
        separator = "&" if "?" in path else "?"
        path = f"{path}{separator}{urlencode(options.params, doseq=True)}"

    return Target(scheme=scheme, hostname=hostname, port=port, path=path)


# =============================================================================
# BODY HEADER DERIVATION
# =============================================================================

def derive_body_headers(
    body: BodyDescriptor,
    existing: HeaderTable,
    method: str,
    empty_body_length_methods: frozenset = frozenset({"PUT"}),
) -> HeaderTable:
    """
    Compute content-type / content-length for a body.

    Returns a patch; the caller applies it with HeaderTable.derive() so
    that explicit and deleted headers are left alone.
    """
    patch = HeaderTable()

    default_type = body.content_type
    if default_type is not None and "content-type" not in existing:
        patch.set("content-type", default_type)

    # An explicit content-length is trusted as-is, even "0" with a body.
    # A caller-chosen transfer-encoding frames the body itself.
    if "content-length" in existing or "transfer-encoding" in existing:
        return patch

    length = body.length
    if length is not None:
        patch.set("content-length", str(length))
    elif isinstance(body, Absent) and method in empty_body_length_methods:
        patch.set("content-length", "0")
    return patch


def _describe_options_body(options: RequestOptions) -> BodyDescriptor:
    given = [
        name
        for name, present in (
            ("body", options.body is not None),
            ("json", options.json is not MISSING),
            ("form", options.form is not None),
        )
        if present
    ]
    if len(given) > 1:
        raise InvalidOption(
            f"Only one of body, json and form may be given, got {', '.join(given)}",
            option=given[1],
        )

    if options.json is not MISSING:
        try:
            payload = json.dumps(options.json)
        except (TypeError, ValueError) as e:
            raise InvalidOption(f"json option is not serializable: {e}", option="json") from e
        return InlineBytes(payload.encode("utf-8"), "application/json")

    if options.form is not None:
        if not isinstance(options.form, Mapping):
            raise InvalidOption("form option must be a mapping", option="form")
        payload = urlencode(options.form, doseq=True)
        return InlineBytes(payload.encode("ascii"), "application/x-www-form-urlencoded")

    return describe_body(options.body)


def loggable_headers(headers: HeaderTable) -> dict:
    """Header dict with credential values masked."""
    return {
        name: "[redacted]" if name in SENSITIVE_HEADERS else value
        for name, value in headers.to_dict().items()
    }


# =============================================================================
# NORMALIZER
# =============================================================================

class RequestNormalizer:
    """
    Builds finalized requests from options.

    Every call builds a fresh HeaderTable and BodyDescriptor, so one
    normalizer can serve any number of concurrent requests.

    Example:
        normalizer = RequestNormalizer(EncodingNegotiator(supports_brotli()))
        request = await normalizer.normalize({"url": "https://example.com:443/"})
        request.headers["host"]   # "example.com"
    """

    def __init__(self, negotiator: EncodingNegotiator, config: Optional[ClientConfig] = None):
        self.negotiator = negotiator
        self.config = config or ClientConfig()

    def _coerce(self, options: Any) -> RequestOptions:
        if isinstance(options, RequestOptions):
            return options
        if isinstance(options, str):
            return RequestOptions(url=options)
        if isinstance(options, Mapping):
            return RequestOptions.from_mapping(options, strict=self.config.strict_options)
        raise InvalidOption(f"Unsupported request description: {type(options).__name__}")

    def default_headers(self, options: RequestOptions) -> HeaderTable:
        """Library defaults, merged before the caller's headers."""
        defaults = HeaderTable()
        defaults.set("user-agent", self.config.user_agent)

        if options.response_type == "json":
            defaults.set("accept", "application/json")

        decompress = self.config.decompress if options.decompress is None else options.decompress
        accept_encoding = self.negotiator.negotiate(decompress)
        if accept_encoding is not None:
            defaults.set("accept-encoding", accept_encoding)
        return defaults

    def build(self, options: Any) -> RequestDraft:
        """
        Synchronous half of normalization: validate and merge headers.

        Raises:
            InvalidOption: Unknown or conflicting options, bad target.
            InvalidHeaderValue: A header value of an unsupported type.
        """
        options = self._coerce(options)

        method = (options.method or "GET").upper()
        if not TOKEN_PATTERN.match(method):
            raise InvalidOption(f"Invalid method: {options.method!r}", option="method")

        if options.response_type is not None and options.response_type not in RESPONSE_TYPES:
            raise InvalidOption(
                f"Invalid response_type: {options.response_type!r}", option="response_type"
            )

        target = resolve_target(options, self.config.default_scheme)

        headers = self.default_headers(options)
        if options.headers is not None:
            if isinstance(options.headers, (str, bytes)):
                raise InvalidOption("headers must be a mapping", option="headers")
            headers.merge(options.headers)
        headers.derive("host", target.host)

        body = _describe_options_body(options)
        return RequestDraft(method=method, target=target, headers=headers, body=body)

    async def finalize(self, draft: RequestDraft) -> Request:
        """
        Asynchronous half: probe stream length if needed, derive body headers.

        Raises:
            BodyInspectionError: The stream's size could not be determined.
        """
        headers = draft.headers
        body = draft.body

        # A caller-supplied length or framing makes the probe pointless
        framed = "content-length" in headers or "transfer-encoding" in headers
        if body.needs_probe and not framed:
            body = await probe_length(body)

        patch = derive_body_headers(
            body, headers, draft.method, self.config.empty_body_length_methods
        )
        for name, value in patch.items():
            headers.derive(name, value)

        headers.freeze()
        request = Request(method=draft.method, target=draft.target, headers=headers, body=body)
        logger.debug(f"Normalized {request.method} {request.url}: {loggable_headers(headers)}")
        return request

    async def normalize(self, options: Any) -> Request:
        """build() then finalize()."""
        return await self.finalize(self.build(options))
