"""
=============================================================================
HTTP CLIENT
=============================================================================

Facade tying configuration, encoding negotiation, request normalization
and the transport together.

    client = HTTPClient(transport=my_transport)

    await client.prepare("https://example.com/items", method="PUT")
        → Request (headers frozen, body described)

    await client.request("https://example.com/items", json={"a": 1})
        → prepare() + transport.send()

The Brotli probe runs once per process; its result is passed to the
negotiator rather than read from global state on every request.

=============================================================================
"""

from typing import Any, Mapping, Optional
import json
import logging

from .config import ClientConfig
from .core.transport import Transport
from .http.encoding import EncodingNegotiator, supports_brotli
from .http.request import Request, RequestNormalizer, RequestOptions


logger = logging.getLogger(__name__)


class JsonFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


class HTTPClient:
    """
    Request normalization front end.

    =========================================================================
    USAGE
    =========================================================================

        client = HTTPClient(ClientConfig(user_agent="my-app/2.0"))

        # URL string
        request = await client.prepare("http://localhost:8080/", method="PUT")

        # Structured components, same headers
        request = await client.prepare({
            "protocol": "http:",
            "hostname": "localhost",
            "port": 8080,
            "headers": {"X-Request-Id": "value"},
        })

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
        brotli_supported: Optional[bool] = None,
    ):
        """
        Args:
            config: Client configuration. Uses defaults if not provided.
            transport: Receives finalized requests in request().
            brotli_supported: Override the process-wide Brotli probe.
        """
        self.config = config or ClientConfig()
        self.config.validate()  # Fail-fast on invalid config
        self._setup_logging()

        if brotli_supported is None:
            brotli_supported = supports_brotli()
        self._negotiator = EncodingNegotiator(brotli_supported)
        self._normalizer = RequestNormalizer(self._negotiator, self.config)
        self.transport = transport

    @property
    def normalizer(self) -> RequestNormalizer:
        return self._normalizer

    def _setup_logging(self) -> None:
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.WARNING)

        if self.config.log_format == "json":
            package_logger = logging.getLogger("httpclient")
            if not any(isinstance(h.formatter, JsonFormatter) for h in package_logger.handlers):
                handler = logging.StreamHandler()
                handler.setFormatter(JsonFormatter())
                package_logger.addHandler(handler)
                package_logger.propagate = False
        else:
            logging.basicConfig(
                level=level,
                format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

        logging.getLogger("httpclient").setLevel(level)

    # =========================================================================
    # NORMALIZATION
    # =========================================================================

    @staticmethod
    def _merge_options(target: Any, options: Mapping[str, Any]) -> Any:
        if target is None:
            return dict(options)
        if isinstance(target, str):
            return {"url": target, **options}
        if isinstance(target, Mapping):
            return {**target, **options}
        if isinstance(target, RequestOptions) and not options:
            return target
        raise TypeError(
            "Pass keyword options with a URL string or mapping, not with RequestOptions"
        )

    async def prepare(self, target: Any = None, **options: Any) -> Request:
        """Normalize a request description into a finalized Request."""
        return await self._normalizer.normalize(self._merge_options(target, options))

    async def request(self, target: Any = None, **options: Any) -> Any:
        """
        Normalize, then hand the request to the transport.

        Nothing is sent if normalization fails or is cancelled.
        """
        if self.transport is None:
            raise RuntimeError("HTTPClient has no transport configured")

        request = await self.prepare(target, **options)
        logger.info(f"{request.method} {request.url}")
        return await self.transport.send(request)

    async def get(self, target: Any = None, **options: Any) -> Any:
        return await self.request(target, method="GET", **options)

    async def post(self, target: Any = None, **options: Any) -> Any:
        return await self.request(target, method="POST", **options)

    async def put(self, target: Any = None, **options: Any) -> Any:
        return await self.request(target, method="PUT", **options)

    async def patch(self, target: Any = None, **options: Any) -> Any:
        return await self.request(target, method="PATCH", **options)

    async def delete(self, target: Any = None, **options: Any) -> Any:
        return await self.request(target, method="DELETE", **options)
