"""
pytest configuration and fixtures.
"""

from typing import List

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpclient import ClientConfig, FormData, HTTPClient, Request
from httpclient.http import EncodingNegotiator, RequestNormalizer


class RecordingTransport:
    """Stands in for the socket layer: keeps every request it is handed."""

    def __init__(self):
        self.sent: List[Request] = []

    async def send(self, request: Request) -> dict:
        self.sent.append(request)
        # What a server echoing its request headers would see
        return request.headers.to_dict()


@pytest.fixture
def config() -> ClientConfig:
    """Default test client configuration."""
    return ClientConfig(log_level="WARNING")


@pytest.fixture
def normalizer(config: ClientConfig) -> RequestNormalizer:
    """Normalizer with Brotli support switched on."""
    return RequestNormalizer(EncodingNegotiator(brotli_supported=True), config)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def client(config: ClientConfig, transport: RecordingTransport) -> HTTPClient:
    return HTTPClient(config, transport=transport, brotli_supported=True)


@pytest.fixture
def form() -> FormData:
    """Form with the single field a=b and a fixed boundary."""
    form = FormData(boundary="-" * 26 + "123456789012345678901234")
    form.append("a", "b")
    return form


@pytest.fixture
def sized_file(tmp_path: Path) -> Path:
    """A regular file with a known size."""
    path = tmp_path / "stream-content-length"
    path.write_bytes(b"Unicorns are real\n" * 10)
    return path
