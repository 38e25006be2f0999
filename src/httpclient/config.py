"""
=============================================================================
CLIENT CONFIGURATION
=============================================================================

Centralized configuration for request normalization.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Per-request options                                            │
    │      └── client.prepare(url, decompress=False)                     │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_CLIENT_DECOMPRESS=false                              │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass, field
from typing import FrozenSet

from . import __version__


DEFAULT_USER_AGENT = f"httpclient/{__version__} (https://github.com/cipheraxat/HTTP-server)"

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class ClientConfig:
    """
    Configuration for the HTTP client.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    DEFAULT HEADERS
    - user_agent, decompress

    BODY RULES
    - empty_body_length_methods

    TARGETS AND OPTIONS
    - default_scheme, strict_options

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # DEFAULT HEADERS
    # ─────────────────────────────────────────────────────────────────────

    user_agent: str = DEFAULT_USER_AGENT
    """
    Default User-Agent header. Requests can delete it with
    headers={"user-agent": None}.
    """

    decompress: bool = True
    """
    Advertise accept-encoding by default.
    A request's own decompress option overrides this.
    """

    # ─────────────────────────────────────────────────────────────────────
    # BODY RULES
    # ─────────────────────────────────────────────────────────────────────

    empty_body_length_methods: FrozenSet[str] = field(
        default_factory=lambda: frozenset({"PUT"})
    )
    """
    Methods that get "content-length: 0" when sent without a body.
    Only PUT by default; other bodiless methods send no length.
    """

    # ─────────────────────────────────────────────────────────────────────
    # TARGETS AND OPTIONS
    # ─────────────────────────────────────────────────────────────────────

    default_scheme: str = "http"
    """Scheme used when structured components leave out the protocol."""

    strict_options: bool = True
    """
    Reject unknown request option keys with InvalidOption.
    When False, unknown keys are logged and ignored.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "WARNING"
    """Logging level for the httpclient logger namespace."""

    log_format: str = "text"
    """Log format: 'json' or 'text'."""

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Create configuration from environment variables.

        HTTP_CLIENT_USER_AGENT       Default user-agent
        HTTP_CLIENT_DECOMPRESS       Advertise accept-encoding (default: true)
        HTTP_CLIENT_STRICT_OPTIONS   Reject unknown options (default: true)
        HTTP_CLIENT_LOG_LEVEL        Logging level (default: WARNING)
        """
        return cls(
            user_agent=os.getenv("HTTP_CLIENT_USER_AGENT", DEFAULT_USER_AGENT),
            decompress=_env_flag("HTTP_CLIENT_DECOMPRESS", True),
            strict_options=_env_flag("HTTP_CLIENT_STRICT_OPTIONS", True),
            log_level=os.getenv("HTTP_CLIENT_LOG_LEVEL", "WARNING"),
        )

    def validate(self) -> None:
        """Validate configuration values. Called once when a client is created."""
        if self.default_scheme not in {"http", "https"}:
            raise ValueError(f"Invalid default_scheme: {self.default_scheme!r}")

        if any(method != method.upper() for method in self.empty_body_length_methods):
            raise ValueError("empty_body_length_methods must be uppercase")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}")

        if self.log_format not in {"json", "text"}:
            raise ValueError("log_format must be 'json' or 'text'")
