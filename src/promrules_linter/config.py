"""Configuration for the rules linter.

Uses Pydantic settings for environment-based configuration. The backend
address can also be supplied on the command line.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import httpx
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from promrules_linter.exceptions import ConfigError

ALLOWED_URL_SCHEMES = frozenset({"http", "https"})


class LogFormat(str, Enum):
    """Log renderers supported by logging_utils."""

    CONSOLE = "console"
    JSON = "json"


class LinterSettings(BaseSettings):
    """Configuration settings for the rules linter."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PROMRULES_",
        case_sensitive=False,
        extra="ignore",
    )

    # Backend
    PROMETHEUS_URL: str = Field(default="", description="Prometheus base URL")

    # HTTP client configuration
    HTTP_CLIENT_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="HTTP client request timeout in seconds",
    )
    HTTP_CLIENT_CONNECT_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="HTTP client connection timeout in seconds",
    )

    # Rule processing
    MAX_WORKERS: int = Field(
        default=1,
        ge=1,
        description="Rules validated in parallel (1 keeps processing sequential)",
    )

    # Logging
    LOG_LEVEL: str = Field(default="WARNING", description="Logging level")
    LOG_FORMAT: LogFormat = Field(default=LogFormat.CONSOLE, description="Log renderer")

    def backend_url(self) -> str:
        """Return the validated Prometheus base URL.

        Raises:
            ConfigError: If the URL is missing, unparsable, not http(s) or has no host
        """
        raw = self.PROMETHEUS_URL.strip()
        if not raw:
            raise ConfigError("Missing --url parameter")

        try:
            url = httpx.URL(raw)
        except httpx.InvalidURL as exc:
            raise ConfigError(f"Invalid URL: {exc}") from exc

        if url.scheme not in ALLOWED_URL_SCHEMES:
            raise ConfigError(f"Invalid URL scheme: {url.scheme}")
        if not url.host:
            raise ConfigError(f"Invalid URL: missing host in {raw!r}")

        return raw.rstrip("/")


def load_settings(**overrides: Any) -> LinterSettings:
    """Build settings from the environment plus command-line overrides.

    Raises:
        ConfigError: If any value fails validation
    """
    try:
        return LinterSettings(**overrides)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from exc
