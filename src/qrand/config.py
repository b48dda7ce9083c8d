"""Configuration system for qrand.

Uses pydantic-settings for declarative, layered configuration:
init kwargs -> environment variables (QRAND_*) -> .env file -> field defaults.

A config is built once and bound to an acquirer at construction. Nothing
in the package mutates it afterwards.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from qrand.exceptions import ConfigValidationError

ANU_QRNG_URL = "https://qrng.anu.edu.au/API/jsonI.php"

# The decoder only understands hex-encoded items.
SUPPORTED_ITEM_TYPE = "hex16"

_LOG_LEVELS: frozenset[str] = frozenset({"none", "summary", "full"})


class QRandConfig(BaseSettings):
    """Configuration for qrand.

    Resolution order: init kwargs -> env vars (QRAND_*) -> .env file -> defaults.

    Fields are divided into three groups:
    - **Remote endpoint**: URL and the fixed packet shape of every request.
    - **Retry**: attempt budget and sleep between attempts of the HTTP GET.
    - **Fallback & logging**: local generator and diagnostic verbosity.
    """

    model_config = SettingsConfigDict(
        env_prefix="QRAND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Remote endpoint ---

    base_url: str = Field(
        default=ANU_QRNG_URL,
        min_length=1,
        description="Base URL of the QRNG JSON API",
    )
    packet_length: int = Field(
        default=10,
        ge=1,
        description="Number of packages requested per fetch ('length' query parameter)",
    )
    item_size: int = Field(
        default=2,
        ge=1,
        description="Bytes per package ('size' query parameter)",
    )
    item_type: str = Field(
        default=SUPPORTED_ITEM_TYPE,
        description="Item encoding ('type' query parameter); only 'hex16' is decodable",
    )
    request_timeout_s: float = Field(
        default=10.0,
        gt=0.0,
        description="Timeout for a single HTTP request in seconds",
    )

    # --- Retry ---

    retry_attempts: int = Field(
        default=2,
        ge=1,
        description="Total attempts for each HTTP GET before giving up",
    )
    retry_delay_s: float = Field(
        default=1.0,
        ge=0.0,
        description="Sleep between attempts in seconds",
    )
    retry_backoff: float = Field(
        default=1.0,
        ge=1.0,
        description="Multiplier applied to the delay after each failed attempt",
    )

    # --- Fallback & logging ---

    fallback_source: str = Field(
        default="system",
        min_length=1,
        description="Registered local entropy source used when the remote path fails",
    )
    log_level: str = Field(
        default="summary",
        description="Acquisition logging verbosity: 'none', 'summary', 'full'",
    )
    diagnostic_mode: bool = Field(
        default=False,
        description="Keep every acquisition record in memory for analysis",
    )

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"base_url {value!r} is not a valid URL: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"base_url must be an absolute http(s) URL, got {value!r}")
        return value

    @field_validator("item_type")
    @classmethod
    def _check_item_type(cls, value: str) -> str:
        if value != SUPPORTED_ITEM_TYPE:
            raise ValueError(
                f"item_type {value!r} is not supported (only {SUPPORTED_ITEM_TYPE!r})"
            )
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        if value not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}, got {value!r}")
        return value

    @property
    def packet_bytes(self) -> int:
        """Raw bytes delivered by one successful fetch."""
        return self.packet_length * self.item_size


def load_config(**overrides: Any) -> QRandConfig:
    """Build a config, reporting validation problems as ConfigValidationError.

    Args:
        **overrides: Field values taking precedence over env and defaults.

    Returns:
        A validated QRandConfig.

    Raises:
        ConfigValidationError: If any field fails validation.
    """
    try:
        return QRandConfig(**overrides)
    except ValidationError as exc:
        raise ConfigValidationError(f"Invalid qrand configuration: {exc}") from exc
