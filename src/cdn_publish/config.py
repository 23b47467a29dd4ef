"""Runtime settings for cdn-publish.

Values come from ``CDN_*`` environment variables (or a ``.env`` file in
the current directory) and are overridden by explicit CLI flags.  The
core and infra layers never read the environment themselves; they
receive plain values built from :class:`CdnSettings`.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STORAGE_URL = "https://storage.bunnycdn.com"
DEFAULT_API_URL = "https://api.bunny.net"


class CdnSettings(BaseSettings):
    """Central configuration contract for the CLI."""

    model_config = SettingsConfigDict(
        env_prefix="CDN_",
        extra="ignore",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    storage_access_key: str | None = Field(
        default=None,
        description="Key for the edge storage API (AccessKey header).",
    )
    storage_zone_name: str | None = Field(
        default=None,
        description="Storage zone queried by storage commands.",
    )
    storage_base_url: str = Field(
        default=DEFAULT_STORAGE_URL,
        min_length=1,
        description="Edge storage API endpoint.",
    )

    access_key: str | None = Field(
        default=None,
        description="Account API key used by pull-zone commands.",
    )
    api_base_url: str = Field(
        default=DEFAULT_API_URL,
        min_length=1,
        description="Account API endpoint.",
    )

    batch_size: int = Field(
        default=40,
        ge=1,
        description="Number of files uploaded concurrently.",
    )
    retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Extra attempts after a connection-level failure.",
    )
    retry_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Fixed delay between attempts (seconds).",
    )
    http_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout per request (seconds).",
    )
    progress_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        description="How often upload progress is logged (seconds).",
    )
