"""Application settings and configuration management.

This module provides Pydantic-based settings management that loads
configuration from environment variables or a .env file. Settings include
the backend fetch order, the location and credentials of each storage
backend, cache lifetimes, and logging.

Example:
    Settings can be accessed via the cached get_settings() function:
        >>> from data_proxy.core.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.storage_order_list)

    Environment variables can override defaults:
        >>> STORAGE_ORDER=r2,do
        >>> DO_SPACES_URL=https://tor-map.fra1.digitaloceanspaces.com
        >>> CACHE_TTL_SECONDS=600
"""

import functools

import pydantic
import pydantic_settings

SPACES_ID = "do"
R2_ID = "r2"


def parse_storage_order(value: str) -> list[str]:
    """Split a comma-separated backend order into normalized identifiers.

    Args:
        value: Raw order string, e.g. ``"do, R2"``.

    Returns:
        Lowercased identifiers in the given order, empty items dropped.
    """
    items = (item.strip().lower() for item in value.split(","))
    return [item for item in items if item]


class Settings(pydantic_settings.BaseSettings):
    """Runtime configuration pulled from environment variables or defaults.

    All settings can be overridden via environment variables or .env file.
    The instance is frozen: configuration is read once at process start and
    never changes while the service is running.

    Attributes:
        storage_order: Comma-separated backend identifiers, tried in order.
        do_spaces_url: Base URL for the DigitalOcean Spaces bucket.
        r2_bucket_name: Cloudflare R2 bucket holding the data artifacts.
        r2_endpoint: S3 API endpoint of the R2 account.
        r2_access_key_id: R2 access key.
        r2_secret_access_key: R2 secret key.
        r2_region: Region passed to the S3 client ("auto" for R2).
        cache_ttl_seconds: max-age written on successful responses.
        edge_cache_max_entries: Upper bound of the in-process edge cache.
        backend_timeout_seconds: Transport timeout for HTTP backends.
        user_agent: User-Agent sent to HTTP backends.
        log_level: Root logging level.

    Example:
        Create settings with custom values:
            >>> settings = Settings(
            ...     storage_order="r2,do",
            ...     do_spaces_url="https://data.example.org/",
            ... )
            >>> settings.storage_order_list
            ['r2', 'do']
    """

    storage_order: str = f"{SPACES_ID},{R2_ID}"
    do_spaces_url: str | None = None
    r2_bucket_name: str | None = None
    r2_endpoint: str | None = None
    r2_access_key_id: str | None = None
    r2_secret_access_key: pydantic.SecretStr | None = None
    r2_region: str = "auto"
    cache_ttl_seconds: int = pydantic.Field(default=300, ge=0)
    edge_cache_max_entries: int = pydantic.Field(default=1024, ge=1)
    backend_timeout_seconds: float = pydantic.Field(default=30.0, gt=0)
    user_agent: str = "tor-map-data-proxy/0.1.0"
    log_level: str = "INFO"

    model_config = pydantic_settings.SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @property
    def storage_order_list(self) -> list[str]:
        """Backend identifiers in configured fetch order."""
        return parse_storage_order(self.storage_order)

    @property
    def spaces_configured(self) -> bool:
        """Whether the HTTP-addressable backend has a base URL."""
        return bool(self.do_spaces_url)

    @property
    def r2_configured(self) -> bool:
        """Whether the R2 bucket and its credentials are all present.

        Presence is the only check; the credentials are not validated
        against the remote service.
        """
        return bool(
            self.r2_bucket_name
            and self.r2_endpoint
            and self.r2_access_key_id
            and self.r2_secret_access_key
            and self.r2_secret_access_key.get_secret_value()
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded from environment variables or .env file and cached
    for the lifetime of the application. Subsequent calls return the same
    cached instance.

    Returns:
        Settings instance with all configuration values populated.

    Example:
        The settings are cached, so multiple calls return the same instance:
            >>> settings1 = get_settings()
            >>> settings2 = get_settings()
            >>> assert settings1 is settings2  # Same instance
    """
    return Settings()
