"""Application settings using pydantic-settings.

Settings are loaded from environment variables with defaults matching
the usual deployment of the JWT bearer grant handler.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class JWTGrantSettings(BaseSettings):
    """JWT bearer grant validation settings.

    Environment variables:
        JWT_GRANT_VALIDITY_PERIOD: Maximum assertion age in minutes,
            measured from iat (default: 30)
        JWT_GRANT_CACHE_USED_JTI: Enable the jti replay cache (default: true)
        JWT_GRANT_TIMESTAMP_SKEW_SECONDS: Allowed clock skew (default: 300)
        JWT_GRANT_JWKS_VALIDATION_ENABLED: Verify with provider JWKS
            endpoints when configured (default: false)
        JWT_GRANT_SPLIT_AUTHZ_USER_3_WAY: Resolve the subject through the
            user store (default: false)
        JWT_GRANT_DEFAULT_TENANT_DOMAIN: Tenant used when the request names
            none (default: carbon.super)
        JWT_GRANT_JWKS_CACHE_TTL_SECONDS: Key set cache TTL (default: 3600)
        JWT_GRANT_JWKS_HTTP_TIMEOUT_SECONDS: JWKS fetch timeout (default: 5.0)
        JWT_GRANT_LOG_LEVEL: Minimum structlog event level (default: INFO)
    """

    model_config = SettingsConfigDict(
        env_prefix="JWT_GRANT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    validity_period: int = Field(
        default=30,
        description="Maximum assertion age in minutes, measured from iat",
        ge=0,
    )
    cache_used_jti: bool = Field(
        default=True,
        description="Reject replays of a jti while its cached token is valid",
    )
    timestamp_skew_seconds: int = Field(
        default=300,
        description="Allowed clock skew in seconds",
        ge=0,
    )
    jwks_validation_enabled: bool = Field(
        default=False,
        description="Verify signatures with provider JWKS endpoints",
    )
    split_authz_user_3_way: bool = Field(
        default=False,
        description="Resolve the subject as a username through the user store",
    )
    default_tenant_domain: str = Field(
        default="carbon.super",
        description="Tenant used when the grant request names none",
    )
    jwks_cache_ttl_seconds: int = Field(
        default=3600,
        description="How long a fetched key set is cached",
        ge=0,
    )
    jwks_http_timeout_seconds: float = Field(
        default=5.0,
        description="HTTP timeout for JWKS fetches",
        gt=0,
    )
    jwks_refresh_cooldown_seconds: int = Field(
        default=60,
        description="Minimum interval between unknown-kid refetches of one endpoint",
        ge=0,
    )
    log_level: str = Field(default="INFO", description="Minimum log level")

    @property
    def timestamp_skew_millis(self) -> int:
        """Clock skew in milliseconds."""
        return self.timestamp_skew_seconds * 1000

    @property
    def validity_window_millis(self) -> int:
        """Validity period in milliseconds."""
        return self.validity_period * 60_000


@lru_cache
def get_jwt_grant_settings() -> JWTGrantSettings:
    """Get cached JWT grant settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return JWTGrantSettings()
