"""Application configuration using Pydantic Settings with YAML support.

This module provides centralized configuration management with:
- YAML-based configuration files organized by domain
- Environment-specific overrides (development, test, production)
- Environment variable loading for secrets
- Type validation and coercion
- Caching for performance
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import TYPE_CHECKING, Annotated

from pydantic import BaseModel, BeforeValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_source import MultiYamlConfigSettingsSource


if TYPE_CHECKING:
    from pydantic_settings import PydanticBaseSettingsSource


class SecurityMode(StrEnum):
    """Gateway trust level.

    Determines how inbound requests are authenticated:
    - OPEN: No credential inspection (trusted/offline deployments only)
    - SHARED_SECRET: Pre-shared API key in the X-API-Key header
    - TOKEN: Bearer access token, falling back to the shared secret
    """

    OPEN = "open"
    SHARED_SECRET = "shared-secret"  # noqa: S105 - not a password
    TOKEN = "token"  # noqa: S105 - not a password

    @classmethod
    def _missing_(cls, value: object) -> SecurityMode | None:
        aliases = {
            "none": cls.OPEN,
            "api-key": cls.SHARED_SECRET,
            "api_key": cls.SHARED_SECRET,
            "shared_secret": cls.SHARED_SECRET,
            "jwt": cls.TOKEN,
        }
        if isinstance(value, str):
            return aliases.get(value.strip().lower())
        return None


def parse_list(v: str | list[str]) -> list[str]:
    """Parse comma-separated string or list into list of strings."""
    if isinstance(v, str):
        return [x.strip() for x in v.split(",") if x.strip()]
    return v


# =============================================================================
# Nested Configuration Models (from YAML)
# =============================================================================


class AppSettings(BaseModel):
    """Application identity settings."""

    name: str = "ZAP Gateway"
    version: str = "0.1.0"
    debug: bool = False


class ServerSettings(BaseModel):
    """Server configuration settings."""

    host: str = "127.0.0.1"
    port: int = 7456


class ApiSettings(BaseModel):
    """API configuration settings."""

    prefix: str = ""
    cors_origins: Annotated[list[str], BeforeValidator(parse_list)] = []


class SecuritySettings(BaseModel):
    """Gateway security settings."""

    mode: str = "token"
    api_key_header: str = "X-API-Key"
    public_paths: list[str] = [
        "/health",
        "/info",
        "/ready",
        "/auth/token",
        "/auth/refresh",
    ]


class JwtSettings(BaseModel):
    """Token signing settings."""

    algorithm: str = "HS256"
    issuer: str = "mcp-zap-server"
    access_token_ttl: int = Field(default=3600, gt=0)  # seconds
    refresh_token_ttl: int = Field(default=604800, gt=0)  # seconds


class ApiClientSettings(BaseModel):
    """A registered client and its pre-shared key."""

    client_id: str
    key: str
    name: str | None = None
    scopes: list[str] = ["*"]


class AuthSettings(BaseModel):
    """Authentication configuration settings."""

    jwt: JwtSettings = JwtSettings()
    clients: list[ApiClientSettings] = []


class UrlPolicySettings(BaseModel):
    """Scan target URL safety policy."""

    allow_localhost: bool = False
    allow_private_networks: bool = False
    allowlist: list[str] = []
    denylist: list[str] = ["localhost", "127.0.0.1", "0.0.0.0"]  # noqa: S104
    dns_timeout: float = Field(default=5.0, gt=0)


class ScanLimitSettings(BaseModel):
    """Limits applied to ZAP scans before they start."""

    max_active_scan_duration_mins: int = 30
    max_spider_scan_duration_mins: int = 15
    max_concurrent_active_scans: int = 3
    max_concurrent_spider_scans: int = 5
    thread_per_host: int = 10
    host_per_scan: int = 5
    spider_thread_count: int = 5
    spider_max_depth: int = 10


class ScanSettings(BaseModel):
    """Scan configuration settings."""

    url: UrlPolicySettings = UrlPolicySettings()
    limits: ScanLimitSettings = ScanLimitSettings()


class ZapInitializationSettings(BaseModel):
    """Options pushed to ZAP once at startup."""

    enabled: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    )
    connection_timeout: int = 300  # seconds
    dns_ttl: int = 60  # seconds


class ZapSettings(BaseModel):
    """ZAP JSON API connection settings."""

    url: str = "http://localhost"
    port: int = 8090
    timeout: float = 30.0
    access_url_retries: int = 3
    access_url_retry_delay: float = 2.0
    initialization: ZapInitializationSettings = ZapInitializationSettings()


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "json"


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """Application settings with YAML + environment variable support.

    Configuration is loaded from multiple sources with the following priority
    (highest to lowest):
    1. Environment variables
    2. .env file (secrets only)
    3. Environment-specific YAML files (config/environments/{APP_ENV}/)
    4. Base YAML files (config/base/)
    5. Default values in code

    Environment variables can override any setting using the nested delimiter '__'.
    For example: SECURITY__MODE=open overrides security.mode.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=False,
        env_nested_delimiter="__",
    )

    # =========================================================================
    # Environment Selection (from .env)
    # =========================================================================
    APP_ENV: str = "development"

    # =========================================================================
    # Nested Configuration Sections (from YAML)
    # =========================================================================
    app: AppSettings = AppSettings()
    server: ServerSettings = ServerSettings()
    api: ApiSettings = ApiSettings()
    security: SecuritySettings = SecuritySettings()
    auth: AuthSettings = AuthSettings()
    scan: ScanSettings = ScanSettings()
    zap: ZapSettings = ZapSettings()
    logging: LoggingSettings = LoggingSettings()

    # =========================================================================
    # Secrets (from .env only - never in YAML)
    # =========================================================================
    JWT_SECRET_KEY: str = ""
    ZAP_API_KEY: str = ""
    LEGACY_API_KEY: str = ""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings loading order.

        Priority (highest to lowest):
        1. init_settings - Values passed to Settings()
        2. env_settings - Environment variables
        3. dotenv_settings - .env file (secrets)
        4. yaml_settings - YAML files (base + environment)
        5. file_secret_settings - Docker secrets
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            MultiYamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    # =========================================================================
    # Computed Fields
    # =========================================================================

    @property
    def security_mode(self) -> SecurityMode:
        """Get security mode as enum with validation."""
        try:
            return SecurityMode(self.security.mode.strip().lower())
        except ValueError:
            msg = (
                f"Invalid security mode: {self.security.mode}. "
                f"Must be one of: {', '.join(m.value for m in SecurityMode)}"
            )
            raise ValueError(msg) from None

    @property
    def zap_base_url(self) -> str:
        """ZAP JSON API base URL including port."""
        return f"{self.zap.url.rstrip('/')}:{self.zap.port}"

    @property
    def public_paths(self) -> frozenset[str]:
        """Public paths with the API prefix applied."""
        prefix = self.api.prefix.rstrip("/")
        return frozenset(f"{prefix}{path}" for path in self.security.public_paths)

    # =========================================================================
    # Environment Helpers
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.APP_ENV == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.APP_ENV == "production"

    @property
    def is_non_production(self) -> bool:
        """Check if running in a non-production environment.

        Returns True for local, test, and development environments where
        API documentation and debug logging should be enabled.
        """
        return self.APP_ENV in ("local", "test", "development")

    @property
    def is_testing(self) -> bool:
        """Check if running in test environment."""
        return self.APP_ENV == "test"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Using lru_cache ensures settings are only loaded once,
    improving performance and consistency.
    """
    return Settings()
