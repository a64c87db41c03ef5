"""Application configuration using Pydantic Settings."""

from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_TRUTHY = {"1", "true", "yes", "y", "on"}
_FALSY = {"0", "false", "no", "n", "off"}


def _parse_toggle(value: Any, default: bool) -> bool:
    """Parse an on/off environment toggle, falling back to ``default`` on unknown input."""
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    return default


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # System Configuration
    api_prefix: str = "/api"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: str = "*"
    rate_limit_enabled: bool = True

    # Supabase (PostgreSQL) Configuration
    supabase_url: str = "https://test.supabase.co"
    supabase_service_role_key: str = "test-service-role-key"

    # Session token (self-issued JWT) Configuration
    jwt_secret: str = "secret"
    session_token_ttl_hours: int = 24

    # OIDC Configuration
    oidc_provider_url: str = "https://accounts.google.com"
    oidc_client_id: str = ""
    oidc_client_secret: str = ""
    oidc_redirect_url: str = "http://localhost:8181/api/auth/callback"
    oidc_scopes: str = "openid offline_access email"
    oidc_use_pkce: bool = False
    oidc_cookie_secure: bool = True
    oidc_state_cookie_name: str = "oidc_state"
    jwks_cache_ttl_seconds: int = 3600  # 1 hour
    jwt_leeway_seconds: int = 10  # Clock skew tolerance

    # PostHog Configuration
    posthog_api_key: str | None = None
    posthog_host: str = "https://app.posthog.com"

    # Notification Configuration
    courier_api_key: str | None = None
    admin_email: str = "admin@ecommerce.com"
    sms_country_code: str = "254"
    currency_label: str = "Ksh"
    notification_drain_timeout_seconds: float = 10.0

    @field_validator("oidc_use_pkce", mode="before")
    @classmethod
    def _parse_use_pkce(cls, value: Any) -> bool:
        return _parse_toggle(value, default=False)

    @field_validator("oidc_cookie_secure", mode="before")
    @classmethod
    def _parse_cookie_secure(cls, value: Any) -> bool:
        return _parse_toggle(value, default=True)

    @property
    def oidc_enabled(self) -> bool:
        """OIDC login is available only when a client id has been configured."""
        return bool(self.oidc_client_id and self.oidc_provider_url)

    @property
    def oidc_scope_list(self) -> list[str]:
        return [scope for scope in self.oidc_scopes.replace(",", " ").split() if scope]


settings = Settings()
