"""Configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from hmacguard.common.errors import ConfigurationError
from hmacguard.core.keys import SecretKey
from hmacguard.core.outcome import StatusPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HMACGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # HMAC
    hmac_secret: SecretStr | None = Field(
        default=None,
        description="Shared secret used for request verification and response signing",
    )
    hmac_header: str = Field(
        default="x-hmac",
        description="Header carrying the hex-encoded HMAC on requests and responses",
    )
    hmac_backend: Literal["hashlib", "cryptography"] = Field(
        default="hashlib",
        description="HMAC-SHA256 implementation to use",
    )
    hmac_exempt_paths: tuple[str, ...] = Field(
        default=(),
        description="Paths that bypass both verification and signing",
    )
    hmac_include_query: bool = Field(
        default=False,
        description="Sign the path including its query string (clients must match)",
    )
    max_body_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum request body size read for verification",
    )

    # Status policy
    status_missing_header: int = Field(
        default=401,
        description="HTTP status when the signature header is absent",
    )
    status_malformed_header: int = Field(
        default=400,
        description="HTTP status when the signature header is not 64 hex characters",
    )
    status_authentication_failed: int = Field(
        default=401,
        description="HTTP status when the signature does not match",
    )
    status_body_read_error: int = Field(
        default=500,
        description="HTTP status when the request body could not be read",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Log level",
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON log lines",
    )

    # Demo server
    demo_host: str = Field(
        default="127.0.0.1",
        description="Host for the demo HTTP server",
    )
    demo_port: int = Field(
        default=8080,
        description="Port for the demo HTTP server",
    )

    def secret_key(self) -> SecretKey:
        """Build the shared SecretKey, failing if none is configured."""
        if self.hmac_secret is None:
            raise ConfigurationError("HMACGUARD_HMAC_SECRET is not configured")
        return SecretKey.from_text(self.hmac_secret.get_secret_value())

    def status_policy(self) -> StatusPolicy:
        """Build the status policy from the configured codes."""
        return StatusPolicy(
            missing_header=self.status_missing_header,
            malformed_header=self.status_malformed_header,
            authentication_failed=self.status_authentication_failed,
            body_read_error=self.status_body_read_error,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
