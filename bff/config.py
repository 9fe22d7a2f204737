"""
Configuration and settings for the BFF.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Upstream REST API
    external_api_url: str = Field(default="http://localhost:5253")
    request_timeout_seconds: float = Field(default=15)

    # "development" exposes upstream URLs and reasons in error messages.
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("APP_ENV", "NODE_ENV", "environment"),
    )

    # Session cookie
    auth_cookie_key: str = Field(default="srs_auth_token")
    auth_cookie_max_age: int = Field(default=60 * 60 * 8)
    # When set, tokens are verified (HS256) before their claims are trusted.
    jwt_secret: Optional[str] = Field(default=None)

    # Storefront
    whatsapp_phone: str = Field(default="9551406006")

    # Uploads
    upload_max_bytes: int = Field(default=2 * 1024 * 1024)
    upload_allowed_types: list[str] = Field(
        default=["image/jpeg", "image/png", "image/webp"]
    )

    # Development toggles
    use_in_memory_upstream: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "DEALERSHIP_USE_IN_MEMORY_UPSTREAM", "use_in_memory_upstream"
        ),
    )

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
