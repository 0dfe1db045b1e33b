"""
Configuration and settings for the gallery backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # S3-compatible blob storage
    blob_bucket: Optional[str] = Field(default=None)
    blob_region: Optional[str] = Field(default=None)
    blob_endpoint: Optional[str] = Field(default=None)
    blob_public_base_url: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Shared secret for mutating endpoints; gating is off when unset.
    admin_token: Optional[str] = Field(default=None)

    # Page sizes used when a caller asks for a page without a size
    gallery_page_size: int = Field(default=6, ge=1)
    content_page_size: int = Field(default=3, ge=1)

    cors_origins: list[str] = Field(default_factory=list)
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
