"""
Configuration and settings for the storefront backend.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")

    # JSON file store (local development)
    data_dir: str = Field(default=".", validation_alias="STOREFRONT_DATA_DIR")
    products_file: str = Field(default="products.json")
    preorders_file: str = Field(default="preorders.json")

    # Static content and uploads
    public_dir: str = Field(default="public")
    upload_dir: str = Field(default=os.path.join("public", "uploads"))
    epub_dir: str = Field(default="epubs")
    max_upload_bytes: int = Field(default=10 * 1024 * 1024)

    # Database (production preorders). Any SQLAlchemy URL.
    database_url: Optional[str] = Field(
        default=None, validation_alias="DATABASE_URL"
    )

    # Admin authentication
    jwt_secret: Optional[str] = Field(default=None, validation_alias="JWT_SECRET")
    admin_username: str = Field(default="admin", validation_alias="ADMIN_USERNAME")
    admin_password: str = Field(
        default="password123", validation_alias="ADMIN_PASSWORD"
    )
    token_ttl_seconds: int = Field(default=3600)

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, validation_alias="PORT")

    def resolve(self, path: str) -> str:
        """Resolve a configured path against the data directory."""
        if os.path.isabs(path):
            return path
        return os.path.join(self.data_dir, path)

    @property
    def products_path(self) -> str:
        return self.resolve(self.products_file)

    @property
    def preorders_path(self) -> str:
        return self.resolve(self.preorders_file)

    @property
    def public_path(self) -> str:
        return self.resolve(self.public_dir)

    @property
    def upload_path(self) -> str:
        return self.resolve(self.upload_dir)

    @property
    def epub_path(self) -> str:
        return self.resolve(self.epub_dir)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
