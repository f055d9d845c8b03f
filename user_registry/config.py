"""Application configuration using Pydantic Settings.

Environment Variable Strategy:
- Every field has a development default for local/CI convenience
- Deployments override through environment variables or a `.env` file
"""

from functools import cached_property
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_comma_list(value: str | list[str] | None, default: list[str]) -> list[str]:
    """Parse comma-separated string into list."""
    if value is None:
        return default
    if isinstance(value, list):
        return value
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ================================================================
    # Document store
    # ================================================================

    mongodb_url: str = Field(default="mongodb://127.0.0.1:27017", validation_alias="MONGODB_URL")
    mongodb_database: str = Field(default="user_management", validation_alias="MONGODB_DATABASE")
    users_collection: str = "users"

    # ================================================================
    # Uploaded images
    # ================================================================

    upload_dir: Path = Field(default=Path("uploads"), validation_alias="UPLOAD_DIR")
    upload_url_prefix: str = "/uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    # ================================================================
    # OPTIONAL - have sensible defaults, rarely need override
    # ================================================================

    # Listing
    default_page_size: int = 5
    max_page_size: int = 100

    # Security
    bcrypt_rounds: int = Field(default=12, ge=4, le=31, validation_alias="BCRYPT_ROUNDS")

    # App settings
    environment: str = Field(
        default="development", validation_alias=AliasChoices("ENVIRONMENT", "ENV")
    )
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000

    # CORS origins - stored as string, parsed via property
    # Env format: CORS_ORIGINS="http://localhost:3000,http://localhost:3001"
    cors_origins_str: str | None = Field(default=None, validation_alias="CORS_ORIGINS")

    @cached_property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from env string or allow every origin."""
        return parse_comma_list(self.cors_origins_str, ["*"])


settings = Settings()
