"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Media Upload API"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api"

    # JWT (tokens are issued by the auth service)
    jwt_secret_key: str = "change-me-in-production-use-secrets"
    jwt_algorithm: str = "HS256"

    # File Storage
    storage_backend: Literal["local", "s3"] = Field(
        default="local",
        validation_alias=AliasChoices("storage_backend", "upload_storage"),
    )
    upload_path: str = "./uploads"
    upload_tmp_path: str | None = None  # None = system temp dir
    public_url_prefix: str = "/uploads"

    # S3-compatible object storage
    s3_bucket: str = ""
    s3_endpoint_url: str | None = None  # Set for MinIO/Spaces, None for AWS S3
    s3_region: str = "us-east-1"
    s3_access_key_id: str | None = None
    s3_secret_access_key: str | None = None
    s3_force_path_style: bool = False
    s3_prefix: str = "uploads"
    s3_public_url: str | None = None  # e.g. CDN in front of the bucket

    # Upload Limits
    max_file_size: int = 5 * 1024 * 1024  # bytes, per file
    max_files_per_request: int = 5
    allowed_file_types: str = "image/jpeg,image/png,image/gif,image/webp"

    # Image Processing
    image_resize: bool = False  # Master switch for the transform stage
    image_max_width: int = 2048
    image_max_height: int = 2048
    image_quality: int = Field(default=80, ge=1, le=100)
    image_convert: bool = False  # Auto-convert every image to image_convert_format
    image_convert_format: Literal["jpg", "png", "webp", "avif"] = "jpg"

    @property
    def allowed_mime_types(self) -> set[str]:
        """Parse the comma-separated allow-list."""
        return {t.strip().lower() for t in self.allowed_file_types.split(",") if t.strip()}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
