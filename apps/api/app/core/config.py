from datetime import timedelta
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = "Bucket Explorer API"
    app_version: str = "0.1.0"

    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = "explorer_minio"
    minio_secret_key: str = "explorer_minio_secret"
    minio_secure: bool = False
    minio_region: str | None = None  # "auto" for Cloudflare R2
    minio_bucket: str = "files"

    # Host serving the bucket publicly, used for shareable links
    public_host: str = "files.example.org"

    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB, markers exempt
    presigned_url_ttl_seconds: int = 3600

    upload_concurrency: int = 8
    delete_concurrency: int = 16

    cors_allowed_origins: str | list[str] = "http://localhost:3000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BX_",
        extra="ignore",
    )

    @property
    def presigned_url_ttl(self) -> timedelta:
        return timedelta(seconds=self.presigned_url_ttl_seconds)

    @property
    def resolved_cors_allowed_origins(self) -> list[str]:
        """Return the configured CORS origins as a normalized list."""

        if isinstance(self.cors_allowed_origins, str):
            return [
                origin.strip()
                for origin in self.cors_allowed_origins.split(",")
                if origin.strip()
            ]

        return list(self.cors_allowed_origins)


@lru_cache
def get_settings() -> Settings:
    """Cache settings to avoid re-parsing environment files."""
    return Settings()
