"""Runtime configuration read from the environment and an optional .env file."""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.exceptions import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    bucket_name: str = ""
    aws_region: str = "us-east-1"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    s3_endpoint_url: Optional[str] = None
    s3_connect_timeout: float = Field(5.0, gt=0)
    s3_read_timeout: float = Field(30.0, gt=0)

    # Service
    environment: str = "development"
    app_version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: str = "*"

    # Upload limits
    max_file_size_bytes: int = Field(10 * 1024 * 1024, gt=0)
    max_files: int = Field(9, gt=0)

    # Worker
    worker_concurrency: int = Field(4, ge=1)
    record_timeout_seconds: float = Field(60.0, gt=0)

    # Logging
    log_level: str = "INFO"
    log_format: str = "structured"

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def cors_origins_list(self) -> List[str]:
        return [x.strip() for x in self.cors_origins.split(",") if x.strip()]

    def require_bucket(self) -> str:
        """Return the bucket name or fail loudly when it is not configured."""
        if not self.bucket_name.strip():
            raise ConfigurationError("BUCKET_NAME environment variable is required")
        return self.bucket_name.strip()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
