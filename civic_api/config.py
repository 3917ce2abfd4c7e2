"""
Runtime configuration helpers for the FastAPI application.

Loads DATABASE_URL and the remaining variables from the process environment,
falling back to the .env file located in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    # Required, usually supplied by .env
    database_url: str = Field(..., alias="DATABASE_URL")

    environment: Literal["development", "production", "test"] = Field(default="development", alias="ENVIRONMENT")
    app_name: str = Field(default="Civic Reports API", alias="APP_NAME")
    api_version: str = Field(default="1.0.0", alias="API_VERSION")
    api_prefix: str = Field(default="/api", alias="API_PREFIX")
    api_base_url: str = Field(default="http://localhost:8000", alias="API_BASE_URL")
    cors_origins: str | None = Field(default=None, alias="CORS_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Tokens and passwords
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_expires_minutes: int = Field(default=60 * 24 * 7, alias="JWT_EXPIRES_MINUTES")
    bcrypt_rounds: int = Field(default=12, ge=4, le=31, alias="BCRYPT_ROUNDS")

    # Google identity federation
    google_client_id: str | None = Field(default=None, alias="GOOGLE_CLIENT_ID")

    # Uploads
    max_file_size: int = Field(default=10 * 1024 * 1024, alias="MAX_FILE_SIZE")
    allowed_file_types: str = Field(default="image/jpeg,image/png,image/webp", alias="ALLOWED_FILE_TYPES")

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit_window_seconds: int = Field(default=15 * 60, alias="RATE_LIMIT_WINDOW_SECONDS")
    rate_limit_max_requests: int = Field(default=100, alias="RATE_LIMIT_MAX_REQUESTS")
    # Only honour X-Forwarded-For behind a proxy that overwrites it.
    trust_proxy_headers: bool = Field(default=False, alias="TRUST_PROXY_HEADERS")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def allowed_file_type_list(self) -> list[str]:
        return [item.strip().lower() for item in self.allowed_file_types.split(",") if item.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        if not self.cors_origins:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
