"""
Configuration and settings for the portfolio backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "https://portfolio-frontend-self-six.vercel.app",
]


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    port: int = Field(default=5000)
    log_level: str = Field(default="INFO")

    # Database (any SQLAlchemy URL)
    database_url: str = Field(default="sqlite:///./portfolio.db")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Admin gate
    admin_password: Optional[str] = Field(default=None)
    admin_token: str = Field(default="admin-token")

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    frontend_url: Optional[str] = Field(default=None)

    # Contact notifications (Discord-style webhook)
    discord_webhook_url: Optional[str] = Field(default=None)
    webhook_timeout_seconds: float = Field(default=10.0)

    # Transport limits
    max_body_bytes: int = Field(default=10 * 1024)
    rate_limit_max: int = Field(default=100)
    rate_limit_window_seconds: float = Field(default=10 * 60)

    @property
    def allowed_origins(self) -> list[str]:
        origins = list(self.cors_origins)
        if self.frontend_url and self.frontend_url not in origins:
            origins.append(self.frontend_url)
        return origins


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
