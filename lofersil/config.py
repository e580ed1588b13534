"""LOFERSIL configuration system using Pydantic Settings."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LofersilConfig(BaseSettings):
    """Main configuration class. Loads from .env file and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "LOFERSIL"
    version: str = "1.0.0"
    environment: str = "development"  # development / production / test
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Logging
    log_dir: str = "logs"
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    # CSRF
    csrf_secret: Optional[str] = None
    csrf_token_byte_length: int = 32
    csrf_token_id_byte_length: int = 16
    csrf_token_expiration_ms: int = 60 * 60 * 1000  # 1 hour
    csrf_cookie_name: str = "_csrf"
    csrf_header_name: str = "x-csrf-token"
    csrf_field_name: str = "csrf_token"
    csrf_cleanup_interval_seconds: int = 300

    # Rate limiting (requests per window, per client IP)
    rate_limit_enabled: bool = True
    rate_limit_general_max: int = 100
    rate_limit_general_window_seconds: int = 15 * 60
    rate_limit_contact_max: int = 5
    rate_limit_contact_window_seconds: int = 60 * 60
    rate_limit_csrf_max: int = 20
    rate_limit_csrf_window_seconds: int = 60 * 60

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "production", "test"}
        v = v.lower()
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("csrf_cleanup_interval_seconds")
    @classmethod
    def validate_cleanup_interval(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("csrf_cleanup_interval_seconds must be positive")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent.parent


def get_config() -> LofersilConfig:
    """Factory function to create config instance."""
    return LofersilConfig()
