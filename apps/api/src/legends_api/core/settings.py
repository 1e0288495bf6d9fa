from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "sqlite+aiosqlite:///./legends.db"
    secret_key: str = "change-me-legends-development-signing-key"
    tracing_enabled: bool = False
    log_level: str = "INFO"

    # Session credentials
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = 24 * 30

    # Admin surface (location management, observability)
    admin_api_key: str = ""

    # Scan windows are computed against local midnight in this zone
    program_timezone: str = "UTC"

    # Program defaults, used when the App Settings row is missing or incomplete
    default_points_per_scan: int = 1
    default_per_day: int = 1
    default_per_week: int = 3
    default_per_month: int = 10

    # One-time passwords
    otp_ttl_seconds: int = 5 * 60

    # Email / notification settings
    email_default_from: str = "no-reply@legends.local"
    email_default_reply_to: str | None = None
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True

    # Generated QR images
    asset_storage_path: str = "var/assets"

    @field_validator("program_timezone", mode="before")
    @classmethod
    def _normalize_timezone(cls, value: object) -> str:
        if value is None:
            return "UTC"
        text = str(value).strip()
        return text or "UTC"


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
