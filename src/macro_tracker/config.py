"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

BACKEND_APPS_SCRIPT = "apps_script"
BACKEND_SUPABASE = "supabase"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    remote_backend: str = BACKEND_APPS_SCRIPT
    apps_script_url: str | None = None
    sheet_auth_token: str | None = None
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    timezone: str = "Asia/Kolkata"
    sync_debounce_seconds: float = 0.5
    request_timeout_seconds: float = 15.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def validate_backend_settings(settings: Settings) -> None:
    """Raise ValueError when the selected backend is missing configuration."""
    backend = settings.remote_backend.strip().lower()
    if backend == BACKEND_APPS_SCRIPT:
        missing = [
            name
            for name in ("apps_script_url", "sheet_auth_token")
            if not getattr(settings, name)
        ]
    elif backend == BACKEND_SUPABASE:
        missing = [
            name
            for name in ("supabase_url", "supabase_service_key")
            if not getattr(settings, name)
        ]
    else:
        raise ValueError(f"Unknown remote backend: {settings.remote_backend}")
    if missing:
        raise ValueError(
            f"Missing settings for {backend} backend: {', '.join(missing)}"
        )
