"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str | None = None
    supabase_service_key: str | None = None
    remote_store_enabled: bool = False
    local_store_dir: Path = Path(".fiesta")
    session_pointer_path: Path = Path(".fiesta/session.json")
    store_timeout_seconds: float = 10.0
    log_level: str = "INFO"
    admin_token: str
    seed_sample_data: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
