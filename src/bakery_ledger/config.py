"""Application configuration."""

import os
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    state_backend: Literal["file", "supabase"] = "file"
    state_file: Path = Path("data/ledger_state.json")
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    state_table: str = "ledger_state"
    admin_token: str
    undo_window_seconds: float = 10.0
    snapshot_limit: int = 5
    calculator_save_limit: int = 10
    calculator_cooldown_ms: int = 150
    purchase_save_limit: int = 5
    default_electricity_rate_cents: int = 17
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
