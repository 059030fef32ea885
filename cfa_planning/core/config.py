# cfa_planning/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).resolve().parents[2] / ".env"
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    """Runtime configuration for the planning core."""

    database_url: str = Field(
        default="sqlite:///./cfa_planning.db",
        description="SQLAlchemy URL of the planning database",
    )
    environment: Literal["development", "test", "staging", "production"] = "development"
    log_level: str = Field(default="INFO", description="Root log level")

    # Scheduling rules
    slot_time_grid_minutes: int = Field(
        default=15,
        description="Slot and occurrence times must sit on this minute grid",
    )
    week_parity_iso_even_is_a: bool = Field(
        default=True,
        description="Fallback when no week-A reference exists: even ISO weeks are week A",
    )

    # SQLite: how long a transaction waits for the write lock before failing
    sqlite_busy_timeout_seconds: float = 30.0

    # Monitoring
    slow_operation_threshold_seconds: float = 1.0
    metrics_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("slot_time_grid_minutes")
    @classmethod
    def validate_grid(cls, v: int) -> int:
        if v <= 0 or 60 % v != 0:
            raise ValueError("slot_time_grid_minutes must divide 60")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()


settings = Settings()
