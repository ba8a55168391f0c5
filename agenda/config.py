# agenda/config.py

import os
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# Which .env file to load
env_file_path = os.getenv("ENV_FILE", ".env")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=env_file_path,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./agenda.db"
    SQL_ECHO: bool = False
    DB_TIMEOUT_SECONDS: float = 5.0

    # Scheduling
    CONFLICT_WINDOW_MINUTES: int = 45  # half-width of an appointment's occupied window

    # Logging
    LOG_LEVEL: str = "INFO"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, building them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
