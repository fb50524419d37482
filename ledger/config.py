"""
Configuration using Pydantic Settings.

Values are loaded from environment variables, with an optional .env file as
a fallback, then the defaults defined here.

Usage:
    from ledger.config import settings
    print(settings.DATABASE_URL)
"""

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the ledger data-access layer."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Ledger"
    # Echo every SQL statement through SQLAlchemy's logger
    DEBUG: bool = False

    # --- Database ---
    # The parent directory of a file-backed SQLite URL is created on first connect
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/ledger.db"

    # --- Queries ---
    DEFAULT_PAGE_SIZE: int = 50

    # --- Logging ---
    LOG_LEVEL: str = "INFO"


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Install a basic root handler at the configured level."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
