"""
Application settings.

Values come from environment variables (or a local ``.env`` file):

- ``DATABASE_PROVIDER``: sqlite, postgres or sqlserver
- ``DATABASE_URL``: SQLAlchemy database URL
- ``ENTITY_SCHEMA_PATH``: entity schema document; defaults to the packaged ``entities.json``
- ``SEED_ON_STARTUP``: insert the sample customers when the database is empty
- ``LOG_LEVEL``: root logging level for the server and CLI
"""

import logging
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SCHEMA_PATH = Path(__file__).parent / "entities.json"


class Settings(BaseSettings):
    DATABASE_PROVIDER: str = "sqlite"
    DATABASE_URL: str = "sqlite:///customer_data.db"
    ENTITY_SCHEMA_PATH: Optional[Path] = None
    SEED_ON_STARTUP: bool = True
    LOG_LEVEL: str = "INFO"

    # Values come from the environment first, then from a local .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def schema_path(self) -> Path:
        return self.ENTITY_SCHEMA_PATH or DEFAULT_SCHEMA_PATH


def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Install a root handler for the server and CLI entry points."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
