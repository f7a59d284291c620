"""Application configuration via pydantic-settings."""

import logging
import sqlite3
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

assert sqlite3.sqlite_version_info >= (3, 35, 0), (
    f"SQLite >= 3.35.0 required for RETURNING clauses, got {sqlite3.sqlite_version}"
)


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Required
    API_KEY: str

    # Database
    DB_PATH: str = "/var/lib/greenpulse/greenpulse.db"

    # API
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8000
    CORS_ORIGINS: Annotated[list[str], NoDecode] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"

    # Alerting
    AUTO_RESOLVE_ALERTS: bool = False

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: object) -> object:
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if not isinstance(getattr(logging, v.upper(), None), int):
            raise ValueError(f"LOG_LEVEL must be a logging level name, got '{v}'")
        return v.upper()

    @property
    def DB_URL(self) -> str:  # noqa: N802
        return f"sqlite+aiosqlite:///{self.DB_PATH}"
