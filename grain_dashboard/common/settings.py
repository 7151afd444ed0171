"""
Application settings loaded from environment variables.
It centralizes the record store, session provider, and logging configuration shared by the API and CLI.
Keeping these helpers isolated reduces duplication and keeps analytics modules focused on aggregation logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Final

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

REQUIRED_ENV_VARS: Final[tuple[str, ...]] = (
    "PROJECT_NAME",
    "ENV",
    "LOG_LEVEL",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
)

VALID_STORE_BACKENDS: Final[frozenset[str]] = frozenset({"rest", "sql"})


class Settings(BaseModel):
    """Typed runtime configuration."""

    model_config = ConfigDict(extra="ignore")

    PROJECT_NAME: str
    ENV: str
    LOG_LEVEL: str
    SUPABASE_URL: str
    SUPABASE_SERVICE_ROLE_KEY: str
    SUPABASE_ANON_KEY: str | None = None
    STORE_BACKEND: str = "rest"
    DATABASE_URL: str | None = None
    STORE_REQUEST_TIMEOUT_SECONDS: int = 15

    @field_validator("STORE_BACKEND")
    @classmethod
    def validate_store_backend(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in VALID_STORE_BACKENDS:
            allowed = ", ".join(sorted(VALID_STORE_BACKENDS))
            raise ValueError(f"STORE_BACKEND must be one of: {allowed}")
        return normalized

    @field_validator("STORE_REQUEST_TIMEOUT_SECONDS")
    @classmethod
    def validate_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("STORE_REQUEST_TIMEOUT_SECONDS must be greater than 0.")
        return value

    @model_validator(mode="after")
    def require_database_url_for_sql(self) -> Settings:
        if self.STORE_BACKEND == "sql" and not self.DATABASE_URL:
            raise ValueError("DATABASE_URL is required when STORE_BACKEND is 'sql'.")
        return self


def load_settings(*, load_env: bool = True) -> Settings:
    """Load and validate environment settings from `.env` and process environment."""

    if load_env:
        load_dotenv()

    missing = [key for key in REQUIRED_ENV_VARS if not os.getenv(key)]
    if missing:
        missing_values = ", ".join(sorted(missing))
        raise RuntimeError(
            f"Missing required environment variables: {missing_values}. "
            "Populate these values in `.env` before starting the application."
        )

    values = {key: value for key, value in os.environ.items() if value != ""}
    try:
        return Settings.model_validate(values)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached accessor for application settings."""

    return load_settings()
