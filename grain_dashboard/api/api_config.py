# This file defines runtime settings for the API layer in one place.
# It exists so versioning, CORS, and role-management behavior can be configured without code edits.
# The config loader reads environment variables and applies safe defaults for local development.
# It also validates the roles table name and version path before any request is served.

from __future__ import annotations

import os
import re
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class ApiConfig(BaseModel):
    """Typed API runtime configuration."""

    model_config = ConfigDict(extra="ignore")

    api_name: str = "Grain Price Dashboard API"
    api_version_path: str = "/api/v1"
    schema_version: str = "1.0.0"
    environment: str = "local"
    allowed_origins: list[str] = Field(default_factory=list)
    user_roles_table_name: str = "user_roles"
    admin_role: str = "ADMIN"
    default_role: str = "PENDING"
    assignable_roles: list[str] = Field(default_factory=lambda: ["ADMIN", "PENDING"])
    app_version: str = "0.1.0"

    @field_validator("api_version_path")
    @classmethod
    def validate_api_version_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("api_version_path must start with '/'.")
        parts = [part for part in value.split("/") if part]
        if len(parts) < 2 or parts[-1].startswith("v") is False:
            raise ValueError("api_version_path must look like '/api/v1'.")
        return value.rstrip("/")

    @field_validator("user_roles_table_name")
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        if not _IDENTIFIER_RE.match(value):
            raise ValueError(f"Unsafe SQL identifier: {value!r}")
        return value

    @model_validator(mode="after")
    def validate_roles(self) -> ApiConfig:
        if self.admin_role not in self.assignable_roles:
            raise ValueError("admin_role must be one of assignable_roles.")
        if self.default_role not in self.assignable_roles:
            raise ValueError("default_role must be one of assignable_roles.")
        return self


def _env_list(name: str, default: list[str] | None = None) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default or [])
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_api_config(*, load_env: bool = True) -> ApiConfig:
    """Load API configuration from `.env` and process environment."""

    if load_env:
        load_dotenv()

    config_values: dict[str, object] = {
        "api_name": os.getenv("API_NAME", "Grain Price Dashboard API"),
        "api_version_path": os.getenv("API_VERSION_PATH", "/api/v1"),
        "schema_version": os.getenv("API_SCHEMA_VERSION", "1.0.0"),
        "environment": os.getenv("ENV", "local"),
        "allowed_origins": _env_list("API_ALLOWED_ORIGINS", []),
        "user_roles_table_name": os.getenv("API_USER_ROLES_TABLE_NAME", "user_roles"),
        "admin_role": os.getenv("API_ADMIN_ROLE", "ADMIN"),
        "default_role": os.getenv("API_DEFAULT_ROLE", "PENDING"),
        "assignable_roles": _env_list("API_ASSIGNABLE_ROLES", ["ADMIN", "PENDING"]),
        "app_version": os.getenv("APP_VERSION", "0.1.0"),
    }
    return ApiConfig.model_validate(config_values)


@lru_cache(maxsize=1)
def get_api_config() -> ApiConfig:
    """Cached accessor for API config."""

    return load_api_config()
