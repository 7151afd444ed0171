# This file defines shared schema pieces reused by multiple API endpoints.
# It exists so envelope metadata and error payloads stay consistent across dashboard and admin routes.

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class EnvelopeFields(BaseModel):
    api_version: str
    schema_version: str
    request_id: str
    generated_at: datetime
    warnings: list[str] | None = None


class ErrorResponse(BaseModel):
    error_code: str
    message: str
    details: Any | None = None
    request_id: str
    timestamp: datetime
