# This file defines consistent API error payloads and exception handlers.
# It exists so dashboard and role-management endpoints return the same error shape with request trace fields.
# Store and session-provider failures that escape a route map to 502; anything else becomes a logged 500.

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from grain_dashboard.auth.session_client import AuthServiceError
from grain_dashboard.store.query import FetchError

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Error raised by routes with an explicit status code and machine-readable code."""

    def __init__(
        self,
        *,
        status_code: int,
        error_code: str,
        message: str,
        details: Any | None = None,
    ) -> None:
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.details = details
        super().__init__(message)


def error_body(
    *, request: Request, error_code: str, message: str, details: Any | None = None
) -> dict[str, Any]:
    return {
        "error_code": error_code,
        "message": message,
        "details": details,
        "request_id": str(getattr(request.state, "request_id", "unknown")),
        "timestamp": datetime.now(tz=UTC).isoformat(),
    }


def _respond(
    request: Request, status_code: int, error_code: str, message: str, details: Any | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_body(request=request, error_code=error_code, message=message, details=details),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        return _respond(request, exc.status_code, exc.error_code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _respond(
            request, 422, "VALIDATION_ERROR", "Invalid request parameters.", exc.errors()
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return _respond(request, exc.status_code, "HTTP_ERROR", str(exc.detail))

    @app.exception_handler(FetchError)
    async def fetch_error_handler(request: Request, exc: FetchError) -> JSONResponse:
        logger.warning("Record store failure on %s: %s", request.url.path, exc)
        return _respond(request, 502, "STORE_UNAVAILABLE", "The price data store is unavailable.")

    @app.exception_handler(AuthServiceError)
    async def auth_service_error_handler(request: Request, exc: AuthServiceError) -> JSONResponse:
        logger.warning("Session provider failure on %s: %s", request.url.path, exc)
        return _respond(request, 502, "AUTH_UNAVAILABLE", "The session provider is unavailable.")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
        return _respond(
            request, 500, "INTERNAL_SERVER_ERROR", "The server encountered an unexpected error."
        )
