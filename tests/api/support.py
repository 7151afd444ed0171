# This file provides shared helpers for API endpoint tests.
# It exists so tests can override the store, session provider, and services without network access.
# The helpers build consistent config objects and scoped TestClient contexts.

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from fastapi.testclient import TestClient

from grain_dashboard.api.api_config import ApiConfig
from grain_dashboard.api.app import app
from grain_dashboard.api.dependencies import (
    get_auth_client,
    get_config,
    get_dashboard_composer,
    get_record_store,
    get_store_backend,
    get_user_admin_service,
)
from grain_dashboard.api.services.user_admin_service import UserAdminService
from grain_dashboard.auth.session_client import AuthServiceError, CallerIdentity, DirectoryUser
from tests.analytics.support import InMemoryRecordStore, build_composer, sample_tables

ADMIN_TOKEN = "admin-token"
GROWER_TOKEN = "grower-token"


def build_test_config() -> ApiConfig:
    """Create deterministic API config for tests."""

    return ApiConfig(
        api_name="Test Grain API",
        api_version_path="/api/v1",
        schema_version="1.0.0",
        environment="test",
        allowed_origins=[],
        user_roles_table_name="user_roles",
        admin_role="ADMIN",
        default_role="PENDING",
        assignable_roles=["ADMIN", "PENDING"],
        app_version="0.1.0",
    )


def build_test_tables() -> dict[str, list[dict[str, Any]]]:
    tables = sample_tables()
    tables["user_roles"] = [
        {"user_id": "admin-1", "role": "ADMIN", "created_at": "2025-01-02T00:00:00+00:00"},
        {"user_id": "grower-1", "role": "PENDING", "created_at": "2025-01-05T00:00:00+00:00"},
    ]
    return tables


class FakeAuthClient:
    """Session provider fake keyed by bearer token."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.tokens = {
            ADMIN_TOKEN: CallerIdentity(user_id="admin-1", email="admin@example.com"),
            GROWER_TOKEN: CallerIdentity(user_id="grower-1", email="grower@example.com"),
        }
        self.directory = [
            DirectoryUser(id="admin-1", email="admin@example.com", created_at="2024-12-01T00:00:00Z"),
            DirectoryUser(id="grower-1", email="grower@example.com", created_at="2024-12-02T00:00:00Z"),
            DirectoryUser(id="new-1", email="new@example.com", created_at="2025-01-09T00:00:00Z"),
        ]
        self.deleted: list[str] = []

    def get_user(self, token: str) -> CallerIdentity | None:
        if self.fail:
            raise AuthServiceError("session provider is down")
        return self.tokens.get(token)

    def list_users(self, *, per_page: int = 1000) -> list[DirectoryUser]:
        return list(self.directory)[:per_page]

    def delete_user(self, user_id: str) -> None:
        if user_id not in {user.id for user in self.directory}:
            raise AuthServiceError(f"User {user_id} was not found.")
        self.deleted.append(user_id)


@contextmanager
def api_test_client(
    *,
    config: ApiConfig | None = None,
    store: InMemoryRecordStore | None = None,
    auth_client: FakeAuthClient | None = None,
) -> Iterator[TestClient]:
    """Yield a TestClient with scoped dependency overrides."""

    resolved_config = config or build_test_config()
    resolved_store = store or InMemoryRecordStore(build_test_tables())
    resolved_auth = auth_client or FakeAuthClient()
    admin_service = UserAdminService(
        config=resolved_config, store=resolved_store, auth_client=resolved_auth
    )
    composer = build_composer(resolved_store)

    app.dependency_overrides[get_config] = lambda: resolved_config
    app.dependency_overrides[get_record_store] = lambda: resolved_store
    app.dependency_overrides[get_store_backend] = lambda: "rest"
    app.dependency_overrides[get_auth_client] = lambda: resolved_auth
    app.dependency_overrides[get_dashboard_composer] = lambda: composer
    app.dependency_overrides[get_user_admin_service] = lambda: admin_service

    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
