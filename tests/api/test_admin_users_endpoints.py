# This file tests the administrator role-management endpoint.
# It exists so access checks, the self-modification guard, and status mapping stay stable.

from __future__ import annotations

from tests.analytics.support import InMemoryRecordStore
from tests.api.support import (
    ADMIN_TOKEN,
    GROWER_TOKEN,
    FakeAuthClient,
    api_test_client,
    bearer,
    build_test_tables,
)


def test_missing_credential_is_forbidden() -> None:
    with api_test_client() as client:
        response = client.get("/api/v1/admin/users", params={"action": "list"})

    assert response.status_code == 403
    assert response.json()["message"] == "Unauthorized"


def test_non_admin_caller_is_forbidden() -> None:
    with api_test_client() as client:
        response = client.get(
            "/api/v1/admin/users", params={"action": "list"}, headers=bearer(GROWER_TOKEN)
        )

    assert response.status_code == 403
    assert response.json()["message"] == "Admin access required"


def test_list_merges_directory_users_with_roles() -> None:
    with api_test_client() as client:
        response = client.get(
            "/api/v1/admin/users", params={"action": "list"}, headers=bearer(ADMIN_TOKEN)
        )

    assert response.status_code == 200
    users = {user["id"]: user for user in response.json()["data"]["users"]}
    assert users["admin-1"]["role"] == "ADMIN"
    assert users["admin-1"]["created_at"] == "2025-01-02T00:00:00+00:00"
    assert users["grower-1"]["role"] == "PENDING"
    assert users["new-1"]["role"] == "PENDING"
    assert users["new-1"]["created_at"] == "2025-01-09T00:00:00Z"


def test_update_changes_role_of_another_user() -> None:
    store = InMemoryRecordStore(build_test_tables())
    with api_test_client(store=store) as client:
        response = client.post(
            "/api/v1/admin/users",
            params={"action": "update"},
            json={"userId": "grower-1", "newRole": "ADMIN"},
            headers=bearer(ADMIN_TOKEN),
        )

    assert response.status_code == 200
    assert response.json()["data"] == {"success": True}
    grower_row = next(row for row in store.tables["user_roles"] if row["user_id"] == "grower-1")
    assert grower_row["role"] == "ADMIN"
    assert grower_row["updated_at"]


def test_admin_cannot_change_own_role() -> None:
    with api_test_client() as client:
        response = client.post(
            "/api/v1/admin/users",
            params={"action": "update"},
            json={"userId": "admin-1", "newRole": "PENDING"},
            headers=bearer(ADMIN_TOKEN),
        )

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot modify your own role"


def test_unknown_role_and_action_are_bad_requests() -> None:
    with api_test_client() as client:
        bad_role = client.post(
            "/api/v1/admin/users",
            params={"action": "update"},
            json={"userId": "grower-1", "newRole": "OWNER"},
            headers=bearer(ADMIN_TOKEN),
        )
        bad_action = client.post(
            "/api/v1/admin/users",
            params={"action": "promote"},
            json={"userId": "grower-1"},
            headers=bearer(ADMIN_TOKEN),
        )

    assert bad_role.status_code == 400
    assert bad_role.json()["message"] == "Invalid role"
    assert bad_action.status_code == 400
    assert bad_action.json()["message"] == "Invalid action"


def test_delete_removes_another_account() -> None:
    auth_client = FakeAuthClient()
    with api_test_client(auth_client=auth_client) as client:
        response = client.post(
            "/api/v1/admin/users",
            params={"action": "delete"},
            json={"userId": "grower-1"},
            headers=bearer(ADMIN_TOKEN),
        )

    assert response.status_code == 200
    assert auth_client.deleted == ["grower-1"]


def test_admin_cannot_delete_own_account() -> None:
    auth_client = FakeAuthClient()
    with api_test_client(auth_client=auth_client) as client:
        response = client.post(
            "/api/v1/admin/users",
            params={"action": "delete"},
            json={"userId": "admin-1"},
            headers=bearer(ADMIN_TOKEN),
        )

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot delete your own account"
    assert auth_client.deleted == []


def test_provider_failure_during_delete_is_server_error() -> None:
    with api_test_client() as client:
        response = client.post(
            "/api/v1/admin/users",
            params={"action": "delete"},
            json={"userId": "ghost"},
            headers=bearer(ADMIN_TOKEN),
        )

    assert response.status_code == 500
    assert response.json()["error_code"] == "ADMIN_ACTION_FAILED"


def test_update_without_user_id_is_bad_request() -> None:
    with api_test_client() as client:
        response = client.post(
            "/api/v1/admin/users",
            params={"action": "update"},
            json={"newRole": "ADMIN"},
            headers=bearer(ADMIN_TOKEN),
        )

    assert response.status_code == 400
    assert response.json()["message"] == "userId is required"


def test_malformed_body_from_admin_is_bad_request() -> None:
    with api_test_client() as client:
        wrong_type = client.post(
            "/api/v1/admin/users",
            params={"action": "delete"},
            json={"userId": ["grower-1"]},
            headers=bearer(ADMIN_TOKEN),
        )
        not_an_object = client.post(
            "/api/v1/admin/users",
            params={"action": "delete"},
            json=["grower-1"],
            headers=bearer(ADMIN_TOKEN),
        )

    assert wrong_type.status_code == 400
    assert wrong_type.json()["message"] == "Invalid request body"
    assert not_an_object.status_code == 400


def test_non_admin_is_forbidden_before_body_is_checked() -> None:
    auth_client = FakeAuthClient()
    with api_test_client(auth_client=auth_client) as client:
        empty_id = client.post(
            "/api/v1/admin/users",
            params={"action": "delete"},
            json={"userId": ""},
            headers=bearer(GROWER_TOKEN),
        )
        wrong_type = client.post(
            "/api/v1/admin/users",
            params={"action": "update"},
            json={"userId": 42, "newRole": ["ADMIN"]},
        )

    assert empty_id.status_code == 403
    assert empty_id.json()["message"] == "Admin access required"
    assert wrong_type.status_code == 403
    assert wrong_type.json()["message"] == "Unauthorized"
    assert auth_client.deleted == []
