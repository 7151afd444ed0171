# This file implements the administrator role-management operations behind `/admin/users`.
# It exists so the router only maps actions and errors while role checks and store writes live in one layer.
# Every action first verifies the caller holds the administrator role; callers may not change or delete themselves.
# Failures are split into access errors (403) and bad requests (400); store and provider errors propagate as-is.

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from grain_dashboard.api.api_config import ApiConfig
from grain_dashboard.api.schemas.admin_schemas import AdminUserActionRequest
from grain_dashboard.auth.session_client import CallerIdentity, SupabaseAuthClient
from grain_dashboard.store.query import FetchError, OrderBy, RecordStore, eq

logger = logging.getLogger(__name__)

VALID_ACTIONS = ("list", "update", "delete")


class AdminAccessError(RuntimeError):
    """Caller is not authenticated or does not hold the administrator role."""


class AdminRequestError(ValueError):
    """The requested action or its arguments are not acceptable."""


def parse_action_request(body: Any) -> AdminUserActionRequest:
    if body is None:
        return AdminUserActionRequest()
    if not isinstance(body, dict):
        raise AdminRequestError("Request body must be a JSON object")
    try:
        return AdminUserActionRequest.model_validate(body)
    except ValidationError as exc:
        raise AdminRequestError("Invalid request body") from exc


class UserAdminService:
    def __init__(
        self, *, config: ApiConfig, store: RecordStore, auth_client: SupabaseAuthClient
    ) -> None:
        self.config = config
        self.store = store
        self.auth_client = auth_client
        self.roles_table = config.user_roles_table_name

    def authorize(self, token: str | None) -> CallerIdentity:
        if not token:
            raise AdminAccessError("Unauthorized")
        caller = self.auth_client.get_user(token)
        if caller is None:
            raise AdminAccessError("Unauthorized")

        try:
            rows = self.store.select(
                self.roles_table,
                columns=("role",),
                filters=(eq("user_id", caller.user_id),),
                limit=1,
            )
        except FetchError as exc:
            logger.warning("Role lookup failed for %s: %s", caller.user_id, exc)
            raise AdminAccessError("Admin access required") from exc

        if not rows or rows[0].get("role") != self.config.admin_role:
            raise AdminAccessError("Admin access required")
        return caller

    def handle(
        self,
        *,
        action: str | None,
        token: str | None,
        body: Any = None,
    ) -> dict[str, Any]:
        caller = self.authorize(token)

        if action == "list":
            return {"users": self.list_users()}
        if action not in VALID_ACTIONS:
            raise AdminRequestError("Invalid action")

        request = parse_action_request(body)
        if not request.user_id:
            raise AdminRequestError("userId is required")

        if action == "update":
            self.update_role(caller=caller, user_id=request.user_id, new_role=request.new_role)
        else:
            self.delete_user(caller=caller, user_id=request.user_id)
        return {"success": True}

    def list_users(self) -> list[dict[str, Any]]:
        """Every directory user merged with their role, newest role assignments first."""

        role_rows = self.store.select(
            self.roles_table,
            columns=("user_id", "role", "created_at"),
            order_by=(OrderBy("created_at", descending=True),),
        )
        roles_by_user: dict[str, dict[str, Any]] = {}
        for row in role_rows:
            roles_by_user.setdefault(str(row["user_id"]), row)

        users: list[dict[str, Any]] = []
        for directory_user in self.auth_client.list_users():
            role_row = roles_by_user.get(directory_user.id, {})
            created_at = role_row.get("created_at") or directory_user.created_at
            users.append(
                {
                    "id": directory_user.id,
                    "email": directory_user.email,
                    "role": role_row.get("role") or self.config.default_role,
                    "created_at": None if created_at is None else str(created_at),
                }
            )
        return users

    def update_role(self, *, caller: CallerIdentity, user_id: str, new_role: str | None) -> None:
        if user_id == caller.user_id:
            raise AdminRequestError("Cannot modify your own role")
        if new_role not in self.config.assignable_roles:
            raise AdminRequestError("Invalid role")

        self.store.update(
            self.roles_table,
            {"role": new_role, "updated_at": datetime.now(tz=UTC).isoformat()},
            filters=(eq("user_id", user_id),),
        )
        logger.info("User %s set role of %s to %s", caller.user_id, user_id, new_role)

    def delete_user(self, *, caller: CallerIdentity, user_id: str) -> None:
        if user_id == caller.user_id:
            raise AdminRequestError("Cannot delete your own account")
        self.auth_client.delete_user(user_id)
        logger.info("User %s deleted account %s", caller.user_id, user_id)
