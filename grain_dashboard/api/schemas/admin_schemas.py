# This file defines request and response schemas for the role-management endpoint.
# Request bodies accept the web client's camelCase keys as well as snake_case.
# Every body field is optional; the service checks them only after the caller is authorized.

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from grain_dashboard.api.schemas.common import EnvelopeFields


class AdminUserActionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    new_role: str | None = Field(default=None, alias="newRole")


class AdminUserV1(BaseModel):
    id: str
    email: str
    role: str
    created_at: str | None = None


class AdminUserListV1(BaseModel):
    users: list[AdminUserV1]


class AdminActionResultV1(BaseModel):
    success: bool


class AdminUsersResponseV1(EnvelopeFields):
    data: AdminUserListV1 | AdminActionResultV1
