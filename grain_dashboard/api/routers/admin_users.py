# This file defines the administrator role-management endpoint under the versioned API path.
# It exists so the admin screen can list users, change roles, and delete accounts through one route.
# The action is chosen with the `action` query parameter; update and delete carry a JSON body
# that is only validated once the caller has been authorized.
# Access failures answer 403, invalid requests 400, and store or provider failures 500.

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Header, Query, Request

from grain_dashboard.api.api_config import ApiConfig
from grain_dashboard.api.dependencies import get_config, get_user_admin_service
from grain_dashboard.api.error_handlers import APIError
from grain_dashboard.api.response_envelope import build_object_envelope
from grain_dashboard.api.schemas.admin_schemas import AdminUsersResponseV1
from grain_dashboard.api.services.user_admin_service import (
    AdminAccessError,
    AdminRequestError,
    UserAdminService,
)
from grain_dashboard.auth.session_client import AuthServiceError, bearer_token
from grain_dashboard.store.query import FetchError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])
AdminServiceDep = Annotated[UserAdminService, Depends(get_user_admin_service)]
ConfigDep = Annotated[ApiConfig, Depends(get_config)]


@router.api_route("/users", methods=["GET", "POST"], response_model=AdminUsersResponseV1)
def admin_users(
    request: Request,
    service: AdminServiceDep,
    config: ConfigDep,
    action: str | None = Query(default=None),
    authorization: Annotated[str | None, Header()] = None,
    body: Any = Body(default=None),
) -> dict[str, object]:
    try:
        data = service.handle(
            action=action,
            token=bearer_token(authorization),
            body=body,
        )
    except AdminAccessError as exc:
        raise APIError(status_code=403, error_code="FORBIDDEN", message=str(exc)) from exc
    except AdminRequestError as exc:
        raise APIError(status_code=400, error_code="INVALID_REQUEST", message=str(exc)) from exc
    except (FetchError, AuthServiceError) as exc:
        logger.error("Role-management action %s failed: %s", action, exc)
        raise APIError(
            status_code=500, error_code="ADMIN_ACTION_FAILED", message=str(exc)
        ) from exc

    return build_object_envelope(
        api_version_path=config.api_version_path,
        schema_version=config.schema_version,
        request_id=request.state.request_id,
        data=data,
    )
