# This file defines the dashboard endpoints under the versioned API path.
# It exists so the web client can fetch the composed snapshot or any single view of it.
# The snapshot endpoint answers anonymous callers with an empty snapshot; single views require a session.
# Failed computations in the snapshot surface as envelope warnings next to the partial data.

from __future__ import annotations

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from grain_dashboard.analytics.composer import DashboardComposer
from grain_dashboard.api.api_config import ApiConfig
from grain_dashboard.api.dependencies import get_auth_client, get_config, get_dashboard_composer
from grain_dashboard.api.error_handlers import APIError
from grain_dashboard.api.response_envelope import build_object_envelope
from grain_dashboard.api.schemas.dashboard_schemas import (
    DashboardSnapshotResponseV1,
    DashboardStatsResponseV1,
    DeliveryMonthTrendListResponseV1,
    ElevatorPerformanceResponseV1,
    PriceTrendListResponseV1,
)
from grain_dashboard.auth.session_client import CallerIdentity, SupabaseAuthClient, bearer_token

router = APIRouter(prefix="/dashboard", tags=["dashboard"])
ComposerDep = Annotated[DashboardComposer, Depends(get_dashboard_composer)]
AuthClientDep = Annotated[SupabaseAuthClient, Depends(get_auth_client)]
ConfigDep = Annotated[ApiConfig, Depends(get_config)]
AuthorizationHeader = Annotated[str | None, Header()]


async def _resolve_caller(
    auth_client: SupabaseAuthClient, authorization: str | None
) -> CallerIdentity | None:
    token = bearer_token(authorization)
    if token is None:
        return None
    return await asyncio.to_thread(auth_client.get_user, token)


async def _require_caller(
    auth_client: SupabaseAuthClient, authorization: str | None
) -> CallerIdentity:
    caller = await _resolve_caller(auth_client, authorization)
    if caller is None:
        raise APIError(
            status_code=401,
            error_code="AUTH_REQUIRED",
            message="A valid session is required for this view.",
        )
    return caller


def _envelope(
    request: Request, config: ApiConfig, data: object, warnings: list[str] | None = None
) -> dict[str, object]:
    return build_object_envelope(
        api_version_path=config.api_version_path,
        schema_version=config.schema_version,
        request_id=request.state.request_id,
        data=data,
        warnings=warnings,
    )


@router.get("", response_model=DashboardSnapshotResponseV1)
async def dashboard_snapshot(
    request: Request,
    composer: ComposerDep,
    auth_client: AuthClientDep,
    config: ConfigDep,
    authorization: AuthorizationHeader = None,
) -> dict[str, object]:
    caller = await _resolve_caller(auth_client, authorization)
    snapshot = await composer.compose(caller)
    warnings = [error.message for error in snapshot.errors] or None
    return _envelope(request, config, snapshot, warnings)


@router.get("/stats", response_model=DashboardStatsResponseV1)
async def dashboard_stats(
    request: Request,
    composer: ComposerDep,
    auth_client: AuthClientDep,
    config: ConfigDep,
    authorization: AuthorizationHeader = None,
) -> dict[str, object]:
    await _require_caller(auth_client, authorization)
    return _envelope(request, config, await composer.stats())


@router.get("/price-trends", response_model=PriceTrendListResponseV1)
async def dashboard_price_trends(
    request: Request,
    composer: ComposerDep,
    auth_client: AuthClientDep,
    config: ConfigDep,
    authorization: AuthorizationHeader = None,
) -> dict[str, object]:
    await _require_caller(auth_client, authorization)
    return _envelope(request, config, await composer.price_trends())


@router.get("/elevator-performance", response_model=ElevatorPerformanceResponseV1)
async def dashboard_elevator_performance(
    request: Request,
    composer: ComposerDep,
    auth_client: AuthClientDep,
    config: ConfigDep,
    authorization: AuthorizationHeader = None,
) -> dict[str, object]:
    await _require_caller(auth_client, authorization)
    return _envelope(request, config, await composer.elevator_performance())


@router.get("/delivery-months", response_model=DeliveryMonthTrendListResponseV1)
async def dashboard_delivery_months(
    request: Request,
    composer: ComposerDep,
    auth_client: AuthClientDep,
    config: ConfigDep,
    authorization: AuthorizationHeader = None,
) -> dict[str, object]:
    await _require_caller(auth_client, authorization)
    return _envelope(request, config, await composer.delivery_month_trends())
