# This file provides dependency factories for FastAPI routes and middleware.
# It exists so the record store, session client, and composer are created once and shared through injection.
# The setup keeps routers thin and makes endpoint tests easy to override.

from __future__ import annotations

from functools import lru_cache

from grain_dashboard.analytics.analytics_config import AnalyticsConfig, load_analytics_config
from grain_dashboard.analytics.composer import DashboardComposer
from grain_dashboard.analytics.repository import EntryRepository
from grain_dashboard.api.api_config import ApiConfig, get_api_config
from grain_dashboard.api.services.user_admin_service import UserAdminService
from grain_dashboard.auth.session_client import SupabaseAuthClient
from grain_dashboard.common.settings import get_settings
from grain_dashboard.store import RecordStore, build_record_store


@lru_cache(maxsize=1)
def get_record_store() -> RecordStore:
    return build_record_store(get_settings())


@lru_cache(maxsize=1)
def get_auth_client() -> SupabaseAuthClient:
    settings = get_settings()
    return SupabaseAuthClient(
        base_url=settings.SUPABASE_URL,
        api_key=settings.SUPABASE_ANON_KEY or settings.SUPABASE_SERVICE_ROLE_KEY,
        service_role_key=settings.SUPABASE_SERVICE_ROLE_KEY,
    )


@lru_cache(maxsize=1)
def get_analytics_config() -> AnalyticsConfig:
    return load_analytics_config()


@lru_cache(maxsize=1)
def get_dashboard_composer() -> DashboardComposer:
    config = get_analytics_config()
    repository = EntryRepository(store=get_record_store(), config=config)
    return DashboardComposer(repository=repository, config=config)


@lru_cache(maxsize=1)
def get_user_admin_service() -> UserAdminService:
    return UserAdminService(
        config=get_api_config(),
        store=get_record_store(),
        auth_client=get_auth_client(),
    )


def get_config() -> ApiConfig:
    return get_api_config()


def get_store_backend() -> str:
    return get_settings().STORE_BACKEND
