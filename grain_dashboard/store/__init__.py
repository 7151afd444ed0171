"""Record store boundary: query vocabulary plus REST and SQL backends."""

from __future__ import annotations

from grain_dashboard.common.settings import Settings
from grain_dashboard.store.query import (
    FetchError,
    OrderBy,
    QueryFilter,
    RecordStore,
    eq,
    gte,
    is_in,
    lte,
    not_null,
)
from grain_dashboard.store.rest_store import RestRecordStore
from grain_dashboard.store.sql_store import SqlRecordStore


def build_record_store(settings: Settings) -> RecordStore:
    """Create the record store backend selected by `STORE_BACKEND`."""

    if settings.STORE_BACKEND == "sql":
        return SqlRecordStore(database_url=settings.DATABASE_URL)
    return RestRecordStore(
        base_url=settings.SUPABASE_URL,
        api_key=settings.SUPABASE_SERVICE_ROLE_KEY,
        timeout_seconds=settings.STORE_REQUEST_TIMEOUT_SECONDS,
    )


__all__ = [
    "FetchError",
    "OrderBy",
    "QueryFilter",
    "RecordStore",
    "RestRecordStore",
    "SqlRecordStore",
    "build_record_store",
    "eq",
    "gte",
    "is_in",
    "lte",
    "not_null",
]
