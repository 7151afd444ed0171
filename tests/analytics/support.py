# This file provides shared fixtures for aggregation engine tests.
# It exists so computations can run against an in-memory record store with the same filter semantics as real backends.
# Failure injection per table lets tests exercise partial-failure and skip paths deterministically.

from __future__ import annotations

import asyncio
import datetime as dt
from collections.abc import Awaitable, Sequence
from typing import Any, TypeVar

from grain_dashboard.analytics.analytics_config import AnalyticsConfig
from grain_dashboard.analytics.composer import DashboardComposer
from grain_dashboard.analytics.repository import EntryRepository
from grain_dashboard.store.query import FetchError, OrderBy, QueryFilter

T = TypeVar("T")

FIXED_NOW = dt.datetime(2025, 1, 31, 12, 0, tzinfo=dt.UTC)


class InMemoryRecordStore:
    """Record store fake holding table rows in dictionaries."""

    def __init__(
        self,
        tables: dict[str, list[dict[str, Any]]] | None = None,
        *,
        failing_tables: set[str] | None = None,
        connected: bool = True,
    ) -> None:
        self.tables = {name: [dict(row) for row in rows] for name, rows in (tables or {}).items()}
        self.failing_tables = set(failing_tables or ())
        self.connected = connected
        self.calls: list[tuple[str, str]] = []

    def select(
        self,
        table: str,
        *,
        columns: Sequence[str] | None = None,
        filters: Sequence[QueryFilter] = (),
        order_by: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        rows = self._matching("select", table, filters)
        for order in reversed(order_by):
            rows.sort(key=lambda row: row.get(order.column), reverse=order.descending)
        if limit is not None:
            rows = rows[:limit]
        if columns:
            rows = [{column: row.get(column) for column in columns} for row in rows]
        return rows

    def count(self, table: str, *, filters: Sequence[QueryFilter] = ()) -> int:
        return len(self._matching("count", table, filters))

    def update(
        self, table: str, values: dict[str, Any], *, filters: Sequence[QueryFilter]
    ) -> None:
        for row in self._matching("update", table, filters):
            row.update(values)

    def can_connect(self) -> bool:
        return self.connected

    def _matching(
        self, operation: str, table: str, filters: Sequence[QueryFilter]
    ) -> list[dict[str, Any]]:
        self.calls.append((operation, table))
        if table in self.failing_tables:
            raise FetchError(f"{table} is unavailable", table=table)
        return [
            row
            for row in self.tables.get(table, [])
            if all(query_filter.matches(row) for query_filter in filters)
        ]


def entry_row(
    *,
    date: str,
    price: float,
    class_id: str = "wheat",
    elevator_id: str = "e1",
    town_id: str = "t1",
    month: str | None = None,
    year: int | None = None,
    is_active: bool = True,
) -> dict[str, Any]:
    return {
        "date": date,
        "cash_price": price,
        "class_id": class_id,
        "elevator_id": elevator_id,
        "town_id": town_id,
        "month": month,
        "year": year,
        "is_active": is_active,
    }


def build_repository(store: InMemoryRecordStore, config: AnalyticsConfig | None = None) -> EntryRepository:
    return EntryRepository(store=store, config=config or AnalyticsConfig())


def build_composer(store: InMemoryRecordStore, config: AnalyticsConfig | None = None) -> DashboardComposer:
    resolved = config or AnalyticsConfig()
    return DashboardComposer(
        repository=build_repository(store, resolved),
        config=resolved,
        clock=lambda: FIXED_NOW,
    )


def run(awaitable: Awaitable[T]) -> T:
    async def _await() -> T:
        return await awaitable

    return asyncio.run(_await())


def sample_tables() -> dict[str, list[dict[str, Any]]]:
    """Two crop classes, one region with two towns, three elevators, and a few weeks of prices."""

    return {
        "crop_classes": [
            {"id": "wheat", "name": "Wheat", "code": "CWRS", "is_active": True},
            {"id": "canola", "name": "Canola", "code": "CAN", "is_active": True},
            {"id": "oats", "name": "Oats", "code": "OAT", "is_active": False},
        ],
        "master_regions": [
            {"id": "r1", "name": "Peace Region", "is_active": True},
        ],
        "town_regions": [
            {"region_id": "r1", "town_id": "t1", "is_active": True},
            {"region_id": "r1", "town_id": "t2", "is_active": True},
        ],
        "master_elevators": [
            {"id": "e1", "name": "North Terminal"},
            {"id": "e2", "name": "South Terminal"},
            {"id": "e3", "name": "River Siding"},
        ],
        "grain_entries": [
            entry_row(date="2025-01-10", price=5.00, elevator_id="e1", month="Mar", year=2025),
            entry_row(date="2025-01-10", price=5.20, elevator_id="e2", town_id="t2", month="Mar", year=2025),
            entry_row(date="2025-01-20", price=5.50, elevator_id="e1", month="Apr", year=2025),
            entry_row(date="2025-01-25", price=5.10, elevator_id="e3", town_id="t2", month="Dec", year=2024),
            entry_row(date="2025-01-15", price=12.00, class_id="canola", elevator_id="e2", month="Mar", year=2025),
            entry_row(date="2024-11-01", price=4.00, elevator_id="e1", month="Jan", year=2024),
            entry_row(date="2025-01-26", price=99.00, elevator_id="e1", is_active=False),
        ],
    }
