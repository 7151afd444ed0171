# This file is the single read interface the aggregation engine uses to reach the record store.
# It exists so computations ask for business-ready rows without knowing table names or store backends.
# Every store call runs in a worker thread, which makes each fetch an await point for the composer's task group.
# The adapter holds no aggregation logic; it only filters, orders, and converts rows into record types.

from __future__ import annotations

import asyncio
import datetime as dt
from collections.abc import Sequence
from typing import Any

from grain_dashboard.analytics.analytics_config import AnalyticsConfig
from grain_dashboard.analytics.models import CropClass, ElevatorPrice, PriceEntry, Region
from grain_dashboard.store.query import (
    OrderBy,
    QueryFilter,
    RecordStore,
    eq,
    gte,
    is_in,
    lte,
    not_null,
)

ENTRY_COLUMNS: tuple[str, ...] = (
    "date",
    "cash_price",
    "class_id",
    "elevator_id",
    "town_id",
    "month",
    "year",
    "is_active",
)


class EntryRepository:
    def __init__(self, *, store: RecordStore, config: AnalyticsConfig) -> None:
        self.store = store
        self.config = config

    async def query_entries(
        self,
        filters: Sequence[QueryFilter],
        *,
        order_by: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[PriceEntry]:
        rows = await asyncio.to_thread(
            self.store.select,
            self.config.entries_table,
            columns=ENTRY_COLUMNS,
            filters=tuple(filters),
            order_by=tuple(order_by),
            limit=limit,
        )
        return [PriceEntry.from_row(row) for row in rows]

    async def query_reference_table(
        self,
        table: str,
        filters: Sequence[QueryFilter],
        *,
        columns: Sequence[str] | None = None,
        order_by: Sequence[OrderBy] = (),
    ) -> list[dict[str, Any]]:
        return await asyncio.to_thread(
            self.store.select,
            table,
            columns=columns,
            filters=tuple(filters),
            order_by=tuple(order_by),
        )

    async def count_entries(self, filters: Sequence[QueryFilter]) -> int:
        return await self.count_reference_table(self.config.entries_table, filters)

    async def count_reference_table(self, table: str, filters: Sequence[QueryFilter]) -> int:
        return await asyncio.to_thread(self.store.count, table, filters=tuple(filters))

    async def active_crop_classes(self, *, order_by_name: bool = False) -> list[CropClass]:
        rows = await self.query_reference_table(
            self.config.crop_classes_table,
            [eq("is_active", True)],
            columns=("id", "name", "code"),
            order_by=(OrderBy("name"),) if order_by_name else (),
        )
        return [CropClass.from_row(row) for row in rows]

    async def active_regions(self) -> list[Region]:
        rows = await self.query_reference_table(
            self.config.regions_table,
            [eq("is_active", True)],
            columns=("id", "name"),
        )
        return [Region.from_row(row) for row in rows]

    async def active_town_ids(self, region_id: str) -> list[str]:
        rows = await self.query_reference_table(
            self.config.town_regions_table,
            [eq("region_id", region_id), eq("is_active", True)],
            columns=("town_id",),
        )
        return [str(row["town_id"]) for row in rows]

    async def class_entries_between(
        self, class_id: str, start_date: dt.date, end_date: dt.date
    ) -> list[PriceEntry]:
        return await self.query_entries(
            [
                eq("class_id", class_id),
                eq("is_active", True),
                gte("date", start_date.isoformat()),
                lte("date", end_date.isoformat()),
            ],
            order_by=(OrderBy("date"),),
        )

    async def elevator_prices(self, class_id: str, town_ids: Sequence[str]) -> list[ElevatorPrice]:
        """Active entries for a crop class in the given towns, joined to elevator names.

        Entries whose elevator cannot be resolved are dropped, matching an inner join.
        """

        entries = await self.query_entries(
            [eq("class_id", class_id), eq("is_active", True), is_in("town_id", town_ids)]
        )
        elevator_ids = sorted({entry.elevator_id for entry in entries if entry.elevator_id})
        if not elevator_ids:
            return []

        elevator_rows = await self.query_reference_table(
            self.config.elevators_table,
            [is_in("id", elevator_ids)],
            columns=("id", "name"),
        )
        names = {str(row["id"]): str(row["name"]) for row in elevator_rows}

        return [
            ElevatorPrice(
                elevator_id=entry.elevator_id,
                elevator_name=names[entry.elevator_id],
                cash_price=entry.cash_price,
            )
            for entry in entries
            if entry.elevator_id in names
        ]

    async def recent_delivery_entries(self, *, row_cap: int) -> list[PriceEntry]:
        return await self.query_entries(
            [eq("is_active", True), not_null("month"), not_null("year")],
            order_by=(OrderBy("year", descending=True), OrderBy("date", descending=True)),
            limit=row_cap,
        )

    async def active_entries_since(self, start_date: dt.date) -> list[PriceEntry]:
        return await self.query_entries(
            [eq("is_active", True), gte("date", start_date.isoformat())]
        )
