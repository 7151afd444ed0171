"""Headline counts and the trailing-window mean price shown above the dashboard charts."""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence

import pandas as pd

from grain_dashboard.analytics.models import DashboardStats, PriceEntry
from grain_dashboard.analytics.repository import EntryRepository
from grain_dashboard.store.query import eq, gte


def mean_cash_price(entries: Sequence[PriceEntry]) -> float:
    prices = pd.Series([float(entry.cash_price) for entry in entries if entry.is_active], dtype="float64")
    if prices.empty:
        return 0.0
    return float(prices.mean())


async def compute_summary_stats(
    repository: EntryRepository, *, now: dt.datetime, window_days: int
) -> DashboardStats:
    start_date = (now - dt.timedelta(days=window_days)).date()
    active = eq("is_active", True)

    total_entries = await repository.count_entries([active])
    active_crop_classes = await repository.count_reference_table(
        repository.config.crop_classes_table, [active]
    )
    recent_entries = await repository.count_entries([active, gte("date", start_date.isoformat())])
    recent = await repository.active_entries_since(start_date)

    return DashboardStats(
        total_entries=total_entries,
        active_crop_classes=active_crop_classes,
        recent_entries=recent_entries,
        average_price=mean_cash_price(recent),
    )
