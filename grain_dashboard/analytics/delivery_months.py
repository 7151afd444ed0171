"""
Delivery-month price trend.

The most recent capped slice of active entries with a delivery month and year is bucketed by
(month, year). Buckets are ordered by `year * 100 + month index` so chronology never depends
on string collation, and the newest buckets are returned first.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Final

import pandas as pd

from grain_dashboard.analytics.models import DeliveryMonthTrend, PriceEntry
from grain_dashboard.analytics.repository import EntryRepository

logger = logging.getLogger(__name__)

CALENDAR_MONTHS: Final[tuple[str, ...]] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)
_MONTH_INDEX: Final[dict[str, int]] = {month: index for index, month in enumerate(CALENDAR_MONTHS)}


def month_sort_key(month: str, year: int) -> int:
    if month not in _MONTH_INDEX:
        raise ValueError(f"Unknown delivery month token: {month!r}")
    return year * 100 + _MONTH_INDEX[month]


def bucket_delivery_months(
    entries: Sequence[PriceEntry], *, bucket_limit: int
) -> list[DeliveryMonthTrend]:
    """Newest-first delivery-month buckets with mean price and entry count."""

    usable = [
        entry
        for entry in entries
        if entry.is_active and entry.delivery_month is not None and entry.delivery_year is not None
    ]
    unknown = [entry for entry in usable if entry.delivery_month not in _MONTH_INDEX]
    if unknown:
        tokens = sorted({str(entry.delivery_month) for entry in unknown})
        logger.warning("Dropping %d entries with unknown delivery months: %s", len(unknown), tokens)
        usable = [entry for entry in usable if entry.delivery_month in _MONTH_INDEX]
    if not usable:
        return []

    frame = pd.DataFrame(
        {
            "delivery_month": [entry.delivery_month for entry in usable],
            "delivery_year": [entry.delivery_year for entry in usable],
            "cash_price": [float(entry.cash_price) for entry in usable],
        }
    )
    buckets = (
        frame.groupby(["delivery_month", "delivery_year"], sort=False)
        .agg(average_price=("cash_price", "mean"), entry_count=("cash_price", "size"))
        .reset_index()
    )
    buckets["sort_key"] = buckets["delivery_year"] * 100 + buckets["delivery_month"].map(_MONTH_INDEX)
    newest = buckets.sort_values("sort_key", ascending=False, kind="mergesort").head(bucket_limit)

    return [
        DeliveryMonthTrend(
            delivery_month=str(row.delivery_month),
            delivery_year=int(row.delivery_year),
            average_price=float(row.average_price),
            entry_count=int(row.entry_count),
            sort_key=int(row.sort_key),
        )
        for row in newest.itertuples(index=False)
    ]


async def compute_delivery_month_trends(
    repository: EntryRepository, *, row_cap: int, bucket_limit: int
) -> list[DeliveryMonthTrend]:
    entries = await repository.recent_delivery_entries(row_cap=row_cap)
    if len(entries) >= row_cap:
        logger.info("Delivery-month trend hit the %d row cap; older months may be missing", row_cap)
    return bucket_delivery_months(entries, bucket_limit=bucket_limit)
