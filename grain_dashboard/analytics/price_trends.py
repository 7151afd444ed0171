"""
Trailing-window price trend per crop class.

Each crop class gets one point per distinct calendar date (the mean cash price of that day's
active entries), ordered by date, plus the absolute and percentage change between the first
and last points. Crop classes without any entries in the window are left out of the report.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Sequence

import pandas as pd

from grain_dashboard.analytics.models import CropClass, PriceEntry, PricePoint, PriceTrendReport
from grain_dashboard.analytics.repository import EntryRepository
from grain_dashboard.store.query import FetchError

logger = logging.getLogger(__name__)


def daily_average_points(entries: Sequence[PriceEntry]) -> list[PricePoint]:
    """Average same-date prices of active entries into points sorted ascending by date."""

    active = [entry for entry in entries if entry.is_active]
    if not active:
        return []

    frame = pd.DataFrame(
        {
            "date": [entry.date for entry in active],
            "cash_price": [float(entry.cash_price) for entry in active],
        }
    )
    daily = frame.groupby("date", sort=True)["cash_price"].mean()
    return [PricePoint(date=day, average_price=float(price)) for day, price in daily.items()]


def percent_change(first_price: float, last_price: float) -> float | None:
    """Percentage change from the first price; None when the first price is zero."""

    if first_price == 0:
        return None
    return (last_price - first_price) / first_price * 100


def build_price_trend(
    crop_class: CropClass, entries: Sequence[PriceEntry]
) -> PriceTrendReport | None:
    points = daily_average_points(entries)
    if not points:
        return None

    first_price = points[0].average_price
    last_price = points[-1].average_price
    return PriceTrendReport(
        crop_class_id=crop_class.id,
        crop_class_name=crop_class.name,
        crop_class_code=crop_class.code,
        data_points=points,
        absolute_change=last_price - first_price,
        percent_change=percent_change(first_price, last_price),
    )


async def compute_price_trends(
    repository: EntryRepository,
    *,
    now: dt.datetime,
    window_days: int,
) -> list[PriceTrendReport]:
    end_date = now.date()
    start_date = (now - dt.timedelta(days=window_days)).date()
    crop_classes = await repository.active_crop_classes(order_by_name=True)

    trends: list[PriceTrendReport] = []
    for crop_class in crop_classes:
        try:
            entries = await repository.class_entries_between(crop_class.id, start_date, end_date)
        except FetchError as exc:
            logger.warning("Skipping price trend for %s: %s", crop_class.name, exc)
            continue

        trend = build_price_trend(crop_class, entries)
        if trend is not None:
            trends.append(trend)

    logger.info(
        "Built %d price trends from %d crop classes (%s to %s)",
        len(trends),
        len(crop_classes),
        start_date,
        end_date,
    )
    return trends
