"""
Top and bottom elevator rankings per crop class and region.

For every (crop class, region) pair the active entries posted in the region's towns are
grouped by elevator. Elevators are ranked by mean cash price; the top list runs from the
highest mean down and the bottom list from the lowest mean up. Equal means are ordered
by elevator id ascending in both lists so repeated runs rank ties identically.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import pandas as pd

from grain_dashboard.analytics.models import (
    CropClass,
    ElevatorPerformanceEntry,
    ElevatorPerformanceReport,
    ElevatorPrice,
    Region,
)
from grain_dashboard.analytics.repository import EntryRepository
from grain_dashboard.store.query import FetchError

logger = logging.getLogger(__name__)


def summarize_elevators(prices: Sequence[ElevatorPrice]) -> pd.DataFrame:
    """One row per elevator with its name, mean price, and entry count."""

    frame = pd.DataFrame(
        {
            "elevator_id": [price.elevator_id for price in prices],
            "elevator_name": [price.elevator_name for price in prices],
            "cash_price": [float(price.cash_price) for price in prices],
        }
    )
    return (
        frame.groupby("elevator_id", sort=False)
        .agg(
            elevator_name=("elevator_name", "first"),
            average_price=("cash_price", "mean"),
            entry_count=("cash_price", "size"),
        )
        .reset_index()
    )


def rank_elevators(
    prices: Sequence[ElevatorPrice],
    *,
    crop_class: CropClass,
    region: Region,
    top_n: int,
) -> tuple[list[ElevatorPerformanceEntry], list[ElevatorPerformanceEntry]]:
    """Return (top, bottom) performer lists for one crop class and region."""

    if not prices:
        return [], []

    summary = summarize_elevators(prices)
    highest_first = summary.sort_values(
        ["average_price", "elevator_id"], ascending=[False, True]
    ).head(top_n)
    lowest_first = summary.sort_values(
        ["average_price", "elevator_id"], ascending=[True, True]
    ).head(top_n)

    return (
        _to_entries(highest_first, crop_class=crop_class, region=region),
        _to_entries(lowest_first, crop_class=crop_class, region=region),
    )


def _to_entries(
    ranked: pd.DataFrame, *, crop_class: CropClass, region: Region
) -> list[ElevatorPerformanceEntry]:
    return [
        ElevatorPerformanceEntry(
            elevator_id=str(row.elevator_id),
            elevator_name=str(row.elevator_name),
            crop_class_id=crop_class.id,
            crop_class_name=crop_class.name,
            region_id=region.id,
            region_name=region.name,
            average_price=float(row.average_price),
            entry_count=int(row.entry_count),
            rank=rank,
        )
        for rank, row in enumerate(ranked.itertuples(index=False), start=1)
    ]


async def compute_elevator_performance(
    repository: EntryRepository, *, top_n: int
) -> ElevatorPerformanceReport:
    crop_classes = await repository.active_crop_classes()
    regions = await repository.active_regions()

    top: list[ElevatorPerformanceEntry] = []
    bottom: list[ElevatorPerformanceEntry] = []

    for crop_class in crop_classes:
        for region in regions:
            try:
                town_ids = await repository.active_town_ids(region.id)
                if not town_ids:
                    continue
                prices = await repository.elevator_prices(crop_class.id, town_ids)
            except FetchError as exc:
                logger.warning(
                    "Skipping elevator ranking for %s in %s: %s", crop_class.name, region.name, exc
                )
                continue

            pair_top, pair_bottom = rank_elevators(
                prices, crop_class=crop_class, region=region, top_n=top_n
            )
            top.extend(pair_top)
            bottom.extend(pair_bottom)

    logger.info(
        "Ranked elevators for %d crop classes x %d regions (%d top rows, %d bottom rows)",
        len(crop_classes),
        len(regions),
        len(top),
        len(bottom),
    )
    return ElevatorPerformanceReport(top=top, bottom=bottom)
