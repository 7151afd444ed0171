# This file defines runtime configuration for the dashboard aggregation engine.
# It exists so table names, trailing windows, and ranking caps can be tuned through environment variables.
# Table names are validated as SQL identifiers because both store backends interpolate them into requests.

from __future__ import annotations

import os
from dataclasses import dataclass, fields

from dotenv import load_dotenv

from grain_dashboard.store.query import validate_identifier


@dataclass(frozen=True)
class AnalyticsConfig:
    entries_table: str = "grain_entries"
    crop_classes_table: str = "crop_classes"
    regions_table: str = "master_regions"
    town_regions_table: str = "town_regions"
    elevators_table: str = "master_elevators"
    trend_window_days: int = 30
    top_performer_count: int = 5
    delivery_month_row_cap: int = 1000
    delivery_month_bucket_limit: int = 12

    def __post_init__(self) -> None:
        for field in fields(self):
            value = getattr(self, field.name)
            if field.name.endswith("_table"):
                validate_identifier(value)
            elif value <= 0:
                raise ValueError(f"{field.name} must be greater than 0.")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def load_analytics_config(*, load_env: bool = True) -> AnalyticsConfig:
    if load_env:
        load_dotenv()

    defaults = AnalyticsConfig()
    return AnalyticsConfig(
        entries_table=os.getenv("ANALYTICS_ENTRIES_TABLE", defaults.entries_table),
        crop_classes_table=os.getenv("ANALYTICS_CROP_CLASSES_TABLE", defaults.crop_classes_table),
        regions_table=os.getenv("ANALYTICS_REGIONS_TABLE", defaults.regions_table),
        town_regions_table=os.getenv("ANALYTICS_TOWN_REGIONS_TABLE", defaults.town_regions_table),
        elevators_table=os.getenv("ANALYTICS_ELEVATORS_TABLE", defaults.elevators_table),
        trend_window_days=_env_int("ANALYTICS_TREND_WINDOW_DAYS", defaults.trend_window_days),
        top_performer_count=_env_int("ANALYTICS_TOP_PERFORMER_COUNT", defaults.top_performer_count),
        delivery_month_row_cap=_env_int(
            "ANALYTICS_DELIVERY_MONTH_ROW_CAP", defaults.delivery_month_row_cap
        ),
        delivery_month_bucket_limit=_env_int(
            "ANALYTICS_DELIVERY_MONTH_BUCKET_LIMIT", defaults.delivery_month_bucket_limit
        ),
    )
