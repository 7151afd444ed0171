# This file defines the record types read from the store and the report types the dashboard returns.
# Store rows become frozen dataclasses; derived reports are immutable Pydantic models so the API can serialize them directly.

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _parse_date(value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(str(value)[:10])


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class PriceEntry:
    date: dt.date
    cash_price: Decimal
    class_id: str | None = None
    elevator_id: str | None = None
    town_id: str | None = None
    delivery_month: str | None = None
    delivery_year: int | None = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> PriceEntry:
        month = row.get("month")
        return cls(
            date=_parse_date(row["date"]),
            cash_price=Decimal(str(row["cash_price"])),
            class_id=None if row.get("class_id") is None else str(row["class_id"]),
            elevator_id=None if row.get("elevator_id") is None else str(row["elevator_id"]),
            town_id=None if row.get("town_id") is None else str(row["town_id"]),
            delivery_month=None if month is None else str(month).strip(),
            delivery_year=_optional_int(row.get("year")),
            is_active=bool(row.get("is_active", True)),
        )


@dataclass(frozen=True)
class CropClass:
    id: str
    name: str
    code: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> CropClass:
        code = row.get("code")
        return cls(id=str(row["id"]), name=str(row["name"]), code=None if code is None else str(code))


@dataclass(frozen=True)
class Region:
    id: str
    name: str

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Region:
        return cls(id=str(row["id"]), name=str(row["name"]))


@dataclass(frozen=True)
class ElevatorPrice:
    """A price observation joined to the name of the elevator that posted it."""

    elevator_id: str
    elevator_name: str
    cash_price: Decimal


class _Report(BaseModel):
    model_config = ConfigDict(frozen=True)


class PricePoint(_Report):
    date: dt.date
    average_price: float


class PriceTrendReport(_Report):
    crop_class_id: str
    crop_class_name: str
    crop_class_code: str | None = None
    data_points: list[PricePoint]
    absolute_change: float
    percent_change: float | None = None


class ElevatorPerformanceEntry(_Report):
    elevator_id: str
    elevator_name: str
    crop_class_id: str
    crop_class_name: str
    region_id: str
    region_name: str
    average_price: float
    entry_count: int = Field(ge=1)
    rank: int = Field(ge=1)


class ElevatorPerformanceReport(_Report):
    top: list[ElevatorPerformanceEntry] = Field(default_factory=list)
    bottom: list[ElevatorPerformanceEntry] = Field(default_factory=list)


class DeliveryMonthTrend(_Report):
    delivery_month: str
    delivery_year: int
    average_price: float
    entry_count: int = Field(ge=1)
    sort_key: int


class DashboardStats(_Report):
    total_entries: int = Field(ge=0)
    active_crop_classes: int = Field(ge=0)
    recent_entries: int = Field(ge=0)
    average_price: float


class ComputationError(_Report):
    computation: str
    message: str
    detail: str | None = None


class DashboardSnapshot(_Report):
    stats: DashboardStats | None = None
    price_trends: list[PriceTrendReport] = Field(default_factory=list)
    top_elevators: list[ElevatorPerformanceEntry] = Field(default_factory=list)
    bottom_elevators: list[ElevatorPerformanceEntry] = Field(default_factory=list)
    delivery_month_trends: list[DeliveryMonthTrend] = Field(default_factory=list)
    loading: bool = False
    error: str | None = None
    errors: list[ComputationError] = Field(default_factory=list)
