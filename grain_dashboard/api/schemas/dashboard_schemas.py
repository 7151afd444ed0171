# This file defines dashboard endpoint schemas wrapping the aggregation engine's report models.
# Reusing the engine models keeps the HTTP contract and the computed reports from drifting apart.

from __future__ import annotations

from grain_dashboard.analytics.models import (
    DashboardSnapshot,
    DashboardStats,
    DeliveryMonthTrend,
    ElevatorPerformanceReport,
    PriceTrendReport,
)
from grain_dashboard.api.schemas.common import EnvelopeFields


class DashboardSnapshotResponseV1(EnvelopeFields):
    data: DashboardSnapshot


class DashboardStatsResponseV1(EnvelopeFields):
    data: DashboardStats


class PriceTrendListResponseV1(EnvelopeFields):
    data: list[PriceTrendReport]


class ElevatorPerformanceResponseV1(EnvelopeFields):
    data: ElevatorPerformanceReport


class DeliveryMonthTrendListResponseV1(EnvelopeFields):
    data: list[DeliveryMonthTrend]
