# This file composes the dashboard snapshot from the four independent computations.
# It exists so the API and CLI get one immutable result instead of juggling loading and error state themselves.
# The computations run together in one task group; a failure in one is recorded and never cancels the others.
# Unauthenticated callers receive an empty snapshot without any store traffic.

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Final

from grain_dashboard.analytics.analytics_config import AnalyticsConfig
from grain_dashboard.analytics.delivery_months import compute_delivery_month_trends
from grain_dashboard.analytics.elevator_rankings import compute_elevator_performance
from grain_dashboard.analytics.models import (
    ComputationError,
    DashboardSnapshot,
    DashboardStats,
    DeliveryMonthTrend,
    ElevatorPerformanceReport,
    PriceTrendReport,
)
from grain_dashboard.analytics.price_trends import compute_price_trends
from grain_dashboard.analytics.repository import EntryRepository
from grain_dashboard.analytics.summary_stats import compute_summary_stats
from grain_dashboard.auth.session_client import CallerIdentity

logger = logging.getLogger(__name__)

COMPUTATION_ORDER: Final[tuple[str, ...]] = (
    "stats",
    "price_trends",
    "elevator_performance",
    "delivery_months",
)

FAILURE_MESSAGES: Final[dict[str, str]] = {
    "stats": "Failed to load dashboard statistics",
    "price_trends": "Failed to load price trends",
    "elevator_performance": "Failed to load elevator performance",
    "delivery_months": "Failed to load delivery month trends",
}


def _utc_now() -> dt.datetime:
    return dt.datetime.now(tz=dt.UTC)


class DashboardComposer:
    def __init__(
        self,
        *,
        repository: EntryRepository,
        config: AnalyticsConfig,
        clock: Callable[[], dt.datetime] = _utc_now,
    ) -> None:
        self.repository = repository
        self.config = config
        self.clock = clock

    async def stats(self, *, now: dt.datetime | None = None) -> DashboardStats:
        return await compute_summary_stats(
            self.repository,
            now=now or self.clock(),
            window_days=self.config.trend_window_days,
        )

    async def price_trends(self, *, now: dt.datetime | None = None) -> list[PriceTrendReport]:
        return await compute_price_trends(
            self.repository,
            now=now or self.clock(),
            window_days=self.config.trend_window_days,
        )

    async def elevator_performance(self) -> ElevatorPerformanceReport:
        return await compute_elevator_performance(
            self.repository, top_n=self.config.top_performer_count
        )

    async def delivery_month_trends(self) -> list[DeliveryMonthTrend]:
        return await compute_delivery_month_trends(
            self.repository,
            row_cap=self.config.delivery_month_row_cap,
            bucket_limit=self.config.delivery_month_bucket_limit,
        )

    async def compose(
        self, caller: CallerIdentity | None, *, now: dt.datetime | None = None
    ) -> DashboardSnapshot:
        """Run every dashboard computation and return one settled snapshot."""

        if caller is None:
            return DashboardSnapshot()

        evaluated_at = now or self.clock()
        results: dict[str, Any] = {}
        failures: dict[str, ComputationError] = {}

        async def run(name: str, computation: Callable[[], Awaitable[Any]]) -> None:
            try:
                results[name] = await computation()
            except Exception as exc:
                logger.exception("Dashboard computation %s failed", name)
                failures[name] = ComputationError(
                    computation=name, message=FAILURE_MESSAGES[name], detail=str(exc)
                )

        computations: dict[str, Callable[[], Awaitable[Any]]] = {
            "stats": lambda: self.stats(now=evaluated_at),
            "price_trends": lambda: self.price_trends(now=evaluated_at),
            "elevator_performance": self.elevator_performance,
            "delivery_months": self.delivery_month_trends,
        }
        async with asyncio.TaskGroup() as group:
            for name in COMPUTATION_ORDER:
                group.create_task(run(name, computations[name]))

        errors = [failures[name] for name in COMPUTATION_ORDER if name in failures]
        elevators: ElevatorPerformanceReport = results.get(
            "elevator_performance", ElevatorPerformanceReport()
        )
        logger.info(
            "Composed dashboard for %s with %d failed computations", caller.user_id, len(errors)
        )
        return DashboardSnapshot(
            stats=results.get("stats"),
            price_trends=results.get("price_trends", []),
            top_elevators=elevators.top,
            bottom_elevators=elevators.bottom,
            delivery_month_trends=results.get("delivery_months", []),
            loading=False,
            error=errors[-1].message if errors else None,
            errors=errors,
        )
