"""
Unit tests for dashboard snapshot composition.
It asserts expected behavior and guards against regressions in the corresponding component.
These tests are executed by `pytest` locally and in CI and should remain deterministic.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import Any

from grain_dashboard.analytics.composer import COMPUTATION_ORDER, FAILURE_MESSAGES
from grain_dashboard.auth.session_client import CallerIdentity
from grain_dashboard.store.query import QueryFilter
from tests.analytics.support import InMemoryRecordStore, build_composer, run, sample_tables

CALLER = CallerIdentity(user_id="user-1", email="grower@example.com")


def test_snapshot_contains_every_computation() -> None:
    composer = build_composer(InMemoryRecordStore(sample_tables()))

    snapshot = run(composer.compose(CALLER))

    assert snapshot.stats is not None
    assert snapshot.stats.total_entries == 6
    assert [trend.crop_class_name for trend in snapshot.price_trends] == ["Canola", "Wheat"]
    assert snapshot.top_elevators
    assert snapshot.bottom_elevators
    assert snapshot.delivery_month_trends[0].delivery_month == "Apr"
    assert snapshot.loading is False
    assert snapshot.error is None
    assert snapshot.errors == []


def test_repeated_composition_is_identical() -> None:
    composer = build_composer(InMemoryRecordStore(sample_tables()))

    first = run(composer.compose(CALLER))
    second = run(composer.compose(CALLER))

    assert first.model_dump_json() == second.model_dump_json()


def test_anonymous_caller_gets_empty_snapshot_without_store_reads() -> None:
    store = InMemoryRecordStore(sample_tables())
    composer = build_composer(store)

    snapshot = run(composer.compose(None))

    assert snapshot.stats is None
    assert snapshot.price_trends == []
    assert snapshot.top_elevators == []
    assert snapshot.delivery_month_trends == []
    assert snapshot.error is None
    assert store.calls == []


def test_elevator_failure_leaves_other_results_intact() -> None:
    store = InMemoryRecordStore(sample_tables(), failing_tables={"master_regions"})
    composer = build_composer(store)

    snapshot = run(composer.compose(CALLER))

    assert snapshot.stats is not None
    assert snapshot.price_trends
    assert snapshot.delivery_month_trends
    assert snapshot.top_elevators == []
    assert snapshot.bottom_elevators == []
    assert [error.computation for error in snapshot.errors] == ["elevator_performance"]
    assert snapshot.error == "Failed to load elevator performance"


def test_multiple_failures_are_reported_in_fixed_order() -> None:
    store = InMemoryRecordStore(sample_tables(), failing_tables={"grain_entries", "crop_classes"})
    composer = build_composer(store)

    snapshot = run(composer.compose(CALLER))

    assert [error.computation for error in snapshot.errors] == list(COMPUTATION_ORDER)
    assert snapshot.error == FAILURE_MESSAGES["delivery_months"]
    assert snapshot.errors[0].detail == "grain_entries is unavailable"
    assert snapshot.stats is None


class _RendezvousStore(InMemoryRecordStore):
    """Holds the first stats count until the elevator ranking has read the regions table."""

    def __init__(self, tables: dict[str, list[dict[str, Any]]]) -> None:
        super().__init__(tables)
        self.regions_read = threading.Event()
        self.saw_regions_before_stats: bool | None = None

    def count(self, table: str, *, filters: Sequence[QueryFilter] = ()) -> int:
        if table == "grain_entries" and self.saw_regions_before_stats is None:
            self.saw_regions_before_stats = self.regions_read.wait(timeout=5)
        return super().count(table, filters=filters)

    def select(self, table: str, **kwargs: Any) -> list[dict[str, Any]]:
        rows = super().select(table, **kwargs)
        if table == "master_regions":
            self.regions_read.set()
        return rows


def test_computations_are_in_flight_together() -> None:
    store = _RendezvousStore(sample_tables())
    composer = build_composer(store)

    snapshot = run(composer.compose(CALLER))

    assert store.saw_regions_before_stats is True
    assert snapshot.errors == []
    assert snapshot.stats is not None
    assert snapshot.top_elevators
