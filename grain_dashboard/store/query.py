# This file defines the query vocabulary shared by every record store backend.
# It exists so repositories can describe filters and ordering once and run them against REST or SQL stores.
# Only the operators the dashboard needs are supported: equality, ranges, not-null, and IN over an ID set.
# FetchError is the single failure type callers handle when a store is unreachable or rejects a query.

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

SUPPORTED_OPERATORS = frozenset({"eq", "gte", "lte", "not_null", "in"})


class FetchError(RuntimeError):
    """Raised when the record store is unavailable or rejects a query."""

    def __init__(self, message: str, *, table: str | None = None) -> None:
        self.table = table
        super().__init__(message)


@dataclass(frozen=True)
class QueryFilter:
    column: str
    operator: str
    value: Any = None

    def __post_init__(self) -> None:
        validate_identifier(self.column)
        if self.operator not in SUPPORTED_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.operator!r}")
        if self.operator == "in":
            object.__setattr__(self, "value", tuple(self.value))

    def matches(self, row: dict[str, Any]) -> bool:
        """Evaluate the filter against an in-memory row."""

        actual = row.get(self.column)
        if self.operator == "not_null":
            return actual is not None
        if actual is None:
            return False
        if self.operator == "eq":
            return bool(actual == self.value)
        if self.operator == "gte":
            return bool(actual >= self.value)
        if self.operator == "lte":
            return bool(actual <= self.value)
        return actual in self.value


@dataclass(frozen=True)
class OrderBy:
    column: str
    descending: bool = False

    def __post_init__(self) -> None:
        validate_identifier(self.column)


class RecordStore(Protocol):
    """Queryable table service used by repositories and the admin service."""

    def select(
        self,
        table: str,
        *,
        columns: Sequence[str] | None = None,
        filters: Sequence[QueryFilter] = (),
        order_by: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...

    def count(self, table: str, *, filters: Sequence[QueryFilter] = ()) -> int: ...

    def update(
        self, table: str, values: dict[str, Any], *, filters: Sequence[QueryFilter]
    ) -> None: ...

    def can_connect(self) -> bool: ...


def eq(column: str, value: Any) -> QueryFilter:
    return QueryFilter(column, "eq", value)


def gte(column: str, value: Any) -> QueryFilter:
    return QueryFilter(column, "gte", value)


def lte(column: str, value: Any) -> QueryFilter:
    return QueryFilter(column, "lte", value)


def not_null(column: str) -> QueryFilter:
    return QueryFilter(column, "not_null")


def is_in(column: str, values: Iterable[Any]) -> QueryFilter:
    return QueryFilter(column, "in", tuple(values))


def validate_identifier(identifier: str) -> str:
    if not _IDENTIFIER_RE.match(identifier):
        raise ValueError(f"Unsafe SQL identifier: {identifier!r}")
    return identifier
