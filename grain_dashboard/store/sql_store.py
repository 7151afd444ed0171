# This file implements the record store interface directly on a relational database.
# It exists so the dashboard can run against the Postgres instance behind the hosted table service, or a local copy.
# Queries are parameterized SQLAlchemy `text()` statements with validated identifiers and expanding IN lists.
# Any SQLAlchemy failure is converted into FetchError so callers see one failure type per store.

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import bindparam, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.elements import TextClause

from grain_dashboard.store.query import FetchError, OrderBy, QueryFilter, validate_identifier

_SQL_OPERATORS = {"eq": "=", "gte": ">=", "lte": "<="}


class SqlRecordStore:
    """Minimal SQLAlchemy wrapper exposing the record store operations."""

    def __init__(self, *, database_url: str | None = None, engine: Engine | None = None) -> None:
        if engine is None:
            if not database_url:
                raise ValueError("database_url or engine is required.")
            engine = create_engine(database_url, pool_pre_ping=True, future=True)
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def can_connect(self) -> bool:
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    def select(
        self,
        table: str,
        *,
        columns: Sequence[str] | None = None,
        filters: Sequence[QueryFilter] = (),
        order_by: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        safe_table = validate_identifier(table)
        column_sql = ", ".join(validate_identifier(column) for column in columns) if columns else "*"
        where_sql, params, expanding = build_where_clause(filters)

        query = f"SELECT {column_sql} FROM {safe_table}{where_sql}"
        if order_by:
            order_sql = ", ".join(
                f"{order.column} {'DESC' if order.descending else 'ASC'}" for order in order_by
            )
            query += f" ORDER BY {order_sql}"
        if limit is not None:
            query += " LIMIT :row_limit"
            params["row_limit"] = int(limit)

        statement = _statement(query, expanding)
        try:
            with self._engine.connect() as connection:
                rows = connection.execute(statement, params).mappings().all()
        except SQLAlchemyError as exc:
            raise FetchError(f"Query against {safe_table!r} failed: {exc}", table=safe_table) from exc
        return [dict(row) for row in rows]

    def count(self, table: str, *, filters: Sequence[QueryFilter] = ()) -> int:
        safe_table = validate_identifier(table)
        where_sql, params, expanding = build_where_clause(filters)
        statement = _statement(f"SELECT COUNT(*) AS row_count FROM {safe_table}{where_sql}", expanding)
        try:
            with self._engine.connect() as connection:
                return int(connection.execute(statement, params).scalar_one())
        except SQLAlchemyError as exc:
            raise FetchError(f"Count against {safe_table!r} failed: {exc}", table=safe_table) from exc

    def update(
        self, table: str, values: dict[str, Any], *, filters: Sequence[QueryFilter]
    ) -> None:
        if not filters:
            raise ValueError("Refusing to update without filters.")
        if not values:
            raise ValueError("No values to update.")
        safe_table = validate_identifier(table)
        where_sql, params, expanding = build_where_clause(filters)

        assignments: list[str] = []
        for column, value in values.items():
            param_name = f"set_{validate_identifier(column)}"
            assignments.append(f"{column} = :{param_name}")
            params[param_name] = value

        statement = _statement(
            f"UPDATE {safe_table} SET {', '.join(assignments)}{where_sql}", expanding
        )
        try:
            with self._engine.begin() as connection:
                connection.execute(statement, params)
        except SQLAlchemyError as exc:
            raise FetchError(f"Update against {safe_table!r} failed: {exc}", table=safe_table) from exc


def build_where_clause(
    filters: Sequence[QueryFilter],
) -> tuple[str, dict[str, Any], list[str]]:
    """Return the WHERE fragment, bound parameters, and names of expanding parameters."""

    clauses: list[str] = []
    params: dict[str, Any] = {}
    expanding: list[str] = []

    for index, query_filter in enumerate(filters):
        param_name = f"p{index}"
        if query_filter.operator == "not_null":
            clauses.append(f"{query_filter.column} IS NOT NULL")
        elif query_filter.operator == "in":
            clauses.append(f"{query_filter.column} IN :{param_name}")
            params[param_name] = list(query_filter.value)
            expanding.append(param_name)
        else:
            clauses.append(f"{query_filter.column} {_SQL_OPERATORS[query_filter.operator]} :{param_name}")
            params[param_name] = query_filter.value

    where_sql = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    return where_sql, params, expanding


def _statement(query: str, expanding: list[str]) -> TextClause:
    statement = text(query)
    if expanding:
        statement = statement.bindparams(*(bindparam(name, expanding=True) for name in expanding))
    return statement
