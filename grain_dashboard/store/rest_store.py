# This file implements the record store interface against a PostgREST table service.
# It exists so repositories can query the hosted store without embedding URL syntax everywhere.
# The client translates QueryFilter/OrderBy into PostgREST operators and reads exact counts from Content-Range.
# Transport failures, rejected queries, and malformed payloads all surface as FetchError.

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

import requests

from grain_dashboard.store.query import FetchError, OrderBy, QueryFilter, validate_identifier

logger = logging.getLogger(__name__)

_RESERVED_CHARS = set(',()"\\ ')


class RestRecordStore:
    """PostgREST client backed by a shared `requests.Session`."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        timeout_seconds: int = 15,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def select(
        self,
        table: str,
        *,
        columns: Sequence[str] | None = None,
        filters: Sequence[QueryFilter] = (),
        order_by: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params = [("select", ",".join(columns) if columns else "*")]
        params.extend(build_filter_params(filters))
        if order_by:
            params.append(("order", build_order_param(order_by)))
        if limit is not None:
            params.append(("limit", str(limit)))

        response = self._send("GET", table, params=params)
        payload = self._json(response, table)
        if not isinstance(payload, list):
            raise FetchError(f"Unexpected payload shape from table {table!r}", table=table)
        return [dict(row) for row in payload]

    def count(self, table: str, *, filters: Sequence[QueryFilter] = ()) -> int:
        params = [("select", "*")]
        params.extend(build_filter_params(filters))
        response = self._send("HEAD", table, params=params, extra_headers={"Prefer": "count=exact"})
        return parse_content_range_total(response.headers.get("Content-Range"), table=table)

    def update(
        self, table: str, values: dict[str, Any], *, filters: Sequence[QueryFilter]
    ) -> None:
        if not filters:
            raise ValueError("Refusing to update without filters.")
        params = build_filter_params(filters)
        self._send(
            "PATCH",
            table,
            params=params,
            json_body={key: _json_value(value) for key, value in values.items()},
            extra_headers={"Prefer": "return=minimal"},
        )

    def can_connect(self) -> bool:
        try:
            response = self.session.request(
                "GET",
                f"{self.base_url}/rest/v1/",
                headers=self._headers(),
                timeout=self.timeout_seconds,
            )
        except requests.RequestException:
            return False
        return response.status_code < 500

    def _send(
        self,
        method: str,
        table: str,
        *,
        params: list[tuple[str, str]],
        json_body: dict[str, Any] | None = None,
        extra_headers: dict[str, str] | None = None,
    ) -> requests.Response:
        validate_identifier(table)
        url = f"{self.base_url}/rest/v1/{table}"
        headers = self._headers()
        if extra_headers:
            headers.update(extra_headers)

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise FetchError(f"Record store request failed for {table!r}: {exc}", table=table) from exc

        if response.status_code >= 400:
            raise FetchError(
                f"Record store rejected {method} on {table!r} with status "
                f"{response.status_code}: {_error_message(response)}",
                table=table,
            )
        logger.debug("%s %s -> %s", method, table, response.status_code)
        return response

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    @staticmethod
    def _json(response: requests.Response, table: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(f"Record store did not return valid JSON for {table!r}", table=table) from exc


def build_filter_params(filters: Sequence[QueryFilter]) -> list[tuple[str, str]]:
    """Translate filters into PostgREST query parameters."""

    params: list[tuple[str, str]] = []
    for query_filter in filters:
        if query_filter.operator == "not_null":
            params.append((query_filter.column, "not.is.null"))
        elif query_filter.operator == "in":
            values = ",".join(_in_value(value) for value in query_filter.value)
            params.append((query_filter.column, f"in.({values})"))
        else:
            params.append(
                (query_filter.column, f"{query_filter.operator}.{_format_value(query_filter.value)}")
            )
    return params


def build_order_param(order_by: Sequence[OrderBy]) -> str:
    return ",".join(
        f"{order.column}.{'desc' if order.descending else 'asc'}" for order in order_by
    )


def parse_content_range_total(header: str | None, *, table: str) -> int:
    """Read the total from a `Content-Range: 0-24/3573` or `*/0` header."""

    if not header or "/" not in header:
        raise FetchError(f"Record store did not return a row count for {table!r}", table=table)
    total = header.rsplit("/", 1)[1]
    if not total.isdigit():
        raise FetchError(f"Record store returned an inexact row count for {table!r}", table=table)
    return int(total)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _in_value(value: Any) -> str:
    text = _format_value(value)
    if any(char in _RESERVED_CHARS for char in text):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


def _json_value(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] if response.text else "no details"
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or payload)
    return str(payload)
