"""
RestBackend — hosted database-as-a-service over httpx (PostgREST dialect).

Request shape:
    GET    {base}/rest/v1/{table}?select=*&status=eq.active&order=created_at.desc
    POST   {base}/rest/v1/{table}            Prefer: return=representation
    PATCH  {base}/rest/v1/{table}?id=eq.X    Prefer: return=representation
    DELETE {base}/rest/v1/{table}?id=eq.X    Prefer: return=representation
    HEAD   {base}/rest/v1/{table}            Prefer: count=exact → Content-Range

Every request carries ``apikey`` and ``Authorization: Bearer <token>``; the
token decides which rows the backend's row-level security lets through.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import httpx

from projectai.backend.client import BackendClient
from projectai.backend.query import Filter, Query
from projectai.engine.errors import ProjectAIBackendError

logger = logging.getLogger("projectai.backend.rest")


def _jsonable(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _literal(value: Any) -> str:
    value = _jsonable(value)
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)


def _quote_list_item(value: Any) -> str:
    text = _literal(value)
    if any(c in text for c in ',()"'):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def encode_filter(f: Filter) -> str:
    """Filter → PostgREST operator expression (``eq.active``, ``in.(a,b)``)."""
    if f.value is None and f.op in ("eq", "neq"):
        return "is.null" if f.op == "eq" else "not.is.null"
    if f.op == "in":
        return "in.(" + ",".join(_quote_list_item(v) for v in f.value) + ")"
    if f.op == "ilike":
        return "ilike." + _literal(f.value).replace("%", "*")
    return f"{f.op}.{_literal(f.value)}"


def encode_query_params(query: Query, include_select: bool = True) -> List[Tuple[str, str]]:
    """Query → ordered list of URL parameters."""
    params: List[Tuple[str, str]] = []
    if include_select:
        params.append(("select", query.columns))
    for f in query.filters:
        params.append((f.column, encode_filter(f)))
    if query.any_of:
        inner = ",".join(f"{f.column}.{encode_filter(f)}" for f in query.any_of)
        params.append(("or", f"({inner})"))
    if query.orders:
        params.append((
            "order",
            ",".join(f"{o.column}.{'asc' if o.ascending else 'desc'}" for o in query.orders),
        ))
    if query.limit_to is not None:
        params.append(("limit", str(query.limit_to)))
    return params


class RestBackend(BackendClient):
    """Synchronous PostgREST client with a pooled httpx.Client."""

    name = "rest"

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        access_token: Optional[str] = None,
        timeout: float = 15.0,
        schema: str = "public",
        user_id: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(user_id=user_id)
        headers = {
            "apikey": anon_key,
            "Authorization": f"Bearer {access_token or anon_key}",
            "Accept": "application/json",
        }
        if schema and schema != "public":
            headers["Accept-Profile"] = schema
            headers["Content-Profile"] = schema
        self._client = httpx.Client(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers=headers,
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    def _request(
        self,
        method: str,
        table: str,
        operation: str,
        params: List[Tuple[str, str]],
        json_body: Any = None,
        prefer: Optional[str] = None,
    ) -> httpx.Response:
        headers = {"Prefer": prefer} if prefer else {}
        try:
            response = self._client.request(
                method, f"/{table}", params=params, json=json_body, headers=headers,
            )
        except httpx.HTTPError as e:
            raise ProjectAIBackendError(
                f"Backend request failed: {e}", table=table, operation=operation,
            )
        if response.status_code >= 400:
            raise ProjectAIBackendError(
                self._error_message(response),
                table=table,
                operation=operation,
                status_code=response.status_code,
                response_body=response.text,
            )
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}: {response.text[:200]}"
        if isinstance(body, dict):
            return body.get("message") or body.get("error_description") or body.get("error") or str(body)
        return str(body)

    @staticmethod
    def _rows(response: httpx.Response) -> List[Dict[str, Any]]:
        if not response.content:
            return []
        data = response.json()
        if isinstance(data, dict):
            return [data]
        return list(data)

    def _do_select(self, query: Query) -> List[Dict[str, Any]]:
        response = self._request("GET", query.table, "select", encode_query_params(query))
        return self._rows(response)

    def _do_insert(self, table: str, values: Dict[str, Any]) -> List[Dict[str, Any]]:
        response = self._request(
            "POST", table, "insert", [("select", "*")],
            json_body=_jsonable(values), prefer="return=representation",
        )
        return self._rows(response)

    def _do_update(self, query: Query, values: Dict[str, Any]) -> List[Dict[str, Any]]:
        response = self._request(
            "PATCH", query.table, "update", encode_query_params(query),
            json_body=_jsonable(values), prefer="return=representation",
        )
        return self._rows(response)

    def _do_delete(self, query: Query) -> int:
        response = self._request(
            "DELETE", query.table, "delete", encode_query_params(query),
            prefer="return=representation",
        )
        return len(self._rows(response))

    def _do_count(self, query: Query) -> int:
        response = self._request(
            "HEAD", query.table, "count", encode_query_params(query, include_select=False),
            prefer="count=exact",
        )
        content_range = response.headers.get("content-range", "")
        total = content_range.rsplit("/", 1)[-1] if "/" in content_range else ""
        if not total.isdigit():
            raise ProjectAIBackendError(
                f"Backend did not return a count (Content-Range: {content_range!r})",
                table=query.table, operation="count", status_code=response.status_code,
            )
        return int(total)

    def close(self) -> None:
        self._client.close()
