"""
SqlBackend — the backend interface over a local SQL database (SQLAlchemy Core).

Rows come back in the same JSON shape the hosted backend returns: dates and
timestamps as ISO strings, ids as strings. There is no row-level security
here; sql mode is for local development, seeding and tests.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List

from sqlalchemy import Date, DateTime, and_, delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from projectai.backend.client import BackendClient
from projectai.backend.query import Filter, Query
from projectai.db.base import new_id
from projectai.db.models import TABLE_MODELS
from projectai.engine.errors import ProjectAIBackendError

logger = logging.getLogger("projectai.backend.sql")


def _to_json(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


class SqlBackend(BackendClient):
    """BackendClient backed by a SQLAlchemy engine."""

    name = "sql"

    def __init__(self, engine, user_id=None):
        super().__init__(user_id=user_id)
        self._engine = engine

    # ── Helpers ──

    @staticmethod
    def _table(name: str):
        return TABLE_MODELS[name].__table__

    @staticmethod
    def _coerce(column, value: Any) -> Any:
        """ISO strings → date/datetime for typed columns (SQLite needs real objects)."""
        if value is None or not isinstance(value, str):
            return value
        try:
            if isinstance(column.type, DateTime):
                return datetime.fromisoformat(value.replace("Z", "+00:00")) if value else None
            if isinstance(column.type, Date):
                return date.fromisoformat(value[:10]) if value else None
        except ValueError:
            raise ProjectAIBackendError(
                f'invalid input syntax for type {column.type}: "{value}"',
                table=column.table.name, operation="coerce", status_code=400,
            )
        return value

    def _column(self, table, name: str, operation: str):
        if name not in table.c:
            raise ProjectAIBackendError(
                f'column "{name}" of relation "{table.name}" does not exist',
                table=table.name, operation=operation, status_code=400,
            )
        return table.c[name]

    def _condition(self, table, f: Filter, operation: str):
        column = self._column(table, f.column, operation)
        if f.op == "in":
            return column.in_([self._coerce(column, v) for v in f.value])
        value = self._coerce(column, f.value)
        if f.op == "eq":
            return column.is_(None) if value is None else column == value
        if f.op == "neq":
            return column.is_not(None) if value is None else column != value
        if f.op == "lt":
            return column < value
        if f.op == "lte":
            return column <= value
        if f.op == "gt":
            return column > value
        if f.op == "gte":
            return column >= value
        return column.ilike(str(value).replace("*", "%"))

    def _where(self, table, query: Query, operation: str):
        clauses = [self._condition(table, f, operation) for f in query.filters]
        if query.any_of:
            clauses.append(or_(*[self._condition(table, f, operation) for f in query.any_of]))
        return and_(*clauses) if clauses else None

    def _values(self, table, values: Dict[str, Any], operation: str) -> Dict[str, Any]:
        return {
            k: self._coerce(self._column(table, k, operation), v)
            for k, v in values.items()
        }

    @staticmethod
    def _row_dict(row) -> Dict[str, Any]:
        return {k: _to_json(v) for k, v in row._mapping.items()}

    def _wrap(self, table: str, operation: str, fn):
        try:
            return fn()
        except SQLAlchemyError as e:
            raise ProjectAIBackendError(
                f"SQL {operation} failed: {e.__class__.__name__}: {getattr(e, 'orig', e)}",
                table=table, operation=operation,
            )

    # ── BackendClient implementation ──

    def _do_select(self, query: Query) -> List[Dict[str, Any]]:
        table = self._table(query.table)
        if query.columns.strip() == "*":
            stmt = select(table)
        else:
            names = [c.strip() for c in query.columns.split(",") if c.strip()]
            stmt = select(*[self._column(table, n, "select") for n in names])
        where = self._where(table, query, "select")
        if where is not None:
            stmt = stmt.where(where)
        for o in query.orders:
            column = self._column(table, o.column, "select")
            stmt = stmt.order_by(column.asc() if o.ascending else column.desc())
        if query.limit_to is not None:
            stmt = stmt.limit(query.limit_to)

        def run():
            with self._engine.connect() as conn:
                return [self._row_dict(r) for r in conn.execute(stmt)]
        return self._wrap(query.table, "select", run)

    def _do_insert(self, table_name: str, values: Dict[str, Any]) -> List[Dict[str, Any]]:
        table = self._table(table_name)
        data = self._values(table, values, "insert")
        data.setdefault("id", new_id())

        def run():
            with self._engine.begin() as conn:
                conn.execute(table.insert().values(**data))
                row = conn.execute(select(table).where(table.c.id == data["id"])).first()
                return [self._row_dict(row)] if row is not None else []
        return self._wrap(table_name, "insert", run)

    def _do_update(self, query: Query, values: Dict[str, Any]) -> List[Dict[str, Any]]:
        table = self._table(query.table)
        data = self._values(table, values, "update")
        where = self._where(table, query, "update")

        def run():
            with self._engine.begin() as conn:
                id_stmt = select(table.c.id)
                if where is not None:
                    id_stmt = id_stmt.where(where)
                ids = [r[0] for r in conn.execute(id_stmt)]
                if not ids:
                    return []
                conn.execute(update(table).where(table.c.id.in_(ids)).values(**data))
                rows = conn.execute(select(table).where(table.c.id.in_(ids)))
                return [self._row_dict(r) for r in rows]
        return self._wrap(query.table, "update", run)

    def _do_delete(self, query: Query) -> int:
        table = self._table(query.table)
        stmt = delete(table)
        where = self._where(table, query, "delete")
        if where is not None:
            stmt = stmt.where(where)

        def run():
            with self._engine.begin() as conn:
                return conn.execute(stmt).rowcount
        return self._wrap(query.table, "delete", run)

    def _do_count(self, query: Query) -> int:
        table = self._table(query.table)
        stmt = select(func.count()).select_from(table)
        where = self._where(table, query, "count")
        if where is not None:
            stmt = stmt.where(where)

        def run():
            with self._engine.connect() as conn:
                return int(conn.execute(stmt).scalar_one())
        return self._wrap(query.table, "count", run)
