"""
Backend client interface — the typed query surface every view uses.

Two implementations:
- RestBackend (projectai.backend.rest): the hosted database-as-a-service,
  PostgREST dialect over httpx. Row-level security applies per token.
- SqlBackend (projectai.backend.sql): a local SQL database through
  SQLAlchemy Core, for development, ``projectai init`` and tests.

Both raise ProjectAIBackendError on failure and log every call to the
structured ``backend`` log area.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from projectai.backend.query import Query
from projectai.engine.errors import ProjectAIBackendError, ProjectAIConfigError
from projectai.engine.logging import log, log_backend_call
from projectai.records.constants import TABLES

logger = logging.getLogger("projectai.backend.client")


class BackendClient:
    """
    Abstract select/insert/update/delete/count surface over the backend tables.

    Subclasses implement the ``_do_*`` methods; the public methods add table
    checks, timing and structured logging.
    """

    name = "backend"

    def __init__(self, user_id: Optional[str] = None):
        self.user_id = user_id

    # ── Public API ──

    def select(self, query: Query) -> List[Dict[str, Any]]:
        """Rows matching ``query`` (may be empty)."""
        return self._call(query.table, "select", lambda: self._do_select(query))

    def select_one(self, query: Query) -> Optional[Dict[str, Any]]:
        """First row matching ``query``, or None."""
        rows = self.select(query.limit(1))
        return rows[0] if rows else None

    def insert(self, table: str, values: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it as stored (ids, defaults, timestamps)."""
        rows = self._call(table, "insert", lambda: self._do_insert(table, values))
        if not rows:
            raise ProjectAIBackendError(
                f"Insert into {table} returned no row (blocked by row-level security?)",
                table=table, operation="insert",
            )
        return rows[0]

    def update(self, query: Query, values: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Patch every row matching ``query``; returns the updated rows."""
        return self._call(query.table, "update", lambda: self._do_update(query, values))

    def delete(self, query: Query) -> int:
        """Delete every row matching ``query``; returns the number deleted."""
        return self._call(query.table, "delete", lambda: self._do_delete(query))

    def count(self, query: Query) -> int:
        """Exact row count for ``query``."""
        return self._call(query.table, "count", lambda: self._do_count(query))

    def close(self) -> None:
        """Release connections held by the client."""

    # ── Internals ──

    def _call(self, table: str, operation: str, fn):
        if table not in TABLES:
            raise ProjectAIBackendError(
                f"Unknown table: {table}", table=table, operation=operation,
            )
        start = time.monotonic()
        try:
            result = fn()
        except ProjectAIBackendError as e:
            duration_ms = (time.monotonic() - start) * 1000
            log(log_backend_call(
                table, operation, duration_ms, success=False,
                status_code=e.status_code, user_id=self.user_id, error=e.message,
            ))
            logger.error(f"{self.name} {operation} on {table} failed: {e.message}")
            raise
        duration_ms = (time.monotonic() - start) * 1000
        rows = len(result) if isinstance(result, list) else None
        log(log_backend_call(
            table, operation, duration_ms, success=True, rows=rows, user_id=self.user_id,
        ))
        logger.debug(f"{self.name} {operation} on {table} ({duration_ms:.1f}ms)")
        return result

    def _do_select(self, query: Query) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def _do_insert(self, table: str, values: Dict[str, Any]) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def _do_update(self, query: Query, values: Dict[str, Any]) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def _do_delete(self, query: Query) -> int:
        raise NotImplementedError

    def _do_count(self, query: Query) -> int:
        raise NotImplementedError


def create_backend(config, access_token: Optional[str] = None, user_id: Optional[str] = None) -> BackendClient:
    """
    Build the backend client configured in ``config.backend.mode``.

    Args:
        config: ProjectAIConfig.
        access_token: Session token forwarded to the hosted backend so its
            row-level security sees the signed-in user. Ignored in sql mode.
        user_id: Recorded in backend call logs.
    """
    mode = config.backend.mode
    if mode == "rest":
        from projectai.backend.rest import RestBackend
        return RestBackend(
            base_url=config.backend.url,
            anon_key=config.backend.anon_key,
            access_token=access_token,
            timeout=config.backend.timeout,
            schema=config.backend.schema_name,
            user_id=user_id,
        )
    if mode == "sql":
        from projectai.backend.sql import SqlBackend
        from projectai.db.base import engine_registry
        from projectai.db.session import ENGINE_NAME, init_db

        if ENGINE_NAME not in engine_registry.registered_names:
            db = config.database
            init_db(
                db.url,
                pool_size=db.pool_size,
                max_overflow=db.max_overflow,
                pool_timeout=db.pool_timeout,
                pool_recycle=db.pool_recycle,
                pool_pre_ping=db.pool_pre_ping,
            )
        return SqlBackend(engine_registry.get(ENGINE_NAME), user_id=user_id)
    raise ProjectAIConfigError(f"Unknown backend mode: {mode}")
