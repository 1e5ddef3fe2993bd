"""
Shared plumbing for the page-level view services.

A view service issues one or two backend queries per page, turns backend
failures into notices, and runs the create/update/delete actions a page
offers. Notices are the transient messages a UI would show as toasts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from projectai.backend.client import BackendClient
from projectai.engine.cache import QueryCache, QueryKey
from projectai.engine.context import SessionContext, require_session_context
from projectai.engine.errors import ProjectAIBackendError, ProjectAIValidationError
from projectai.engine.logging import log, log_record_operation, log_validation_failure
from projectai.services.audit import AuditTrail

logger = logging.getLogger("projectai.views")


@dataclass
class Notice:
    level: str  # "error" | "success" | "info"
    message: str


@dataclass
class ActionResult:
    """Outcome of a create/update/delete issued from a view."""

    success: bool
    message: str = ""
    record: Optional[Dict[str, Any]] = None
    errors: List[Dict[str, str]] = field(default_factory=list)

    @property
    def notice(self) -> Notice:
        return Notice("success" if self.success else "error", self.message)


class ViewService:
    """Base class: backend, session, optional query cache, audit trail."""

    area = "system"

    def __init__(
        self,
        backend: BackendClient,
        ctx: Optional[SessionContext] = None,
        cache: Optional[QueryCache] = None,
    ):
        self._backend = backend
        self._ctx = ctx
        self._cache = cache
        self._audit = AuditTrail(backend)

    @property
    def session(self) -> SessionContext:
        """The view's session. Raises ProjectAISessionError when nobody is signed in."""
        return self._ctx or require_session_context()

    # ── Queries ──

    def _fetch(self, key: QueryKey, fetcher: Callable[[], Any], force: bool = False) -> Any:
        if self._cache is None:
            return fetcher()
        return self._cache.fetch(key, fetcher, force=force)

    def _invalidate(self, *prefixes: QueryKey) -> None:
        if self._cache is None:
            return
        for prefix in prefixes:
            self._cache.invalidate(prefix)

    def _load_failed(self, what: str, error: ProjectAIBackendError) -> Notice:
        logger.error(f"Error fetching {what}: {error.message}")
        return Notice("error", f"Failed to fetch {what}")

    # ── Actions ──

    def _invalid(self, entity: str, error: ProjectAIValidationError) -> ActionResult:
        log(log_validation_failure(self.area, entity, error.validation_errors, self.session.user_id))
        logger.info(f"{entity} rejected: {', '.join(error.fields)}")
        return ActionResult(False, message=error.message, errors=error.validation_errors)

    def _action_failed(self, what: str, error: ProjectAIBackendError) -> ActionResult:
        logger.error(f"Error {what}: {error.message}")
        return ActionResult(False, message=error.friendly_message())

    def _audited(
        self,
        table: str,
        record_id: str,
        action: str,
        old: Optional[Dict[str, Any]] = None,
        new: Optional[Dict[str, Any]] = None,
    ) -> bool:
        ctx = self.session
        return self._audit.record(
            table, record_id, action, old=old, new=new,
            actor_id=ctx.user_id, actor_email=ctx.email,
        )

    def _record_done(
        self,
        operation: str,
        table: str,
        record_id: Optional[str],
        fields_changed: Optional[List[str]] = None,
    ) -> None:
        log(log_record_operation(
            self.area, operation, table, record_id, self.session.user_id, fields_changed,
        ))
