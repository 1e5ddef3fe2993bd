"""
Audit trail — writes ``audit_logs`` rows for changes made through the views.

Audit rows are a record, not enforcement: a failed audit write is logged
and swallowed so the user's change is not reported as failed after the
backend already accepted it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from projectai.backend.client import BackendClient
from projectai.engine.context import get_session_context
from projectai.engine.errors import ProjectAIBackendError

logger = logging.getLogger("projectai.services.audit")


class AuditTrail:

    def __init__(self, backend: BackendClient):
        self._backend = backend

    def record(
        self,
        table: str,
        record_id: str,
        action: str,
        old: Optional[Dict[str, Any]] = None,
        new: Optional[Dict[str, Any]] = None,
        actor_id: Optional[str] = None,
        actor_email: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Insert one audit row. Returns False (and logs) when the write fails."""
        ctx = get_session_context()
        actor_id = actor_id or (ctx.user_id if ctx else None)
        actor_email = actor_email or (ctx.email if ctx else None)
        if not actor_id or not actor_email:
            logger.warning(f"Audit of {action} on {table}/{record_id} skipped: no actor")
            return False
        try:
            self._backend.insert("audit_logs", {
                "action": action,
                "table_name": table,
                "record_id": record_id,
                "user_id": actor_id,
                "user_email": actor_email,
                "old_data": old,
                "new_data": new,
                "details": details,
            })
            return True
        except ProjectAIBackendError as e:
            logger.error(f"Audit write for {action} on {table}/{record_id} failed: {e.message}")
            return False
