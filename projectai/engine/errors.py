"""
ProjectAI Error Hierarchy — Structured exceptions for every failure surface.

All errors carry keyword context and serialize to JSON for the structured
log files. View services catch these at the call site and turn them into
notices; the CLI prints them.

Hierarchy:
    ProjectAIError
    ├── ProjectAISecurityError    — Role gate denied
    ├── ProjectAISessionError     — No session / identity provider failure
    ├── ProjectAIValidationError  — Field validation failed (all errors collected)
    ├── ProjectAIBackendError     — Backend call failed
    ├── ProjectAINotFoundError    — Row not found
    └── ProjectAIConfigError      — Configuration error
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

# Substrings that mark a backend failure as an authorization problem.
AUTH_FAILURE_MARKERS = (
    "permission",
    "authentication",
    "row-level security",
    "jwt",
)


class ProjectAIError(Exception):
    """
    Base error for all ProjectAI failures.
    All context is kept serializable so it can be written to the JSONL logs.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.execution_id: Optional[str] = context.get("execution_id")
        self.user_id: Optional[str] = context.get("user_id")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "execution_id": self.execution_id,
            "user_id": self.user_id,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("execution_id", "user_id")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.user_id:
            parts.append(f"user_id={self.user_id}")
        if self.execution_id:
            parts.append(f"execution_id={self.execution_id}")
        return " | ".join(parts)


class ProjectAISecurityError(ProjectAIError):
    """
    A role gate refused an action. Advisory only — the backend's row-level
    security is the real boundary — but logged to the security log files.
    """

    def __init__(self, message: str, **context: Any):
        self.role: Optional[str] = context.get("role")
        self.capability: Optional[str] = context.get("capability")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["role"] = self.role
        d["capability"] = self.capability
        return d


class ProjectAISessionError(ProjectAIError):
    """No authenticated session, or the identity provider rejected the token."""
    pass


class ProjectAIValidationError(ProjectAIError):
    """
    Input validation failed. ``validation_errors`` holds every field error
    found, as ``{"field": ..., "message": ...}`` dicts, in rule order.
    """

    def __init__(self, message: str, **context: Any):
        self.validation_errors: List[Dict[str, str]] = list(
            context.get("validation_errors") or []
        )
        super().__init__(message, **context)

    @property
    def fields(self) -> List[str]:
        return [e["field"] for e in self.validation_errors]

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["validation_errors"] = self.validation_errors
        return d


class ProjectAIBackendError(ProjectAIError):
    """A call to the hosted backend (REST or SQL) failed."""

    def __init__(self, message: str, **context: Any):
        self.table: Optional[str] = context.get("table")
        self.operation: Optional[str] = context.get("operation")
        self.status_code: Optional[int] = context.get("status_code")
        self.response_body: Optional[str] = context.get("response_body")
        super().__init__(message, **context)

    @property
    def is_auth_failure(self) -> bool:
        """True when the backend refused the call for authorization reasons."""
        if self.status_code in (401, 403):
            return True
        text = f"{self.message} {self.response_body or ''}".lower()
        return any(marker in text for marker in AUTH_FAILURE_MARKERS)

    def friendly_message(self) -> str:
        """User-facing text for a failed write."""
        text = f"{self.message} {self.response_body or ''}".lower()
        if "permission denied" in text:
            return (
                "You don't have permission to perform this action. "
                "Please contact your administrator."
            )
        if "violates row-level security" in text:
            return (
                "Security policy violation. "
                "Please ensure you have the correct permissions."
            )
        return self.message or "An unexpected error occurred."

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["table"] = self.table
        d["operation"] = self.operation
        d["status_code"] = self.status_code
        return d


class ProjectAINotFoundError(ProjectAIError):
    """A requested row does not exist (or is hidden by row-level security)."""

    def __init__(self, message: str, **context: Any):
        self.table: Optional[str] = context.get("table")
        self.record_id: Optional[str] = context.get("record_id")
        super().__init__(message, **context)


class ProjectAIConfigError(ProjectAIError):
    """Configuration error — invalid projectai.yaml or environment override."""
    pass
