"""
ProjectAI Session Context — per-request identity and effective role.

Set by AuthService.establish_session() once the identity provider has
accepted a token and the role resolver has produced the effective role.
View services read it instead of threading user/role arguments around.

Usage:
    from projectai.engine.context import (
        SessionContext,
        set_session_context,
        get_session_context,
        require_session_context,
    )
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from projectai.engine.errors import ProjectAISessionError

current_session_context: ContextVar[Optional["SessionContext"]] = ContextVar(
    "session_context", default=None
)


@dataclass
class SessionContext:
    """Authenticated identity plus the role resolved for it."""

    user_id: str
    email: str
    role: str  # "admin" | "manager" | "member"
    full_name: str = ""
    access_token: Optional[str] = None
    session_id: Optional[str] = None
    execution_id: str = field(default_factory=lambda: f"exec_{uuid.uuid4().hex[:12]}")
    profile: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_manager_or_admin(self) -> bool:
        return self.role in ("admin", "manager")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging and the session store. Never includes the token."""
        return {
            "user_id": self.user_id,
            "email": self.email,
            "role": self.role,
            "full_name": self.full_name,
            "session_id": self.session_id,
            "execution_id": self.execution_id,
            "profile": self.profile,
        }


def set_session_context(ctx: SessionContext) -> None:
    """Set the session context for the current thread/task."""
    current_session_context.set(ctx)


def get_session_context() -> Optional[SessionContext]:
    """Get the current session context. Returns None if not set."""
    return current_session_context.get()


def require_session_context() -> SessionContext:
    """Get the session context or raise if nobody is signed in."""
    ctx = get_session_context()
    if ctx is None:
        raise ProjectAISessionError("User not authenticated")
    return ctx


def clear_session_context() -> None:
    """Clear the session context (sign-out or request end)."""
    current_session_context.set(None)
