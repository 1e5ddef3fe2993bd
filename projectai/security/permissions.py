"""
ProjectAI Role Gates — which dashboard actions each role is offered.

Three static tiers, no delegation, no policy composition:

    admin   — everything
    manager — create/edit projects and tasks, manage project members
    member  — read only

These gates decide what the views offer. They are not a security boundary:
the backend's row-level security policies accept or reject the actual
writes, whatever this table says.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Optional

from projectai.engine.context import SessionContext
from projectai.engine.errors import ProjectAISecurityError
from projectai.engine.logging import log, log_access_denied

logger = logging.getLogger("projectai.security.permissions")

_MANAGERS = frozenset({"admin", "manager"})
_ADMINS = frozenset({"admin"})

# capability → roles offered it
CAPABILITIES: Dict[str, FrozenSet[str]] = {
    "project.create": _MANAGERS,
    "project.edit": _MANAGERS,
    "project.delete": _ADMINS,
    "project.manage_members": _MANAGERS,
    "task.create": _MANAGERS,
    "task.edit": _MANAGERS,
    "team.invite": _ADMINS,
    "team.edit_role": _ADMINS,
    "settings.admin_tab": _ADMINS,
    "dashboard.quick_create": _MANAGERS,
}


def can(role: Optional[str], capability: str) -> bool:
    """True if ``role`` is offered ``capability``. Unknown roles get nothing."""
    allowed = CAPABILITIES.get(capability)
    if allowed is None:
        raise KeyError(f"Unknown capability: {capability}")
    return role in allowed


def capabilities_for(role: Optional[str]) -> FrozenSet[str]:
    """Every capability offered to ``role``."""
    return frozenset(c for c, roles in CAPABILITIES.items() if role in roles)


def require(ctx: SessionContext, capability: str) -> None:
    """
    Raise ProjectAISecurityError unless the session's role is offered
    ``capability``. Denials are written to the security log of the area
    named by the capability prefix.
    """
    if can(ctx.role, capability):
        return
    area = capability.split(".", 1)[0]
    area = {"project": "projects", "task": "tasks", "dashboard": "projects"}.get(area, area)
    log(log_access_denied(area, capability, ctx.user_id, ctx.role, ctx.execution_id))
    logger.warning(f"Denied {capability} for {ctx.email} (role={ctx.role})")
    raise ProjectAISecurityError(
        f"Role '{ctx.role}' may not perform {capability}",
        user_id=ctx.user_id,
        role=ctx.role,
        capability=capability,
        execution_id=ctx.execution_id,
    )
