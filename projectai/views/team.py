"""Team page: every profile, role filter, role counts, admin role edits."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from projectai.backend.query import Query
from projectai.engine.errors import ProjectAIBackendError, ProjectAIValidationError
from projectai.engine.logging import log, log_role_change
from projectai.records import Profile
from projectai.security.permissions import can, require
from projectai.security.roles import demotes_bootstrap_admin
from projectai.services.filtering import filter_members, has_active_filters
from projectai.services.validation import validate_profile_update
from projectai.views.base import ActionResult, Notice, ViewService

logger = logging.getLogger("projectai.views.team")


@dataclass
class TeamCounts:
    total: int = 0
    admins: int = 0
    managers: int = 0
    active: int = 0


@dataclass
class TeamPage:
    members: List[Profile]
    counts: TeamCounts
    has_filters: bool
    can_invite: bool
    can_edit_roles: bool
    notices: List[Notice] = field(default_factory=list)


def count_roles(members: List[Profile]) -> TeamCounts:
    return TeamCounts(
        total=len(members),
        admins=sum(1 for m in members if m.role == "admin"),
        managers=sum(1 for m in members if m.role == "manager"),
        active=sum(1 for m in members if m.status == "active"),
    )


class TeamView(ViewService):

    area = "team"

    def __init__(self, backend, ctx=None, cache=None, bootstrap_admins: Iterable[str] = ()):
        super().__init__(backend, ctx, cache)
        self._bootstrap_admins = list(bootstrap_admins)

    def list_members(self, force: bool = False) -> List[Profile]:
        ctx = self.session
        rows = self._fetch(
            ("team", ctx.user_id, ctx.role),
            lambda: self._backend.select(Query("profiles").order("created_at", ascending=False)),
            force=force,
        )
        return [Profile.model_validate(r) for r in rows]

    def load(self, search: Optional[str] = None, role: Optional[str] = None) -> TeamPage:
        ctx = self.session
        notices: List[Notice] = []
        try:
            members = self.list_members()
        except ProjectAIBackendError as e:
            members = []
            notices.append(self._load_failed("team members", e))
        return TeamPage(
            members=filter_members(members, search, role),
            counts=count_roles(members),
            has_filters=has_active_filters(search, role=role),
            can_invite=can(ctx.role, "team.invite"),
            can_edit_roles=can(ctx.role, "team.edit_role"),
            notices=notices,
        )

    def update_member_role(self, member_id: str, new_role: str) -> ActionResult:
        ctx = self.session
        require(ctx, "team.edit_role")
        try:
            update = validate_profile_update({"role": new_role}, allowed_fields=("role",))
        except ProjectAIValidationError as e:
            return self._invalid("profile", e)

        try:
            current = self._backend.select_one(Query("profiles").select("id,email,role").eq("id", member_id))
        except ProjectAIBackendError as e:
            return self._action_failed("loading team member", e)
        if current is None:
            return ActionResult(False, message="Team member not found")
        if demotes_bootstrap_admin(current["email"], update["role"], self._bootstrap_admins):
            return ActionResult(
                False,
                message=f"{current['email']} is a bootstrap administrator; change the configuration instead",
            )

        try:
            self._backend.update(Query("profiles").eq("id", member_id), update)
        except ProjectAIBackendError as e:
            logger.error(f"Error updating member role: {e.message}")
            return ActionResult(False, message="Failed to update member role")

        self._invalidate(("team",), ("settings",))
        log(log_role_change(member_id, current.get("role"), update["role"], ctx.user_id))
        self._audited(
            "profiles", member_id, "role_change",
            old={"role": current.get("role")}, new={"role": update["role"]},
        )
        logger.info(f"{ctx.email} changed role of {current['email']} to {update['role']}")
        return ActionResult(True, message="Member role updated successfully")
