"""Settings page: own profile, plus the admin tab listing and editing every profile."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from projectai.backend.query import Query
from projectai.engine.errors import ProjectAIBackendError, ProjectAIValidationError
from projectai.engine.logging import log, log_role_change
from projectai.records import Profile
from projectai.security.permissions import can, require
from projectai.security.roles import demotes_bootstrap_admin
from projectai.services.validation import SELF_EDITABLE_PROFILE_FIELDS, validate_profile_update
from projectai.views.base import ActionResult, Notice, ViewService

logger = logging.getLogger("projectai.views.settings")


@dataclass
class SettingsPage:
    profile: Optional[Profile]
    show_admin_tab: bool
    all_profiles: List[Profile] = field(default_factory=list)
    notices: List[Notice] = field(default_factory=list)


class SettingsView(ViewService):

    area = "settings"

    def __init__(self, backend, ctx=None, cache=None, bootstrap_admins: Iterable[str] = ()):
        super().__init__(backend, ctx, cache)
        self._bootstrap_admins = list(bootstrap_admins)

    def load(self) -> SettingsPage:
        ctx = self.session
        notices: List[Notice] = []
        profile = None
        try:
            row = self._backend.select_one(Query("profiles").eq("id", ctx.user_id))
            profile = Profile.model_validate(row) if row else None
        except ProjectAIBackendError as e:
            notices.append(self._load_failed("your profile", e))

        show_admin_tab = can(ctx.role, "settings.admin_tab")
        all_profiles: List[Profile] = []
        if show_admin_tab:
            try:
                all_profiles = [
                    Profile.model_validate(r) for r in self._fetch(
                        ("settings", "profiles", ctx.user_id, ctx.role),
                        lambda: self._backend.select(
                            Query("profiles").order("created_at", ascending=False)
                        ),
                    )
                ]
            except ProjectAIBackendError as e:
                notices.append(self._load_failed("user profiles", e))
        return SettingsPage(profile, show_admin_tab, all_profiles, notices)

    def update_own_profile(self, changes: Dict[str, Any]) -> ActionResult:
        """Users may change their name, department and position; never their role."""
        ctx = self.session
        try:
            update = validate_profile_update(changes, allowed_fields=SELF_EDITABLE_PROFILE_FIELDS)
        except ProjectAIValidationError as e:
            return self._invalid("profile", e)
        return self._save(ctx.user_id, update, old=None)

    def update_profile(self, profile_id: str, changes: Dict[str, Any]) -> ActionResult:
        ctx = self.session
        require(ctx, "settings.admin_tab")
        try:
            update = validate_profile_update(changes)
        except ProjectAIValidationError as e:
            return self._invalid("profile", e)

        old = None
        if "role" in update:
            try:
                old = self._backend.select_one(Query("profiles").select("email,role").eq("id", profile_id))
            except ProjectAIBackendError as e:
                return self._action_failed("loading profile", e)
            if old is None:
                return ActionResult(False, message="Profile not found")
            if demotes_bootstrap_admin(old.get("email"), update["role"], self._bootstrap_admins):
                return ActionResult(
                    False,
                    message=f"{old['email']} is a bootstrap administrator; change the configuration instead",
                )
            old = {"role": old.get("role")}
        result = self._save(profile_id, update, old)
        if result.success and "role" in update:
            log(log_role_change(profile_id, (old or {}).get("role"), update["role"], ctx.user_id))
        return result

    def _save(self, profile_id: str, update: Dict[str, Any], old: Optional[Dict[str, Any]]) -> ActionResult:
        try:
            rows = self._backend.update(Query("profiles").eq("id", profile_id), update)
        except ProjectAIBackendError as e:
            logger.error(f"Error updating profile: {e.message}")
            return ActionResult(False, message="Failed to update profile")
        if not rows:
            return ActionResult(False, message="Profile not found")

        self._invalidate(("settings",), ("team",))
        self._record_done("update", "profiles", profile_id, sorted(update))
        self._audited("profiles", profile_id, "update", old=old, new=update)
        return ActionResult(True, message="Profile updated successfully", record=rows[0])
