"""
Role resolution — effective role for a freshly established session.

The bootstrap administrators are a configuration value
(``security.bootstrap_admin_emails``), declared once. Any identity on that
list resolves to ``admin`` whatever its stored profile says, and the stored
row is patched to match. Everybody else gets their stored role, or
``member`` when none (or an unknown one) is stored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from projectai.backend.client import BackendClient
from projectai.backend.query import Query
from projectai.engine.errors import ProjectAIBackendError
from projectai.engine.logging import log, log_role_change
from projectai.records import ROLES, Profile
from projectai.services.audit import AuditTrail

logger = logging.getLogger("projectai.security.roles")


@dataclass
class Identity:
    """What the identity provider tells us about the signed-in user."""

    id: str
    email: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def suggested_name(self) -> str:
        return self.metadata.get("full_name") or self.metadata.get("name") or self.email.split("@")[0]


@dataclass
class ResolvedIdentity:
    identity: Identity
    role: str
    profile: Optional[Profile] = None


def is_bootstrap_admin(email: Optional[str], bootstrap_admins: Iterable[str]) -> bool:
    if not email:
        return False
    return email.strip().lower() in {a.strip().lower() for a in bootstrap_admins}


def demotes_bootstrap_admin(email: Optional[str], new_role: Optional[str], bootstrap_admins: Iterable[str]) -> bool:
    """True when a role change would take a bootstrap administrator below admin."""
    return new_role is not None and new_role != "admin" and is_bootstrap_admin(email, bootstrap_admins)


def resolve_effective_role(
    email: Optional[str],
    stored_role: Optional[str],
    bootstrap_admins: Iterable[str] = (),
    default_role: str = "member",
) -> str:
    """
    >>> resolve_effective_role("boss@corp.com", "member", ["boss@corp.com"])
    'admin'
    >>> resolve_effective_role("dev@corp.com", None)
    'member'
    """
    if is_bootstrap_admin(email, bootstrap_admins):
        return "admin"
    if stored_role in ROLES:
        return stored_role
    return default_role


class RoleResolver:
    """Fetch-or-create the profile for an identity and compute its role."""

    def __init__(
        self,
        backend: BackendClient,
        bootstrap_admins: Iterable[str] = (),
        default_role: str = "member",
    ):
        self._backend = backend
        self._bootstrap_admins = [a.strip().lower() for a in bootstrap_admins]
        self._default_role = default_role
        self._audit = AuditTrail(backend)

    def resolve(self, identity: Identity) -> ResolvedIdentity:
        """
        1. Fetch the profile by identity id.
        2. Present → effective role; bootstrap admins get the row patched.
        3. Absent → insert a profile carrying the effective role.
        4. Backend failure → ``member`` without a profile (logged); a
           bootstrap administrator still resolves to ``admin``.
        """
        try:
            row = self._backend.select_one(Query("profiles").eq("id", identity.id))
            if row is None:
                return self._create_profile(identity)

            profile = Profile.model_validate(row)
            role = resolve_effective_role(
                identity.email, profile.role, self._bootstrap_admins, self._default_role,
            )
            if profile.role != "admin" and is_bootstrap_admin(identity.email, self._bootstrap_admins):
                self._promote_bootstrap_admin(identity, profile)
            return ResolvedIdentity(
                identity=identity,
                role=role,
                profile=profile.model_copy(update={"role": role}),
            )
        except ProjectAIBackendError as e:
            logger.error(f"Error fetching/creating profile for {identity.email}: {e.message}")
            role = resolve_effective_role(identity.email, None, self._bootstrap_admins, "member")
            return ResolvedIdentity(identity=identity, role=role, profile=None)

    def _create_profile(self, identity: Identity) -> ResolvedIdentity:
        role = resolve_effective_role(
            identity.email, None, self._bootstrap_admins, self._default_role,
        )
        row = self._backend.insert("profiles", {
            "id": identity.id,
            "email": identity.email,
            "full_name": identity.suggested_name,
            "role": role,
        })
        logger.info(f"Created profile for {identity.email} with role {role}")
        return ResolvedIdentity(identity=identity, role=role, profile=Profile.model_validate(row))

    def _promote_bootstrap_admin(self, identity: Identity, profile: Profile) -> None:
        # The resolved role stays admin even when the stored row cannot be patched
        try:
            self._backend.update(Query("profiles").eq("id", identity.id), {"role": "admin"})
        except ProjectAIBackendError as e:
            logger.error(f"Could not patch stored role for bootstrap administrator {identity.email}: {e.message}")
            return
        log(log_role_change(identity.id, profile.role, "admin", identity.id, reason="bootstrap_admin"))
        self._audit.record(
            "profiles", identity.id, "role_bootstrap",
            old={"role": profile.role}, new={"role": "admin"},
            actor_id=identity.id, actor_email=identity.email,
        )
        logger.warning(f"Promoted bootstrap administrator {identity.email} to admin")
