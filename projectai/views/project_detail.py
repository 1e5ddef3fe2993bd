"""Project detail page: one project, its tasks and its members."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from projectai.backend.query import Query
from projectai.engine.errors import ProjectAIBackendError, ProjectAINotFoundError
from projectai.records import Profile, Project, ProjectMember, Task
from projectai.security.permissions import can, require
from projectai.views.base import ActionResult, Notice, ViewService

logger = logging.getLogger("projectai.views.project_detail")


@dataclass
class MemberEntry:
    membership: ProjectMember
    profile: Optional[Profile]

    @property
    def display_name(self) -> str:
        return self.profile.display_name if self.profile else self.membership.user_id


@dataclass
class ProjectDetail:
    project: Optional[Project]
    tasks: List[Task]
    members: List[MemberEntry]
    can_edit: bool
    can_delete: bool
    can_manage_members: bool
    notices: List[Notice] = field(default_factory=list)

    @property
    def completed_tasks(self) -> int:
        return sum(1 for t in self.tasks if t.status == "completed")

    @property
    def estimated_hours(self) -> float:
        return sum(t.estimated_hours or 0 for t in self.tasks)

    @property
    def actual_hours(self) -> float:
        return sum(t.actual_hours or 0 for t in self.tasks)


class ProjectDetailView(ViewService):

    area = "projects"

    def __init__(self, backend, project_id: str, ctx=None, cache=None):
        super().__init__(backend, ctx, cache)
        self.project_id = project_id

    def _members(self) -> List[MemberEntry]:
        memberships = [
            ProjectMember.model_validate(r) for r in self._backend.select(
                Query("project_members").eq("project_id", self.project_id)
            )
        ]
        if not memberships:
            return []
        profiles = {
            r["id"]: Profile.model_validate(r) for r in self._backend.select(
                Query("profiles").in_("id", [m.user_id for m in memberships])
            )
        }
        return [MemberEntry(m, profiles.get(m.user_id)) for m in memberships]

    def load(self) -> ProjectDetail:
        """
        A backend failure on the project row yields a page with no project
        and a "Failed to fetch project details" notice.

        Raises:
            ProjectAINotFoundError if the project does not exist or the
            backend hides it from this session.
        """
        ctx = self.session
        try:
            row = self._fetch(
                ("project", self.project_id, "row", ctx.user_id, ctx.role),
                lambda: self._backend.select_one(Query("projects").eq("id", self.project_id)),
            )
        except ProjectAIBackendError as e:
            return ProjectDetail(
                project=None, tasks=[], members=[],
                can_edit=False, can_delete=False, can_manage_members=False,
                notices=[self._load_failed("project details", e)],
            )
        if row is None:
            raise ProjectAINotFoundError(
                f"Project {self.project_id} not found",
                table="projects", record_id=self.project_id, user_id=ctx.user_id,
            )

        notices: List[Notice] = []
        try:
            tasks = [
                Task.model_validate(r) for r in self._backend.select(
                    Query("tasks").eq("project_id", self.project_id).order("created_at", ascending=False)
                )
            ]
        except ProjectAIBackendError as e:
            tasks = []
            notices.append(self._load_failed("project tasks", e))
        try:
            members = self._members()
        except ProjectAIBackendError as e:
            members = []
            notices.append(self._load_failed("team members", e))

        return ProjectDetail(
            project=Project.model_validate(row),
            tasks=tasks,
            members=members,
            can_edit=can(ctx.role, "project.edit"),
            can_delete=can(ctx.role, "project.delete"),
            can_manage_members=can(ctx.role, "project.manage_members"),
            notices=notices,
        )

    def add_member(self, user_id: str, role: str = "member") -> ActionResult:
        require(self.session, "project.manage_members")
        try:
            existing = self._backend.select_one(
                Query("project_members").eq("project_id", self.project_id).eq("user_id", user_id)
            )
            if existing is not None:
                return ActionResult(False, message="User is already a member of this project")
            row = self._backend.insert("project_members", {
                "project_id": self.project_id,
                "user_id": user_id,
                "role": role,
            })
        except ProjectAIBackendError as e:
            return self._action_failed("adding project member", e)

        self._invalidate(("project", self.project_id), ("dashboard",))
        self._record_done("create", "project_members", row["id"], ["project_id", "user_id", "role"])
        self._audited("project_members", row["id"], "create", new=row)
        return ActionResult(True, message="Member added", record=row)

    def remove_member(self, user_id: str) -> ActionResult:
        require(self.session, "project.manage_members")
        query = Query("project_members").eq("project_id", self.project_id).eq("user_id", user_id)
        try:
            removed = self._backend.delete(query)
        except ProjectAIBackendError as e:
            return self._action_failed("removing project member", e)
        if not removed:
            return ActionResult(False, message="User is not a member of this project")

        self._invalidate(("project", self.project_id), ("dashboard",))
        self._record_done("delete", "project_members", None)
        self._audited(
            "project_members", self.project_id, "delete", old={"user_id": user_id},
        )
        return ActionResult(True, message="Member removed")
