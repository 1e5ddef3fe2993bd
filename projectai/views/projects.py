"""Projects page: list, filter, create, edit, delete."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from projectai.backend.query import Query
from projectai.engine.errors import ProjectAIBackendError, ProjectAIValidationError
from projectai.records import Project
from projectai.records.constants import DEFAULT_PROJECT_COLOR
from projectai.security.permissions import can, require
from projectai.services.filtering import filter_projects, has_active_filters
from projectai.services.validation import PROJECT_RULES, prepare_project
from projectai.views.base import ActionResult, Notice, ViewService

logger = logging.getLogger("projectai.views.projects")


@dataclass
class ProjectsPage:
    projects: List[Project]
    total: int
    has_filters: bool
    can_create: bool
    notices: List[Notice] = field(default_factory=list)


class ProjectsView(ViewService):

    area = "projects"

    def __init__(
        self,
        backend,
        ctx=None,
        cache=None,
        negative_budget: str = "reject",
        default_color: str = DEFAULT_PROJECT_COLOR,
    ):
        super().__init__(backend, ctx, cache)
        self._negative_budget = negative_budget
        self._default_color = default_color

    def _key(self):
        ctx = self.session
        return ("projects", ctx.user_id, ctx.role)

    def list_projects(self, force: bool = False) -> List[Project]:
        """All projects visible to the session, newest first (cached per user and role)."""
        key = self._key()
        rows = self._fetch(
            key,
            lambda: self._backend.select(Query("projects").order("created_at", ascending=False)),
            force=force,
        )
        return [Project.model_validate(r) for r in rows]

    def load(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> ProjectsPage:
        ctx = self.session
        notices: List[Notice] = []
        try:
            projects = self.list_projects()
        except ProjectAIBackendError as e:
            projects = []
            notices.append(self._load_failed("projects", e))
        return ProjectsPage(
            projects=filter_projects(projects, search, status, priority),
            total=len(projects),
            has_filters=has_active_filters(search, status=status, priority=priority),
            can_create=can(ctx.role, "project.create"),
            notices=notices,
        )

    def refresh(self) -> List[Project]:
        return self.list_projects(force=True)

    def create_project(self, data: Dict[str, Any]) -> ActionResult:
        ctx = self.session
        require(ctx, "project.create")
        try:
            payload = prepare_project(
                data, negative_budget=self._negative_budget, default_color=self._default_color,
            )
        except ProjectAIValidationError as e:
            return self._invalid("project", e)

        payload["owner_id"] = ctx.user_id
        payload["description"] = payload["description"] or None
        try:
            row = self._backend.insert("projects", payload)
        except ProjectAIBackendError as e:
            return self._action_failed("creating project", e)

        self._invalidate(("projects",), ("dashboard",), ("analytics",))
        self._record_done("create", "projects", row["id"], sorted(payload))
        self._audited("projects", row["id"], "create", new=row)
        logger.info(f"Project created: {row['name']} ({row['id']}) by {ctx.email}")
        return ActionResult(True, message=f'Project "{row["name"]}" created successfully!', record=row)

    def update_project(self, project_id: str, changes: Dict[str, Any]) -> ActionResult:
        """Apply ``changes`` on top of the stored row; the merged row must validate."""
        require(self.session, "project.edit")
        try:
            current = self._backend.select_one(Query("projects").eq("id", project_id))
        except ProjectAIBackendError as e:
            return self._action_failed("loading project", e)
        if current is None:
            return ActionResult(False, message="Project not found")

        merged = {**current, **changes}
        try:
            cleaned = prepare_project(
                merged, negative_budget=self._negative_budget, default_color=self._default_color,
            )
        except ProjectAIValidationError as e:
            return self._invalid("project", e)

        patch = {k: cleaned[k] for k in changes if k in PROJECT_RULES}
        if not patch:
            return ActionResult(False, message="Nothing to update")
        try:
            rows = self._backend.update(Query("projects").eq("id", project_id), patch)
        except ProjectAIBackendError as e:
            return self._action_failed("updating project", e)
        if not rows:
            return ActionResult(False, message="Project not found")

        self._invalidate(("projects",), ("project", project_id), ("dashboard",), ("analytics",))
        self._record_done("update", "projects", project_id, sorted(patch))
        self._audited(
            "projects", project_id, "update",
            old={k: current.get(k) for k in patch}, new=patch,
        )
        return ActionResult(True, message="Project updated successfully", record=rows[0])

    def delete_project(self, project_id: str) -> ActionResult:
        require(self.session, "project.delete")
        try:
            deleted = self._backend.delete(Query("projects").eq("id", project_id))
        except ProjectAIBackendError as e:
            return self._action_failed("deleting project", e)
        if not deleted:
            return ActionResult(False, message="Project not found")

        self._invalidate(("projects",), ("project", project_id), ("dashboard",), ("analytics",))
        self._record_done("delete", "projects", project_id)
        self._audited("projects", project_id, "delete")
        return ActionResult(True, message="Project deleted")
