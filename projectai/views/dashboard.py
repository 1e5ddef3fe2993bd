"""
Dashboard: role-scoped project set, recent tasks, team size, headline stats.

Project scope by role:
    admin   — every project
    manager — projects they own plus projects they are a member of
    member  — projects they are a member of
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from projectai.backend.query import Filter, Query
from projectai.engine.errors import ProjectAIBackendError
from projectai.records import Project, Task
from projectai.security.permissions import can
from projectai.views.base import Notice, ViewService

RECENT_TASKS_LIMIT = 10
RECENT_ITEMS_SHOWN = 5


@dataclass
class DashboardStats:
    total_projects: int = 0
    active_projects: int = 0
    completed_tasks: int = 0
    total_tasks: int = 0
    team_members: int = 0
    avg_progress: int = 0


@dataclass
class DashboardData:
    stats: DashboardStats
    recent_projects: List[Project]
    recent_tasks: List[Task]
    can_quick_create: bool
    notices: List[Notice] = field(default_factory=list)


class DashboardView(ViewService):

    area = "projects"

    def _member_project_ids(self, user_id: str) -> List[str]:
        rows = self._backend.select(
            Query("project_members").select("project_id").eq("user_id", user_id)
        )
        return [r["project_id"] for r in rows]

    def scoped_projects(self) -> List[Project]:
        ctx = self.session
        query = Query("projects").order("created_at", ascending=False)
        if ctx.role == "member":
            ids = self._member_project_ids(ctx.user_id)
            if not ids:
                return []
            query = query.in_("id", ids)
        elif ctx.role == "manager":
            ids = self._member_project_ids(ctx.user_id)
            if ids:
                query = query.or_(Filter("owner_id", "eq", ctx.user_id), Filter("id", "in", tuple(ids)))
            else:
                query = query.eq("owner_id", ctx.user_id)
        return [Project.model_validate(r) for r in self._backend.select(query)]

    def _load_rows(self):
        projects = self.scoped_projects()
        tasks = [
            Task.model_validate(r) for r in self._backend.select(
                Query("tasks").order("created_at", ascending=False).limit(RECENT_TASKS_LIMIT)
            )
        ]
        team_count = self._backend.count(Query("profiles"))
        return projects, tasks, team_count

    def load(self) -> DashboardData:
        ctx = self.session
        notices: List[Notice] = []
        try:
            projects, tasks, team_count = self._fetch(
                ("dashboard", ctx.user_id, ctx.role), self._load_rows,
            )
        except ProjectAIBackendError as e:
            projects, tasks, team_count = [], [], 0
            notices.append(self._load_failed("dashboard data", e))

        avg_progress = (
            round(sum(p.progress or 0 for p in projects) / len(projects)) if projects else 0
        )
        stats = DashboardStats(
            total_projects=len(projects),
            active_projects=sum(1 for p in projects if p.status == "active"),
            completed_tasks=sum(1 for t in tasks if t.status == "completed"),
            total_tasks=len(tasks),
            team_members=team_count,
            avg_progress=avg_progress,
        )
        return DashboardData(
            stats=stats,
            recent_projects=projects[:RECENT_ITEMS_SHOWN],
            recent_tasks=tasks[:RECENT_ITEMS_SHOWN],
            can_quick_create=can(ctx.role, "dashboard.quick_create"),
            notices=notices,
        )
