"""
Analytics page: project/task totals, team utilization and chart series.

If any of the three fetches fails the page shows static placeholder
figures instead of an empty state. ``AnalyticsData.is_placeholder`` marks
that case so callers can tell sample numbers from real ones.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from projectai.backend.query import Query
from projectai.engine.errors import ProjectAIBackendError
from projectai.records import Profile, Project, Task
from projectai.services.formatting import chart_color, status_label
from projectai.views.base import Notice, ViewService

WEEKS_SHOWN = 4


@dataclass
class ChartPoint:
    name: str
    value: int
    color: str


@dataclass
class WeekPoint:
    week: str
    completed: int
    created: int


@dataclass
class AnalyticsData:
    total_projects: int = 0
    active_projects: int = 0
    completed_projects: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0
    overdue_tasks: int = 0
    team_utilization: int = 0
    projects_by_status: List[ChartPoint] = field(default_factory=list)
    tasks_by_priority: List[ChartPoint] = field(default_factory=list)
    weekly_progress: List[WeekPoint] = field(default_factory=list)
    is_placeholder: bool = False
    notices: List[Notice] = field(default_factory=list)

    @property
    def completion_rate(self) -> float:
        return self.completed_tasks / self.total_tasks * 100 if self.total_tasks else 0.0

    @property
    def project_success_rate(self) -> float:
        return self.completed_projects / self.total_projects * 100 if self.total_projects else 0.0


def placeholder_analytics() -> AnalyticsData:
    return AnalyticsData(
        total_projects=12,
        active_projects=5,
        completed_projects=4,
        total_tasks=86,
        completed_tasks=52,
        overdue_tasks=6,
        team_utilization=72,
        projects_by_status=[
            ChartPoint("active", 5, chart_color("active")),
            ChartPoint("completed", 4, chart_color("completed")),
            ChartPoint("planning", 2, chart_color("planning")),
            ChartPoint("on hold", 1, chart_color("on_hold")),
        ],
        tasks_by_priority=[
            ChartPoint("high", 21, chart_color("high")),
            ChartPoint("medium", 43, chart_color("medium")),
            ChartPoint("low", 22, chart_color("low")),
        ],
        weekly_progress=[
            WeekPoint("Week 1", 12, 15),
            WeekPoint("Week 2", 18, 20),
            WeekPoint("Week 3", 15, 12),
            WeekPoint("Week 4", 22, 18),
        ],
        is_placeholder=True,
    )


def weekly_progress(tasks: List[Task], today: date, weeks: int = WEEKS_SHOWN) -> List[WeekPoint]:
    """Tasks created and completed per 7-day bucket, oldest bucket first, ending today."""
    points = []
    for i in range(weeks):
        end = today - timedelta(days=7 * (weeks - 1 - i))
        start = end - timedelta(days=6)
        created = sum(
            1 for t in tasks if t.created_at and start <= t.created_at.date() <= end
        )
        completed = sum(
            1 for t in tasks
            if t.status == "completed" and t.updated_at and start <= t.updated_at.date() <= end
        )
        points.append(WeekPoint(f"Week {i + 1}", completed, created))
    return points


def compute_analytics(
    projects: List[Project],
    tasks: List[Task],
    profiles: List[Profile],
    today: date,
) -> AnalyticsData:
    status_counts = Counter(p.status for p in projects)
    priority_counts = Counter(t.priority or "medium" for t in tasks)
    utilization = (
        round(sum(p.workload or 0 for p in profiles) / len(profiles)) if profiles else 0
    )
    return AnalyticsData(
        total_projects=len(projects),
        active_projects=status_counts.get("active", 0),
        completed_projects=status_counts.get("completed", 0),
        total_tasks=len(tasks),
        completed_tasks=sum(1 for t in tasks if t.status == "completed"),
        overdue_tasks=sum(1 for t in tasks if t.is_overdue(today)),
        team_utilization=utilization,
        projects_by_status=[
            ChartPoint(status_label(s), n, chart_color(s)) for s, n in status_counts.items()
        ],
        tasks_by_priority=[
            ChartPoint(p, n, chart_color(p)) for p, n in priority_counts.items()
        ],
        weekly_progress=weekly_progress(tasks, today),
    )


class AnalyticsView(ViewService):

    area = "projects"

    def _load_rows(self):
        projects = [Project.model_validate(r) for r in self._backend.select(Query("projects"))]
        tasks = [Task.model_validate(r) for r in self._backend.select(Query("tasks"))]
        profiles = [Profile.model_validate(r) for r in self._backend.select(Query("profiles"))]
        return projects, tasks, profiles

    def load(self, today: Optional[date] = None) -> AnalyticsData:
        ctx = self.session
        try:
            projects, tasks, profiles = self._fetch(("analytics", ctx.user_id, ctx.role), self._load_rows)
        except ProjectAIBackendError as e:
            data = placeholder_analytics()
            data.notices.append(self._load_failed("analytics", e))
            return data
        return compute_analytics(projects, tasks, profiles, today or date.today())
