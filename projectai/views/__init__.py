"""
ProjectAI views — one service per dashboard page.

Each service takes a backend client, the session context and (optionally)
the shared QueryCache, and returns plain dataclasses. Role flags on the
returned pages (``can_create``, ``show_admin_tab``...) only decide what is
offered; the backend's row-level security decides what succeeds.
"""

from projectai.views.analytics import AnalyticsView
from projectai.views.base import ActionResult, Notice
from projectai.views.dashboard import DashboardView
from projectai.views.project_detail import ProjectDetailView
from projectai.views.projects import ProjectsView
from projectai.views.settings import SettingsView
from projectai.views.tasks import TasksView
from projectai.views.team import TeamView

__all__ = [
    "ActionResult",
    "AnalyticsView",
    "DashboardView",
    "Notice",
    "ProjectDetailView",
    "ProjectsView",
    "SettingsView",
    "TasksView",
    "TeamView",
]
