"""Tasks page: list ordered by start date, filters, summary cards, Gantt rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from projectai.backend.query import Query
from projectai.engine.errors import ProjectAIBackendError, ProjectAIValidationError
from projectai.records import Task
from projectai.security.permissions import can, require
from projectai.services.filtering import filter_tasks, has_active_filters
from projectai.services.validation import TASK_RULES, prepare_task
from projectai.views.base import ActionResult, Notice, ViewService

logger = logging.getLogger("projectai.views.tasks")


@dataclass
class TaskSummary:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    overdue: int = 0


@dataclass
class GanttRow:
    id: str
    name: str
    start_day: int
    duration: int
    progress: int
    status: Optional[str]
    color: str


@dataclass
class TasksPage:
    tasks: List[Task]
    summary: TaskSummary
    gantt: List[GanttRow]
    has_filters: bool
    can_create: bool
    notices: List[Notice] = field(default_factory=list)


def summarize_tasks(tasks: List[Task], today: date) -> TaskSummary:
    return TaskSummary(
        total=len(tasks),
        completed=sum(1 for t in tasks if t.status == "completed"),
        in_progress=sum(1 for t in tasks if t.status == "in_progress"),
        overdue=sum(1 for t in tasks if t.is_overdue(today)),
    )


def gantt_rows(tasks: List[Task]) -> List[GanttRow]:
    """
    Timeline bars: ``start_day`` is the offset in days from the earliest
    start date; ``duration`` counts both the start and the end day.
    """
    if not tasks:
        return []
    earliest = min(t.start_date for t in tasks)
    return [
        GanttRow(
            id=t.id,
            name=t.name,
            start_day=(t.start_date - earliest).days,
            duration=(t.end_date - t.start_date).days + 1,
            progress=t.progress,
            status=t.status,
            color=t.color,
        )
        for t in tasks
    ]


class TasksView(ViewService):

    area = "tasks"

    def list_tasks(self, force: bool = False) -> List[Task]:
        ctx = self.session
        rows = self._fetch(
            ("tasks", ctx.user_id, ctx.role),
            lambda: self._backend.select(Query("tasks").order("start_date", ascending=True)),
            force=force,
        )
        return [Task.model_validate(r) for r in rows]

    def load(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        today: Optional[date] = None,
    ) -> TasksPage:
        ctx = self.session
        notices: List[Notice] = []
        try:
            tasks = self.list_tasks()
        except ProjectAIBackendError as e:
            tasks = []
            notices.append(self._load_failed("tasks", e))

        visible = filter_tasks(tasks, search, status, priority)
        return TasksPage(
            tasks=visible,
            summary=summarize_tasks(visible, today or date.today()),
            gantt=gantt_rows(visible),
            has_filters=has_active_filters(search, status=status, priority=priority),
            can_create=can(ctx.role, "task.create"),
            notices=notices,
        )

    def create_task(self, data: Dict[str, Any]) -> ActionResult:
        ctx = self.session
        require(ctx, "task.create")
        try:
            payload = prepare_task(data)
        except ProjectAIValidationError as e:
            return self._invalid("task", e)

        payload["user_id"] = ctx.user_id
        payload["description"] = payload["description"] or None
        try:
            row = self._backend.insert("tasks", payload)
        except ProjectAIBackendError as e:
            return self._action_failed("creating task", e)

        self._invalidate(("tasks",), ("dashboard",), ("analytics",))
        if payload.get("project_id"):
            self._invalidate(("project", payload["project_id"]))
        self._record_done("create", "tasks", row["id"], sorted(payload))
        self._audited("tasks", row["id"], "create", new=row)
        return ActionResult(True, message=f'Task "{row["name"]}" created successfully!', record=row)

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> ActionResult:
        require(self.session, "task.edit")
        try:
            current = self._backend.select_one(Query("tasks").eq("id", task_id))
        except ProjectAIBackendError as e:
            return self._action_failed("loading task", e)
        if current is None:
            return ActionResult(False, message="Task not found")

        try:
            cleaned = prepare_task({**current, **changes})
        except ProjectAIValidationError as e:
            return self._invalid("task", e)

        patch = {k: cleaned[k] for k in changes if k in TASK_RULES}
        if not patch:
            return ActionResult(False, message="Nothing to update")
        try:
            rows = self._backend.update(Query("tasks").eq("id", task_id), patch)
        except ProjectAIBackendError as e:
            return self._action_failed("updating task", e)

        self._invalidate(("tasks",), ("dashboard",), ("analytics",))
        self._record_done("update", "tasks", task_id, sorted(patch))
        self._audited(
            "tasks", task_id, "update", old={k: current.get(k) for k in patch}, new=patch,
        )
        return ActionResult(True, message="Task updated successfully", record=rows[0] if rows else None)
