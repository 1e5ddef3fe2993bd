"""Task and TaskAssignment records."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class Task(BaseModel):
    """Row of the ``tasks`` table. ``project_id`` is optional."""

    id: str
    name: str
    description: Optional[str] = None
    status: Optional[str] = "todo"
    priority: Optional[str] = None
    progress: int = Field(default=0)
    start_date: date
    end_date: date
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None
    assignee: Optional[str] = None
    project_id: Optional[str] = None
    user_id: Optional[str] = None
    color: str = "#3B82F6"
    dependencies: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"extra": "ignore"}

    def is_overdue(self, today: date) -> bool:
        return self.end_date < today and self.status != "completed"


class TaskAssignment(BaseModel):
    id: Optional[str] = None
    task_id: Optional[str] = None
    assigned_user_id: Optional[str] = None
    assigned_by_user_id: Optional[str] = None
    notified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"extra": "ignore"}
