"""Project and ProjectMember records."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class Project(BaseModel):
    """
    Row of the ``projects`` table.

    The backend stores status/priority/progress as nullable columns, so the
    record tolerates None and leaves defaulting to validation on write.
    """

    id: str
    name: str
    description: Optional[str] = None
    status: Optional[str] = "planning"
    priority: Optional[str] = "medium"
    progress: Optional[int] = Field(default=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[float] = None
    color: Optional[str] = None
    owner_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"extra": "ignore"}


class ProjectMember(BaseModel):
    """Join row linking a profile to a project with a project-level role."""

    id: Optional[str] = None
    project_id: str
    user_id: str
    role: Optional[str] = None
    joined_at: Optional[datetime] = None

    model_config = {"extra": "ignore"}
