"""ProjectAI records — pydantic models for backend table rows."""

from .constants import (
    MEMBER_STATUSES,
    PROJECT_PRIORITIES,
    PROJECT_STATUSES,
    ROLES,
    TABLES,
    TASK_PRIORITIES,
    TASK_STATUSES,
)
from .profile import Profile
from .project import Project, ProjectMember
from .task import Task, TaskAssignment
from .audit import AuditLog, Vendor

__all__ = [
    "AuditLog",
    "MEMBER_STATUSES",
    "PROJECT_PRIORITIES",
    "PROJECT_STATUSES",
    "Profile",
    "Project",
    "ProjectMember",
    "ROLES",
    "TABLES",
    "TASK_PRIORITIES",
    "TASK_STATUSES",
    "Task",
    "TaskAssignment",
    "Vendor",
]
