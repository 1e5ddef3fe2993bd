"""Fixed enumerations shared by records, validation, filtering and views."""

ROLES = ("admin", "manager", "member")

PROJECT_STATUSES = ("planning", "active", "on_hold", "completed")
PROJECT_PRIORITIES = ("low", "medium", "high", "urgent")

TASK_STATUSES = ("todo", "in_progress", "review", "completed")
TASK_PRIORITIES = PROJECT_PRIORITIES

MEMBER_STATUSES = ("active", "inactive", "busy")

# Tables exposed by the backend. Schema and RLS policies live there, not here.
TABLES = (
    "profiles",
    "projects",
    "tasks",
    "project_members",
    "task_assignments",
    "audit_logs",
    "vendors",
)

DEFAULT_PROJECT_COLOR = "#3B82F6"
DEFAULT_TASK_COLOR = "#3B82F6"
