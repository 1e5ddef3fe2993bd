"""Unit tests for projectai.records — row models and their defaults."""

from datetime import date

from projectai.backend.query import Query
from projectai.records import AuditLog, Profile, Project, ProjectMember, Task, TaskAssignment, Vendor


class TestProfile:

    def test_missing_optional_columns(self):
        profile = Profile.model_validate({"id": "u1", "email": "dev@corp.com", "workload": None, "status": None})
        assert profile.workload == 0
        assert profile.status == "active"
        assert profile.display_name == "dev"

    def test_extra_columns_ignored(self):
        assert not hasattr(Profile(id="u1", email="a@b.c", salary=1), "salary")


class TestProjectAndTask:

    def test_project_tolerates_nulls(self):
        project = Project.model_validate({
            "id": "p1", "name": "Apollo", "owner_id": "u1",
            "status": None, "progress": None, "start_date": "2025-01-01",
        })
        assert project.status is None
        assert project.start_date == date(2025, 1, 1)

    def test_task_overdue(self):
        task = Task(id="t1", name="x", start_date=date(2025, 1, 1), end_date=date(2025, 1, 5))
        assert task.is_overdue(date(2025, 1, 6))
        assert not task.is_overdue(date(2025, 1, 5))
        assert not task.model_copy(update={"status": "completed"}).is_overdue(date(2025, 2, 1))


class TestStoredRows:

    def test_rows_validate(self, sql_backend, team):
        project = sql_backend.insert("projects", {"name": "Apollo", "owner_id": team["admin"]["id"]})
        member = sql_backend.insert("project_members", {"project_id": project["id"], "user_id": team["member"]["id"]})
        task = sql_backend.insert("tasks", {"name": "x", "start_date": "2025-01-01", "end_date": "2025-01-02"})
        assignment = sql_backend.insert("task_assignments", {
            "task_id": task["id"], "assigned_user_id": team["member"]["id"],
            "assigned_by_user_id": team["admin"]["id"],
        })
        audit = sql_backend.insert("audit_logs", {
            "action": "create", "table_name": "projects", "record_id": project["id"],
            "user_id": team["admin"]["id"], "user_email": "boss@corp.com", "new_data": {"name": "Apollo"},
        })
        vendor = sql_backend.insert("vendors", {
            "company_name": "Acme", "contact_name": "Road Runner", "email": "rr@acme.test",
            "submitted_by_email": "mia@corp.com",
        })

        assert ProjectMember.model_validate(member).joined_at is not None
        assert TaskAssignment.model_validate(assignment).notified_at is None
        assert AuditLog.model_validate(audit).new_data == {"name": "Apollo"}
        assert Vendor.model_validate(vendor).status == "pending"
        assert sql_backend.count(Query("vendors").eq("status", "pending")) == 1
