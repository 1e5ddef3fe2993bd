"""Unit tests for projectai.security.permissions and projectai.security.access."""

from unittest.mock import MagicMock

import pytest

from projectai.engine.context import SessionContext
from projectai.engine.errors import ProjectAIBackendError, ProjectAISecurityError
from projectai.security.access import ProjectAccessChecker
from projectai.security.permissions import CAPABILITIES, can, capabilities_for, require


class TestRoleGates:

    def test_admin_has_everything(self):
        assert capabilities_for("admin") == frozenset(CAPABILITIES)

    def test_manager_cannot_touch_team_or_delete(self):
        caps = capabilities_for("manager")
        assert "project.create" in caps
        assert "task.edit" in caps
        assert "project.delete" not in caps
        assert "team.edit_role" not in caps
        assert "settings.admin_tab" not in caps

    def test_member_is_read_only(self):
        assert capabilities_for("member") == frozenset()

    def test_unknown_role_gets_nothing(self):
        assert not can("wizard", "project.create")
        assert not can(None, "project.create")

    def test_unknown_capability(self):
        with pytest.raises(KeyError):
            can("admin", "project.launch")


class TestRequire:

    def test_allowed(self):
        require(SessionContext("u1", "a@b.c", "manager"), "project.create")

    def test_denied_carries_details(self):
        ctx = SessionContext("u1", "a@b.c", "member")
        with pytest.raises(ProjectAISecurityError) as exc:
            require(ctx, "project.create")
        assert exc.value.role == "member"
        assert exc.value.capability == "project.create"
        assert exc.value.execution_id == ctx.execution_id


class TestProjectAccessChecker:

    @pytest.fixture
    def project(self, sql_backend, team):
        project = sql_backend.insert("projects", {"name": "Apollo", "owner_id": team["manager"]["id"]})
        sql_backend.insert("project_members", {
            "project_id": project["id"], "user_id": team["member"]["id"], "role": "contributor",
        })
        return project

    def test_owner_may_do_anything(self, sql_backend, team, project):
        checker = ProjectAccessChecker(sql_backend)
        for action in ("read", "write", "delete"):
            assert checker.can_access(project["id"], team["manager"]["id"], action)

    def test_member_reads_only(self, sql_backend, team, project):
        checker = ProjectAccessChecker(sql_backend)
        assert checker.can_access(project["id"], team["member"]["id"], "read")
        assert not checker.can_access(project["id"], team["member"]["id"], "write")

    def test_outsider(self, sql_backend, team, project):
        assert not ProjectAccessChecker(sql_backend).can_access(project["id"], team["admin"]["id"], "read")

    def test_missing_project(self, sql_backend, team):
        assert not ProjectAccessChecker(sql_backend).can_access("nope", team["admin"]["id"], "read")

    def test_backend_error_means_no(self):
        backend = MagicMock()
        backend.select_one.side_effect = ProjectAIBackendError("timeout")
        assert not ProjectAccessChecker(backend).can_access("p1", "u1", "read")

    def test_unknown_action(self, sql_backend):
        with pytest.raises(ValueError):
            ProjectAccessChecker(sql_backend).can_access("p1", "u1", "archive")
