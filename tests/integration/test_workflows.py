"""
Integration tests — multi-page workflows through ProjectAIRuntime.

Sign in, plan work, hand out roles, sign out; then check the structured
logs the runtime wrote along the way.
"""

from datetime import date

import pytest

from projectai.engine.context import get_session_context
from projectai.engine.errors import ProjectAISecurityError
from projectai.engine.logging import FileLogger, shutdown_logging


@pytest.mark.integration
class TestProjectLifecycle:

    def test_admin_plans_project_and_promotes_manager(self, runtime, project_root):
        admin = runtime.auth.establish_session("boss@corp.com")
        assert admin.role == "admin"
        admin_views = runtime.views_for(admin)

        created = admin_views.projects.create_project({
            "name": "Website Revamp", "status": "active", "budget": 120000,
            "start_date": "2025-01-06", "end_date": "2025-03-28",
        })
        assert created.success
        project_id = created.record["id"]

        task = admin_views.tasks.create_task({
            "name": "Wireframes", "project_id": project_id,
            "start_date": "2025-01-06", "end_date": "2025-01-17", "estimated_hours": 24,
        })
        assert task.success

        dev = runtime.auth.establish_session("dev@corp.com")
        assert dev.role == "member"
        dev_views = runtime.views_for(dev)
        assert dev_views.dashboard.load().recent_projects == []
        with pytest.raises(ProjectAISecurityError):
            dev_views.projects.create_project({"name": "Side quest"})

        detail = admin_views.project_detail(project_id)
        assert detail.add_member(dev.user_id, "contributor").success
        page = detail.load()
        assert [m.profile.email for m in page.members] == ["dev@corp.com"]
        assert page.estimated_hours == 24

        assert [p.name for p in runtime.views_for(dev).dashboard.load().recent_projects] == ["Website Revamp"]

        assert admin_views.team.update_member_role(dev.user_id, "manager").success
        promoted = runtime.auth.establish_session("dev@corp.com")
        assert promoted.role == "manager"
        assert runtime.views_for(promoted).projects.load().can_create

        analytics = admin_views.analytics.load(today=date(2025, 2, 1))
        assert analytics.total_projects == 1
        assert analytics.total_tasks == 1
        assert not analytics.is_placeholder

        runtime.auth.sign_out(promoted)
        assert get_session_context() is None

        shutdown_logging()
        logs = FileLogger(log_dir=str(project_root / "logs"))
        events = [e["event"] for e in logs.query("auth", "execution")]
        assert events.count("session_established") == 3
        assert "signed_out" in events
        role_changes = logs.query("team", "security", filters={"event": "role_changed"})
        assert role_changes[0]["new_role"] == "manager"
        assert logs.query("projects", "security")[0]["capability"] == "project.create"

    def test_bootstrap_admin_restored_on_sign_in(self, runtime):
        from projectai.backend.query import Query

        admin = runtime.auth.establish_session("boss@corp.com")
        with runtime.views_for(admin) as views:
            refused = views.settings.update_profile(admin.user_id, {"role": "member"})
            assert not refused.success
            # Demote the stored row behind the views' back
            views.backend.update(Query("profiles").eq("id", admin.user_id), {"role": "member"})

        again = runtime.auth.establish_session("boss@corp.com")
        assert again.role == "admin"
        with runtime.views_for(again) as views:
            assert views.settings.load().profile.role == "admin"

    def test_views_require_started_runtime(self, project_root):
        from projectai.engine.config import load_config
        from projectai.engine.context import SessionContext
        from projectai.runtime import ProjectAIRuntime

        rt = ProjectAIRuntime(load_config(str(project_root / "projectai.yaml")))
        with pytest.raises(RuntimeError):
            rt.views_for(SessionContext("u1", "a@b.c", "member"))
