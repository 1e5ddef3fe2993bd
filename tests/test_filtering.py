"""Unit tests for projectai.services.filtering and projectai.services.formatting."""

from projectai.records import Profile
from projectai.services.filtering import (
    filter_members,
    filter_projects,
    filter_tasks,
    has_active_filters,
)
from projectai.services.formatting import chart_color, format_budget, status_label

PROJECTS = [
    {"id": "1", "name": "Website Revamp", "description": "New marketing site", "status": "active", "priority": "high"},
    {"id": "2", "name": "Data Lake", "description": None, "status": "planning", "priority": "high"},
    {"id": "3", "name": "Mobile App", "description": "iOS and Android website wrapper", "status": "active", "priority": "low"},
    {"id": "4", "name": "Audit", "description": "", "status": "completed", "priority": "medium"},
]


class TestFilterProjects:

    def test_status_keeps_order(self):
        assert [p["id"] for p in filter_projects(PROJECTS, status="active")] == ["1", "3"]

    def test_search_name_and_description_case_insensitive(self):
        assert [p["id"] for p in filter_projects(PROJECTS, search="WEBSITE")] == ["1", "3"]

    def test_combined(self):
        assert [p["id"] for p in filter_projects(PROJECTS, search="website", priority="low")] == ["3"]

    def test_all_means_no_filter(self):
        assert filter_projects(PROJECTS, search="", status="all", priority=None) == PROJECTS

    def test_no_match(self):
        assert filter_projects(PROJECTS, search="blockchain") == []


class TestFilterTasksAndMembers:

    def test_tasks(self):
        tasks = [
            {"name": "Design", "description": "mockups", "status": "todo", "priority": "high"},
            {"name": "Build", "description": None, "status": "in_progress", "priority": None},
        ]
        assert filter_tasks(tasks, status="in_progress") == [tasks[1]]
        assert filter_tasks(tasks, search="mock") == [tasks[0]]

    def test_members_work_on_models(self):
        members = [
            Profile(id="a", email="boss@corp.com", full_name="Alex Boss", role="admin", department="Exec"),
            Profile(id="b", email="dev@corp.com", full_name="Sam Dev", role="member", department="Engineering"),
        ]
        assert [m.id for m in filter_members(members, search="engin")] == ["b"]
        assert [m.id for m in filter_members(members, search="corp", role="admin")] == ["a"]


class TestHasActiveFilters:

    def test_inactive(self):
        assert not has_active_filters("", status="all", priority=None)

    def test_active(self):
        assert has_active_filters("web")
        assert has_active_filters(None, status="active")


class TestFormatting:

    def test_budget(self):
        assert format_budget(None) == "-"
        assert format_budget(1_500_000) == "$1.5M"
        assert format_budget(250_000) == "$250K"
        assert format_budget(999) == "$999"
        assert format_budget(12.5) == "$12.50"

    def test_status_label(self):
        assert status_label("in_progress") == "in progress"
        assert status_label(None) == ""

    def test_chart_color(self):
        assert chart_color("completed") == "#10B981"
        assert chart_color("urgent") == "#DC2626"
        assert chart_color("unknown") == "#6B7280"
