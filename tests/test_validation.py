"""Unit tests for projectai.services.validation — validators, sanitizers and prepare_*."""

import pytest

from projectai.engine.errors import ProjectAIValidationError
from projectai.services.validation import (
    SELF_EDITABLE_PROFILE_FIELDS,
    prepare_project,
    prepare_task,
    sanitize_project,
    sanitize_task,
    to_date,
    to_number,
    validate_profile_update,
    validate_project,
    validate_task,
)


class TestValueHelpers:

    def test_to_number(self):
        assert to_number("12.5") == 12.5
        assert to_number(3) == 3.0
        assert to_number("lots") is None
        assert to_number(True) is None

    @pytest.mark.parametrize("raw", ["nan", "NaN", "inf", "-inf", float("nan"), float("inf")])
    def test_to_number_rejects_non_finite(self, raw):
        assert to_number(raw) is None

    def test_to_date(self):
        assert to_date("2025-01-10T08:00:00Z").isoformat() == "2025-01-10"
        assert to_date("10/01/2025") is None
        assert to_date(None) is None


class TestValidateProject:

    def test_valid(self):
        assert validate_project({"name": "Website Revamp", "status": "active", "budget": 5000}) == []

    def test_short_name(self):
        errors = validate_project({"name": "ab"})
        assert [(e.field, e.message) for e in errors] == [
            ("name", "Project name must be at least 3 characters long"),
        ]

    def test_missing_name(self):
        assert validate_project({})[0].code == "required"

    def test_end_before_start(self):
        errors = validate_project({
            "name": "Website Revamp", "start_date": "2025-01-10", "end_date": "2025-01-01",
        })
        assert [(e.field, e.message) for e in errors] == [
            ("end_date", "End date must be after start date"),
        ]

    def test_collects_every_error(self):
        errors = validate_project({
            "name": "x", "status": "paused", "progress": 120, "budget": -1,
            "color": "blue", "start_date": "someday",
        })
        assert [e.field for e in errors] == ["name", "status", "progress", "budget", "start_date", "color"]

    def test_negative_budget_message(self):
        (error,) = validate_project({"name": "Apollo", "budget": -5})
        assert error.message == "Budget must be a positive number"
        assert error.code == "negative"

    def test_long_description(self):
        errors = validate_project({"name": "Apollo", "description": "x" * 501})
        assert errors[0].message == "Description cannot exceed 500 characters"

    def test_non_finite_budget_and_progress(self):
        errors = validate_project({"name": "Website Revamp", "budget": "nan", "progress": "inf"})
        assert [(e.field, e.code) for e in errors] == [
            ("progress", "not_a_number"), ("budget", "not_a_number"),
        ]


class TestSanitizeProject:

    def test_trims_and_defaults(self):
        cleaned = sanitize_project({"name": "  Apollo  "})
        assert cleaned["name"] == "Apollo"
        assert cleaned["description"] == ""
        assert cleaned["status"] == "planning"
        assert cleaned["priority"] == "medium"
        assert cleaned["progress"] == 0
        assert cleaned["budget"] is None
        assert cleaned["color"] == "#3B82F6"

    def test_whitelists_and_clamps(self):
        cleaned = sanitize_project({
            "name": "Apollo", "status": "paused", "priority": "critical",
            "progress": 140, "budget": -5,
        })
        assert cleaned["status"] == "planning"
        assert cleaned["priority"] == "medium"
        assert cleaned["progress"] == 100
        assert cleaned["budget"] == 0.0

    def test_truncates_long_text(self):
        assert len(sanitize_project({"name": "n" * 150})["name"]) == 100

    def test_configured_default_color(self):
        assert sanitize_project({"name": "Apollo"}, default_color="#10B981")["color"] == "#10B981"
        assert sanitize_project({"name": "Apollo", "color": "#FF0000"}, default_color="#10B981")["color"] == "#FF0000"

    def test_non_finite_numbers_fall_back_to_defaults(self):
        cleaned = sanitize_project({"name": "Apollo", "budget": "nan", "progress": "inf"})
        assert cleaned["budget"] is None
        assert cleaned["progress"] == 0

    def test_dates_normalized(self):
        cleaned = sanitize_project({"name": "Apollo", "start_date": "2025-03-01T00:00:00", "end_date": "bad"})
        assert cleaned["start_date"] == "2025-03-01"
        assert cleaned["end_date"] is None


class TestPrepareProject:

    def test_reject_mode_refuses_negative_budget(self):
        with pytest.raises(ProjectAIValidationError) as exc:
            prepare_project({"name": "Apollo", "budget": -5})
        assert exc.value.fields == ["budget"]
        assert exc.value.validation_errors[0]["message"] == "Budget must be a positive number"

    def test_clamp_mode_accepts_negative_budget(self):
        assert prepare_project({"name": "Apollo", "budget": -5}, negative_budget="clamp")["budget"] == 0.0

    def test_clamp_mode_still_rejects_other_errors(self):
        with pytest.raises(ProjectAIValidationError) as exc:
            prepare_project({"name": "ab", "budget": -5}, negative_budget="clamp")
        assert exc.value.fields == ["name"]

    def test_nan_budget_refused_in_either_mode(self):
        for mode in ("reject", "clamp"):
            with pytest.raises(ProjectAIValidationError) as exc:
                prepare_project({"name": "Website Revamp", "budget": "nan"}, negative_budget=mode)
            assert exc.value.fields == ["budget"]

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            prepare_project({"name": "Apollo"}, negative_budget="ignore")


class TestTasks:

    def _task(self, **overrides):
        data = {"name": "Design mockups", "start_date": "2025-01-01", "end_date": "2025-01-07"}
        data.update(overrides)
        return data

    def test_valid(self):
        assert validate_task(self._task()) == []

    def test_dates_required(self):
        errors = validate_task({"name": "Design"})
        assert [e.field for e in errors] == ["start_date", "end_date"]

    def test_negative_hours(self):
        (error,) = validate_task(self._task(estimated_hours=-2))
        assert error.message == "Estimated hours must be a positive number"

    def test_sanitize_blank_links(self):
        cleaned = sanitize_task(self._task(assignee="  ", project_id=""))
        assert cleaned["assignee"] is None
        assert cleaned["project_id"] is None
        assert cleaned["status"] == "todo"

    def test_prepare_raises(self):
        with pytest.raises(ProjectAIValidationError, match="task validation failed"):
            prepare_task(self._task(end_date="2024-12-31"))


class TestProfileUpdate:

    def test_self_edit_drops_role(self):
        update = validate_profile_update(
            {"full_name": " Dana ", "role": "admin"}, SELF_EDITABLE_PROFILE_FIELDS,
        )
        assert update == {"full_name": "Dana"}

    def test_blank_becomes_null(self):
        assert validate_profile_update({"department": ""}) == {"department": None}

    def test_bad_role(self):
        with pytest.raises(ProjectAIValidationError) as exc:
            validate_profile_update({"role": "owner"})
        assert exc.value.fields == ["role"]

    def test_nothing_editable(self):
        with pytest.raises(ProjectAIValidationError, match="No editable fields supplied"):
            validate_profile_update({"email": "x@y.z"}, SELF_EDITABLE_PROFILE_FIELDS)
