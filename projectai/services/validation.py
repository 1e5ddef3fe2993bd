"""
ProjectAI Validation — one rule table per entity, used by both validation
and sanitization.

    validate_project(data)   → every FieldError found (empty list = valid)
    sanitize_project(data)   → cleaned dict ready for insert (never raises)
    prepare_project(data)    → sanitize after validate, or raise
                               ProjectAIValidationError with all errors

Negative budgets: the validator rejects them, the sanitizer clamps them to
0. ``prepare_project(negative_budget="clamp")`` lets the sanitizer win;
the default ``"reject"`` keeps the validator's answer. Which one a
deployment uses is ``validation.negative_budget`` in projectai.yaml.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from projectai.engine.errors import ProjectAIValidationError
from projectai.records.constants import (
    DEFAULT_PROJECT_COLOR,
    DEFAULT_TASK_COLOR,
    MEMBER_STATUSES,
    PROJECT_PRIORITIES,
    PROJECT_STATUSES,
    ROLES,
    TASK_PRIORITIES,
    TASK_STATUSES,
)

COLOR_PATTERN = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    code: str = "invalid"

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class Rule:
    """
    Field rule. ``kind`` is one of text / number / choice / color / date.
    ``default`` is what the sanitizer substitutes for a missing or
    out-of-range value.
    """

    kind: str
    label: str
    required: bool = False
    min_length: int = 0
    max_length: Optional[int] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    choices: Sequence[str] = ()
    default: Any = None


PROJECT_RULES: Dict[str, Rule] = {
    "name": Rule("text", "Project name", required=True, min_length=3, max_length=100, default=""),
    "description": Rule("text", "Description", max_length=500, default=""),
    "status": Rule("choice", "Status", choices=PROJECT_STATUSES, default="planning"),
    "priority": Rule("choice", "Priority", choices=PROJECT_PRIORITIES, default="medium"),
    "progress": Rule("number", "Progress", minimum=0, maximum=100, default=0),
    "budget": Rule("number", "Budget", minimum=0),
    "start_date": Rule("date", "Start date"),
    "end_date": Rule("date", "End date"),
    "color": Rule("color", "Color", default=DEFAULT_PROJECT_COLOR),
}

TASK_RULES: Dict[str, Rule] = {
    "name": Rule("text", "Task name", required=True, min_length=1, max_length=200, default=""),
    "description": Rule("text", "Description", max_length=1000, default=""),
    "status": Rule("choice", "Status", choices=TASK_STATUSES, default="todo"),
    "priority": Rule("choice", "Priority", choices=TASK_PRIORITIES, default="medium"),
    "progress": Rule("number", "Progress", minimum=0, maximum=100, default=0),
    "start_date": Rule("date", "Start date", required=True),
    "end_date": Rule("date", "End date", required=True),
    "estimated_hours": Rule("number", "Estimated hours", minimum=0),
    "actual_hours": Rule("number", "Actual hours", minimum=0),
    "assignee": Rule("text", "Assignee", max_length=200),
    "project_id": Rule("text", "Project"),
    "color": Rule("color", "Color", default=DEFAULT_TASK_COLOR),
}

PROFILE_RULES: Dict[str, Rule] = {
    "full_name": Rule("text", "Full name", max_length=200),
    "department": Rule("text", "Department", max_length=120),
    "position": Rule("text", "Position", max_length=120),
    "role": Rule("choice", "Role", choices=ROLES),
    "workload": Rule("number", "Workload", minimum=0, maximum=100),
    "status": Rule("choice", "Status", choices=MEMBER_STATUSES),
}

# Profile fields a user may change on their own profile.
SELF_EDITABLE_PROFILE_FIELDS = ("full_name", "department", "position")


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------

def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def to_number(value: Any) -> Optional[float]:
    """
    Finite number from an int/float/numeric string, else None.
    Booleans are not numbers; nor are NaN and the infinities.

    >>> to_number(" 12.5 "), to_number("nan"), to_number("inf")
    (12.5, None, None)
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def to_date(value: Any) -> Optional[date]:
    """date from a date/datetime or an ISO string (time part ignored), else None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def _check(field: str, rule: Rule, value: Any) -> List[FieldError]:
    if _is_blank(value):
        if rule.required:
            if rule.kind == "text" and rule.min_length > 1:
                return [FieldError(
                    field, f"{rule.label} must be at least {rule.min_length} characters long", "required",
                )]
            return [FieldError(field, f"{rule.label} is required", "required")]
        return []

    if rule.kind == "text":
        text = str(value)
        errors = []
        if len(text.strip()) < rule.min_length:
            errors.append(FieldError(
                field, f"{rule.label} must be at least {rule.min_length} characters long", "too_short",
            ))
        if rule.max_length is not None and len(text) > rule.max_length:
            errors.append(FieldError(
                field, f"{rule.label} cannot exceed {rule.max_length} characters", "too_long",
            ))
        return errors

    if rule.kind == "number":
        number = to_number(value)
        if number is None:
            return [FieldError(field, f"{rule.label} must be a number", "not_a_number")]
        if rule.minimum == 0 and rule.maximum is None and number < 0:
            return [FieldError(field, f"{rule.label} must be a positive number", "negative")]
        if (rule.minimum is not None and number < rule.minimum) or (
            rule.maximum is not None and number > rule.maximum
        ):
            return [FieldError(
                field,
                f"{rule.label} must be between {rule.minimum:g} and {rule.maximum:g}",
                "out_of_range",
            )]
        return []

    if rule.kind == "choice":
        if value not in rule.choices:
            return [FieldError(
                field, f"{rule.label} must be one of: {', '.join(rule.choices)}", "not_allowed",
            )]
        return []

    if rule.kind == "color":
        if not isinstance(value, str) or not COLOR_PATTERN.match(value.strip()):
            return [FieldError(field, f"{rule.label} must be a hex color like #3B82F6", "bad_color")]
        return []

    if rule.kind == "date":
        if to_date(value) is None:
            return [FieldError(field, f"{rule.label} must be a valid date (YYYY-MM-DD)", "bad_date")]
        return []

    raise ValueError(f"Unknown rule kind: {rule.kind}")


def _clean(rule: Rule, value: Any) -> Any:
    if rule.kind == "text":
        if value is None:
            return rule.default
        text = str(value).strip()
        if rule.max_length is not None:
            text = text[: rule.max_length]
        return text if text or rule.default is not None else None

    if rule.kind == "number":
        number = to_number(value)
        if number is None:
            return rule.default
        if rule.minimum is not None:
            number = max(float(rule.minimum), number)
        if rule.maximum is not None:
            number = min(float(rule.maximum), number)
        return int(number) if rule.maximum is not None else number

    if rule.kind == "choice":
        return value if value in rule.choices else rule.default

    if rule.kind == "color":
        if isinstance(value, str) and COLOR_PATTERN.match(value.strip()):
            return value.strip()
        return rule.default

    if rule.kind == "date":
        parsed = to_date(value)
        return parsed.isoformat() if parsed else None

    raise ValueError(f"Unknown rule kind: {rule.kind}")


def _validate(data: Dict[str, Any], rules: Dict[str, Rule]) -> List[FieldError]:
    errors: List[FieldError] = []
    for field, rule in rules.items():
        errors.extend(_check(field, rule, data.get(field)))

    start, end = to_date(data.get("start_date")), to_date(data.get("end_date"))
    if start and end and end < start:
        errors.append(FieldError("end_date", "End date must be after start date", "before_start"))
    return errors


def _sanitize(data: Dict[str, Any], rules: Dict[str, Rule]) -> Dict[str, Any]:
    return {field: _clean(rule, data.get(field)) for field, rule in rules.items()}


def _raise_if_errors(entity: str, errors: List[FieldError]) -> None:
    if errors:
        raise ProjectAIValidationError(
            f"{entity} validation failed: " + "; ".join(e.message for e in errors),
            validation_errors=[e.to_dict() for e in errors],
            entity=entity,
        )


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

def validate_project(data: Dict[str, Any]) -> List[FieldError]:
    """
    Check every project field and collect all errors; nothing aborts early.

    >>> [e.field for e in validate_project({"name": "ab"})]
    ['name']
    """
    return _validate(data, PROJECT_RULES)


def sanitize_project(data: Dict[str, Any], default_color: str = DEFAULT_PROJECT_COLOR) -> Dict[str, Any]:
    """
    Trim strings, whitelist enumerations, clamp numeric ranges.

    >>> sanitize_project({"name": " Apollo ", "budget": -5, "progress": 140})["budget"]
    0.0
    """
    cleaned = _sanitize(data, PROJECT_RULES)
    if cleaned["color"] == DEFAULT_PROJECT_COLOR:
        cleaned["color"] = default_color
    return cleaned


def prepare_project(
    data: Dict[str, Any],
    negative_budget: str = "reject",
    default_color: str = DEFAULT_PROJECT_COLOR,
) -> Dict[str, Any]:
    """
    Validated + sanitized project payload.

    Raises:
        ProjectAIValidationError carrying every field error.
    """
    if negative_budget not in ("reject", "clamp"):
        raise ValueError(f"negative_budget must be reject/clamp, got '{negative_budget}'")
    errors = validate_project(data)
    if negative_budget == "clamp":
        errors = [e for e in errors if not (e.field == "budget" and e.code == "negative")]
    _raise_if_errors("project", errors)
    return sanitize_project(data, default_color=default_color)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

def validate_task(data: Dict[str, Any]) -> List[FieldError]:
    return _validate(data, TASK_RULES)


def sanitize_task(data: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = _sanitize(data, TASK_RULES)
    cleaned["assignee"] = cleaned["assignee"] or None
    cleaned["project_id"] = cleaned["project_id"] or None
    return cleaned


def prepare_task(data: Dict[str, Any]) -> Dict[str, Any]:
    _raise_if_errors("task", validate_task(data))
    return sanitize_task(data)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

def validate_profile_update(
    data: Dict[str, Any],
    allowed_fields: Sequence[str] = tuple(PROFILE_RULES),
) -> Dict[str, Any]:
    """
    Whitelisted, validated subset of ``data`` for a profile update.

    Fields outside ``allowed_fields`` are dropped. Raises
    ProjectAIValidationError if a kept field is invalid or nothing is left.
    """
    kept = {k: v for k, v in data.items() if k in allowed_fields and k in PROFILE_RULES}
    errors: List[FieldError] = []
    for field, value in kept.items():
        errors.extend(_check(field, PROFILE_RULES[field], value))
    if not kept:
        errors.append(FieldError("profile", "No editable fields supplied", "empty"))
    _raise_if_errors("profile", errors)

    update: Dict[str, Any] = {}
    for field, value in kept.items():
        rule = PROFILE_RULES[field]
        update[field] = None if _is_blank(value) else _clean(rule, value)
    return update
