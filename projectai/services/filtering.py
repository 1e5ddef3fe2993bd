"""
In-memory list filtering for the project, task and team views.

Views hold the whole fetched list and re-filter it on every change; data
volumes are small, so there is no pagination or server-side filtering.
Every filter keeps the original order. ``None``, ``""`` and ``"all"`` mean
"no filter".
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

ALL = "all"


def _value(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def _is_unset(choice: Optional[str]) -> bool:
    return choice is None or choice == "" or choice == ALL


def matches_search(item: Any, search: Optional[str], fields: Sequence[str]) -> bool:
    """Case-insensitive substring match of ``search`` against any of ``fields``."""
    if not search:
        return True
    needle = search.strip().lower()
    return any(needle in str(_value(item, f) or "").lower() for f in fields)


def matches_choice(item: Any, field: str, choice: Optional[str]) -> bool:
    return _is_unset(choice) or _value(item, field) == choice


def filter_items(
    items: Iterable[T],
    search: Optional[str] = None,
    search_fields: Sequence[str] = ("name", "description"),
    **choices: Optional[str],
) -> List[T]:
    return [
        item for item in items
        if matches_search(item, search, search_fields)
        and all(matches_choice(item, field, choice) for field, choice in choices.items())
    ]


def filter_projects(
    projects: Iterable[T],
    search: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
) -> List[T]:
    return filter_items(projects, search, ("name", "description"), status=status, priority=priority)


def filter_tasks(
    tasks: Iterable[T],
    search: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
) -> List[T]:
    return filter_items(tasks, search, ("name", "description"), status=status, priority=priority)


def filter_members(
    members: Iterable[T],
    search: Optional[str] = None,
    role: Optional[str] = None,
) -> List[T]:
    return filter_items(members, search, ("full_name", "email", "department"), role=role)


def has_active_filters(search: Optional[str] = None, **choices: Optional[str]) -> bool:
    """True when any filter would narrow the list (drives the empty-state message)."""
    return bool(search) or any(not _is_unset(c) for c in choices.values())
