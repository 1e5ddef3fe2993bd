"""Display helpers shared by the views and the CLI."""

from __future__ import annotations

from typing import Optional

STATUS_COLORS = {
    "active": "#3B82F6",
    "completed": "#10B981",
    "planning": "#6B7280",
    "on_hold": "#F59E0B",
}

PRIORITY_COLORS = {
    "urgent": "#DC2626",
    "high": "#EF4444",
    "medium": "#F59E0B",
    "low": "#10B981",
}

FALLBACK_COLOR = "#6B7280"


def chart_color(key: Optional[str]) -> str:
    """Chart color for a status or priority value."""
    if key in STATUS_COLORS:
        return STATUS_COLORS[key]
    return PRIORITY_COLORS.get(key, FALLBACK_COLOR)


def status_label(status: Optional[str]) -> str:
    """
    >>> status_label("on_hold")
    'on hold'
    """
    return (status or "").replace("_", " ")


def format_budget(budget: Optional[float]) -> str:
    """
    >>> format_budget(1_500_000)
    '$1.5M'
    >>> format_budget(250_000)
    '$250K'
    >>> format_budget(999)
    '$999'
    """
    if budget is None:
        return "-"
    if budget >= 1_000_000:
        return f"${budget / 1_000_000:.1f}M"
    if budget >= 1_000:
        return f"${budget / 1_000:.0f}K"
    return f"${budget:,.0f}" if float(budget).is_integer() else f"${budget:,.2f}"
