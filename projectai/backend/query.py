"""
Query description shared by the REST and SQL backends.

A Query is a value object: builder methods return new instances, so a base
query can be reused across role-scoped variants.

    Query("projects").eq("status", "active").order("created_at", ascending=False)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Tuple

OPERATORS = ("eq", "neq", "in", "lt", "lte", "gt", "gte", "ilike")


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True


@dataclass(frozen=True)
class Query:
    table: str
    columns: str = "*"
    filters: Tuple[Filter, ...] = ()
    # Rows match when ANY of these filters match (ANDed with ``filters``)
    any_of: Tuple[Filter, ...] = ()
    orders: Tuple[Order, ...] = ()
    limit_to: Optional[int] = None

    def select(self, columns: str) -> "Query":
        return replace(self, columns=columns)

    def where(self, column: str, op: str, value: Any) -> "Query":
        return replace(self, filters=self.filters + (Filter(column, op, value),))

    def eq(self, column: str, value: Any) -> "Query":
        return self.where(column, "eq", value)

    def in_(self, column: str, values) -> "Query":
        return self.where(column, "in", tuple(values))

    def or_(self, *filters: Filter) -> "Query":
        return replace(self, any_of=self.any_of + tuple(filters))

    def order(self, column: str, ascending: bool = True) -> "Query":
        return replace(self, orders=self.orders + (Order(column, ascending),))

    def limit(self, n: int) -> "Query":
        return replace(self, limit_to=n)
