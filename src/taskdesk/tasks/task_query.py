# src/taskdesk/tasks/task_query.py

"""
Filter / sort / pagination for task listing.

TaskQuery is the structured form of a list request. It is usually built from
raw transport parameters with TaskQuery.from_params(), which is permissive:
unknown sort keys, orders and malformed page numbers fall back to defaults
instead of failing.

SQL is assembled from Predicate objects. User values only ever travel as
bound parameters; column names and sort expressions come from fixed tables.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from .task_models import Priority

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 100

# Largest value SQLite can bind as INTEGER.
SQLITE_INT_MAX = 2**63 - 1

_LIKE_ESCAPE = "\\"
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_TRUTHY = {"1", "true"}


class SortKey(StrEnum):
    CREATED_AT = "created_at"
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    TITLE = "title"
    POSITION = "position"

    @classmethod
    def parse(cls, raw: Any) -> SortKey:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.POSITION


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, raw: Any) -> SortOrder:
        if raw is not None and str(raw).strip().lower() == cls.DESC:
            return cls.DESC
        return cls.ASC


_SORT_EXPRESSIONS: dict[SortKey, str] = {
    SortKey.CREATED_AT: "created_at",
    SortKey.DUE_DATE: "due_date",
    SortKey.PRIORITY: (
        f"CASE priority WHEN '{Priority.HIGH.value}' THEN 1 "
        f"WHEN '{Priority.NORMAL.value}' THEN 2 ELSE 3 END"
    ),
    SortKey.TITLE: "LOWER(title)",
    SortKey.POSITION: "position",
}


@dataclass(frozen=True, slots=True)
class Predicate:
    """A SQL boolean expression with its bound parameters."""

    sql: str
    params: tuple[Any, ...] = ()


def and_(predicates: Iterable[Predicate]) -> Predicate | None:
    """Combine predicates with AND; None when there is nothing to combine."""
    items = list(predicates)
    if not items:
        return None
    if len(items) == 1:
        return items[0]
    sql = " AND ".join(f"({p.sql})" for p in items)
    params: tuple[Any, ...] = ()
    for p in items:
        params += p.params
    return Predicate(sql, params)


def equals(column: str, value: Any) -> Predicate:
    return Predicate(f"{column} = ?", (value,))


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so `value` matches literally."""
    return (
        value.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def contains_any(columns: Iterable[str], needle: str) -> Predicate:
    """
    Case-insensitive substring match against any of `columns`.

    SQLite LIKE folds ASCII case only.
    """
    pattern = f"%{escape_like(needle)}%"
    cols = list(columns)
    sql = " OR ".join(f"{c} LIKE ? ESCAPE '{_LIKE_ESCAPE}'" for c in cols)
    return Predicate(sql, tuple(pattern for _ in cols))


def parse_bool_flag(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in _TRUTHY


def parse_positive_int(raw: Any, default: int) -> int:
    """Leading-integer parse; anything missing, non-numeric or < 1 gives `default`."""
    if raw is None:
        return default
    if isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        return raw if raw >= 1 else default
    m = _LEADING_INT.match(str(raw))
    if not m:
        return default
    value = int(m.group(1))
    return value if value >= 1 else default


def _non_empty(raw: Any) -> str | None:
    if raw is None:
        return None
    s = str(raw)
    return s if s else None


@dataclass(frozen=True, slots=True)
class TaskQuery:
    text: str | None = None
    completed: bool | None = None
    category: str | None = None
    priority: str | None = None
    sort: SortKey = SortKey.POSITION
    order: SortOrder = SortOrder.ASC
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        *,
        default_page_size: int = DEFAULT_PAGE_SIZE,
    ) -> TaskQuery:
        """
        Build a query from transport parameters:
        q, completed, category, priority, sort, order, page, limit
        (page_size / pageSize are accepted as aliases of limit).
        """
        raw_size = params.get("limit")
        if raw_size is None:
            raw_size = params.get("page_size", params.get("pageSize"))

        raw_completed = params.get("completed")

        return cls(
            text=_non_empty(params.get("q")),
            completed=None if raw_completed is None else parse_bool_flag(raw_completed),
            category=_non_empty(params.get("category")),
            priority=_non_empty(params.get("priority")),
            sort=SortKey.parse(params.get("sort")),
            order=SortOrder.parse(params.get("order")),
            page=parse_positive_int(params.get("page"), DEFAULT_PAGE),
            page_size=parse_positive_int(raw_size, default_page_size),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def where(self) -> Predicate | None:
        preds: list[Predicate] = []
        if self.text:
            preds.append(contains_any(("title", "description"), self.text))
        if self.completed is not None:
            preds.append(equals("completed", 1 if self.completed else 0))
        if self.category:
            preds.append(equals("category", self.category))
        if self.priority:
            preds.append(equals("priority", self.priority))
        return and_(preds)

    def order_by(self) -> str:
        direction = "DESC" if self.order == SortOrder.DESC else "ASC"
        # id keeps ties in insertion order regardless of direction.
        return f"{_SORT_EXPRESSIONS[self.sort]} {direction}, id ASC"

    def to_sql(self) -> tuple[str, list[Any]]:
        sql = "SELECT * FROM tasks"
        params: list[Any] = []

        where = self.where()
        if where is not None:
            sql += f" WHERE {where.sql}"
            params.extend(where.params)

        sql += f" ORDER BY {self.order_by()} LIMIT ? OFFSET ?"
        # Paging past the end must give an empty page, not an overflow on bind.
        params.extend([min(self.page_size, SQLITE_INT_MAX), min(self.offset, SQLITE_INT_MAX)])
        return sql, params
