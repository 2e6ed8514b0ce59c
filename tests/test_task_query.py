# tests/test_task_query.py

from __future__ import annotations

import pytest

from taskdesk.tasks.task_query import (
    SQLITE_INT_MAX,
    Predicate,
    SortKey,
    SortOrder,
    TaskQuery,
    and_,
    escape_like,
    parse_positive_int,
)


def test_defaults_when_nothing_given() -> None:
    q = TaskQuery.from_params({})
    assert q == TaskQuery()
    assert q.sort is SortKey.POSITION
    assert q.order is SortOrder.ASC
    assert (q.page, q.page_size, q.offset) == (1, 100, 0)
    assert q.where() is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 1),
        ("", 1),
        ("abc", 1),
        ("0", 1),
        ("-3", 1),
        ("3", 3),
        (" 7 ", 7),
        ("2abc", 2),
        (4, 4),
    ],
)
def test_parse_positive_int(raw, expected) -> None:
    assert parse_positive_int(raw, 1) == expected


def test_unknown_sort_and_order_fall_back() -> None:
    q = TaskQuery.from_params({"sort": "id; DROP TABLE tasks", "order": "sideways"})
    assert q.sort is SortKey.POSITION
    assert q.order is SortOrder.ASC


def test_sort_and_order_are_case_insensitive() -> None:
    q = TaskQuery.from_params({"sort": "Title", "order": "DESC"})
    assert q.sort is SortKey.TITLE
    assert q.order is SortOrder.DESC


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("true", True), ("TRUE", True), ("0", False), ("false", False), ("yes", False), ("", False)],
)
def test_completed_flag_encodings(raw, expected) -> None:
    assert TaskQuery.from_params({"completed": raw}).completed is expected


def test_empty_string_filters_are_ignored() -> None:
    q = TaskQuery.from_params({"q": "", "category": "", "priority": ""})
    assert q.text is None and q.category is None and q.priority is None


def test_limit_aliases() -> None:
    assert TaskQuery.from_params({"limit": "10"}).page_size == 10
    assert TaskQuery.from_params({"pageSize": "15"}).page_size == 15
    assert TaskQuery.from_params({"page_size": "20"}).page_size == 20
    assert TaskQuery.from_params({}, default_page_size=25).page_size == 25


def test_and_composes_params_in_order() -> None:
    combined = and_([Predicate("a = ?", (1,)), Predicate("b = ?", (2,))])
    assert combined == Predicate("(a = ?) AND (b = ?)", (1, 2))
    assert and_([]) is None


def test_escape_like() -> None:
    assert escape_like("100%_off\\") == "100\\%\\_off\\\\"


def test_to_sql_keeps_user_values_out_of_sql_text() -> None:
    evil = "x' OR '1'='1"
    q = TaskQuery(text=evil, completed=True, category=evil, priority="High", page=3, page_size=10)
    sql, params = q.to_sql()

    assert evil not in sql
    assert sql.count("?") == len(params)
    assert params == [f"%{evil}%", f"%{evil}%", 1, evil, "High", 10, 20]
    assert "ORDER BY position ASC, id ASC LIMIT ? OFFSET ?" in sql


def test_priority_sort_uses_rank() -> None:
    sql, _ = TaskQuery(sort=SortKey.PRIORITY, order=SortOrder.DESC).to_sql()
    assert "CASE priority WHEN 'High' THEN 1 WHEN 'Normal' THEN 2 ELSE 3 END DESC, id ASC" in sql


def test_huge_page_values_are_clamped_to_sqlite_range() -> None:
    q = TaskQuery.from_params({"page": "99999999999999999999", "limit": "99999999999999999999"})
    _, params = q.to_sql()
    assert params[-2:] == [SQLITE_INT_MAX, SQLITE_INT_MAX]
