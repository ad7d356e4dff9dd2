"""Tests for codeflow.projection — pure board views."""

from datetime import date, timedelta

import pytest

from codeflow.domain import Priority, Project, Status, Task, ValidationError
from codeflow.projection import (
    COLUMN_ORDER,
    format_due,
    is_overdue,
    matches,
    priority_filter,
    project_backlog,
    project_board,
    project_sidebar,
)

TODAY = date(2024, 2, 15)


@pytest.fixture
def sample_tasks():
    return [
        Task(id="t1", project="p1", title="Fix bug", priority=Priority.HIGH),
        Task(id="t2", project="p1", title="Write docs", priority=Priority.LOW),
    ]


@pytest.fixture
def mixed_tasks():
    return [
        Task(id="a", project="p1", title="A", status=Status.TODO, tags=["Crypto"]),
        Task(id="b", project="p1", title="B", status=Status.IN_PROGRESS),
        Task(id="c", project="p2", title="C", status=Status.TODO),
        Task(id="d", project="p1", title="D", status=Status.REVIEW, assignee="ada lovelace"),
        Task(id="e", project="p1", title="E", status=Status.DONE),
        Task(id="f", project="gone", title="Orphan", status=Status.TODO),
    ]


def _ids(columns, status):
    column = next(c for c in columns if c.status == status)
    return [card.task.id for card in column.cards]


def _all_ids(columns):
    return [card.task.id for c in columns for card in c.cards]


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def test_search_matches_title_case_insensitive(sample_tasks):
    columns = project_board(sample_tasks, "p1", search="fix", today=TODAY)
    assert _all_ids(columns) == ["t1"]


def test_priority_filter(sample_tasks):
    columns = project_board(sample_tasks, "p1", priority="low", today=TODAY)
    assert _all_ids(columns) == ["t2"]


@pytest.mark.parametrize("priority", [None, "low", "medium", "high", "critical"])
def test_non_matching_search_with_any_priority_is_empty(sample_tasks, priority):
    columns = project_board(sample_tasks, "p1", search="zzz", priority=priority, today=TODAY)
    assert _all_ids(columns) == []
    assert all(c.count == 0 for c in columns)


def test_search_matches_any_tag(mixed_tasks):
    columns = project_board(mixed_tasks, "p1", search="crypt", today=TODAY)
    assert _all_ids(columns) == ["a"]


def test_empty_priority_matches_all(sample_tasks):
    assert matches(sample_tasks[0], "", "")
    assert matches(sample_tasks[1], "", None)


def test_whitespace_query_is_not_trimmed(sample_tasks):
    spaceless = Task(id="t3", project="p1", title="Refactor")
    assert not matches(spaceless, " ")
    assert matches(sample_tasks[1], " ")  # "Write docs" contains a space
    columns = project_board(sample_tasks, "p1", search="   ", today=TODAY)
    assert _all_ids(columns) == []


def test_trailing_space_in_query_must_match_literally(sample_tasks):
    assert _all_ids(project_board(sample_tasks, "p1", search="docs ", today=TODAY)) == []
    assert _all_ids(project_board(sample_tasks, "p1", search="write ", today=TODAY)) == ["t2"]


def test_unknown_priority_filter_is_a_validation_error(sample_tasks):
    with pytest.raises(ValidationError, match="urgent"):
        project_board(sample_tasks, "p1", priority="urgent", today=TODAY)


def test_priority_filter_coercion():
    assert priority_filter(None) is None
    assert priority_filter("") is None
    assert priority_filter("high") is Priority.HIGH
    assert priority_filter(Priority.LOW) is Priority.LOW


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------


def test_fixed_column_order(mixed_tasks):
    columns = project_board(mixed_tasks, "p1", today=TODAY)
    assert [c.status for c in columns] == list(COLUMN_ORDER)
    assert [c.label for c in columns] == ["To Do", "In Progress", "In Review", "Done"]


def test_each_task_in_exactly_its_status_column(mixed_tasks):
    columns = project_board(mixed_tasks, "p1", today=TODAY)

    ids = _all_ids(columns)
    assert sorted(ids) == ["a", "b", "d", "e"]
    assert len(ids) == len(set(ids))
    for column in columns:
        assert all(card.task.status == column.status for card in column.cards)


def test_other_projects_and_orphans_hidden(mixed_tasks):
    columns = project_board(mixed_tasks, "p1", today=TODAY)
    assert "c" not in _all_ids(columns)
    assert "f" not in _all_ids(columns)


def test_counts_are_filtered_counts(mixed_tasks):
    columns = project_board(mixed_tasks, "p1", search="a", today=TODAY)
    counts = {c.status: c.count for c in columns}
    assert counts == {Status.TODO: 1, Status.IN_PROGRESS: 0, Status.REVIEW: 0, Status.DONE: 0}


def test_dangling_active_project_renders_empty(mixed_tasks):
    columns = project_board(mixed_tasks, "deleted", today=TODAY)
    assert len(columns) == 4
    assert _all_ids(columns) == []


def test_card_decorations(mixed_tasks):
    columns = project_board(mixed_tasks, "p1", today=TODAY)
    review = next(c for c in columns if c.status == Status.REVIEW).cards[0]
    done = next(c for c in columns if c.status == Status.DONE).cards[0]

    assert review.initials == "AD"
    assert not review.done
    assert done.done


# ---------------------------------------------------------------------------
# Overdue
# ---------------------------------------------------------------------------


def test_due_today_never_overdue():
    assert not is_overdue(TODAY, today=TODAY)


def test_due_yesterday_always_overdue():
    assert is_overdue(TODAY - timedelta(days=1), today=TODAY)


def test_no_due_never_overdue():
    assert not is_overdue(None, today=TODAY)


def test_overdue_is_display_only():
    task = Task(id="x", project="p1", title="Late", due=TODAY - timedelta(days=3))
    columns = project_board([task], "p1", today=TODAY)

    card = columns[0].cards[0]
    assert card.overdue
    assert card.task.status == Status.TODO


def test_format_due():
    assert format_due(date(2024, 2, 10)) == "10 Feb"
    assert format_due(None) == ""


# ---------------------------------------------------------------------------
# Backlog / sidebar
# ---------------------------------------------------------------------------


def test_backlog_is_storage_order_unfiltered(mixed_tasks):
    rows = project_backlog(mixed_tasks, "p1")

    assert [r.position for r in rows] == [1, 2, 3, 4]
    assert [r.task.id for r in rows] == ["a", "b", "d", "e"]
    assert rows[2].status_label == "In Review"


def test_sidebar_marks_active():
    projects = [Project(id="p1", name="One", color="#000"), Project(id="p2", name="Two", color="#111")]

    view = project_sidebar(projects, "p2")
    assert [i.active for i in view.items] == [False, True]
    assert view.title == "Two"

    assert project_sidebar(projects, "ghost").title is None
