"""
Board projection — read-only views computed from task state.

Every function here is pure: it takes lists of domain objects plus
filter values and returns view dataclasses. Nothing touches the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from .domain import Priority, Project, Status, Task, ValidationError

COLUMN_ORDER: tuple[Status, ...] = (
    Status.TODO,
    Status.IN_PROGRESS,
    Status.REVIEW,
    Status.DONE,
)


# ---------------------------------------------------------------------------
# View types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CardView:
    task: Task
    overdue: bool
    due_label: str
    initials: str
    done: bool


@dataclass(frozen=True)
class ColumnView:
    status: Status
    label: str
    count: int
    cards: list[CardView]


@dataclass(frozen=True)
class BacklogRow:
    position: int  # 1-based, storage order
    task: Task
    status_label: str


@dataclass(frozen=True)
class ProjectItem:
    project: Project
    active: bool


@dataclass(frozen=True)
class ProjectListView:
    items: list[ProjectItem]
    title: str | None  # None when the active pointer dangles


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_overdue(due: date | None, today: date | None = None) -> bool:
    """Calendar-day comparison: a task due today is never overdue."""
    if due is None:
        return False
    return due < (today or date.today())


def format_due(due: date | None) -> str:
    if due is None:
        return ""
    return f"{due.day} {due.strftime('%b')}"


def matches(task: Task, search: str = "", priority: Priority | None = None) -> bool:
    """Search hits the title or any tag, case-insensitively; priority must match when set.

    The query is used as typed. Only the empty string means "no search".
    """
    if priority and task.priority != priority:
        return False
    query = (search or "").lower()
    if not query:
        return True
    if query in task.title.lower():
        return True
    return any(query in tag.lower() for tag in task.tags)


def priority_filter(value: Priority | str | None) -> Priority | None:
    if not value:
        return None
    try:
        return Priority(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid priority filter: {value!r}") from exc


def active_tasks(tasks: list[Task], active_project_id: str | None) -> list[Task]:
    if active_project_id is None:
        return []
    return [t for t in tasks if t.project == active_project_id]


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------


def project_board(
    tasks: list[Task],
    active_project_id: str | None,
    search: str = "",
    priority: Priority | str | None = None,
    today: date | None = None,
) -> list[ColumnView]:
    """
    Four columns in fixed order. A task lands in exactly one column, the
    one matching its status; counts reflect the filtered members only.
    """
    today = today or date.today()
    wanted = priority_filter(priority)
    visible = [t for t in active_tasks(tasks, active_project_id) if matches(t, search, wanted)]

    columns = []
    for status in COLUMN_ORDER:
        cards = [_card(t, today) for t in visible if t.status == status]
        columns.append(ColumnView(status=status, label=status.label, count=len(cards), cards=cards))
    return columns


def project_backlog(tasks: list[Task], active_project_id: str | None) -> list[BacklogRow]:
    """Every task of the active project, unfiltered, numbered in storage order."""
    return [
        BacklogRow(position=i, task=t, status_label=t.status.label)
        for i, t in enumerate(active_tasks(tasks, active_project_id), start=1)
    ]


def project_sidebar(projects: list[Project], active_project_id: str | None) -> ProjectListView:
    items = [ProjectItem(project=p, active=p.id == active_project_id) for p in projects]
    title = next((p.name for p in projects if p.id == active_project_id), None)
    return ProjectListView(items=items, title=title)


def _card(task: Task, today: date) -> CardView:
    return CardView(
        task=task,
        overdue=is_overdue(task.due, today),
        due_label=format_due(task.due),
        initials=task.assignee[:2].upper(),
        done=task.status == Status.DONE,
    )
