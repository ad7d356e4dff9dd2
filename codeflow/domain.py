"""
Core domain: Status, Priority, User, Project, Task, TaskPatch, ActivityEntry
and all board-specific exceptions.

Nothing here imports from the rest of the package — this is the
innermost layer and has zero side-effects.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Status(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "inprogress"
    REVIEW = "review"
    DONE = "done"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    Status.TODO: "To Do",
    Status.IN_PROGRESS: "In Progress",
    Status.REVIEW: "In Review",
    Status.DONE: "Done",
}


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ActivityKind(str, Enum):
    PROJECT_CREATED = "project_created"
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_MOVED = "task_moved"
    TASK_DELETED = "task_deleted"
    SETTINGS_UPDATED = "settings_updated"


def new_id(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:8]}"


# ---------------------------------------------------------------------------
# User / Project
# ---------------------------------------------------------------------------


@dataclass
class User:
    email: str
    name: str
    pw_hash: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"email": self.email, "name": self.name, "pwHash": self.pw_hash}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "User":
        return cls(email=raw["email"], name=raw["name"], pw_hash=raw.get("pwHash", ""))


@dataclass
class Project:
    name: str
    color: str
    id: str = field(default_factory=lambda: new_id("p"))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Project":
        return cls(id=raw["id"], name=raw["name"], color=raw.get("color", ""))


# ---------------------------------------------------------------------------
# Task
# ---------------------------------------------------------------------------


def parse_tags(raw: str | list[str] | None) -> list[str]:
    """Split a comma-separated tag string; trims, drops empties, keeps order."""
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else raw
    return [p.strip() for p in parts if p and p.strip()]


def parse_due(raw: str | date | None) -> date | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, date):
        return raw
    return date.fromisoformat(raw)


@dataclass
class Task:
    """
    A card on the board.

    Attributes:
        project: Id of the owning Project. Tasks whose project no longer
                 exists are kept in storage but never rendered.
        status: Board column the task sits in.
        tags: Ordered, already-trimmed tag list.
        assignee: Free text, display only.
        due: Optional calendar date; drives the overdue hint only.
    """

    project: str
    title: str
    desc: str = ""
    priority: Priority = Priority.MEDIUM
    status: Status = Status.TODO
    tags: list[str] = field(default_factory=list)
    assignee: str = ""
    due: date | None = None
    id: str = field(default_factory=lambda: new_id("t"))

    def __str__(self) -> str:
        tags = f" tags={self.tags}" if self.tags else ""
        return f"[{self.id}] {self.title!r} — {self.status.value}{tags}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "project": self.project,
            "title": self.title,
            "desc": self.desc,
            "priority": self.priority.value,
            "status": self.status.value,
            "tags": list(self.tags),
            "assignee": self.assignee,
            "due": self.due.isoformat() if self.due else "",
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Task":
        return cls(
            id=raw["id"],
            project=raw["project"],
            title=raw["title"],
            desc=raw.get("desc") or "",
            priority=Priority(raw.get("priority", Priority.MEDIUM.value)),
            status=Status(raw.get("status", Status.TODO.value)),
            tags=parse_tags(raw.get("tags")),
            assignee=raw.get("assignee") or "",
            due=parse_due(raw.get("due")),
        )


@dataclass
class TaskPatch:
    """
    Partial update for a Task. ``None`` means "not provided"; a provided
    field always wins over the stored value. Set ``clear_due`` to remove
    the due date.
    """

    title: str | None = None
    desc: str | None = None
    priority: Priority | None = None
    status: Status | None = None
    tags: list[str] | str | None = None
    assignee: str | None = None
    due: date | None = None
    clear_due: bool = False
    project: str | None = None

    def apply(self, task: Task) -> Task:
        changes: dict[str, Any] = {
            name: value
            for name, value in (
                ("title", self.title),
                ("desc", self.desc),
                ("priority", self.priority),
                ("status", self.status),
                ("tags", self.tags),
                ("assignee", self.assignee),
                ("due", self.due),
                ("project", self.project),
            )
            if value is not None
        }
        if self.clear_due:
            changes["due"] = None
        return replace(task, **changes)


# ---------------------------------------------------------------------------
# ActivityEntry
# ---------------------------------------------------------------------------


@dataclass
class ActivityEntry:
    """A single immutable record of a mutation, newest appended last."""

    user: str
    kind: ActivityKind
    subject: str
    time: int  # ms since epoch
    from_status: Status | None = None
    to_status: Status | None = None
    id: str = field(default_factory=lambda: new_id("a"))

    def describe(self) -> tuple[str, str]:
        """Human-readable ``(action, target)`` pair."""
        if self.kind is ActivityKind.TASK_MOVED:
            src = self.from_status.label if self.from_status else "?"
            dst = self.to_status.label if self.to_status else "?"
            return f'moved "{self.subject}" from {src} to {dst}', ""
        return _ACTIONS[self.kind], self.subject

    def __str__(self) -> str:
        action, target = self.describe()
        target_str = f' "{target}"' if target else ""
        return f"{self.user} {action}{target_str}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user": self.user,
            "kind": self.kind.value,
            "subject": self.subject,
            "time": self.time,
            "from": self.from_status.value if self.from_status else None,
            "to": self.to_status.value if self.to_status else None,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ActivityEntry":
        return cls(
            id=raw["id"],
            user=raw["user"],
            kind=ActivityKind(raw["kind"]),
            subject=raw.get("subject") or "",
            time=int(raw["time"]),
            from_status=Status(raw["from"]) if raw.get("from") else None,
            to_status=Status(raw["to"]) if raw.get("to") else None,
        )


_ACTIONS = {
    ActivityKind.PROJECT_CREATED: "created project",
    ActivityKind.TASK_CREATED: "created task",
    ActivityKind.TASK_UPDATED: "updated task",
    ActivityKind.TASK_DELETED: "deleted task",
    ActivityKind.SETTINGS_UPDATED: "updated settings",
}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class BoardError(Exception):
    """Base for all board-specific errors."""


class ValidationError(BoardError):
    """A required field is empty or a value is out of range. Nothing was written."""


class AuthenticationError(BoardError):
    def __init__(self, email: str) -> None:
        super().__init__("Incorrect password.")
        self.email = email


class DuplicateAccountError(BoardError):
    def __init__(self, email: str) -> None:
        super().__init__("An account with this email already exists.")
        self.email = email


class NotAuthenticatedError(BoardError):
    def __init__(self) -> None:
        super().__init__("Not logged in.")


class ConfirmationRequiredError(BoardError):
    def __init__(self, action: str) -> None:
        super().__init__(f"'{action}' requires explicit confirmation.")
        self.action = action


class TaskNotFoundError(BoardError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task '{task_id}' not found.")
        self.task_id = task_id
