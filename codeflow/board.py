"""
Board — the only writer of projects and tasks.

Responsibilities:
  - Create projects and move the active-project pointer
  - Create / update / delete tasks
  - Move tasks between columns
  - Persist the full collection once per mutation
  - Record one activity entry per mutation, then fire ``on_commit``

Every mutator re-reads its collection from the store right before
changing it; nothing is cached between calls. Missing task ids are
no-ops, never errors.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from loguru import logger

from .activity import ActivityLog
from .domain import (
    ActivityKind,
    Priority,
    Project,
    Status,
    Task,
    TaskPatch,
    ValidationError,
    parse_tags,
)
from .hooks import HookRegistry
from .store import Key, Store

PROJECT_PALETTE = ("#16a34a", "#2563eb", "#d97706", "#7c3aed", "#dc2626")


class Board:
    """
    Args:
        store:    Backing key-value store.
        activity: Log that receives one entry per mutation.
        actor:    Returns the display name of whoever is acting. The
                  session manager's ``actor_name`` in practice.
        hooks:    Registry fired with ``on_commit`` after each mutation.
    """

    def __init__(
        self,
        store: Store,
        activity: ActivityLog,
        actor=lambda: "User",
        hooks: HookRegistry | None = None,
    ) -> None:
        self._store = store
        self._activity = activity
        self._actor = actor
        self._hooks = hooks or HookRegistry()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def projects(self) -> list[Project]:
        return self._load(Key.PROJECTS, Project.from_dict)

    def tasks(self) -> list[Task]:
        return self._load(Key.TASKS, Task.from_dict)

    def get_task(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks() if t.id == task_id), None)

    def active_project_id(self) -> str | None:
        """The pointer, or the first project's id when the pointer is unset."""
        pointer = self._store.get(Key.ACTIVE_PROJECT)
        if isinstance(pointer, str):
            return pointer
        projects = self.projects()
        return projects[0].id if projects else None

    def active_project(self) -> Project | None:
        pid = self.active_project_id()
        return next((p for p in self.projects() if p.id == pid), None)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(self, name: str) -> Project:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Project name is required.")

        projects = self.projects()
        project = Project(name=name, color=PROJECT_PALETTE[len(projects) % len(PROJECT_PALETTE)])
        projects.append(project)
        self._save(Key.PROJECTS, projects)
        self._store.set(Key.ACTIVE_PROJECT, project.id)

        logger.info("Created  {} — {!r}", project.id, name)
        self._commit(ActivityKind.PROJECT_CREATED, name)
        return project

    def switch_active_project(self, project_id: str) -> None:
        """Point the board at ``project_id``. Unknown ids render an empty board."""
        self._store.set(Key.ACTIVE_PROJECT, project_id)
        if not any(p.id == project_id for p in self.projects()):
            logger.warning("Active project {} does not exist; board will be empty", project_id)
        logger.info("Switched to project {}", project_id)
        self._hooks.fire("on_commit", "switch_project")

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def create_task(
        self,
        title: str,
        *,
        desc: str = "",
        priority: Priority | str = Priority.MEDIUM,
        status: Status | str = Status.TODO,
        tags: str | list[str] | None = None,
        assignee: str = "",
        due: date | str | None = None,
        project: str | None = None,
    ) -> Task:
        """
        Create a task in ``status`` (the column the form was opened from).

        Raises:
            ValidationError: Empty title, unknown priority/status or bad date.
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError("Task title is required.")
        task = Task(
            project=project or self.active_project_id() or "",
            title=title,
            desc=(desc or "").strip(),
            priority=_coerce(Priority, priority),
            status=_coerce(Status, status),
            tags=parse_tags(tags),
            assignee=(assignee or "").strip(),
            due=_coerce_due(due),
        )

        tasks = self.tasks()
        tasks.append(task)
        self._save(Key.TASKS, tasks)

        logger.info("Created  {} — {!r} in {}", task.id, title, task.status.value)
        self._commit(ActivityKind.TASK_CREATED, title)
        return task

    def update_task(self, task_id: str, patch: TaskPatch) -> Task | None:
        """Merge ``patch`` onto the stored task. Returns ``None`` if the id is gone."""
        if patch.title is not None:
            patch = replace(patch, title=patch.title.strip())
            if not patch.title:
                raise ValidationError("Task title is required.")
        if patch.tags is not None:
            patch = replace(patch, tags=parse_tags(patch.tags))

        tasks = self.tasks()
        idx = next((i for i, t in enumerate(tasks) if t.id == task_id), None)
        if idx is None:
            logger.warning("Update ignored, task {} not found", task_id)
            return None

        tasks[idx] = patch.apply(tasks[idx])
        self._save(Key.TASKS, tasks)

        logger.info("Updated  {} — {!r}", task_id, tasks[idx].title)
        self._commit(ActivityKind.TASK_UPDATED, tasks[idx].title)
        return tasks[idx]

    def delete_task(self, task_id: str) -> bool:
        """Remove a task. Confirmation is the caller's job."""
        tasks = self.tasks()
        victim = next((t for t in tasks if t.id == task_id), None)
        if victim is None:
            logger.warning("Delete ignored, task {} not found", task_id)
            return False

        self._save(Key.TASKS, [t for t in tasks if t.id != task_id])

        logger.info("Deleted  {} — {!r}", task_id, victim.title)
        self._commit(ActivityKind.TASK_DELETED, victim.title)
        return True

    def move_task(self, task_id: str, new_status: Status | str) -> bool:
        """
        Move a task to another column.

        Returns:
            True if the status changed. Same-status moves and unknown ids
            write nothing and record nothing.
        """
        new_status = _coerce(Status, new_status)
        tasks = self.tasks()
        task = next((t for t in tasks if t.id == task_id), None)
        if task is None or task.status == new_status:
            return False

        old_status = task.status
        task.status = new_status
        self._save(Key.TASKS, tasks)

        logger.info("Task {}  {}  →  {}", task_id, old_status.value, new_status.value)
        self._commit(ActivityKind.TASK_MOVED, task.title, old_status, new_status)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _commit(
        self,
        kind: ActivityKind,
        subject: str,
        from_status: Status | None = None,
        to_status: Status | None = None,
    ) -> None:
        """Log the mutation, then tell listeners. Must follow the persistence write."""
        self._activity.record(self._actor(), kind, subject, from_status, to_status)
        self._hooks.fire("on_commit", kind.value)

    def _load(self, key: Key, parse) -> list:
        raw = self._store.get(key, [])
        if not isinstance(raw, list):
            logger.warning("Collection {} malformed, treating as empty", key.value)
            return []
        items = []
        for record in raw:
            try:
                items.append(parse(record))
            except (KeyError, TypeError, ValueError):
                logger.warning("Dropping malformed {} record {!r}", key.value, record)
        return items

    def _save(self, key: Key, items: list) -> None:
        self._store.set(key, [item.to_dict() for item in items])


def _coerce(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {enum_cls.__name__.lower()}: {value!r}") from exc


def _coerce_due(value: date | str | None) -> date | None:
    if value is None or value == "" or isinstance(value, date):
        return value or None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid due date: {value!r}") from exc
