"""First-run demo data and full reset."""

from __future__ import annotations

from datetime import date, timedelta

from loguru import logger

from .activity import DAY_MS, HOUR_MS, now_ms
from .domain import (
    ActivityEntry,
    ActivityKind,
    ConfirmationRequiredError,
    Priority,
    Project,
    Status,
    Task,
)
from .store import Key, Store

DEMO_PROJECTS = (
    Project(id="p1", name="CipherOS", color="#16a34a"),
    Project(id="p2", name="NetScan Pro", color="#2563eb"),
    Project(id="p3", name="CodeFlow", color="#d97706"),
)

# (id, title, desc, priority, status, tags, days until due)
_DEMO_TASKS = (
    ("t1", "Implement AES-256 encryption module",
     "Build the core encryption/decryption using Web Crypto API",
     Priority.CRITICAL, Status.DONE, ["crypto", "backend"], -9),
    ("t2", "JWT token decoder",
     "Parse header, payload and display claims with timestamps",
     Priority.HIGH, Status.DONE, ["auth"], -7),
    ("t3", "SHA-512 hash generator",
     "Add HMAC support with custom keys",
     Priority.HIGH, Status.IN_PROGRESS, ["crypto"], 1),
    ("t4", "Password strength analyser",
     "Real-time entropy calculation with crack-time estimation",
     Priority.MEDIUM, Status.REVIEW, ["security", "ux"], 3),
    ("t5", "Key generator module",
     "UUID v4, hex, base64, JWT secrets, and API keys",
     Priority.MEDIUM, Status.TODO, ["crypto"], 9),
    ("t6", "Write unit tests",
     "Test all crypto functions with known vectors",
     Priority.LOW, Status.TODO, ["testing"], 14),
)

# (id, kind, subject, from, to, age in ms)
_DEMO_ACTIVITY = (
    ("a1", ActivityKind.TASK_CREATED, "Implement AES-256 encryption module", None, None, DAY_MS * 3),
    ("a2", ActivityKind.TASK_MOVED, "Implement AES-256 encryption module",
     Status.REVIEW, Status.DONE, DAY_MS * 2),
    ("a3", ActivityKind.TASK_CREATED, "JWT token decoder", None, None, DAY_MS),
    ("a4", ActivityKind.TASK_MOVED, "Password strength analyser",
     Status.IN_PROGRESS, Status.REVIEW, HOUR_MS),
)


def ensure_seed(store: Store, now: int | None = None, today: date | None = None) -> bool:
    """
    Populate demo projects, tasks and activity on first run.

    Returns:
        True if data was written; False when projects already exist.
    """
    if store.get(Key.PROJECTS) is not None:
        return False

    now = now_ms() if now is None else now
    today = today or date.today()

    store.set(Key.PROJECTS, [p.to_dict() for p in DEMO_PROJECTS])
    store.set(Key.ACTIVE_PROJECT, DEMO_PROJECTS[0].id)
    store.set(
        Key.TASKS,
        [
            Task(
                id=tid,
                project=DEMO_PROJECTS[0].id,
                title=title,
                desc=desc,
                priority=priority,
                status=status,
                tags=tags,
                assignee="AS",
                due=today + timedelta(days=days),
            ).to_dict()
            for tid, title, desc, priority, status, tags, days in _DEMO_TASKS
        ],
    )
    store.set(
        Key.ACTIVITY,
        [
            ActivityEntry(
                id=aid,
                user="AS",
                kind=kind,
                subject=subject,
                time=now - age,
                from_status=src,
                to_status=dst,
            ).to_dict()
            for aid, kind, subject, src, dst, age in _DEMO_ACTIVITY
        ],
    )
    logger.info(
        "Seeded {} projects, {} tasks, {} activity entries",
        len(DEMO_PROJECTS),
        len(_DEMO_TASKS),
        len(_DEMO_ACTIVITY),
    )
    return True


def reset_all(store: Store, confirmed: bool = False) -> None:
    """Wipe tasks, projects, activity and the active pointer. Users and session survive."""
    if not confirmed:
        raise ConfirmationRequiredError("reset")
    for key in (Key.TASKS, Key.PROJECTS, Key.ACTIVITY, Key.ACTIVE_PROJECT):
        store.delete(key)
    logger.warning("All board data deleted")
