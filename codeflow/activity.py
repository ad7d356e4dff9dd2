"""
Activity log — bounded, append-only record of every mutation.

Stored oldest-first under ``activity``; displayed newest-first. Capacity
is enforced with a ``deque(maxlen=...)`` so the oldest entry is evicted
on overflow.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from .domain import ActivityEntry, ActivityKind, Status
from .store import Key, Store

ACTIVITY_CAPACITY = 50

MINUTE_MS = 60_000
HOUR_MS = 3_600_000
DAY_MS = 86_400_000


def now_ms() -> int:
    return int(time.time() * 1000)


def time_ago(ts: int, now: int) -> str:
    diff = now - ts
    if diff < MINUTE_MS:
        return "just now"
    if diff < HOUR_MS:
        return f"{diff // MINUTE_MS}m ago"
    if diff < DAY_MS:
        return f"{diff // HOUR_MS}h ago"
    return f"{diff // DAY_MS}d ago"


@dataclass(frozen=True)
class FeedItem:
    id: str
    avatar: str
    user: str
    action: str
    target: str
    time: int
    time_ago: str


class ActivityLog:
    """
    Args:
        store:    Backing store; re-read before every append.
        capacity: Maximum entries retained.
        clock:    Returns "now" in ms since epoch. Injected in tests.
    """

    def __init__(
        self,
        store: Store,
        capacity: int = ACTIVITY_CAPACITY,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._capacity = capacity
        self._clock = clock

    @property
    def capacity(self) -> int:
        return self._capacity

    def record(
        self,
        actor: str,
        kind: ActivityKind,
        subject: str = "",
        from_status: Status | None = None,
        to_status: Status | None = None,
    ) -> ActivityEntry:
        entry = ActivityEntry(
            user=actor,
            kind=kind,
            subject=subject,
            time=self._clock(),
            from_status=from_status,
            to_status=to_status,
        )
        log = self._load()
        if len(log) == log.maxlen:
            logger.debug("Activity log full, evicting {}", log[0].id)
        log.append(entry)
        self._store.set(Key.ACTIVITY, [e.to_dict() for e in log])
        logger.debug("Activity [{}] {}", entry.id, entry)
        return entry

    def entries(self) -> list[ActivityEntry]:
        """Storage order, oldest first."""
        return list(self._load())

    def render_feed(self, now: int | None = None) -> list[FeedItem]:
        current = self._clock() if now is None else now
        items = []
        for entry in reversed(self._load()):
            action, target = entry.describe()
            items.append(
                FeedItem(
                    id=entry.id,
                    avatar=entry.user[:2],
                    user=entry.user,
                    action=action,
                    target=target,
                    time=entry.time,
                    time_ago=time_ago(entry.time, current),
                )
            )
        return items

    def _load(self) -> deque[ActivityEntry]:
        raw = self._store.get(Key.ACTIVITY, [])
        log: deque[ActivityEntry] = deque(maxlen=self._capacity)
        if not isinstance(raw, list):
            logger.warning("Activity collection malformed, starting empty")
            return log
        for item in raw:
            try:
                log.append(ActivityEntry.from_dict(item))
            except (KeyError, TypeError, ValueError):
                logger.warning("Dropping malformed activity entry {!r}", item)
        return log
