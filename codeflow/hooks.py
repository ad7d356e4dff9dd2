"""
Commit and session notifications for the workspace.

``Board`` fires ``on_commit`` with the mutation kind (an ``ActivityKind``
value, or ``"reset"``) once the store write and the activity entry have
both landed. ``Workspace`` fires ``on_session`` with the user on login,
and with ``None`` on logout. The revision counter below is how a view
knows its last render is stale.
"""

from __future__ import annotations

from typing import Any, Callable

from loguru import logger

from .domain import User


HookFn = Callable[..., None]


class HookRegistry:
    """Event name → listeners, called in registration order."""

    def __init__(self) -> None:
        self._hooks: dict[str, list[HookFn]] = {
            "on_commit": [],
            "on_session": [],
        }

    def register(self, event: str, hook: HookFn) -> None:
        if event not in self._hooks:
            raise ValueError(f"Unknown hook event: {event}")
        self._hooks[event].append(hook)

    def fire(self, event: str, *args: Any) -> None:
        for hook in self._hooks.get(event, []):
            try:
                hook(*args)
            except Exception as e:
                logger.error("{} listener {!r} failed: {}", event, hook, e)


class RevisionCounter:
    """``on_commit`` listener: one bump per committed mutation."""

    def __init__(self) -> None:
        self.value = 0
        self.last_kind: str | None = None

    def __call__(self, kind: str) -> None:
        self.value += 1
        self.last_kind = kind
        logger.debug("Board rev {} after {}", self.value, kind)


def log_session(user: User | None) -> None:
    if user is None:
        logger.debug("Session ended, board locked")
    else:
        logger.debug("Session active for {} ({})", user.name, user.email)
