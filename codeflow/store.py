"""
Store adapter — JSON values over a string key-value backend.

The backend behaves like browser localStorage: it only knows strings.
``Store`` adds JSON encoding, the ``cf_`` key prefix and the
"corrupt or missing means fallback" rule. Nothing above this layer ever
sees a decode error.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from loguru import logger


class Key(str, Enum):
    USERS = "users"
    TOKEN = "token"
    PROJECTS = "projects"
    ACTIVE_PROJECT = "activeProject"
    TASKS = "tasks"
    ACTIVITY = "activity"


class Backend(Protocol):
    def get_item(self, name: str) -> str | None: ...

    def set_item(self, name: str, text: str) -> None: ...

    def remove_item(self, name: str) -> None: ...


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class MemoryBackend:
    """Dict-backed backend. Useful in tests and for throwaway sessions."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(items or {})

    def get_item(self, name: str) -> str | None:
        return self.items.get(name)

    def set_item(self, name: str, text: str) -> None:
        self.items[name] = text

    def remove_item(self, name: str) -> None:
        self.items.pop(name, None)


class JsonFileBackend:
    """
    Keeps every item in one JSON object on disk.

    The file is re-read before each operation and rewritten in full after
    each write (sync, fine at this scale). An unreadable file counts as empty.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get_item(self, name: str) -> str | None:
        return self._read().get(name)

    def set_item(self, name: str, text: str) -> None:
        items = self._read()
        items[name] = text
        self._write(items)

    def remove_item(self, name: str) -> None:
        items = self._read()
        if items.pop(name, None) is not None:
            self._write(items)

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text())
        except (OSError, ValueError) as exc:
            logger.warning("Store file {} unreadable, treating as empty: {}", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Store file {} is not an object, treating as empty", self._path)
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, items: dict[str, str]) -> None:
        self._path.write_text(json.dumps(items, indent=2))
        logger.debug("Persisted → {}", self._path)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class Store:
    """
    Args:
        backend: Any object with ``get_item`` / ``set_item`` / ``remove_item``.
        prefix:  Namespace prepended to every key.
    """

    def __init__(self, backend: Backend | None = None, prefix: str = "cf_") -> None:
        self._backend = backend if backend is not None else MemoryBackend()
        self._prefix = prefix

    @classmethod
    def at(cls, path: Path | str | None) -> "Store":
        """File-backed store, or in-memory when ``path`` is empty."""
        if not path:
            return cls(MemoryBackend())
        return cls(JsonFileBackend(Path(path)))

    def get(self, key: Key | str, fallback: Any = None) -> Any:
        name = self._name(key)
        raw = self._backend.get_item(name)
        if raw is None:
            return fallback
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("Corrupt value under {!r}, using fallback", name)
            return fallback
        return fallback if value is None else value

    def set(self, key: Key | str, value: Any) -> None:
        name = self._name(key)
        self._backend.set_item(name, json.dumps(value))
        logger.debug("Store set {}", name)

    def delete(self, key: Key | str) -> None:
        self._backend.remove_item(self._name(key))

    def _name(self, key: Key | str) -> str:
        return self._prefix + (key.value if isinstance(key, Key) else key)
