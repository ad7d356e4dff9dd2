"""Tests for codeflow.seed."""

import pytest

from codeflow.activity import DAY_MS, HOUR_MS
from codeflow.domain import ConfirmationRequiredError, Priority, Status
from codeflow.seed import ensure_seed, reset_all
from codeflow.store import Key, MemoryBackend, Store

NOW = 1_700_000_000_000


@pytest.fixture
def store():
    return Store(MemoryBackend())


def _counts(store):
    return (
        len(store.get(Key.PROJECTS, [])),
        len(store.get(Key.TASKS, [])),
        len(store.get(Key.ACTIVITY, [])),
    )


def test_seed_populates_demo_data(store):
    assert ensure_seed(store, now=NOW)

    assert _counts(store) == (3, 6, 4)
    assert store.get(Key.ACTIVE_PROJECT) == "p1"


def test_seed_tasks_span_statuses_and_priorities(store):
    ensure_seed(store, now=NOW)
    tasks = store.get(Key.TASKS)

    assert {t["status"] for t in tasks} == {s.value for s in Status}
    assert {t["priority"] for t in tasks} == {p.value for p in Priority}
    assert {t["project"] for t in tasks} == {"p1"}


def test_seed_activity_is_backdated(store):
    ensure_seed(store, now=NOW)
    ages = [NOW - a["time"] for a in store.get(Key.ACTIVITY)]
    assert ages == [3 * DAY_MS, 2 * DAY_MS, DAY_MS, HOUR_MS]


def test_seed_is_idempotent(store):
    ensure_seed(store, now=NOW)
    once = _counts(store)

    assert not ensure_seed(store, now=NOW)
    assert _counts(store) == once


def test_existing_empty_project_list_is_not_reseeded(store):
    store.set(Key.PROJECTS, [])
    assert not ensure_seed(store)
    assert store.get(Key.TASKS) is None


def test_reset_requires_confirmation(store):
    ensure_seed(store, now=NOW)
    with pytest.raises(ConfirmationRequiredError):
        reset_all(store)
    assert _counts(store) == (3, 6, 4)


def test_reset_wipes_board_data_only(store):
    ensure_seed(store, now=NOW)
    store.set(Key.USERS, {"a@b.c": {"email": "a@b.c", "name": "a", "pwHash": "x"}})
    store.set(Key.TOKEN, "token")

    reset_all(store, confirmed=True)

    for key in (Key.PROJECTS, Key.TASKS, Key.ACTIVITY, Key.ACTIVE_PROJECT):
        assert store.get(key) is None
    assert store.get(Key.USERS) is not None
    assert store.get(Key.TOKEN) == "token"


def test_reset_then_seed_restores_demo(store):
    ensure_seed(store, now=NOW)
    store.set(Key.TASKS, [])
    reset_all(store, confirmed=True)

    assert ensure_seed(store, now=NOW)
    assert _counts(store) == (3, 6, 4)
