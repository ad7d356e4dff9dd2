"""Tests for codeflow.workspace.Workspace."""

from pathlib import Path
import tempfile

import pytest

from codeflow.domain import (
    ActivityKind,
    ConfirmationRequiredError,
    NotAuthenticatedError,
    Status,
    TaskPatch,
)
from codeflow.store import JsonFileBackend, MemoryBackend, Store
from codeflow.workspace import Workspace


@pytest.fixture
def temp_persist_path():
    """Create a temporary file path for store persistence."""
    with tempfile.NamedTemporaryFile(delete=False, suffix=".json") as f:
        path = Path(f.name)
    path.unlink()
    yield path
    if path.exists():
        path.unlink()


@pytest.fixture
def ws():
    return Workspace(Store(MemoryBackend()))


@pytest.fixture
def logged_in(ws):
    ws.demo_login()
    return ws


def test_operations_require_login(ws):
    with pytest.raises(NotAuthenticatedError):
        ws.create_task("Nope")
    with pytest.raises(NotAuthenticatedError):
        ws.render()
    with pytest.raises(NotAuthenticatedError):
        ws.drag_start("t1")


def test_login_seeds_and_renders(ws):
    screen = ws.demo_login()

    assert screen.user.email == "amrit@codeflow.dev"
    assert screen.sidebar.title == "CipherOS"
    assert len(screen.sidebar.items) == 3
    assert len(screen.backlog) == 6
    assert sum(c.count for c in screen.columns) == 6
    assert len(screen.feed) == 4


def test_delete_needs_confirmation(logged_in):
    task = logged_in.create_task("Doomed")
    with pytest.raises(ConfirmationRequiredError):
        logged_in.delete_task(task.id)
    assert logged_in.board.get_task(task.id) is not None


def test_delete_removes_from_board_and_backlog_in_one_render(logged_in):
    task = logged_in.create_task("Doomed")
    logged_in.delete_task(task.id, confirmed=True)

    screen = logged_in.render()
    assert task.id not in [card.task.id for c in screen.columns for card in c.cards]
    assert task.id not in [row.task.id for row in screen.backlog]


def test_activity_uses_current_user_name(logged_in):
    logged_in.create_task("Mine")
    assert logged_in.render_feed()[0].user == "amrit"


def test_update_settings_renames_actor_and_logs(logged_in):
    logged_in.update_settings("Amrit S", "amrit@codeflow.dev")
    logged_in.create_task("After rename")

    entries = logged_in.activity.entries()
    assert entries[-2].kind == ActivityKind.SETTINGS_UPDATED
    assert entries[-1].user == "Amrit S"


def test_revision_counts_commits(logged_in):
    start = logged_in.revision
    task = logged_in.create_task("Counted")
    logged_in.move_task(task.id, Status.DONE)
    logged_in.move_task(task.id, Status.DONE)  # no-op

    assert logged_in.revision == start + 2


def test_drag_flow(logged_in):
    task = logged_in.create_task("Drag me")
    logged_in.drag_start(task.id)

    assert logged_in.drop(Status.IN_PROGRESS)
    assert logged_in.board.get_task(task.id).status == Status.IN_PROGRESS
    assert logged_in.drag.dragging_id is None


def test_switch_project_and_back(logged_in):
    other = logged_in.create_project("Side quest")
    assert logged_in.render_backlog() == []
    assert logged_in.render_sidebar().title == "Side quest"

    logged_in.switch_project("p1")
    assert len(logged_in.render_backlog()) == 6
    assert other.id in [i.project.id for i in logged_in.render_sidebar().items]


def test_dangling_project_renders_empty(logged_in):
    logged_in.switch_project("ghost")
    screen = logged_in.render()

    assert screen.sidebar.title is None
    assert screen.backlog == []
    assert all(c.count == 0 for c in screen.columns)


def test_update_missing_task_is_noop(logged_in):
    assert logged_in.update_task("ghost", TaskPatch(title="x")) is None


def test_reset_reseeds(logged_in):
    logged_in.create_task("Extra")
    with pytest.raises(ConfirmationRequiredError):
        logged_in.reset()

    screen = logged_in.reset(confirmed=True)
    assert len(screen.backlog) == 6
    assert len(screen.feed) == 4
    assert logged_in.user is not None


def test_logout_then_gated(logged_in):
    logged_in.logout()
    assert logged_in.user is None
    with pytest.raises(NotAuthenticatedError):
        logged_in.render()


def test_session_restored_on_restart(temp_persist_path):
    first = Workspace(Store(JsonFileBackend(temp_persist_path)))
    first.register("Grace Hopper", "grace@example.com", "hopper123")
    task = first.create_task("Persisted")

    second = Workspace(Store(JsonFileBackend(temp_persist_path)))
    assert second.user is not None
    assert second.user.name == "Grace Hopper"
    assert second.board.get_task(task.id).title == "Persisted"
