"""
Workspace — wires store, session, board, activity and drag controller.

This is what a view layer talks to. Mutating operations are gated on a
logged-in user; renders always read the committed store, so whatever a
listener sees after ``on_commit`` is the current state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from loguru import logger

from .activity import ActivityLog, FeedItem
from .board import Board
from .domain import (
    ActivityKind,
    ConfirmationRequiredError,
    NotAuthenticatedError,
    Priority,
    Project,
    Status,
    Task,
    TaskPatch,
    User,
)
from .dragdrop import DragController
from .hooks import HookRegistry, RevisionCounter, log_session
from .projection import (
    BacklogRow,
    ColumnView,
    ProjectListView,
    project_backlog,
    project_board,
    project_sidebar,
)
from .seed import ensure_seed, reset_all
from .session import SessionManager
from .store import Store


@dataclass(frozen=True)
class Screen:
    user: User
    sidebar: ProjectListView
    columns: list[ColumnView]
    backlog: list[BacklogRow]
    feed: list[FeedItem]
    revision: int


class Workspace:
    """
    Args:
        store:      Backing store shared by every component.
        demo_login: Passed through to ``SessionManager``.
        activity:   Override the activity log (tests inject a fixed clock).
    """

    def __init__(
        self,
        store: Store,
        demo_login: bool = True,
        activity: ActivityLog | None = None,
    ) -> None:
        self.store = store
        self.hooks = HookRegistry()
        self.revisions = RevisionCounter()
        self.hooks.register("on_commit", self.revisions)
        self.hooks.register("on_session", log_session)
        self.session = SessionManager(store, demo_login=demo_login)
        self.activity = activity or ActivityLog(store)
        self.board = Board(
            store,
            self.activity,
            actor=lambda: self.session.actor_name,
            hooks=self.hooks,
        )
        self.drag = DragController(self.board)
        self.session.restore()

    @property
    def revision(self) -> int:
        return self.revisions.value

    @property
    def user(self) -> User | None:
        return self.session.current_user

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> Screen:
        self.session.login(email, password)
        return self._after_session()

    def demo_login(self) -> Screen:
        self.session.demo_login()
        return self._after_session()

    def register(self, name: str, email: str, password: str) -> Screen:
        self.session.register(name, email, password)
        return self._after_session()

    def logout(self) -> None:
        self.session.logout()
        self.drag.drag_end()
        self.hooks.fire("on_session", None)

    def update_settings(self, name: str, email: str) -> User:
        self._require_user()
        user = self.session.update_profile(name, email)
        self.activity.record(user.name, ActivityKind.SETTINGS_UPDATED, user.name)
        self.hooks.fire("on_commit", ActivityKind.SETTINGS_UPDATED.value)
        return user

    def init(self) -> Screen:
        """Seed on first run, then render everything."""
        self._require_user()
        ensure_seed(self.store)
        return self.render()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_project(self, name: str) -> Project:
        self._require_user()
        return self.board.create_project(name)

    def switch_project(self, project_id: str) -> None:
        self._require_user()
        self.board.switch_active_project(project_id)

    def create_task(self, title: str, **fields) -> Task:
        self._require_user()
        return self.board.create_task(title, **fields)

    def update_task(self, task_id: str, patch: TaskPatch) -> Task | None:
        self._require_user()
        return self.board.update_task(task_id, patch)

    def delete_task(self, task_id: str, confirmed: bool = False) -> bool:
        self._require_user()
        if not confirmed:
            raise ConfirmationRequiredError("delete task")
        return self.board.delete_task(task_id)

    def move_task(self, task_id: str, status: Status | str) -> bool:
        self._require_user()
        return self.board.move_task(task_id, status)

    def drag_start(self, task_id: str) -> None:
        self._require_user()
        self.drag.drag_start(task_id)

    def drop(self, status: Status | str) -> bool:
        self._require_user()
        return self.drag.drop(status)

    def drag_end(self) -> None:
        self.drag.drag_end()

    def reset(self, confirmed: bool = False) -> Screen:
        self._require_user()
        reset_all(self.store, confirmed=confirmed)
        self.hooks.fire("on_commit", "reset")
        logger.success("Workspace reset by {}", self.session.actor_name)
        return self.init()

    # ------------------------------------------------------------------
    # Renders
    # ------------------------------------------------------------------

    def render_board(
        self,
        search: str = "",
        priority: Priority | str | None = None,
        today: date | None = None,
    ) -> list[ColumnView]:
        return project_board(
            self.board.tasks(), self.board.active_project_id(), search, priority, today
        )

    def render_backlog(self) -> list[BacklogRow]:
        return project_backlog(self.board.tasks(), self.board.active_project_id())

    def render_feed(self, now: int | None = None) -> list[FeedItem]:
        return self.activity.render_feed(now)

    def render_sidebar(self) -> ProjectListView:
        return project_sidebar(self.board.projects(), self.board.active_project_id())

    def render(self, search: str = "", priority: Priority | str | None = None) -> Screen:
        user = self._require_user()
        return Screen(
            user=user,
            sidebar=self.render_sidebar(),
            columns=self.render_board(search, priority),
            backlog=self.render_backlog(),
            feed=self.render_feed(),
            revision=self.revision,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _after_session(self) -> Screen:
        self.hooks.fire("on_session", self.session.current_user)
        return self.init()

    def _require_user(self) -> User:
        if self.session.current_user is None:
            raise NotAuthenticatedError()
        return self.session.current_user
