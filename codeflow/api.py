"""
FastAPI REST API — thin HTTP wrapper over Workspace for a local front end.

Responsibilities (only):
  - Parse and validate HTTP input (via Pydantic request schemas)
  - Delegate to the workspace
  - Translate board exceptions → HTTP status codes
  - Serialise views → response schemas

Board logic (filters, columns, activity, seeding) lives entirely in the
workspace and below — nothing is duplicated here.

Endpoints:
  POST   /auth/login                  Log in (auto-registers unseen emails)
  POST   /auth/demo                   Log in with the demo account
  POST   /auth/register               Register and log in
  POST   /auth/logout                 Drop the session
  GET    /session                     Current user and credential
  PUT    /settings                    Rename the current user
  GET    /screen                      Everything a full re-render needs
  GET    /projects                    Sidebar project list
  POST   /projects                    Create a project (becomes active)
  POST   /projects/{id}/activate      Switch the active project
  GET    /board                       Four columns (?search=&priority=)
  GET    /backlog                     Active project's tasks in storage order
  GET    /activity                    Feed, newest first
  POST   /tasks                       Create a task
  GET    /tasks/{id}                  Get a single task
  PATCH  /tasks/{id}                  Merge fields onto a task
  DELETE /tasks/{id}?confirm=true     Delete a task
  POST   /tasks/{id}/move             Move a task to a column
  POST   /drag/start                  Capture the dragged card
  POST   /drag/drop                   Drop over a column
  POST   /drag/end                    Cancel the drag
  POST   /reset?confirm=true          Wipe board data and re-seed
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Query, Response
from loguru import logger
from pydantic import BaseModel, Field

from .activity import FeedItem
from .config import Settings
from .domain import (
    AuthenticationError,
    BoardError,
    ConfirmationRequiredError,
    DuplicateAccountError,
    NotAuthenticatedError,
    Priority,
    Status,
    Task,
    TaskNotFoundError,
    TaskPatch,
    User,
    ValidationError,
    parse_tags,
)
from .projection import BacklogRow, CardView, ColumnView, ProjectListView
from .session import parse_session
from .store import Store
from .workspace import Screen, Workspace


# ---------------------------------------------------------------------------
# Shared workspace instance (created once at startup)
# ---------------------------------------------------------------------------

_workspace: Workspace | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _workspace
    settings = Settings.from_env()
    _workspace = Workspace(Store.at(settings.store_path), demo_login=settings.demo_login)
    logger.info("Workspace ready (store: {})", settings.store_path or "memory")

    yield

    _workspace = None


def get_workspace() -> Workspace:
    assert _workspace is not None, "Workspace not initialised"
    return _workspace


WorkspaceDep = Annotated[Workspace, Depends(get_workspace)]


# ---------------------------------------------------------------------------
# Pydantic schemas — requests
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str


class SettingsRequest(BaseModel):
    name: str
    email: str


class CreateProjectRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)


class CreateTaskRequest(BaseModel):
    """
    Request body for creating a new task.

    Attributes:
        title: Task title (1-120 characters).
        status: Column the form was opened from.
        tags: Comma-separated tag string, e.g. ``"crypto, backend"``.
        due: Optional ISO date.
    """

    title: str = Field(..., min_length=1, max_length=120)
    desc: str = ""
    priority: Priority = Priority.MEDIUM
    status: Status = Status.TODO
    tags: str = ""
    assignee: str = ""
    due: date | None = None


class UpdateTaskRequest(BaseModel):
    """
    Partial update. Omitted fields keep their stored value; sending
    ``"due": null`` clears the due date.
    """

    title: str | None = Field(default=None, min_length=1, max_length=120)
    desc: str | None = None
    priority: Priority | None = None
    status: Status | None = None
    tags: str | list[str] | None = None
    assignee: str | None = None
    due: date | None = None

    def to_patch(self) -> TaskPatch:
        return TaskPatch(
            title=self.title,
            desc=self.desc,
            priority=self.priority,
            status=self.status,
            tags=parse_tags(self.tags) if self.tags is not None else None,
            assignee=self.assignee,
            due=self.due,
            clear_due="due" in self.model_fields_set and self.due is None,
        )


class MoveRequest(BaseModel):
    status: Status


class DragStartRequest(BaseModel):
    task_id: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Pydantic schemas — responses
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    email: str
    name: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(email=user.email, name=user.name)


class SessionResponse(BaseModel):
    user: UserResponse | None
    token: str | None
    expires_at: int | None


class TaskResponse(BaseModel):
    id: str
    project: str
    title: str
    desc: str
    priority: Priority
    status: Status
    tags: list[str]
    assignee: str
    due: date | None

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            project=task.project,
            title=task.title,
            desc=task.desc,
            priority=task.priority,
            status=task.status,
            tags=task.tags,
            assignee=task.assignee,
            due=task.due,
        )


class CardResponse(BaseModel):
    task: TaskResponse
    overdue: bool
    due_label: str
    initials: str
    done: bool

    @classmethod
    def from_card(cls, card: CardView) -> "CardResponse":
        return cls(
            task=TaskResponse.from_task(card.task),
            overdue=card.overdue,
            due_label=card.due_label,
            initials=card.initials,
            done=card.done,
        )


class ColumnResponse(BaseModel):
    status: Status
    label: str
    count: int
    cards: list[CardResponse]

    @classmethod
    def from_column(cls, column: ColumnView) -> "ColumnResponse":
        return cls(
            status=column.status,
            label=column.label,
            count=column.count,
            cards=[CardResponse.from_card(c) for c in column.cards],
        )


class BacklogRowResponse(BaseModel):
    position: int
    task: TaskResponse
    status_label: str

    @classmethod
    def from_row(cls, row: BacklogRow) -> "BacklogRowResponse":
        return cls(
            position=row.position,
            task=TaskResponse.from_task(row.task),
            status_label=row.status_label,
        )


class FeedItemResponse(BaseModel):
    id: str
    avatar: str
    user: str
    action: str
    target: str
    time: int
    time_ago: str

    @classmethod
    def from_item(cls, item: FeedItem) -> "FeedItemResponse":
        return cls(
            id=item.id,
            avatar=item.avatar,
            user=item.user,
            action=item.action,
            target=item.target,
            time=item.time,
            time_ago=item.time_ago,
        )


class ProjectResponse(BaseModel):
    id: str
    name: str
    color: str
    active: bool


class SidebarResponse(BaseModel):
    title: str | None
    projects: list[ProjectResponse]

    @classmethod
    def from_view(cls, view: ProjectListView) -> "SidebarResponse":
        return cls(
            title=view.title,
            projects=[
                ProjectResponse(
                    id=i.project.id, name=i.project.name, color=i.project.color, active=i.active
                )
                for i in view.items
            ],
        )


class ScreenResponse(BaseModel):
    user: UserResponse
    sidebar: SidebarResponse
    columns: list[ColumnResponse]
    backlog: list[BacklogRowResponse]
    feed: list[FeedItemResponse]
    revision: int

    @classmethod
    def from_screen(cls, screen: Screen) -> "ScreenResponse":
        return cls(
            user=UserResponse.from_user(screen.user),
            sidebar=SidebarResponse.from_view(screen.sidebar),
            columns=[ColumnResponse.from_column(c) for c in screen.columns],
            backlog=[BacklogRowResponse.from_row(r) for r in screen.backlog],
            feed=[FeedItemResponse.from_item(i) for i in screen.feed],
            revision=screen.revision,
        )


class MoveResponse(BaseModel):
    moved: bool
    task: TaskResponse | None


# ---------------------------------------------------------------------------
# Exception → HTTP translation
# ---------------------------------------------------------------------------


def _http(exc: BoardError) -> HTTPException:
    """Map domain exceptions to appropriate HTTP status codes."""
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, (AuthenticationError, NotAuthenticatedError)):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, DuplicateAccountError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, ConfirmationRequiredError):
        return HTTPException(status_code=428, detail=str(exc))
    if isinstance(exc, TaskNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="CodeFlow Board API",
    version="1.0.0",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Routes — session
# ---------------------------------------------------------------------------


@app.post("/auth/login", response_model=ScreenResponse)
def login(body: LoginRequest, ws: WorkspaceDep) -> ScreenResponse:
    try:
        return ScreenResponse.from_screen(ws.login(body.email, body.password))
    except BoardError as exc:
        raise _http(exc)


@app.post("/auth/demo", response_model=ScreenResponse)
def demo_login(ws: WorkspaceDep) -> ScreenResponse:
    try:
        return ScreenResponse.from_screen(ws.demo_login())
    except BoardError as exc:
        raise _http(exc)


@app.post("/auth/register", response_model=ScreenResponse, status_code=201)
def register(body: RegisterRequest, ws: WorkspaceDep) -> ScreenResponse:
    try:
        return ScreenResponse.from_screen(ws.register(body.name, body.email, body.password))
    except BoardError as exc:
        raise _http(exc)


@app.post("/auth/logout", status_code=204)
def logout(ws: WorkspaceDep) -> Response:
    ws.logout()
    return Response(status_code=204)


@app.get("/session", response_model=SessionResponse)
def session(ws: WorkspaceDep) -> SessionResponse:
    if ws.user is None:
        return SessionResponse(user=None, token=None, expires_at=None)
    token = ws.session.credential
    claims = parse_session(token)
    return SessionResponse(
        user=UserResponse.from_user(ws.user),
        token=token,
        expires_at=claims.expires_at if claims else None,
    )


@app.put("/settings", response_model=UserResponse)
def update_settings(body: SettingsRequest, ws: WorkspaceDep) -> UserResponse:
    try:
        return UserResponse.from_user(ws.update_settings(body.name, body.email))
    except BoardError as exc:
        raise _http(exc)


# ---------------------------------------------------------------------------
# Routes — views
# ---------------------------------------------------------------------------


@app.get("/screen", response_model=ScreenResponse)
def screen(
    ws: WorkspaceDep,
    search: str = "",
    priority: Priority | None = Query(default=None, description="Filter by priority"),
) -> ScreenResponse:
    try:
        return ScreenResponse.from_screen(ws.render(search, priority))
    except BoardError as exc:
        raise _http(exc)


@app.get("/board", response_model=list[ColumnResponse])
def board_view(
    ws: WorkspaceDep,
    search: str = "",
    priority: Priority | None = Query(default=None, description="Filter by priority"),
) -> list[ColumnResponse]:
    _gate(ws)
    return [ColumnResponse.from_column(c) for c in ws.render_board(search, priority)]


@app.get("/backlog", response_model=list[BacklogRowResponse])
def backlog_view(ws: WorkspaceDep) -> list[BacklogRowResponse]:
    _gate(ws)
    return [BacklogRowResponse.from_row(r) for r in ws.render_backlog()]


@app.get("/activity", response_model=list[FeedItemResponse])
def activity_feed(ws: WorkspaceDep) -> list[FeedItemResponse]:
    _gate(ws)
    return [FeedItemResponse.from_item(i) for i in ws.render_feed()]


# ---------------------------------------------------------------------------
# Routes — projects
# ---------------------------------------------------------------------------


@app.get("/projects", response_model=SidebarResponse)
def list_projects(ws: WorkspaceDep) -> SidebarResponse:
    _gate(ws)
    return SidebarResponse.from_view(ws.render_sidebar())


@app.post("/projects", response_model=SidebarResponse, status_code=201)
def create_project(body: CreateProjectRequest, ws: WorkspaceDep) -> SidebarResponse:
    try:
        ws.create_project(body.name)
    except BoardError as exc:
        raise _http(exc)
    return SidebarResponse.from_view(ws.render_sidebar())


@app.post("/projects/{project_id}/activate", response_model=SidebarResponse)
def activate_project(project_id: str, ws: WorkspaceDep) -> SidebarResponse:
    try:
        ws.switch_project(project_id)
    except BoardError as exc:
        raise _http(exc)
    return SidebarResponse.from_view(ws.render_sidebar())


# ---------------------------------------------------------------------------
# Routes — tasks
# ---------------------------------------------------------------------------


@app.post("/tasks", response_model=TaskResponse, status_code=201)
def create_task(body: CreateTaskRequest, ws: WorkspaceDep) -> TaskResponse:
    try:
        task = ws.create_task(
            body.title,
            desc=body.desc,
            priority=body.priority,
            status=body.status,
            tags=body.tags,
            assignee=body.assignee,
            due=body.due,
        )
    except BoardError as exc:
        raise _http(exc)
    return TaskResponse.from_task(task)


@app.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(task_id: str, ws: WorkspaceDep) -> TaskResponse:
    _gate(ws)
    task = ws.board.get_task(task_id)
    if task is None:
        raise _http(TaskNotFoundError(task_id))
    return TaskResponse.from_task(task)


@app.patch("/tasks/{task_id}", response_model=TaskResponse)
def update_task(task_id: str, body: UpdateTaskRequest, ws: WorkspaceDep) -> TaskResponse:
    try:
        task = ws.update_task(task_id, body.to_patch())
    except BoardError as exc:
        raise _http(exc)
    if task is None:
        raise _http(TaskNotFoundError(task_id))
    return TaskResponse.from_task(task)


@app.delete("/tasks/{task_id}", status_code=204)
def delete_task(task_id: str, ws: WorkspaceDep, confirm: bool = False) -> Response:
    try:
        deleted = ws.delete_task(task_id, confirmed=confirm)
    except BoardError as exc:
        raise _http(exc)
    if not deleted:
        raise _http(TaskNotFoundError(task_id))
    return Response(status_code=204)


@app.post("/tasks/{task_id}/move", response_model=MoveResponse)
def move_task(task_id: str, body: MoveRequest, ws: WorkspaceDep) -> MoveResponse:
    try:
        moved = ws.move_task(task_id, body.status)
    except BoardError as exc:
        raise _http(exc)
    task = ws.board.get_task(task_id)
    if task is None:
        raise _http(TaskNotFoundError(task_id))
    return MoveResponse(moved=moved, task=TaskResponse.from_task(task))


# ---------------------------------------------------------------------------
# Routes — drag and drop
# ---------------------------------------------------------------------------


@app.post("/drag/start", status_code=204)
def drag_start(body: DragStartRequest, ws: WorkspaceDep) -> Response:
    try:
        ws.drag_start(body.task_id)
    except BoardError as exc:
        raise _http(exc)
    return Response(status_code=204)


@app.post("/drag/drop", response_model=MoveResponse)
def drag_drop(body: MoveRequest, ws: WorkspaceDep) -> MoveResponse:
    task_id = ws.drag.dragging_id
    try:
        moved = ws.drop(body.status)
    except BoardError as exc:
        raise _http(exc)
    task = ws.board.get_task(task_id) if task_id else None
    return MoveResponse(moved=moved, task=TaskResponse.from_task(task) if task else None)


@app.post("/drag/end", status_code=204)
def drag_end(ws: WorkspaceDep) -> Response:
    ws.drag_end()
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Routes — reset
# ---------------------------------------------------------------------------


@app.post("/reset", response_model=ScreenResponse)
def reset(ws: WorkspaceDep, confirm: bool = False) -> ScreenResponse:
    try:
        return ScreenResponse.from_screen(ws.reset(confirmed=confirm))
    except BoardError as exc:
        raise _http(exc)


def _gate(ws: Workspace) -> None:
    if ws.user is None:
        raise _http(NotAuthenticatedError())
