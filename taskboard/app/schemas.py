from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from taskboard.app.projection import DeadlineFilter, SortOption, StatusFilter


class TaskCreate(BaseModel):
    # Kept as raw strings: TaskStore owns validation so every entry point
    # reports the same errors.
    text: Optional[str] = None
    deadline: Optional[str] = None


class TaskUpdate(TaskCreate):
    pass


class TaskOut(BaseModel):
    id: str
    text: str
    deadline: date
    status: str
    finished_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TaskCounts(BaseModel):
    total: int
    pending: int
    done: int


class TaskListResponse(BaseModel):
    items: list[TaskOut]
    counts: TaskCounts


class ProjectionGroupOut(BaseModel):
    key: str
    label: str
    count: int
    items: list[TaskOut]


class ProjectionFilters(BaseModel):
    q: str
    status: StatusFilter
    deadline: DeadlineFilter
    sort: SortOption


class ProjectionResponse(BaseModel):
    filters: ProjectionFilters
    grouped: bool
    groups: list[ProjectionGroupOut]
    matched: int
    empty_state: Optional[str] = None
    message: Optional[str] = None
    counts: TaskCounts
    summary: str


class SignUpBody(BaseModel):
    name: Optional[str] = None
    email: str
    password: str


class LoginBody(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    ok: bool
    next_location: Optional[str] = None
    reason: Optional[str] = None
    user: Optional[UserOut] = None
