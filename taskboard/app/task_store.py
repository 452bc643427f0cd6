"""Per-session working copy of the signed-in user's tasks.

The store validates input, checks ownership against the current server-side
row, sends each mutation to the repository and only then reconciles the
in-memory list. Nothing is applied optimistically: when the repository
raises, the working copy is left exactly as it was.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from datetime import date, datetime
from typing import Callable, Iterator, Optional, Union

from taskboard.app.core.errors import (
    Forbidden,
    MutationInProgress,
    NotFound,
    TaskboardError,
    Unauthenticated,
    ValidationError,
)
from taskboard.app.domain import Task, TaskStatus, utcnow
from taskboard.ports.session_provider import ISessionProvider
from taskboard.ports.task_repository import ITaskRepository

logger = logging.getLogger(__name__)

DeadlineInput = Union[date, str, None]
Listener = Callable[[str, Optional[Task]], None]


def parse_deadline(value: DeadlineInput) -> date:
    """Accept a ``date`` (a ``datetime`` is truncated) or an ISO ``YYYY-MM-DD`` string."""
    if value is None:
        raise ValidationError("Deadline is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if not raw:
        raise ValidationError("Deadline is required")
    try:
        return date.fromisoformat(raw[:10] if "T" in raw else raw)
    except ValueError as exc:
        raise ValidationError(f"Invalid deadline: {raw!r}", cause=exc) from exc


def validate_task_input(text: Optional[str], deadline: DeadlineInput) -> tuple[str, date]:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError("Task text is required")
    return cleaned, parse_deadline(deadline)


class MutationGuard:
    """Users with a mutation currently waiting on the repository.

    Stores built for the same user share one guard, so a second change that
    starts while the first is still being saved is rejected even when the two
    arrive on separate requests.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._busy: set[str] = set()

    def acquire(self, user_id: str) -> bool:
        with self._lock:
            if user_id in self._busy:
                return False
            self._busy.add(user_id)
            return True

    def release(self, user_id: str) -> None:
        with self._lock:
            self._busy.discard(user_id)

    def is_busy(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._busy


class TaskStore:
    def __init__(
        self,
        repository: ITaskRepository,
        session: ISessionProvider,
        *,
        clock: Callable[[], datetime] = utcnow,
        guard: Optional[MutationGuard] = None,
    ) -> None:
        self._repo = repository
        self._session = session
        self._clock = clock
        self._guard = guard if guard is not None else MutationGuard()
        self._tasks: list[Task] = []
        self._saving = False
        self._listeners: list[Listener] = []

    # ---- read side ----

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def is_saving(self) -> bool:
        """True while a mutation is waiting on the repository."""
        return self._saving

    def counts(self) -> dict[str, int]:
        pending = sum(1 for t in self._tasks if t.status == TaskStatus.PENDING)
        return {"total": len(self._tasks), "pending": pending, "done": len(self._tasks) - pending}

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(op, task)`` after every successful mutation; returns an unsubscribe hook."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    # ---- helpers ----

    def _require_user(self) -> str:
        user_id = self._session.current_user_id()
        if not user_id:
            raise Unauthenticated("Unauthorized")
        return str(user_id)

    @contextlib.contextmanager
    def _mutation(self, user_id: str, op: str) -> Iterator[None]:
        if self._saving or not self._guard.acquire(user_id):
            logger.info("Mutation rejected, another is in flight", extra={"user": user_id, "op": op})
            raise MutationInProgress(f"Another change is still being saved ({op} rejected)")
        self._saving = True
        try:
            yield
        finally:
            self._saving = False
            self._guard.release(user_id)

    def _owned(self, user_id: str, task_id: str, missing: type[TaskboardError]) -> Task:
        current = self._repo.get(str(task_id))
        if current is None:
            raise missing(f"Task {task_id} not found")
        if current.owner_id != user_id:
            raise Forbidden(f"Cannot modify task {task_id}")
        return current

    def _put(self, task: Task) -> None:
        for i, existing in enumerate(self._tasks):
            if existing.id == task.id:
                self._tasks[i] = task
                return
        self._tasks.append(task)

    def _notify(self, op: str, task: Optional[Task]) -> None:
        for listener in list(self._listeners):
            try:
                listener(op, task)
            except Exception:
                logger.exception("Task listener failed", extra={"op": op})

    # ---- operations ----

    def load(self) -> list[Task]:
        user_id = self._require_user()
        tasks = self._repo.list_by_owner(user_id)
        self._tasks = list(tasks)
        logger.debug("Loaded %s tasks", len(self._tasks), extra={"user": user_id, "op": "load"})
        return self.tasks

    def create(self, text: Optional[str], deadline: DeadlineInput) -> Task:
        user_id = self._require_user()
        cleaned, due = validate_task_input(text, deadline)
        with self._mutation(user_id, "create"):
            task = self._repo.insert(user_id, cleaned, due)
        self._tasks.append(task)
        logger.info(
            "Task created deadline=%s", due.isoformat(), extra={"user": user_id, "task": task.id, "op": "create"}
        )
        self._notify("create", task)
        return task

    def update(self, task_id: str, text: Optional[str], deadline: DeadlineInput) -> Task:
        user_id = self._require_user()
        cleaned, due = validate_task_input(text, deadline)
        with self._mutation(user_id, "update"):
            self._owned(user_id, task_id, Forbidden)
            task = self._repo.update(str(task_id), text=cleaned, deadline=due)
            if task is None:
                raise NotFound(f"Task {task_id} not found")
        self._put(task)
        logger.info("Task updated", extra={"user": user_id, "task": task.id, "op": "update"})
        self._notify("update", task)
        return task

    def toggle_status(self, task_id: str) -> Task:
        user_id = self._require_user()
        with self._mutation(user_id, "toggle"):
            current = self._owned(user_id, task_id, NotFound)
            if current.status == TaskStatus.PENDING:
                task = self._repo.update(current.id, status=TaskStatus.DONE, finished_time=self._clock())
            else:
                task = self._repo.update(current.id, status=TaskStatus.PENDING, clear_finished_time=True)
            if task is None:
                raise NotFound(f"Task {task_id} not found")
        self._put(task)
        logger.info("Task status -> %s", task.status.value, extra={"user": user_id, "task": task.id, "op": "toggle"})
        self._notify("toggle", task)
        return task

    def remove(self, task_id: str) -> None:
        user_id = self._require_user()
        with self._mutation(user_id, "remove"):
            current = self._owned(user_id, task_id, NotFound)
            if not self._repo.delete(current.id):
                raise NotFound(f"Task {task_id} not found")
        self._tasks = [t for t in self._tasks if t.id != current.id]
        logger.info("Task removed", extra={"user": user_id, "task": current.id, "op": "remove"})
        self._notify("remove", current)
