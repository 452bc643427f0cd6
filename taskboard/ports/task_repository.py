"""Port interface for task persistence (repository boundary)."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, runtime_checkable

from taskboard.app.domain import Task, TaskStatus


@runtime_checkable
class ITaskRepository(Protocol):
    """Task persistence: fetch-all-by-owner, insert, update-by-id, delete-by-id.

    Implementations raise ``StoreUnavailable`` when the backing store fails.
    Ownership is enforced by the caller (``TaskStore``) before any mutation.
    """

    def list_by_owner(self, owner_id: str) -> list[Task]:
        """Return every task owned by ``owner_id``, deadline ascending."""

    def get(self, task_id: str) -> Optional[Task]:
        """Return a task by id or None when missing."""

    def insert(self, owner_id: str, text: str, deadline: date) -> Task:
        """Persist a new pending task and return it with its assigned id and timestamps."""

    def update(
        self,
        task_id: str,
        *,
        text: Optional[str] = None,
        deadline: Optional[date] = None,
        status: Optional[TaskStatus] = None,
        finished_time: Optional[datetime] = None,
        clear_finished_time: bool = False,
    ) -> Optional[Task]:
        """Apply the given fields and return the stored task, or None when missing."""

    def delete(self, task_id: str) -> bool:
        """Delete a task; False when it did not exist."""
