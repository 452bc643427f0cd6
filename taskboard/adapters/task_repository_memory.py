"""In-memory task repository (demo mode and test fixture).

Selected with ``TASK_REPO_BACKEND=memory``. Nothing survives a restart.
"""

from __future__ import annotations

import dataclasses
import itertools
import threading
from datetime import date, datetime
from typing import Optional

from taskboard.app.domain import Task, TaskStatus, utcnow
from taskboard.ports.task_repository import ITaskRepository


class MemoryTaskRepository(ITaskRepository):
    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def list_by_owner(self, owner_id: str) -> list[Task]:
        with self._lock:
            owned = [t for t in self._tasks.values() if t.owner_id == str(owner_id)]
        # dict keeps insertion order, so equal deadlines stay in creation order
        return sorted(owned, key=lambda t: t.deadline)

    def get(self, task_id: str) -> Optional[Task]:
        with self._lock:
            return self._tasks.get(str(task_id))

    def insert(self, owner_id: str, text: str, deadline: date) -> Task:
        now = utcnow()
        with self._lock:
            task = Task(
                id=str(next(self._ids)),
                owner_id=str(owner_id),
                text=text,
                deadline=deadline,
                status=TaskStatus.PENDING,
                finished_time=None,
                created_at=now,
                updated_at=now,
            )
            self._tasks[task.id] = task
        return task

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
        with self._lock:
            current = self._tasks.get(str(task_id))
            if current is None:
                return None
            changes: dict = {"updated_at": utcnow()}
            if text is not None:
                changes["text"] = text
            if deadline is not None:
                changes["deadline"] = deadline
            if status is not None:
                changes["status"] = status
            if clear_finished_time:
                changes["finished_time"] = None
            elif finished_time is not None:
                changes["finished_time"] = finished_time
            updated = dataclasses.replace(current, **changes)
            self._tasks[updated.id] = updated
            return updated

    def delete(self, task_id: str) -> bool:
        with self._lock:
            return self._tasks.pop(str(task_id), None) is not None
