"""Domain types shared by the task store, the projection engine and the adapters.

These are plain dataclasses, detached from any ORM session, so the store's
in-memory working copy stays valid after the database session closes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Optional


class TaskStatus(StrEnum):
    PENDING = "pending"
    DONE = "done"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if raw == cls.DONE.value:
            return cls.DONE
        return cls.PENDING


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True, slots=True)
class Task:
    """A single to-do item owned by one user.

    ``finished_time`` is set iff ``status`` is ``done``.
    """

    id: str
    owner_id: str
    text: str
    deadline: date
    status: TaskStatus = TaskStatus.PENDING
    finished_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE
