"""SQLAlchemy-backed task repository (default backend)."""

from __future__ import annotations

import contextlib
import logging
from datetime import date, datetime
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskboard.app import models
from taskboard.app.core.errors import StoreUnavailable
from taskboard.app.domain import Task, TaskStatus, as_utc
from taskboard.ports.task_repository import ITaskRepository

logger = logging.getLogger(__name__)


def _row_to_task(row: models.Task) -> Task:
    return Task(
        id=str(row.id),
        owner_id=str(row.owner_id),
        text=str(row.text or ""),
        deadline=row.deadline,
        status=TaskStatus.from_db(row.status),
        finished_time=as_utc(row.finished_time),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


class SqlTaskRepository(ITaskRepository):
    def __init__(self, session: Session):
        self.session = session

    @contextlib.contextmanager
    def _guard(self, op: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Task repository %s failed", op, extra={"op": op})
            raise StoreUnavailable(f"Task storage is unavailable ({op})", cause=exc) from exc

    def _row(self, task_id: str) -> Optional[models.Task]:
        return self.session.query(models.Task).filter(models.Task.id == str(task_id)).first()

    def list_by_owner(self, owner_id: str) -> list[Task]:
        with self._guard("list"):
            rows = (
                self.session.query(models.Task)
                .filter(models.Task.owner_id == str(owner_id))
                .order_by(models.Task.deadline.asc(), models.Task.created_at.asc())
                .all()
            )
            return [_row_to_task(r) for r in rows]

    def get(self, task_id: str) -> Optional[Task]:
        with self._guard("get"):
            row = self._row(task_id)
            return _row_to_task(row) if row else None

    def insert(self, owner_id: str, text: str, deadline: date) -> Task:
        with self._guard("insert"):
            row = models.Task(
                owner_id=str(owner_id),
                text=text,
                deadline=deadline,
                status=TaskStatus.PENDING.value,
                finished_time=None,
            )
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
            return _row_to_task(row)

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
        with self._guard("update"):
            row = self._row(task_id)
            if row is None:
                return None
            if text is not None:
                row.text = text
            if deadline is not None:
                row.deadline = deadline
            if status is not None:
                row.status = status.value
            if clear_finished_time:
                row.finished_time = None
            elif finished_time is not None:
                row.finished_time = finished_time
            self.session.commit()
            self.session.refresh(row)
            return _row_to_task(row)

    def delete(self, task_id: str) -> bool:
        with self._guard("delete"):
            deleted = (
                self.session.query(models.Task)
                .filter(models.Task.id == str(task_id))
                .delete(synchronize_session=False)
            )
            self.session.commit()
            return deleted == 1
