"""Dependency providers: repository backend selection, session and task store wiring."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from taskboard.adapters.task_repository_memory import MemoryTaskRepository
from taskboard.adapters.task_repository_sql import SqlTaskRepository
from taskboard.app.auth import CookieSessionProvider
from taskboard.app.config import get_settings
from taskboard.app.core.errors import Unauthenticated
from taskboard.app.db import get_db
from taskboard.app.task_store import MutationGuard, TaskStore
from taskboard.ports.session_provider import ISessionProvider
from taskboard.ports.task_repository import ITaskRepository

logger = logging.getLogger(__name__)


@lru_cache()
def get_memory_repository() -> MemoryTaskRepository:
    """Process-wide in-memory repository (demo backend)."""
    logger.info("TaskRepository backend=memory (tasks are not persisted)")
    return MemoryTaskRepository()


@lru_cache()
def get_mutation_guard() -> MutationGuard:
    """Process-wide record of users with a change still being saved."""
    return MutationGuard()


def get_task_repository(db: Session = Depends(get_db)) -> ITaskRepository:
    """Return the task repository implementation selected by TASK_REPO_BACKEND."""
    backend = (get_settings().task_repo_backend or "sql").strip().lower()
    if backend == "memory":
        return get_memory_repository()
    return SqlTaskRepository(db)


def get_session_provider(request: Request) -> ISessionProvider:
    return CookieSessionProvider(request)


def get_current_user_id(session: ISessionProvider = Depends(get_session_provider)) -> str:
    user_id = session.current_user_id()
    if not user_id:
        raise Unauthenticated("Unauthorized")
    return user_id


def get_task_store(
    repo: ITaskRepository = Depends(get_task_repository),
    session: ISessionProvider = Depends(get_session_provider),
) -> TaskStore:
    return TaskStore(repo, session, guard=get_mutation_guard())
