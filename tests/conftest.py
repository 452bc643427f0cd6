import os

# Must be set before taskboard.app.config caches its Settings.
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("SESSION_COOKIE_SECURE", "false")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TASK_REPO_BACKEND", "sql")

import pytest
from fastapi.testclient import TestClient

from taskboard.adapters.task_repository_memory import MemoryTaskRepository
from taskboard.app.auth import StaticSessionProvider
from taskboard.app.db import Database, get_db
from taskboard.app.main import app
from taskboard.app.task_store import TaskStore


@pytest.fixture()
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'taskboard.db'}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture()
def db_session(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def app_db(database):
    def _get_db():
        session = database.session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield database
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_db):
    return TestClient(app)


@pytest.fixture()
def make_client(app_db):
    """Independent clients (separate cookie jars) sharing one database."""

    def _make() -> TestClient:
        return TestClient(app)

    return _make


@pytest.fixture()
def memory_repo():
    return MemoryTaskRepository()


@pytest.fixture()
def store(memory_repo):
    return TaskStore(memory_repo, StaticSessionProvider("user-a"))
