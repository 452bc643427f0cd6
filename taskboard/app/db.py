from __future__ import annotations

import logging
from functools import lru_cache
from typing import Iterator, Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from taskboard.app.config import get_settings

logger = logging.getLogger(__name__)

Base = declarative_base()

# Columns added after the first schema shipped. create_all() never alters an
# existing table, so older databases get them through ALTER TABLE on boot.
_EXTRA_COLUMNS: dict[str, dict[str, str]] = {
    "tasks": {
        "finished_time": "DATETIME",
        "updated_at": "DATETIME",
    },
    "users": {
        "image": "TEXT",
        "updated_at": "DATETIME",
    },
}


class Database:
    """Lazily created engine and session factory for one database URL.

    Constructed once per process by ``get_database()`` and handed to request
    handlers through ``get_db()``; tests build their own instance instead.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            kwargs: dict = {}
            if self.url.startswith("sqlite"):
                # SQLite requires check_same_thread=False for usage across threads
                kwargs["connect_args"] = {"check_same_thread": False}
                if self.url in ("sqlite://", "sqlite:///:memory:"):
                    kwargs["poolclass"] = StaticPool
            self._engine = create_engine(self.url, **kwargs)
            logger.info("Database engine created url=%s", self._engine.url.render_as_string())
        return self._engine

    def session(self) -> Session:
        if self._session_factory is None:
            self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        return self._session_factory()

    def create_all(self) -> None:
        """Create missing tables, then add any missing columns to existing ones."""
        from taskboard.app import models  # noqa: F401  registers tables on Base

        Base.metadata.create_all(bind=self.engine)
        ensure_extra_columns(self.engine)

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None


def ensure_extra_columns(engine: Engine) -> None:
    """Ensure newly added columns exist (idempotent, SQLite-friendly)."""

    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())

    alter_statements = []
    for table, extra in _EXTRA_COLUMNS.items():
        if table not in existing_tables:
            continue
        columns = {col["name"] for col in inspector.get_columns(table)}
        for name, decl in extra.items():
            if name not in columns:
                alter_statements.append(f"ALTER TABLE {table} ADD COLUMN {name} {decl}")

    if not alter_statements:
        return

    with engine.begin() as conn:
        for stmt in alter_statements:
            conn.execute(text(stmt))
            logger.info("Schema migration: %s", stmt)


@lru_cache()
def get_database() -> Database:
    return Database(get_settings().database_url)


def get_db() -> Iterator[Session]:
    db = get_database().session()
    try:
        yield db
    finally:
        db.close()
