import datetime as dt
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text

from .db import Base


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _new_id() -> str:
    return uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, index=True, default=_new_id)
    name = Column(String(255), nullable=False, default="User")
    email = Column(String(320), nullable=False, unique=True, index=True)
    # Empty for accounts that only ever signed in through OAuth.
    password_hash = Column(Text, nullable=False, default="")
    image = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(64), primary_key=True, index=True, default=_new_id)
    owner_id = Column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text = Column(Text, nullable=False)
    deadline = Column(Date, nullable=False, index=True)
    status = Column(String(16), nullable=False, default="pending")
    finished_time = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )
