"""SQLModel session management."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from agrigenius.core.config import settings


def build_engine(url: str | None = None) -> Engine:
    url = url or settings.database_url
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine()


def init_db(bind: Engine | None = None) -> None:
    # Import for side effects: table registration on SQLModel.metadata.
    from agrigenius import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


@contextmanager
def get_session(bind: Engine | None = None) -> Iterator[Session]:
    """Get a database session as a context manager."""
    session = Session(bind or engine)
    try:
        yield session
    finally:
        session.close()


__all__ = ["build_engine", "engine", "get_session", "init_db"]
