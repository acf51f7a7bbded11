"""SQLAlchemy engine and session factory.

Usage:
    engine = create_engine(config["DATABASE_URL"])
    factory = create_session_factory(engine)
    with session_scope(factory) as session:
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, event
from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..game.prompts import DEFAULT_PROMPTS
from .models import Base
from .repository import Repository

logger = logging.getLogger(__name__)


def create_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections get foreign keys and a busy timeout.

    An in-memory SQLite URL shares one connection across threads so every
    session (and every timer task) sees the same database.
    """
    kwargs: dict[str, object] = {}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 15}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    engine = sa_create_engine(database_url, echo=False, **kwargs)

    if is_sqlite:

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_conn: object, connection_record: object) -> None:
            cursor = dbapi_conn.cursor()  # type: ignore[attr-defined]
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA busy_timeout=15000")
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on any error."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:  # re-raised after rollback
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine, factory: sessionmaker[Session]) -> None:
    """Create missing tables and seed the random prompt pool."""
    Base.metadata.create_all(bind=engine)
    with session_scope(factory) as session:
        added = Repository(session).seed_random_prompts(DEFAULT_PROMPTS)
    if added:
        logger.info("Seeded %d random prompts", added)
