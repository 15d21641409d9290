"""Session lifecycle helpers for SQL store access."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


def create_session_factory(engine: Engine, *, autoflush: bool = False) -> sessionmaker[Session]:
    """Return a factory for short-lived sessions on ``engine``.

    Loaded values stay readable after commit (``expire_on_commit=False``),
    since callers usually log or return what they just wrote.
    """
    return sessionmaker(bind=engine, autoflush=autoflush, expire_on_commit=False)


@contextmanager
def transactional_session(session_factory: Callable[[], Session]) -> Iterator[Session]:
    """Yield a new session; commit when the block succeeds, else roll back.

    The session is always closed. When the rollback itself fails (the
    connection is already gone), that failure is logged and the block's
    original exception is re-raised.
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        try:
            session.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback failed after transactional error", exc_info=True)
        raise
    finally:
        session.close()
