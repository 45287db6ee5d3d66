from __future__ import annotations

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from propops.core.config import get_settings
from propops.core.errors import UnexpectedStoreError


logger = logging.getLogger("propops.db")


class Base(DeclarativeBase):
    pass


engine = create_engine(get_settings().database_url, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def unit_of_work(session: Session) -> Iterator[Session]:
    """Commit everything staged inside the block, or roll all of it back.

    Store failures surface as ``UnexpectedStoreError``; domain errors raised
    inside the block propagate unchanged after the rollback.
    """
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("db.unit_of_work_failed", extra={"error": str(exc)})
        raise UnexpectedStoreError("The operation could not be saved") from exc
    except Exception:
        session.rollback()
        raise
