from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import BigInteger, Integer, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from respos.core.config import DATABASE_URL

logger = logging.getLogger(__name__)

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
WideInteger = BigInteger().with_variant(Integer(), "sqlite")

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)

Base = declarative_base()


def get_db() -> Iterator[Session]:
    """Yield a DB session and close it after use (FastAPI dependency style)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Run every statement issued inside the block as one atomic unit.

    Commits when the block finishes and rolls back everything (including
    reads/writes made earlier on the same session since the last commit)
    when it raises. Not reentrant: workflows open exactly one scope.
    """
    try:
        yield db
        db.commit()
    except Exception:
        logger.debug("transaction rolled back")
        db.rollback()
        raise
