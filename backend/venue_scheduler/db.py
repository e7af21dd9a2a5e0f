# backend/venue_scheduler/db.py
"""Database engine, session and transaction helpers."""

from __future__ import annotations

import logging
import zlib
from contextlib import contextmanager
from datetime import date
from typing import Generator, Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import settings
from .errors import StorageError

logger = logging.getLogger(__name__)

# execution option read by the SQLite "begin" hook: DEFERRED or IMMEDIATE
SQLITE_BEGIN = "sqlite_begin"


def make_engine(url: str, **kwargs) -> Engine:
    """
    Build an engine for `url`.

    SQLite transactions opened by `transaction()` start with BEGIN IMMEDIATE
    so the conflict scan and the write that follows it hold the database
    write lock together. Plain reads use a deferred BEGIN.
    """
    is_sqlite = url.startswith("sqlite")
    engine = create_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        connect_args=({} if not is_sqlite else {"check_same_thread": False}),
        **kwargs,
    )
    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin(conn):
            mode = conn.get_execution_options().get(SQLITE_BEGIN, "DEFERRED")
            conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


engine = make_engine(settings.database_url)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""
    pass


def get_db() -> Generator:
    """
    FastAPI dependency that yields a session per request
    and guarantees it is closed afterwards.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Unit of work: commit when the block finishes, roll back on any error.

    Driver and ORM failures come out as StorageError; everything else
    (including the scheduling errors raised inside the block) propagates as is.

    A unit of work that opens its own transaction asks SQLite for the write
    lock up front. If the session is already inside a transaction the block
    joins it.
    """
    try:
        if not db.in_transaction():
            db.connection(execution_options={SQLITE_BEGIN: "IMMEDIATE"})
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("transaction rolled back: %s", exc)
        raise StorageError("The event store could not complete the operation.") from exc
    except BaseException:
        db.rollback()
        raise


def lock_partition(db: Session, location: str, day: date) -> None:
    """
    Serialize admissions for one (location, date) until the transaction ends.

    PostgreSQL takes a transaction-scoped advisory lock; SQLite is already
    serialized by BEGIN IMMEDIATE. Other backends rely on the live-slot
    unique index.
    """
    if db.get_bind().dialect.name != "postgresql":
        return
    key = zlib.crc32(f"{location}\x00{day.isoformat()}".encode("utf-8"))
    db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": key})
