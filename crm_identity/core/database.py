"""Engine factory, session management and connectivity checks."""

import logging
from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from crm_identity.core.config import settings

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str, **kwargs: Any) -> Engine:
    """
    Build an engine for PostgreSQL or SQLite.

    SQLite connections are shared across FastAPI's worker threads and enforce
    foreign keys, so lifecycle-state and role references are checked there too.
    """
    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        engine = create_engine(database_url, connect_args=connect_args, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    kwargs.setdefault("pool_pre_ping", True)
    return create_engine(database_url, **kwargs)


engine = create_db_engine(settings.DATABASE_URL, echo=settings.DEBUG)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("Database connectivity check failed: %s", e)
        return False


def check_reference_data_seeded(db: Session) -> bool:
    """True when the active and eliminated lifecycle states exist."""
    try:
        found = db.execute(
            text("SELECT COUNT(*) FROM lifecycle_states WHERE id IN (:active_id, :eliminated_id)"),
            {
                "active_id": settings.DEFAULT_ACTIVE_STATE_ID,
                "eliminated_id": settings.ELIMINATED_STATE_ID,
            },
        ).scalar()
        return found == 2
    except Exception as e:
        logger.warning("Reference data check failed: %s", e)
        db.rollback()
        return False
