from contextlib import contextmanager

import structlog
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .errors import LegalizError, PersistenceFailure


# Configure connection pool for better performance
engine = create_engine(
    settings.database_url,
    future=True,
    pool_pre_ping=True,
    pool_recycle=3600,  # Recycle connections after 1 hour
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
)

# IMPORTANT: do not use scoped_session with async frameworks; create a fresh Session per request
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

Base = declarative_base()


def enable_sqlite_foreign_keys(target_engine) -> None:
    """SQLite ignores FOREIGN KEY clauses unless the pragma is set per connection."""
    if target_engine.dialect.name != "sqlite":
        return

    @event.listens_for(target_engine, "connect")
    def _fk_pragma(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


enable_sqlite_foreign_keys(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session):
    """Run a multi-statement write as one transaction.

    Commits when the block exits cleanly. Any exception rolls back everything
    flushed inside the block; storage faults are re-raised as PersistenceFailure
    so callers never see driver detail.
    """
    try:
        yield db
        db.commit()
    except LegalizError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        structlog.get_logger(__name__).error("unit_of_work_failed", error=str(e))
        raise PersistenceFailure() from e
    except Exception:
        db.rollback()
        raise
