"""
Database connection and session management for MedicineTT
"""

import logging
from sqlalchemy import create_engine, event, func, text
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from contextlib import contextmanager
from typing import Dict, Generator

from config import settings


logger = logging.getLogger(__name__)


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def _create_engine(url: str):
    """
    Build the engine for ``url``.

    SQLite waits at most STORE_LOCK_TIMEOUT_SECONDS for a locked database
    and enforces foreign keys, so deleting a medicine also drops its logs.
    """
    if url.startswith("sqlite"):
        options = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.STORE_LOCK_TIMEOUT_SECONDS,
            },
            "echo": settings.DATABASE_ECHO,
        }
        if _is_memory_url(url):
            # In-memory database lives on a single shared connection
            options["poolclass"] = StaticPool
        sqlite_engine = create_engine(url, **options)

        @event.listens_for(sqlite_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    # PostgreSQL or other databases
    return create_engine(
        url,
        echo=settings.DATABASE_ECHO,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_timeout=settings.STORE_LOCK_TIMEOUT_SECONDS
    )


engine = _create_engine(settings.DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base class for ORM models
Base = declarative_base()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Session for code running outside a request: the daily trigger jobs
    and service calls made without an explicit ``db``.

    Commits on success, rolls back on any exception.

    Usage:
        with get_db_context() as db:
            db.query(Medicine).all()
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create the medicines and daily_logs tables if they do not exist"""
    # Import models to register them with Base
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database initialized at: {settings.DATABASE_URL}")


class DatabaseHealthCheck:
    """Database health check utilities"""

    @staticmethod
    def is_connected() -> bool:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.exception("Database health check failed")
            return False

    @staticmethod
    def get_table_counts(db: Session) -> Dict[str, int]:
        """Registered medicines and stored daily log rows"""
        import models

        return {
            "medicines": db.query(func.count(models.Medicine.medicine_no)).scalar() or 0,
            "daily_logs": db.query(func.count(models.DailyLog.id)).scalar() or 0,
        }


# Export commonly used items
__all__ = [
    "engine",
    "SessionLocal",
    "Base",
    "get_db_context",
    "init_db",
    "DatabaseHealthCheck"
]
