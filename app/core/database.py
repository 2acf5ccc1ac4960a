"""
Database configuration and session management.

SQLite is the default store for local/desktop use; PostgreSQL is supported
through DATABASE_URL. Foreign keys are switched on for SQLite connections so
ON DELETE CASCADE on match-owned tables behaves the same on both backends.
"""
import os
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from app.core.config import settings


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def create_db_engine(url: str, **engine_kwargs) -> Engine:
    """
    Create an engine for the given URL with backend-appropriate options.

    Args:
        url: SQLAlchemy database URL
        **engine_kwargs: Extra create_engine options (e.g. poolclass)

    Returns:
        Configured Engine
    """
    echo = os.getenv("SQL_ECHO", "false").lower() == "true"

    if _is_sqlite(url):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=echo,
            **engine_kwargs,
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,  # Verify connections before using
        echo=echo,
        **engine_kwargs,
    )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = create_db_engine(settings.DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    Usage in FastAPI:
    ```python
    @router.get("/endpoint")
    def endpoint(db: Session = Depends(get_db)):
        # Use db here
        pass
    ```
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create any missing tables."""
    from app.models import Base
    Base.metadata.create_all(bind=bind or engine, checkfirst=True)
