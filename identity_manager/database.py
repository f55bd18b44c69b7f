"""Database connection and session management."""

from contextlib import contextmanager
from typing import Any, Generator, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import Session, sessionmaker

from identity_manager.config import settings


def build_engine(database_url: str, **kwargs: Any) -> Engine:
    """Create an engine for the given URL.

    SQLite connections are shared across the request threads of the test client
    and dev server, so same-thread checking is disabled and foreign keys are
    switched on. Every other backend gets a pre-pinged connection pool.

    Args:
        database_url: SQLAlchemy database URL
        **kwargs: Extra keyword arguments passed to ``create_engine``

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        new_engine = create_engine(database_url, connect_args=connect_args, **kwargs)

        @event.listens_for(new_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return new_engine

    kwargs.setdefault("pool_pre_ping", True)  # Verify connections before using
    kwargs.setdefault("pool_size", 10)
    kwargs.setdefault("max_overflow", 20)
    return create_engine(database_url, **kwargs)


engine = build_engine(settings.database_url, echo=False)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# Base class for declarative models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Dependency for getting database session.

    Yields:
        Session: SQLAlchemy database session

    Example:
        ```python
        from identity_manager.database import get_db

        @app.get("/items")
        def get_items(db: Session = Depends(get_db)):
            return db.query(Item).all()
        ```
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit the work done inside the block, or roll all of it back.

    Args:
        db: Session the unit of work runs on

    Yields:
        Session: The same session
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
