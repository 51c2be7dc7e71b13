"""Database connection management for the prenatal chat store.

The engine and session factory are built explicitly by the application
lifespan (see ``prenatal_chat.api.main``) and kept on ``app.state``. They
are not module globals, so tests and scripts can construct their own.

Usage:
    engine = create_db_engine("sqlite:///./prenatal_chat.db")
    init_db(engine)
    SessionLocal = create_session_factory(engine)

    with session_scope(SessionLocal) as db:
        ...
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from fastapi import Request
from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from prenatal_chat.db.models import Base


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create a SQLAlchemy engine for the given URL.

    SQLite connections are shared across FastAPI's threadpool, so
    ``check_same_thread`` is disabled. In-memory SQLite uses a StaticPool
    so every session sees the same database.

    Args:
        url: SQLAlchemy database URL.
        echo: Log emitted SQL.

    Returns:
        Configured Engine.
    """
    kwargs: dict[str, Any] = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(url):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)

    if url.startswith("sqlite") and not _is_memory_sqlite(url):

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
            """Enable WAL so readers don't block the single writer."""
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Build the session factory bound to ``engine``."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def init_db(engine: Engine) -> None:
    """Create all tables and indexes. Idempotent."""
    Base.metadata.create_all(bind=engine)


def ping(db: Session) -> None:
    """Round-trip a trivial query; raises if the store is unreachable."""
    db.execute(text("SELECT 1"))


# Dependency functions for FastAPI


def get_db(request: Request) -> Generator[Session, None, None]:
    """Yield a request-scoped session from the app's session factory.

    Usage:
        @router.get("/conversations/{user_id}")
        def list_conversations(db: Session = Depends(get_db)):
            ...

    Yields:
        Session: SQLAlchemy session that will be closed after use.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(
    session_factory: sessionmaker[Session],
) -> Generator[Session, None, None]:
    """Context manager for sessions outside of FastAPI.

    Commits on success, rolls back on error.

    Usage:
        with session_scope(SessionLocal) as db:
            db.query(Conversation).count()
    """
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
