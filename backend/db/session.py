"""Database engine lifecycle, session factory, and dependency injection."""

import logging
from typing import Generator, Optional

from fastapi import Depends
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from backend.core.config import settings
from backend.core.exceptions import StoreUnavailableError
from backend.db.store import SqlAlchemyStore

logger = logging.getLogger("admin_platform.db")

# Process-wide handle, set by connect() and cleared by disconnect().
engine: Optional[Engine] = None
SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def connect(url: Optional[str] = None, **engine_kwargs) -> Engine:
    """Create the engine (once) and bind the session factory to it."""
    global engine
    if engine is not None:
        return engine

    url = url or settings.DATABASE_URL
    if url.startswith("mysql"):
        engine_kwargs.setdefault("pool_size", 10)
        engine_kwargs.setdefault("max_overflow", 20)
        engine_kwargs.setdefault("pool_timeout", 30)
        engine_kwargs.setdefault("pool_recycle", 1800)
    engine_kwargs.setdefault("pool_pre_ping", True)
    engine_kwargs.setdefault("echo", settings.DEBUG)

    engine = create_engine(url, **engine_kwargs)
    SessionLocal.configure(bind=engine)
    logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))
    return engine


def disconnect() -> None:
    """Dispose of the engine and its pooled connections."""
    global engine
    if engine is None:
        return
    engine.dispose()
    engine = None
    logger.info("Database engine disposed")


def create_tables() -> None:
    """Create all tables known to the models package."""
    from backend.db.base import Base
    import backend.models  # noqa: F401  (registers models on Base.metadata)

    if engine is None:
        raise StoreUnavailableError("Database is not connected")
    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that provides a DB session per request."""
    if engine is None:
        raise StoreUnavailableError("Database is not connected")
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(db: Session = Depends(get_db)) -> SqlAlchemyStore:
    """FastAPI dependency that wraps the request session in the RBAC store."""
    return SqlAlchemyStore(db)
