"""
Database engine, session factory and declarative base.
"""
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from healthymeal.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """
    Keyword arguments for create_engine().

    Pool sizing only applies to server databases; SQLite URLs (local
    development, init-db against a file) get a thread-shareable connection.
    """
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": settings.database_pool_pre_ping,
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind: Optional[Engine] = None) -> None:
    """Create the recipe schema without Alembic (used by `healthymeal init-db`)."""
    from healthymeal.db import models  # noqa: F401  registers tables on Base

    Base.metadata.create_all(bind=bind or engine)
