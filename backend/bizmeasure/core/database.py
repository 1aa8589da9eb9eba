"""
database.py — Database Session & Connection Management

Purpose:
- Create and provide access to the relational database used by the backend.
- Manage SQLAlchemy Engine + Session lifecycle.
- Expose a FastAPI dependency `get_db()` that yields a session per-request.
- Own the declarative `Base` shared by every ORM model.

Key Characteristics:
- Synchronous SQLAlchemy engine.
- No Alembic migrations — `init_db()` creates missing tables at startup.
- Session is opened at the start of a request and closed after the response.

This module does NOT:
- Define ORM models (see bizmeasure/models/*).
- Perform any queries or business logic.
"""

import datetime
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bizmeasure.core.config import settings


class Base(DeclarativeBase):
    pass


# -----------------------------------------------------------------------------
# SQLAlchemy Engine
# -----------------------------------------------------------------------------

def normalize_database_url(db_url: str) -> str:
    """
    Use psycopg (v3) for bare postgresql:// URLs; leave other URLs untouched.
    """
    db_url = db_url.strip()
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)
    if db_url.startswith("postgresql://") and "+" not in db_url.split("://")[0]:
        db_url = db_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return db_url


def build_engine(db_url: str) -> Engine:
    db_url = normalize_database_url(db_url)
    connect_args = {}
    if db_url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a threadpool
        connect_args["check_same_thread"] = False
    return create_engine(
        db_url,
        pool_pre_ping=True,  # Ensures connections are valid before use
        connect_args=connect_args,
    )


engine = build_engine(settings.DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def init_db(bind: Engine = None) -> None:
    """
    Create all tables known to `Base.metadata` if they do not exist yet.
    """
    # Import models so they register on Base.metadata
    import bizmeasure.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)

# -----------------------------------------------------------------------------
# FastAPI Dependency
# -----------------------------------------------------------------------------

def get_db() -> Iterator[Session]:
    """
    FastAPI dependency: yields a database session for the duration of the request.

    Usage in API endpoint:
        def endpoint(db: Session = Depends(get_db)):
            db.query(...)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def utcnow() -> datetime.datetime:
    """Timezone-aware UTC timestamp used for `created_at` column defaults."""
    return datetime.datetime.now(datetime.timezone.utc)
