"""SQLAlchemy engine, session factory and declarative base.

``get_db`` is the FastAPI dependency every router uses; it yields one
session per request and always closes it.
"""

from __future__ import annotations

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from portal_financas.config import get_settings

settings = get_settings()

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=False,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for the duration of a request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create every mapped table. Development and tests only."""
    import portal_financas.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
