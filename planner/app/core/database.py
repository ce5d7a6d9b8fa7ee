"""Database configuration and session management."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import settings


engine = create_engine(settings.database_url, echo=settings.database_echo, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=Session)
Base = declarative_base()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create database tables."""

    from planner.app.directory import models as directory_models  # noqa: F401  # Ensure models are imported

    Base.metadata.create_all(bind=bind or engine)
