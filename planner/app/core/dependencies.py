"""Reusable FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache
from typing import Callable, Generator

from sqlalchemy.orm import Session

from planner.app.core.config import settings
from planner.app.core.database import SessionLocal
from planner.app.modules.project_import.service import ProjectImportService
from planner.app.modules.project_import.sessions import ImportSessionRegistry


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> Callable[[], Session]:
    return SessionLocal


@lru_cache()
def get_import_service() -> ProjectImportService:
    """One service and session registry per process; tests override this."""
    registry = ImportSessionRegistry(
        ttl_seconds=settings.import_session_ttl_seconds,
        max_sessions=settings.import_max_sessions,
    )
    return ProjectImportService(get_session_factory(), registry)
