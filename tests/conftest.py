from __future__ import annotations

import os

os.environ.setdefault("PLANNER_DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from planner.app.core.database import Base, init_db
from planner.app.directory import models


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=Session)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def add_user(db):
    def _add(name: str, *, is_active: bool = True) -> models.User:
        user = models.User(name=name, is_active=is_active)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _add
