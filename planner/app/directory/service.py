"""Directory lookups and creation helpers used by the import flow."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from planner.app.directory import models, schemas
from planner.app.modules.project_import.interfaces import FinancingEntry

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


class FinancingAlreadyExistsError(Exception):
    """Raised when creating a financing whose name is already taken."""


class SqlUserDirectory:
    """Exact display-name lookup over active users."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def find_ids_by_names(self, names: Iterable[str]) -> Dict[str, str]:
        wanted = list(dict.fromkeys(names))
        if not wanted:
            return {}
        db = self._session_factory()
        try:
            stmt = (
                select(models.User.name, models.User.id)
                .where(models.User.name.in_(wanted), models.User.is_active.is_(True))
                .order_by(models.User.created_at.asc(), models.User.id.asc())
            )
            found: Dict[str, str] = {}
            for name, user_id in db.execute(stmt).all():
                # homonyms: the oldest record wins
                found.setdefault(name, user_id)
            return found
        finally:
            db.close()


class SqlFinancingCatalog:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def list_financings(self) -> List[FinancingEntry]:
        db = self._session_factory()
        try:
            rows = db.execute(select(models.Financing.id, models.Financing.name).order_by(models.Financing.id)).all()
            return [FinancingEntry(id=financing_id, name=name) for financing_id, name in rows]
        finally:
            db.close()


def create_contracted_resource(db: Session, payload: schemas.ContractedResourceCreate) -> models.User:
    user = models.User(
        name=payload.name,
        salary=payload.salary,
        information=payload.information,
        contracted=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created contracted resource %s (%r)", user.id, user.name)
    return user


def create_financing(db: Session, payload: schemas.FinancingCreate) -> models.Financing:
    financing = models.Financing(
        name=payload.name,
        financing_rate=payload.financing_rate,
        overhead_rate=payload.overhead_rate,
        eti_value=payload.eti_value,
    )
    db.add(financing)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise FinancingAlreadyExistsError(f"Financing {payload.name!r} already exists") from exc
    db.refresh(financing)
    logger.info("Created financing %s (%r)", financing.id, financing.name)
    return financing


def get_user(db: Session, user_id: str) -> Optional[models.User]:
    return db.get(models.User, user_id)


def as_decimal(value: Optional[float]) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))


def list_resources(db: Session, name: Optional[str] = None) -> List[models.User]:
    stmt = select(models.User).where(models.User.is_active.is_(True))
    if name:
        stmt = stmt.where(models.User.name == name.strip())
    return list(db.scalars(stmt.order_by(models.User.name, models.User.created_at)))


def list_financings(db: Session) -> List[models.Financing]:
    return list(db.scalars(select(models.Financing).order_by(models.Financing.name)))
