"""Read-only directory lookups used while resolving an import."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from planner.app.core.dependencies import get_db

from . import schemas, service

router = APIRouter(tags=["directory"])


@router.get("/resources", response_model=List[schemas.ResourceRead])
def list_resources(
    name: Optional[str] = Query(default=None, description="Exact display name"),
    db: Session = Depends(get_db),
) -> List[schemas.ResourceRead]:
    return [schemas.ResourceRead.model_validate(user) for user in service.list_resources(db, name)]


@router.get("/financings", response_model=List[schemas.FinancingRead])
def list_financings(db: Session = Depends(get_db)) -> List[schemas.FinancingRead]:
    return [schemas.FinancingRead.model_validate(financing) for financing in service.list_financings(db)]
