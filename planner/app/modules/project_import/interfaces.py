"""Collaborator interfaces used by the import pipeline.

The pipeline never reaches these through globals; callers pass concrete
implementations in.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol

from .domain import Category


@dataclass(frozen=True, slots=True)
class FinancingEntry:
    id: int
    name: str


class UserDirectory(Protocol):
    def find_ids_by_names(self, names: Iterable[str]) -> Dict[str, str]:
        """Return ``{display_name: user_id}`` for every exactly matching name."""


class FinancingCatalog(Protocol):
    def list_financings(self) -> List[FinancingEntry]:
        ...


# Payloads crossing the project-draft store boundary


@dataclass(frozen=True, slots=True)
class ProjectUpdate:
    name: str
    start: Optional[date]
    end: Optional[date]
    financing_id: Optional[int]
    eti_value: Optional[Decimal]


@dataclass(frozen=True, slots=True)
class WorkpackageAction:
    id: str
    code: str
    name: str
    start: Optional[date]
    end: Optional[date]


@dataclass(frozen=True, slots=True)
class AllocationAction:
    workpackage_id: str
    user_id: str
    month: int
    year: int
    occupancy: Decimal


@dataclass(frozen=True, slots=True)
class MaterialAction:
    id: int
    workpackage_id: str
    name: str
    unit_price: Decimal
    quantity: Decimal
    usage_year: int
    category: Category


class Sink(Protocol):
    """Narrow write capability over the project-draft store."""

    def reset(self) -> None:
        ...

    def update_project(self, update: ProjectUpdate) -> None:
        ...

    def add_workpackage(self, workpackage: WorkpackageAction) -> None:
        ...

    def add_allocation(self, workpackage_id: str, allocation: AllocationAction) -> None:
        ...

    def add_material(self, workpackage_id: str, material: MaterialAction) -> None:
        ...
