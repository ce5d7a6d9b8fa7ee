"""In-memory project draft that applies dispatched actions reducer-style."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import List, Optional

from .domain import Category
from .interfaces import AllocationAction, MaterialAction, ProjectUpdate, WorkpackageAction

logger = logging.getLogger(__name__)


class UnknownWorkpackageError(LookupError):
    """An allocation or material referenced a workpackage not yet in the draft."""


@dataclass(slots=True)
class DraftAllocation:
    user_id: str
    month: int
    year: int
    occupancy: Decimal


@dataclass(slots=True)
class DraftMaterial:
    id: int
    name: str
    unit_price: Decimal
    quantity: Decimal
    usage_year: int
    category: Category


@dataclass(slots=True)
class DraftWorkpackage:
    id: str
    code: str
    name: str
    start: Optional[date] = None
    end: Optional[date] = None
    allocations: List[DraftAllocation] = field(default_factory=list)
    materials: List[DraftMaterial] = field(default_factory=list)


@dataclass(slots=True)
class ProjectDraft:
    name: str = ""
    start: Optional[date] = None
    end: Optional[date] = None
    financing_id: Optional[int] = None
    eti_value: Optional[Decimal] = None
    workpackages: List[DraftWorkpackage] = field(default_factory=list)


class ProjectDraftStore:
    """Thread-safe draft of the project being created."""

    def __init__(self) -> None:
        self._draft = ProjectDraft()
        self._lock = threading.Lock()

    def reset(self) -> None:
        with self._lock:
            self._draft = ProjectDraft()

    def update_project(self, update: ProjectUpdate) -> None:
        with self._lock:
            self._draft.name = update.name
            self._draft.start = update.start
            self._draft.end = update.end
            self._draft.financing_id = update.financing_id
            self._draft.eti_value = update.eti_value

    def add_workpackage(self, workpackage: WorkpackageAction) -> None:
        with self._lock:
            self._draft.workpackages.append(
                DraftWorkpackage(
                    id=workpackage.id,
                    code=workpackage.code,
                    name=workpackage.name,
                    start=workpackage.start,
                    end=workpackage.end,
                )
            )

    def add_allocation(self, workpackage_id: str, allocation: AllocationAction) -> None:
        with self._lock:
            workpackage = self._find(workpackage_id)
            entry = DraftAllocation(
                user_id=allocation.user_id,
                month=allocation.month,
                year=allocation.year,
                occupancy=allocation.occupancy,
            )
            for index, existing in enumerate(workpackage.allocations):
                if (existing.user_id, existing.month, existing.year) == (entry.user_id, entry.month, entry.year):
                    workpackage.allocations[index] = entry
                    return
            workpackage.allocations.append(entry)

    def add_material(self, workpackage_id: str, material: MaterialAction) -> None:
        with self._lock:
            self._find(workpackage_id).materials.append(
                DraftMaterial(
                    id=material.id,
                    name=material.name,
                    unit_price=material.unit_price,
                    quantity=material.quantity,
                    usage_year=material.usage_year,
                    category=material.category,
                )
            )

    def snapshot(self) -> ProjectDraft:
        """Return a copy that later actions will not mutate."""
        with self._lock:
            return replace(
                self._draft,
                workpackages=[
                    replace(
                        workpackage,
                        allocations=[replace(allocation) for allocation in workpackage.allocations],
                        materials=[replace(material) for material in workpackage.materials],
                    )
                    for workpackage in self._draft.workpackages
                ],
            )

    def _find(self, workpackage_id: str) -> DraftWorkpackage:
        for workpackage in self._draft.workpackages:
            if workpackage.id == workpackage_id:
                return workpackage
        logger.error("Workpackage %s is not in the draft", workpackage_id)
        raise UnknownWorkpackageError(workpackage_id)
