"""Turn a fully reconciled ImportState into ordered project-draft actions."""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from .domain import ImportState
from .errors import ImportStateError
from .interfaces import AllocationAction, MaterialAction, ProjectUpdate, Sink, WorkpackageAction

logger = logging.getLogger(__name__)

# Stable namespace so the same workbook always produces the same workpackage ids
WORKPACKAGE_NAMESPACE = uuid.UUID("6f1c3e52-9d0a-4c4e-8b7a-2f5d9e1a7c30")
OCCUPANCY_QUANTUM = Decimal("0.0001")
MONEY_QUANTUM = Decimal("0.01")


class ActionType(str, enum.Enum):
    RESET = "reset"
    UPDATE_PROJECT = "update_project"
    ADD_WORKPACKAGE = "add_workpackage"
    ADD_ALLOCATION = "add_allocation"
    ADD_MATERIAL = "add_material"


@dataclass(frozen=True, slots=True)
class DispatchSummary:
    workpackages: int
    allocations: int
    materials: int


def dispatch_import(state: ImportState, sink: Sink) -> DispatchSummary:
    """Emit reset, the project update, then each workpackage followed by its
    allocations and materials.

    Every resource must carry a resolved id; the store is not touched at all
    otherwise.
    """

    unresolved = sorted({resource.display_name for resource in state.unresolved_resources()})
    if unresolved:
        raise ImportStateError(f"Cannot finalize with unresolved resources: {', '.join(unresolved)}")

    sink.reset()
    sink.update_project(
        ProjectUpdate(
            name=state.project_name,
            start=state.project_start,
            end=state.project_end,
            financing_id=state.financing_id,
            eti_value=_decimal(state.eti_value, MONEY_QUANTUM),
        )
    )

    allocation_count = 0
    material_count = 0
    for position, workpackage in enumerate(state.workpackages):
        workpackage_id = workpackage_identifier(position, workpackage.code)
        sink.add_workpackage(
            WorkpackageAction(
                id=workpackage_id,
                code=workpackage.code,
                name=workpackage.name,
                start=workpackage.period_start,
                end=workpackage.period_end,
            )
        )
        for resource in workpackage.resources:
            for allocation in resource.allocations:
                sink.add_allocation(
                    workpackage_id,
                    AllocationAction(
                        workpackage_id=workpackage_id,
                        user_id=resource.resolved_id,
                        month=allocation.month,
                        year=allocation.year,
                        occupancy=percentage_to_occupancy(allocation.percentage),
                    ),
                )
                allocation_count += 1
        for material in workpackage.materials:
            material_count += 1
            sink.add_material(
                workpackage_id,
                MaterialAction(
                    id=material_count,
                    workpackage_id=workpackage_id,
                    name=material.name,
                    unit_price=_decimal(material.unit_price, MONEY_QUANTUM),
                    quantity=Decimal(str(material.quantity)),
                    usage_year=material.usage_year,
                    category=material.category,
                ),
            )

    summary = DispatchSummary(
        workpackages=len(state.workpackages),
        allocations=allocation_count,
        materials=material_count,
    )
    logger.info(
        "Dispatched %d workpackage(s), %d allocation(s), %d material(s)",
        summary.workpackages,
        summary.allocations,
        summary.materials,
    )
    return summary


def workpackage_identifier(position: int, code: str) -> str:
    return str(uuid.uuid5(WORKPACKAGE_NAMESPACE, f"{position}:{code}"))


def percentage_to_occupancy(percentage: float) -> Decimal:
    """50.0 percentage points -> Decimal('0.5000')."""
    return (Decimal(str(percentage)) / Decimal(100)).quantize(OCCUPANCY_QUANTUM)


def _decimal(value: Optional[float], quantum: Decimal) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value)).quantize(quantum)


class RecordingSink:
    """Sink that keeps the ordered action log, mainly for inspection and tests."""

    def __init__(self) -> None:
        self.actions: List[Tuple[ActionType, Any]] = []

    def reset(self) -> None:
        self.actions.append((ActionType.RESET, None))

    def update_project(self, update: ProjectUpdate) -> None:
        self.actions.append((ActionType.UPDATE_PROJECT, update))

    def add_workpackage(self, workpackage: WorkpackageAction) -> None:
        self.actions.append((ActionType.ADD_WORKPACKAGE, workpackage))

    def add_allocation(self, workpackage_id: str, allocation: AllocationAction) -> None:
        self.actions.append((ActionType.ADD_ALLOCATION, allocation))

    def add_material(self, workpackage_id: str, material: MaterialAction) -> None:
        self.actions.append((ActionType.ADD_MATERIAL, material))
