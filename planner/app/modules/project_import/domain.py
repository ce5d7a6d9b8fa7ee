from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

Cell = Any
Grid = Tuple[Tuple[Cell, ...], ...]


class Category(str, enum.Enum):
    """Closed set of budget categories a material can be booked under."""

    MATERIALS = "materials"
    THIRD_PARTY_SERVICES = "third_party_services"
    OTHER_SERVICES = "other_services"
    TRAVEL_SUBSISTENCE = "travel_subsistence"
    OTHER_COSTS = "other_costs"
    STRUCTURAL_COSTS = "structural_costs"
    EQUIPMENT = "equipment"
    SUBCONTRACTS = "subcontracts"


@dataclass(frozen=True, slots=True)
class MonthYear:
    month: int
    year: int

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.year, self.month)


@dataclass(frozen=True, slots=True)
class Allocation:
    """Monthly occupancy in percentage points, always within (0, 200)."""

    month: int
    year: int
    percentage: float


@dataclass(frozen=True, slots=True)
class ExtractedResource:
    display_name: str
    inferred_salary: Optional[float]
    allocations: Tuple[Allocation, ...]


@dataclass(frozen=True, slots=True)
class ExtractedWorkpackage:
    code: str
    name: str
    resources: Tuple[ExtractedResource, ...] = ()


@dataclass(frozen=True, slots=True)
class MaterialDraft:
    name: str
    unit_price: float
    quantity: float
    usage_year: int
    category: Category
    workpackage_ref: str


@dataclass(frozen=True, slots=True)
class FinancingTerms:
    name: Optional[str] = None
    financing_rate: Optional[float] = None
    overhead_rate: Optional[float] = None
    eti_value: Optional[float] = None


# Partial results, one per extractor. Immutable; merged by ``merge_partials``.


@dataclass(frozen=True, slots=True)
class ProjectMetadataPartial:
    project_name: str = ""


@dataclass(frozen=True, slots=True)
class FinancingPartial:
    terms: FinancingTerms = FinancingTerms()


@dataclass(frozen=True, slots=True)
class AllocationPartial:
    workpackages: Tuple[ExtractedWorkpackage, ...] = ()
    project_start: Optional[MonthYear] = None
    project_end: Optional[MonthYear] = None
    eti_value: Optional[float] = None


@dataclass(frozen=True, slots=True)
class MaterialsPartial:
    materials: Tuple[MaterialDraft, ...] = ()


# Mutable pipeline state


@dataclass(slots=True)
class ResourceDraft:
    display_name: str
    inferred_salary: Optional[float]
    allocations: List[Allocation]
    resolved_id: Optional[str] = None


@dataclass(slots=True)
class WorkpackageDraft:
    code: str
    name: str
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    resources: List[ResourceDraft] = field(default_factory=list)
    materials: List[MaterialDraft] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class UnmatchedResource:
    """A resource name missing from the directory, with the salary to pre-fill."""

    name: str
    inferred_salary: Optional[float]


@dataclass(slots=True)
class ImportState:
    """Aggregate root of a single import attempt."""

    raw_sheets: Mapping[str, Grid]
    project_name: str = ""
    financing_terms: FinancingTerms = FinancingTerms()
    eti_value: Optional[float] = None
    workpackages: List[WorkpackageDraft] = field(default_factory=list)
    materials: List[MaterialDraft] = field(default_factory=list)
    project_start: Optional[date] = None
    project_end: Optional[date] = None
    pending_unmatched: List[UnmatchedResource] = field(default_factory=list)
    resolved_map: Dict[str, str] = field(default_factory=dict)
    financing_id: Optional[int] = None

    @property
    def financing_name(self) -> Optional[str]:
        return self.financing_terms.name

    def unresolved_resources(self) -> Sequence[ResourceDraft]:
        return [
            resource
            for workpackage in self.workpackages
            for resource in workpackage.resources
            if resource.resolved_id is None
        ]
