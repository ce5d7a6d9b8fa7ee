"""Run the section extractors and merge their partials into an ImportState."""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional

from .assignment import assign_materials
from .domain import (
    AllocationPartial,
    ExtractedWorkpackage,
    FinancingPartial,
    Grid,
    ImportState,
    MaterialsPartial,
    MonthYear,
    ProjectMetadataPartial,
    ResourceDraft,
    WorkpackageDraft,
)
from .extractors import (
    extract_allocations,
    extract_financing_terms,
    extract_materials,
    extract_project_metadata,
)
from .normalizers import month_end, month_start

logger = logging.getLogger(__name__)

MAX_PLAUSIBLE_YEAR = 2100


def extract_import_state(sheets: Mapping[str, Grid], default_year: Optional[int] = None) -> ImportState:
    """Extract every section and attach materials to their workpackages."""
    state = merge_partials(
        sheets,
        metadata=extract_project_metadata(sheets),
        financing=extract_financing_terms(sheets),
        allocations=extract_allocations(sheets),
        materials=extract_materials(sheets, default_year=default_year),
    )
    state.workpackages = assign_materials(state.workpackages, state.materials)
    return state


def merge_partials(
    sheets: Mapping[str, Grid],
    *,
    metadata: ProjectMetadataPartial,
    financing: FinancingPartial,
    allocations: AllocationPartial,
    materials: MaterialsPartial,
) -> ImportState:
    project_start = month_start(allocations.project_start) if allocations.project_start else None
    project_end = month_end(allocations.project_end) if allocations.project_end else None

    # the allocation sheet carries the authoritative ETI value
    eti_value = allocations.eti_value if allocations.eti_value is not None else financing.terms.eti_value

    return ImportState(
        raw_sheets=sheets,
        project_name=metadata.project_name,
        financing_terms=financing.terms,
        eti_value=eti_value,
        workpackages=[_to_draft(workpackage, project_start, project_end) for workpackage in allocations.workpackages],
        materials=list(materials.materials),
        project_start=project_start,
        project_end=project_end,
    )


def _to_draft(workpackage: ExtractedWorkpackage, project_start, project_end) -> WorkpackageDraft:
    periods: List[MonthYear] = [
        MonthYear(month=allocation.month, year=allocation.year)
        for resource in workpackage.resources
        for allocation in resource.allocations
    ]
    period_start = month_start(min(periods, key=lambda p: p.sort_key)) if periods else None
    period_end = month_end(max(periods, key=lambda p: p.sort_key)) if periods else None

    if not periods:
        logger.warning("Workpackage %s has no allocations; using the project period", workpackage.code)
    if period_start is None or period_start.year > MAX_PLAUSIBLE_YEAR:
        if periods:
            logger.warning("Workpackage %s has an invalid start %s", workpackage.code, period_start)
        period_start = project_start
    if period_end is None or period_end.year > MAX_PLAUSIBLE_YEAR:
        if periods:
            logger.warning("Workpackage %s has an invalid end %s", workpackage.code, period_end)
        period_end = project_end

    return WorkpackageDraft(
        code=workpackage.code,
        name=workpackage.name,
        period_start=period_start,
        period_end=period_end,
        resources=[
            ResourceDraft(
                display_name=resource.display_name,
                inferred_salary=resource.inferred_salary,
                allocations=list(resource.allocations),
            )
            for resource in workpackage.resources
        ],
    )
