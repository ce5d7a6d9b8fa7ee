"""Section extractors for the fixed-layout project workbook.

Each extractor reads a single sheet and returns an immutable partial result.
They share no state, so they can run in any order. Malformed rows are skipped
and missing sheets yield empty partials; nothing here raises on cell content.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from datetime import date
from functools import reduce
from typing import Dict, Mapping, Optional, Sequence, Tuple

from .domain import (
    Allocation,
    AllocationPartial,
    Cell,
    ExtractedResource,
    ExtractedWorkpackage,
    FinancingPartial,
    FinancingTerms,
    Grid,
    MaterialDraft,
    MaterialsPartial,
    MonthYear,
    ProjectMetadataPartial,
)
from .normalizers import (
    as_number,
    as_percentage_points,
    as_text,
    is_number,
    map_category_label,
    resolve_month_headers,
)

logger = logging.getLogger(__name__)

HOME_SHEET = "HOME"
BUDGET_SHEET = "BUDGET"
ALLOCATION_SHEET = "RH_Budget_SUBM"
MATERIALS_SHEET = "Outros_Budget"

# Scalar values sit beside a text label; (label column, value column), 0-based
HOME_LABEL_COLUMNS = (0, 1)
PROJECT_NAME_LABEL = "Nome do projeto"

BUDGET_LABEL_COLUMNS = (6, 7)
FINANCING_NAME_LABEL = "Tipo de projeto"
FINANCING_RATE_LABEL = "Taxa de financiamento"
OVERHEAD_RATE_LABEL = "Custos indiretos"
BUDGET_ETI_LABEL = "Valor ETI"

# The ETI on the allocation sheet is the first text label / number pair in these columns
ALLOCATION_ETI_COLUMNS = (4, 5)

YEAR_HEADER_ROW = 3
MONTH_HEADER_ROW = 4
ALLOCATION_FIRST_ROW = 7
CODE_COLUMN = 1
NAME_COLUMN = 2
RESOURCE_COLUMN = 3
SALARY_COLUMN = 5
MONTH_COLUMNS = tuple(range(6, 42))

MATERIALS_FIRST_ROW = 6
MATERIAL_NAME_COLUMN = 0
MATERIAL_ACTIVITY_COLUMN = 1
MATERIAL_YEAR_COLUMN = 3
MATERIAL_CATEGORY_COLUMN = 4
MATERIAL_PRICE_COLUMN = 5
MATERIAL_QUANTITY_COLUMN = 6

WORKPACKAGE_CODE = re.compile(r"^A\d+$")
IMPLICIT_WORKPACKAGE_PREFIX = "A1 - "
IMPLICIT_WORKPACKAGE_CODE = "A1"

# Summary rows in the resource column, matched case-insensitively
NON_RESOURCE_MARKERS = ("total", "subtotal", "células cinza")

# Occupancy cells outside (0, 2) are not fractions (e.g. a salary typed in the band)
MIN_OCCUPANCY = 0.0
MAX_OCCUPANCY = 2.0


def extract_project_metadata(sheets: Mapping[str, Grid]) -> ProjectMetadataPartial:
    grid = sheets.get(HOME_SHEET)
    if grid is None:
        return ProjectMetadataPartial()
    values = _labelled_values(grid, HOME_LABEL_COLUMNS)
    return ProjectMetadataPartial(project_name=as_text(values.get(PROJECT_NAME_LABEL.casefold())))


def extract_financing_terms(sheets: Mapping[str, Grid]) -> FinancingPartial:
    grid = sheets.get(BUDGET_SHEET)
    if grid is None:
        return FinancingPartial()

    values = _labelled_values(grid, BUDGET_LABEL_COLUMNS)
    name = as_text(values.get(FINANCING_NAME_LABEL.casefold())) or None
    eti_value = as_number(values.get(BUDGET_ETI_LABEL.casefold()))
    return FinancingPartial(
        terms=FinancingTerms(
            name=name,
            financing_rate=as_percentage_points(values.get(FINANCING_RATE_LABEL.casefold())),
            overhead_rate=as_percentage_points(values.get(OVERHEAD_RATE_LABEL.casefold())),
            eti_value=eti_value if eti_value and eti_value > 0 else None,
        )
    )


def _labelled_values(grid: Grid, columns: Tuple[int, int]) -> Dict[str, Cell]:
    """Map each label (trimmed, case-folded) to the cell beside it; the first row wins."""
    label_column, value_column = columns
    values: Dict[str, Cell] = {}
    for row in grid:
        label = _cell(row, label_column)
        if isinstance(label, str) and label.strip():
            values.setdefault(label.strip().casefold(), _cell(row, value_column))
    return values


def _allocation_eti(grid: Grid) -> Optional[float]:
    label_column, value_column = ALLOCATION_ETI_COLUMNS
    for row in grid:
        label = _cell(row, label_column)
        value = _cell(row, value_column)
        if isinstance(label, str) and label.strip() and is_number(value) and value:
            return round(float(value), 2)
    return None


@dataclass(frozen=True, slots=True)
class _AllocationScan:
    """Accumulator of the allocation fold; the last workpackage is the open one."""

    workpackages: Tuple[ExtractedWorkpackage, ...] = ()

    def open(self, workpackage: ExtractedWorkpackage) -> "_AllocationScan":
        return _AllocationScan(workpackages=self.workpackages + (workpackage,))

    def add_resource(self, resource: ExtractedResource) -> "_AllocationScan":
        current = self.workpackages[-1]
        updated = replace(current, resources=current.resources + (resource,))
        return _AllocationScan(workpackages=self.workpackages[:-1] + (updated,))


def extract_allocations(sheets: Mapping[str, Grid]) -> AllocationPartial:
    grid = sheets.get(ALLOCATION_SHEET)
    if grid is None:
        return AllocationPartial()

    year_row = grid[YEAR_HEADER_ROW] if len(grid) > YEAR_HEADER_ROW else ()
    month_row = grid[MONTH_HEADER_ROW] if len(grid) > MONTH_HEADER_ROW else ()
    headers = resolve_month_headers(year_row, month_row, MONTH_COLUMNS)
    # chronological, so allocations come out ordered even if headers are not
    columns = tuple(sorted(headers, key=lambda column: (headers[column].sort_key, column)))

    scan = reduce(
        lambda acc, row: _fold_allocation_row(acc, row, headers, columns),
        grid[ALLOCATION_FIRST_ROW:],
        _AllocationScan(),
    )

    periods = [
        MonthYear(month=allocation.month, year=allocation.year)
        for workpackage in scan.workpackages
        for resource in workpackage.resources
        for allocation in resource.allocations
    ]
    eti_value = _allocation_eti(grid)

    logger.info(
        "Extracted %d workpackage(s) with %d allocation(s) from %s",
        len(scan.workpackages),
        len(periods),
        ALLOCATION_SHEET,
    )
    return AllocationPartial(
        workpackages=scan.workpackages,
        project_start=min(periods, key=lambda period: period.sort_key) if periods else None,
        project_end=max(periods, key=lambda period: period.sort_key) if periods else None,
        eti_value=eti_value if eti_value and eti_value > 0 else None,
    )


def _fold_allocation_row(
    scan: _AllocationScan,
    row: Sequence[Cell],
    headers: Dict[int, MonthYear],
    columns: Sequence[int],
) -> _AllocationScan:
    code = as_text(_cell(row, CODE_COLUMN))
    label = as_text(_cell(row, NAME_COLUMN))

    if WORKPACKAGE_CODE.match(code):
        logger.info("Found workpackage %s %s", code, label)
        return scan.open(ExtractedWorkpackage(code=code, name=label))

    if not code and not scan.workpackages and label.startswith(IMPLICIT_WORKPACKAGE_PREFIX):
        logger.info("Found implicit workpackage %s", label)
        return scan.open(ExtractedWorkpackage(code=IMPLICIT_WORKPACKAGE_CODE, name=label))

    display_name = as_text(_cell(row, RESOURCE_COLUMN))
    if not scan.workpackages or not display_name:
        return scan
    if _is_summary_row(display_name):
        logger.debug("Skipping summary row %s", display_name)
        return scan

    allocations = tuple(
        Allocation(month=headers[column].month, year=headers[column].year, percentage=value * 100)
        for column in columns
        for value in (_cell(row, column),)
        if is_number(value) and MIN_OCCUPANCY < value < MAX_OCCUPANCY
    )
    if not allocations:
        logger.debug("Skipping resource %s without occupancy", display_name)
        return scan

    salary = as_number(_cell(row, SALARY_COLUMN))
    logger.debug("Resource %s with %d allocation(s)", display_name, len(allocations))
    return scan.add_resource(
        ExtractedResource(
            display_name=display_name,
            inferred_salary=salary if salary and salary > 0 else None,
            allocations=allocations,
        )
    )


def _is_summary_row(display_name: str) -> bool:
    lowered = display_name.casefold()
    return any(marker in lowered for marker in NON_RESOURCE_MARKERS)


def extract_materials(sheets: Mapping[str, Grid], default_year: Optional[int] = None) -> MaterialsPartial:
    grid = sheets.get(MATERIALS_SHEET)
    if grid is None:
        return MaterialsPartial()

    fallback_year = default_year or date.today().year
    materials = []
    for row in grid[MATERIALS_FIRST_ROW:]:
        material = _read_material(row, fallback_year)
        if material is not None:
            materials.append(material)

    logger.info("Extracted %d material(s) from %s", len(materials), MATERIALS_SHEET)
    return MaterialsPartial(materials=tuple(materials))


def _read_material(row: Sequence[Cell], fallback_year: int) -> Optional[MaterialDraft]:
    name = as_text(_cell(row, MATERIAL_NAME_COLUMN))
    activity = as_text(_cell(row, MATERIAL_ACTIVITY_COLUMN))
    unit_price = _cell(row, MATERIAL_PRICE_COLUMN)
    quantity = _cell(row, MATERIAL_QUANTITY_COLUMN)

    if not name or not activity or not unit_price or not quantity:
        return None
    if not is_number(unit_price) or not is_number(quantity):
        return None

    year = _cell(row, MATERIAL_YEAR_COLUMN)
    return MaterialDraft(
        name=name,
        unit_price=float(unit_price),
        quantity=float(quantity),
        usage_year=int(year) if is_number(year) else fallback_year,
        category=map_category_label(_cell(row, MATERIAL_CATEGORY_COLUMN)),
        workpackage_ref=activity,
    )


def _cell(row: Sequence[Cell], column: int) -> Cell:
    return row[column] if column < len(row) else None
