"""Workbook and collaborator builders shared by the test modules."""

from __future__ import annotations

import io
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from planner.app.modules.project_import.interfaces import FinancingEntry

SERIAL_ORIGIN = date(1899, 12, 30)

# Sample resource row: (display name, monthly salary, occupancy per month column)
ResourceRow = Tuple[str, Optional[float], Sequence[Any]]


def excel_serial(year: int, month: int, day: int = 1) -> int:
    return (date(year, month, day) - SERIAL_ORIGIN).days


def grid_from_cells(cells: Mapping[Tuple[int, int], Any]) -> List[List[Any]]:
    """Expand ``{(row, column): value}`` into a dense, None-padded row list."""
    if not cells:
        return []
    height = max(row for row, _ in cells) + 1
    width = max(column for _, column in cells) + 1
    rows: List[List[Any]] = [[None] * width for _ in range(height)]
    for (row, column), value in cells.items():
        rows[row][column] = value
    return rows


def as_sheets(raw: Mapping[str, List[List[Any]]]) -> Dict[str, Tuple[Tuple[Any, ...], ...]]:
    return {name: tuple(tuple(row) for row in rows) for name, rows in raw.items()}


def allocation_sheet(
    workpackages: Iterable[Tuple[str, str, Sequence[ResourceRow]]],
    *,
    start: Tuple[int, int] = (2024, 1),
    months: int = 12,
    eti: Optional[float] = 2750,
) -> List[List[Any]]:
    cells: Dict[Tuple[int, int], Any] = {}
    if eti is not None:
        cells[(1, 4)] = "ETI"
        cells[(1, 5)] = eti
    year, month = start
    for column in range(6, 6 + months):
        cells[(3, column)] = year
        cells[(4, column)] = excel_serial(year, month)
        month += 1
        if month > 12:
            year, month = year + 1, 1

    row = 7
    for code, name, resources in workpackages:
        cells[(row, 1)] = code or None
        cells[(row, 2)] = name
        row += 1
        for resource_name, salary, occupancy in resources:
            cells[(row, 3)] = resource_name
            if salary is not None:
                cells[(row, 5)] = salary
            for offset, value in enumerate(occupancy):
                if value is not None:
                    cells[(row, 6 + offset)] = value
            row += 1
    return grid_from_cells(cells)


def materials_sheet(rows: Iterable[Sequence[Any]]) -> List[List[Any]]:
    """Each row is (name, activity, year, category, unit price, quantity)."""
    cells: Dict[Tuple[int, int], Any] = {(5, 0): "Item"}
    for index, (name, activity, year, category, price, quantity) in enumerate(rows):
        row = 6 + index
        for column, value in ((0, name), (1, activity), (3, year), (4, category), (5, price), (6, quantity)):
            if value is not None:
                cells[(row, column)] = value
    return grid_from_cells(cells)


def budget_sheet(values: Mapping[str, Any]) -> List[List[Any]]:
    """Label in column G, value in column H, one row each from row 1."""
    cells: Dict[Tuple[int, int], Any] = {(0, 6): "Financiamento"}
    for row, (label, value) in enumerate(values.items(), start=1):
        cells[(row, 6)] = label
        cells[(row, 7)] = value
    return grid_from_cells(cells)


def project_sheets(
    *,
    project_name: str = "Smart Grid Pilot",
    financing: Optional[Tuple[str, float, float, float]] = ("Portugal 2030", 0.75, 25, 2500),
    workpackages: Iterable[Tuple[str, str, Sequence[ResourceRow]]] = (
        ("A1", "A1 - Design", [("Alice", 2000, [0.5, 0.5])]),
    ),
    materials: Iterable[Sequence[Any]] = (),
    eti: Optional[float] = 2750,
) -> Dict[str, List[List[Any]]]:
    sheets: Dict[str, List[List[Any]]] = {
        "HOME": grid_from_cells({(0, 0): "Projeto", (1, 0): "Nome do projeto ", (1, 1): project_name}),
        "RH_Budget_SUBM": allocation_sheet(workpackages, eti=eti),
        "Outros_Budget": materials_sheet(materials),
    }
    if financing is not None:
        name, rate, overhead, budget_eti = financing
        sheets["BUDGET"] = budget_sheet(
            {
                "Tipo de projeto ": name,
                "Taxa de financiamento": rate,
                "Custos indiretos": overhead,
                "Valor ETI": budget_eti,
            }
        )
    return sheets


def build_workbook_bytes(sheets: Mapping[str, List[List[Any]]]) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            frame = pd.DataFrame(rows) if rows else pd.DataFrame([[None]])
            frame.to_excel(writer, index=False, header=False, sheet_name=name)
    return buffer.getvalue()


class FakeDirectory:
    def __init__(self, known: Optional[Dict[str, str]] = None) -> None:
        self.known = dict(known or {})
        self.calls: List[List[str]] = []

    def find_ids_by_names(self, names):
        names = list(names)
        self.calls.append(names)
        return {name: self.known[name] for name in names if name in self.known}


class FakeCatalog:
    def __init__(self, entries: Iterable[FinancingEntry] = ()) -> None:
        self.entries = list(entries)

    def list_financings(self):
        return list(self.entries)


