from __future__ import annotations

from datetime import date
from io import BytesIO
from typing import Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from .extractors import (
    ALLOCATION_ETI_COLUMNS,
    ALLOCATION_FIRST_ROW,
    ALLOCATION_SHEET,
    BUDGET_ETI_LABEL,
    BUDGET_LABEL_COLUMNS,
    BUDGET_SHEET,
    CODE_COLUMN,
    FINANCING_NAME_LABEL,
    FINANCING_RATE_LABEL,
    HOME_LABEL_COLUMNS,
    HOME_SHEET,
    MATERIAL_ACTIVITY_COLUMN,
    MATERIAL_CATEGORY_COLUMN,
    MATERIAL_NAME_COLUMN,
    MATERIAL_PRICE_COLUMN,
    MATERIAL_QUANTITY_COLUMN,
    MATERIAL_YEAR_COLUMN,
    MATERIALS_FIRST_ROW,
    MATERIALS_SHEET,
    MONTH_COLUMNS,
    MONTH_HEADER_ROW,
    NAME_COLUMN,
    OVERHEAD_RATE_LABEL,
    PROJECT_NAME_LABEL,
    RESOURCE_COLUMN,
    SALARY_COLUMN,
    YEAR_HEADER_ROW,
)

TEMPLATE_FILENAME = "project_import_template.xlsx"
_SERIAL_ORIGIN = date(1899, 12, 30)
_BOLD = Font(bold=True)


def build_template_workbook(start_year: Optional[int] = None, start_month: int = 1) -> bytes:
    """Build an example workbook laid out the way the importer reads it."""
    year = start_year or date.today().year
    workbook = Workbook()
    workbook.remove(workbook.active)

    home = workbook.create_sheet(HOME_SHEET)
    _labelled(home, 1, HOME_LABEL_COLUMNS, PROJECT_NAME_LABEL, "Example project")

    budget = workbook.create_sheet(BUDGET_SHEET)
    for row, label, value in (
        (1, FINANCING_NAME_LABEL, "Example programme"),
        (2, FINANCING_RATE_LABEL, 75),
        (3, OVERHEAD_RATE_LABEL, 25),
        (4, BUDGET_ETI_LABEL, 2750),
    ):
        _labelled(budget, row, BUDGET_LABEL_COLUMNS, label, value)

    _write_allocation_sheet(workbook.create_sheet(ALLOCATION_SHEET), year, start_month)
    _write_materials_sheet(workbook.create_sheet(MATERIALS_SHEET), year)

    buffer = BytesIO()
    workbook.save(buffer)
    buffer.seek(0)
    return buffer.getvalue()


def _write_allocation_sheet(worksheet, year: int, month: int) -> None:
    _labelled(worksheet, 1, ALLOCATION_ETI_COLUMNS, "ETI", 2750)

    header_row = MONTH_HEADER_ROW + 1
    for offset, header in enumerate(("Code", "Activity", "Resource", "", "Monthly cost")):
        if header:
            _label(worksheet, (header_row, CODE_COLUMN + offset), header)

    current_year, current_month = year, month
    for column in MONTH_COLUMNS:
        if current_month == 1 or column == MONTH_COLUMNS[0]:
            _put(worksheet, (YEAR_HEADER_ROW, column), current_year)
        cell = _put(worksheet, (MONTH_HEADER_ROW, column), _serial(current_year, current_month))
        cell.number_format = "mmm/yy"
        current_month += 1
        if current_month > 12:
            current_year, current_month = current_year + 1, 1

    _put(worksheet, (ALLOCATION_FIRST_ROW, CODE_COLUMN), "A1")
    _put(worksheet, (ALLOCATION_FIRST_ROW, NAME_COLUMN), "A1 - Requirements")
    resource_row = ALLOCATION_FIRST_ROW + 1
    _put(worksheet, (resource_row, RESOURCE_COLUMN), "Jane Doe")
    _put(worksheet, (resource_row, SALARY_COLUMN), 2500)
    for column in MONTH_COLUMNS[:6]:
        _put(worksheet, (resource_row, column), 0.5)
    _auto_size(worksheet, range(CODE_COLUMN, SALARY_COLUMN + 1))


def _write_materials_sheet(worksheet, year: int) -> None:
    header_row = MATERIALS_FIRST_ROW - 1
    headers = (
        (MATERIAL_NAME_COLUMN, "Item"),
        (MATERIAL_ACTIVITY_COLUMN, "Activity"),
        (MATERIAL_YEAR_COLUMN, "Year"),
        (MATERIAL_CATEGORY_COLUMN, "Category"),
        (MATERIAL_PRICE_COLUMN, "Unit price"),
        (MATERIAL_QUANTITY_COLUMN, "Quantity"),
    )
    for column, header in headers:
        _label(worksheet, (header_row, column), header)

    sample = {
        MATERIAL_NAME_COLUMN: "Laptop",
        MATERIAL_ACTIVITY_COLUMN: "A1 - Requirements",
        MATERIAL_YEAR_COLUMN: year,
        MATERIAL_CATEGORY_COLUMN: "Instrumentos e Equipamentos",
        MATERIAL_PRICE_COLUMN: 1200,
        MATERIAL_QUANTITY_COLUMN: 2,
    }
    for column, value in sample.items():
        _put(worksheet, (MATERIALS_FIRST_ROW, column), value)
    _auto_size(worksheet, [column for column, _ in headers])


def _serial(year: int, month: int) -> int:
    return (date(year, month, 1) - _SERIAL_ORIGIN).days


def _put(worksheet, position, value):
    # positions are 0-based; openpyxl is 1-based
    row, column = position
    return worksheet.cell(row=row + 1, column=column + 1, value=value)


def _label(worksheet, position, text: str) -> None:
    _put(worksheet, position, text).font = _BOLD


def _labelled(worksheet, row: int, columns, label: str, value) -> None:
    label_column, value_column = columns
    _label(worksheet, (row, label_column), label)
    _put(worksheet, (row, value_column), value)


def _auto_size(worksheet, columns: Sequence[int]) -> None:
    for column in columns:
        letter = get_column_letter(column + 1)
        values = [cell.value for cell in worksheet[letter] if cell.value is not None]
        width = max((len(str(value)) for value in values), default=8)
        worksheet.column_dimensions[letter].width = min(width + 2, 40)
