"""Pure conversions for spreadsheet dates, numbers and category labels."""

from __future__ import annotations

import calendar
import math
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Optional, Sequence

from .domain import Category, Cell, MonthYear

# Serial 25569 is 1970-01-01 in the 1900 date system (including its phantom 1900-02-29)
EXCEL_UNIX_EPOCH_SERIAL = 25569
_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
# 9999-12-31, the last date a workbook can hold
MAX_EXCEL_SERIAL = 2958465

# The allocation sheet carries a loaded monthly cost: salary * 1.223 * 14 / 11
LOADED_COST_FACTOR = 1.223 * 14 / 11

CATEGORY_LABELS: Dict[str, Category] = {
    "Materiais": Category.MATERIALS,
    "Serviços Terceiros": Category.THIRD_PARTY_SERVICES,
    "Outros Serviços": Category.OTHER_SERVICES,
    "Deslocações e Estadas": Category.TRAVEL_SUBSISTENCE,
    "Outros Custos": Category.OTHER_COSTS,
    "Custos Estrutura": Category.STRUCTURAL_COSTS,
    "Custos de Estrutura": Category.STRUCTURAL_COSTS,
    "Instrumentos e Equipamentos": Category.EQUIPMENT,
    "Subcontratos": Category.SUBCONTRACTS,
}


def excel_serial_to_month_year(serial: float) -> MonthYear:
    """Convert a spreadsheet date serial to its calendar month and year (UTC)."""
    moment = _UNIX_EPOCH + timedelta(days=serial - EXCEL_UNIX_EPOCH_SERIAL)
    return MonthYear(month=moment.month, year=moment.year)


def map_category_label(label: Cell) -> Category:
    if isinstance(label, str):
        return CATEGORY_LABELS.get(label, Category.MATERIALS)
    return Category.MATERIALS


def is_number(value: Cell) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value) and not math.isinf(value)


def as_number(value: Cell) -> Optional[float]:
    return float(value) if is_number(value) else None


def as_text(value: Cell) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def as_percentage_points(value: Cell) -> Optional[float]:
    """Rates may be typed as 25 or formatted as 25% (stored 0.25)."""
    number = as_number(value)
    if number is None:
        return None
    if 0 < number <= 1:
        return round(number * 100, 6)
    return number


def base_monthly_salary(loaded_cost: Optional[float]) -> Optional[float]:
    """Back out the base monthly salary from the loaded cost in the salary column."""
    if loaded_cost is None or loaded_cost <= 0:
        return None
    return round(loaded_cost / LOADED_COST_FACTOR, 2)


def to_month_year(value: Cell, year_hint: Cell = None) -> Optional[MonthYear]:
    """Resolve one month header cell.

    Accepts a serial, a date/datetime, or a bare month number paired with the
    year from the year header row.
    """
    if isinstance(value, date):
        return MonthYear(month=value.month, year=value.year)
    if not is_number(value) or value <= 0 or value > MAX_EXCEL_SERIAL:
        return None
    if 1 <= value <= 12 and float(value).is_integer():
        year = as_number(year_hint)
        if year is None or not float(year).is_integer():
            return None
        return MonthYear(month=int(value), year=int(year))
    return excel_serial_to_month_year(value)


def resolve_month_headers(
    year_row: Sequence[Cell],
    month_row: Sequence[Cell],
    columns: Sequence[int],
) -> Dict[int, MonthYear]:
    """Map each allocation column to the month it represents.

    Year cells are usually merged across twelve columns, so the last non-empty
    year is carried forward.
    """
    headers: Dict[int, MonthYear] = {}
    current_year: Cell = None
    for column in columns:
        year_cell = year_row[column] if column < len(year_row) else None
        if year_cell is not None:
            current_year = year_cell
        month_cell = month_row[column] if column < len(month_row) else None
        resolved = to_month_year(month_cell, current_year)
        if resolved is not None:
            headers[column] = resolved
    return headers


def month_start(period: MonthYear) -> date:
    return date(period.year, period.month, 1)


def month_end(period: MonthYear) -> date:
    return date(period.year, period.month, calendar.monthrange(period.year, period.month)[1])
