"""Load a spreadsheet binary into plain row grids, one per sheet."""

from __future__ import annotations

import io
import logging
import math
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

import xlrd
from openpyxl import load_workbook

from .domain import Cell, Grid
from .errors import UnreadableFileError

logger = logging.getLogger(__name__)

_ZIP_MAGIC = b"PK\x03\x04"
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
_OPENXML_SUFFIXES = {".xlsx", ".xlsm"}
_LEGACY_SUFFIXES = {".xls"}

Workbook = Mapping[str, Grid]


def read_workbook(content: bytes, filename: Optional[str] = None) -> Workbook:
    """Return every sheet of the workbook as a read-only grid of cell values.

    Row and column positions are preserved (row 0 is spreadsheet row 1) so that
    callers can address the fixed-layout rows and columns directly. Missing
    sheets are not an error here; that is left to the extractors.
    """

    if not content:
        raise UnreadableFileError(f"Workbook '{filename or 'upload'}' is empty")

    container = _detect_container(content, filename)
    try:
        if container == "xls":
            sheets = _read_legacy(content)
        else:
            sheets = _read_openxml(content)
    except Exception as exc:
        logger.warning("Failed to read workbook %s: %s", filename or "<upload>", exc)
        raise UnreadableFileError(f"Failed to read Excel file '{filename or 'upload'}': {exc}") from exc

    logger.info("Read workbook %s with sheets %s", filename or "<upload>", list(sheets))
    return MappingProxyType(sheets)


def _detect_container(content: bytes, filename: Optional[str]) -> str:
    if content.startswith(_ZIP_MAGIC):
        return "xlsx"
    if content.startswith(_OLE2_MAGIC):
        return "xls"

    suffix = Path(filename).suffix.lower() if filename else ""
    if suffix in _LEGACY_SUFFIXES:
        return "xls"
    if suffix in _OPENXML_SUFFIXES:
        return "xlsx"
    raise UnreadableFileError(f"'{filename or 'upload'}' is not an Excel workbook")


def _read_openxml(content: bytes) -> Dict[str, Grid]:
    workbook = load_workbook(io.BytesIO(content), data_only=True)
    try:
        return {
            worksheet.title: _to_grid(worksheet.iter_rows(values_only=True))
            for worksheet in workbook.worksheets
        }
    finally:
        workbook.close()


def _read_legacy(content: bytes) -> Dict[str, Grid]:
    book = xlrd.open_workbook(file_contents=content)
    sheets: Dict[str, Grid] = {}
    for sheet in book.sheets():
        rows = []
        for index in range(sheet.nrows):
            rows.append([_legacy_value(cell) for cell in sheet.row(index)])
        sheets[sheet.name] = _to_grid(rows)
    return sheets


def _legacy_value(cell) -> Cell:
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    # error cells carry an error code, not a value
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return None
    return cell.value


def _to_grid(rows: Iterable[Iterable[Cell]]) -> Grid:
    return tuple(tuple(_normalize_cell(value) for value in row) for row in rows)


def _normalize_cell(value: Cell) -> Cell:
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (bool, int, float, datetime)):
        return value
    # dates, times and anything exotic become text the extractors can ignore
    return value if hasattr(value, "year") else str(value)
