from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from planner.app.modules.project_import.errors import UnreadableFileError
from planner.app.modules.project_import.extractors import extract_financing_terms, extract_project_metadata
from planner.app.modules.project_import.workbook import read_workbook

from .builders import build_workbook_bytes, grid_from_cells

FIXTURES = Path(__file__).parent / "fixtures"


def test_read_workbook_keeps_absolute_positions():
    content = build_workbook_bytes(
        {
            "HOME": grid_from_cells({(1, 1): "Smart Grid Pilot"}),
            "RH_Budget_SUBM": grid_from_cells({(4, 6): datetime(2024, 1, 1), (8, 6): 0.5, (8, 3): "Alice"}),
        }
    )

    sheets = read_workbook(content, "project.xlsx")

    assert set(sheets) == {"HOME", "RH_Budget_SUBM"}
    assert sheets["HOME"][1][1] == "Smart Grid Pilot"
    assert sheets["HOME"][0][0] is None
    allocations = sheets["RH_Budget_SUBM"]
    assert allocations[8][3] == "Alice"
    assert allocations[8][6] == 0.5
    assert allocations[4][6] == datetime(2024, 1, 1)


def test_read_legacy_workbook():
    content = (FIXTURES / "legacy_project.xls").read_bytes()

    sheets = read_workbook(content, "legacy_project.xls")

    assert list(sheets) == ["HOME", "BUDGET"]
    home = sheets["HOME"]
    assert len(home) == 5
    assert all(value is None for value in home[0])
    assert home[1][:2] == ("Nome do projeto ", "Legacy Plan")
    # boolean cells keep their type, error cells carry no value
    assert home[3][2] is True
    assert home[3][3] is None
    assert home[4][6] == 0.5

    assert extract_project_metadata(sheets).project_name == "Legacy Plan"
    terms = extract_financing_terms(sheets).terms
    assert terms.name == "FCT"
    assert terms.financing_rate == 85


def test_legacy_container_is_detected_without_a_suffix():
    content = (FIXTURES / "legacy_project.xls").read_bytes()

    assert "BUDGET" in read_workbook(content, "upload")


def test_read_workbook_is_read_only():
    sheets = read_workbook(build_workbook_bytes({"HOME": [["x"]]}), "project.xlsx")

    with pytest.raises(TypeError):
        sheets["HOME"] = ()


def test_blank_strings_become_none():
    sheets = read_workbook(build_workbook_bytes({"HOME": [["  ", "value"]]}), "project.xlsx")

    assert sheets["HOME"][0] == (None, "value")


@pytest.mark.parametrize(
    "content, filename",
    [
        (b"", "empty.xlsx"),
        (b"not a spreadsheet", "notes.txt"),
        (b"PK\x03\x04corrupted zip", "broken.xlsx"),
        (b"garbage", "legacy.xls"),
    ],
)
def test_unreadable_files_raise(content, filename):
    with pytest.raises(UnreadableFileError):
        read_workbook(content, filename)
