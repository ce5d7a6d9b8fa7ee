from __future__ import annotations

from datetime import date

from planner.app.modules.project_import.pipeline import extract_import_state

from .builders import allocation_sheet, as_sheets, project_sheets


def test_state_merges_all_sections():
    sheets = as_sheets(
        project_sheets(
            workpackages=[
                ("A1", "A1 - Design", [("Alice", 2000, [0.5, 0.5])]),
                ("A2", "A2 - Build", [("Bob", None, [None, None, 1.0])]),
            ],
            materials=[("Laptop", "A2 - Build", 2024, "Materiais", 900, 1)],
            eti=2750,
        )
    )

    state = extract_import_state(sheets, default_year=2024)

    assert state.project_name == "Smart Grid Pilot"
    assert state.financing_name == "Portugal 2030"
    # allocation sheet ETI wins over the budget one
    assert state.eti_value == 2750
    assert state.project_start == date(2024, 1, 1)
    assert state.project_end == date(2024, 3, 31)
    design, build = state.workpackages
    assert (design.period_start, design.period_end) == (date(2024, 1, 1), date(2024, 2, 29))
    assert (build.period_start, build.period_end) == (date(2024, 3, 1), date(2024, 3, 31))
    assert [material.name for material in build.materials] == ["Laptop"]
    assert design.materials == []


def test_budget_eti_is_used_when_the_allocation_sheet_has_none():
    state = extract_import_state(as_sheets(project_sheets(eti=None)))

    assert state.eti_value == 2500


def test_workpackage_without_allocations_inherits_the_project_period():
    sheets = as_sheets(
        {
            "RH_Budget_SUBM": allocation_sheet(
                [
                    ("A1", "Design", [("Alice", None, [0.5, None, None, 0.5])]),
                    ("A2", "Empty", []),
                ]
            )
        }
    )

    state = extract_import_state(sheets)

    empty = state.workpackages[1]
    assert (empty.period_start, empty.period_end) == (date(2024, 1, 1), date(2024, 4, 30))


def test_empty_workbook_gives_an_empty_state():
    state = extract_import_state(as_sheets({"Notes": [["hello"]]}))

    assert state.project_name == ""
    assert state.workpackages == []
    assert state.project_start is None
    assert state.financing_name is None
