from __future__ import annotations

from decimal import Decimal

import pytest

from planner.app.modules.project_import.dispatch import dispatch_import
from planner.app.modules.project_import.domain import Category
from planner.app.modules.project_import.drafts import ProjectDraftStore, UnknownWorkpackageError
from planner.app.modules.project_import.interfaces import AllocationAction, MaterialAction, WorkpackageAction
from planner.app.modules.project_import.pipeline import extract_import_state
from planner.app.modules.project_import.reconciler import reconcile_resources

from .builders import FakeDirectory, as_sheets, project_sheets


def _allocation(user_id="u-1", month=1, occupancy="0.5000"):
    return AllocationAction(workpackage_id="wp-1", user_id=user_id, month=month, year=2024, occupancy=Decimal(occupancy))


def test_store_builds_the_draft_from_actions():
    store = ProjectDraftStore()
    state = extract_import_state(
        as_sheets(project_sheets(materials=[("Laptop", "A1", 2024, "Materiais", 900, 1)])),
        default_year=2024,
    )
    state.workpackages = reconcile_resources(state.workpackages, FakeDirectory({"Alice": "u-alice"})).workpackages

    dispatch_import(state, store)

    draft = store.snapshot()
    assert draft.name == "Smart Grid Pilot"
    assert len(draft.workpackages) == 1
    workpackage = draft.workpackages[0]
    assert [allocation.user_id for allocation in workpackage.allocations] == ["u-alice", "u-alice"]
    assert [material.name for material in workpackage.materials] == ["Laptop"]


def test_reset_clears_a_previous_import():
    store = ProjectDraftStore()
    store.add_workpackage(WorkpackageAction(id="wp-1", code="A1", name="Design", start=None, end=None))

    store.reset()

    assert store.snapshot().workpackages == []


def test_allocation_for_the_same_month_replaces_the_previous_one():
    store = ProjectDraftStore()
    store.add_workpackage(WorkpackageAction(id="wp-1", code="A1", name="Design", start=None, end=None))

    store.add_allocation("wp-1", _allocation(occupancy="0.5000"))
    store.add_allocation("wp-1", _allocation(month=2))
    store.add_allocation("wp-1", _allocation(occupancy="0.7500"))

    allocations = store.snapshot().workpackages[0].allocations
    assert [(allocation.month, allocation.occupancy) for allocation in allocations] == [
        (1, Decimal("0.7500")),
        (2, Decimal("0.5000")),
    ]


def test_unknown_workpackage_is_rejected():
    store = ProjectDraftStore()

    with pytest.raises(UnknownWorkpackageError):
        store.add_allocation("missing", _allocation())
    with pytest.raises(UnknownWorkpackageError):
        store.add_material(
            "missing",
            MaterialAction(
                id=1,
                workpackage_id="missing",
                name="Laptop",
                unit_price=Decimal("1"),
                quantity=Decimal("1"),
                usage_year=2024,
                category=Category.MATERIALS,
            ),
        )


def test_snapshot_is_detached_from_later_actions():
    store = ProjectDraftStore()
    store.add_workpackage(WorkpackageAction(id="wp-1", code="A1", name="Design", start=None, end=None))
    snapshot = store.snapshot()

    store.add_allocation("wp-1", _allocation())

    assert snapshot.workpackages[0].allocations == []
