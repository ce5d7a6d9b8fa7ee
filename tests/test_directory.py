from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from planner.app.directory import models, schemas
from planner.app.directory.service import (
    FinancingAlreadyExistsError,
    SqlFinancingCatalog,
    SqlUserDirectory,
    create_contracted_resource,
    create_financing,
)


def test_directory_matches_exact_active_names(session_factory, add_user):
    alice = add_user("Alice")
    add_user("Retired", is_active=False)

    found = SqlUserDirectory(session_factory).find_ids_by_names(["Alice", "alice", "Retired", "Nobody"])

    assert found == {"Alice": alice.id}


def test_directory_prefers_the_oldest_homonym(session_factory, db):
    newer = models.User(name="Bob", created_at=datetime(2024, 5, 1, tzinfo=timezone.utc))
    older = models.User(name="Bob", created_at=datetime(2020, 1, 1, tzinfo=timezone.utc))
    db.add_all([newer, older])
    db.commit()

    assert SqlUserDirectory(session_factory).find_ids_by_names(["Bob"]) == {"Bob": older.id}


def test_directory_with_no_names_does_not_query(session_factory):
    assert SqlUserDirectory(session_factory).find_ids_by_names([]) == {}


def test_contracted_resource_creation(db):
    user = create_contracted_resource(
        db,
        schemas.ContractedResourceCreate(name="  Dana  ", salary=Decimal("1900.50")),
    )

    assert user.name == "Dana"
    assert user.contracted is True
    assert user.salary == Decimal("1900.50")
    assert user.is_active is True


def test_financing_catalog_lists_created_entries(session_factory, db):
    financing = create_financing(
        db,
        schemas.FinancingCreate(name="Portugal 2030", financing_rate=Decimal("75"), overhead_rate=Decimal("25")),
    )

    entries = SqlFinancingCatalog(session_factory).list_financings()

    assert [(entry.id, entry.name) for entry in entries] == [(financing.id, "Portugal 2030")]


def test_duplicate_financing_name_is_rejected(db):
    create_financing(db, schemas.FinancingCreate(name="Horizon Europe"))

    with pytest.raises(FinancingAlreadyExistsError):
        create_financing(db, schemas.FinancingCreate(name="Horizon Europe"))
