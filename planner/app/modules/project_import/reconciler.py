"""Match extracted names against the user directory and the financing catalog."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from .domain import ResourceDraft, UnmatchedResource, WorkpackageDraft
from .interfaces import FinancingEntry, UserDirectory
from .normalizers import base_monthly_salary

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconciliationResult:
    workpackages: List[WorkpackageDraft]
    unmatched: List[UnmatchedResource]

    @property
    def matched_count(self) -> int:
        return sum(
            1
            for workpackage in self.workpackages
            for resource in workpackage.resources
            if resource.resolved_id is not None
        )


def reconcile_resources(
    workpackages: Sequence[WorkpackageDraft],
    directory: UserDirectory,
) -> ReconciliationResult:
    """Resolve resource names by exact display-name match.

    Unmatched names are deduplicated in order of first appearance. The salary
    offered for a placeholder is the base monthly salary behind the first
    loaded cost found for that name.
    """

    names = list(dict.fromkeys(
        resource.display_name
        for workpackage in workpackages
        for resource in workpackage.resources
    ))
    known = directory.find_ids_by_names(names) if names else {}

    reconciled: List[WorkpackageDraft] = []
    unmatched: Dict[str, Optional[float]] = {}
    for workpackage in workpackages:
        resources: List[ResourceDraft] = []
        for resource in workpackage.resources:
            resolved_id = resource.resolved_id or known.get(resource.display_name)
            if resolved_id is None:
                if unmatched.get(resource.display_name) is None:
                    unmatched[resource.display_name] = base_monthly_salary(resource.inferred_salary)
            resources.append(replace(resource, allocations=list(resource.allocations), resolved_id=resolved_id))
        reconciled.append(replace(workpackage, resources=resources, materials=list(workpackage.materials)))

    result = ReconciliationResult(
        workpackages=reconciled,
        unmatched=[UnmatchedResource(name=name, inferred_salary=salary) for name, salary in unmatched.items()],
    )
    logger.info(
        "Reconciled resources: %d matched, %d unmatched name(s)",
        result.matched_count,
        len(result.unmatched),
    )
    return result


def normalize_financing_name(name: str) -> str:
    return name.strip().casefold()


def match_financing(name: Optional[str], entries: Sequence[FinancingEntry]) -> Optional[FinancingEntry]:
    """Case-insensitive, whitespace-trimmed lookup; the first catalog entry wins."""
    if not name or not name.strip():
        return None
    wanted = normalize_financing_name(name)
    return next((entry for entry in entries if normalize_financing_name(entry.name) == wanted), None)
