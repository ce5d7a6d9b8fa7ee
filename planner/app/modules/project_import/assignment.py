"""Attach extracted materials to the workpackage their activity label names."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from .domain import MaterialDraft, WorkpackageDraft

logger = logging.getLogger(__name__)

_ACTIVITY_CODE = re.compile(r"^A\d+")
_CODE_SEPARATOR = " - "

DEFAULT_BUCKET_CODE = "A1"
DEFAULT_BUCKET_NAME = "A1 - Unassigned materials"


def assign_materials(
    workpackages: Sequence[WorkpackageDraft],
    materials: Sequence[MaterialDraft],
) -> List[WorkpackageDraft]:
    """Return copies of ``workpackages`` with every material attached to exactly one.

    Resolution order: exact workpackage name (or the code prefix of that name),
    then the ``A<n>`` prefix of the activity label against workpackage codes,
    then the first workpackage. With no workpackages at all a default bucket is
    created so that no material is ever dropped.
    """

    assigned = [replace(workpackage, materials=list(workpackage.materials)) for workpackage in workpackages]
    if not materials:
        return assigned
    if not assigned:
        logger.warning("No workpackages found; %d material(s) go to a default bucket", len(materials))
        assigned.append(WorkpackageDraft(code=DEFAULT_BUCKET_CODE, name=DEFAULT_BUCKET_NAME))

    by_label: Dict[str, WorkpackageDraft] = {}
    for workpackage in assigned:
        by_label.setdefault(workpackage.name, workpackage)
        name_code = workpackage.name.split(_CODE_SEPARATOR)[0].strip()
        if name_code:
            by_label.setdefault(name_code, workpackage)

    for material in materials:
        target = by_label.get(material.workpackage_ref) or _match_by_code(assigned, material.workpackage_ref)
        if target is None:
            logger.warning(
                "Material %r references unknown activity %r; attaching to %s",
                material.name,
                material.workpackage_ref,
                assigned[0].code,
            )
            target = assigned[0]
        target.materials.append(material)

    return assigned


def _match_by_code(workpackages: Sequence[WorkpackageDraft], activity: str) -> Optional[WorkpackageDraft]:
    match = _ACTIVITY_CODE.match(activity)
    if not match:
        return None
    return next((workpackage for workpackage in workpackages if workpackage.code == match.group(0)), None)
