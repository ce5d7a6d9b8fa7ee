"""State machine driving one project import from workbook to dispatched draft."""

from __future__ import annotations

import enum
import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

from .dispatch import DispatchSummary, dispatch_import
from .domain import ImportState, UnmatchedResource
from .errors import ImportStateError
from .interfaces import FinancingCatalog, Sink, UserDirectory
from .pipeline import extract_import_state
from .reconciler import match_financing, reconcile_resources
from .workbook import Workbook

logger = logging.getLogger(__name__)


class ImportPhase(str, enum.Enum):
    """Import lifecycle states."""

    IDLE = "idle"
    EXTRACTING = "extracting"
    AWAITING_RESOLUTION = "awaiting_resolution"
    AWAITING_FINANCING = "awaiting_financing"
    FINALIZING = "finalizing"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class FinancingRequest:
    """Pre-filled values for the create-financing sub-flow."""

    name: str
    financing_rate: Optional[float]
    overhead_rate: Optional[float]
    eti_value: Optional[float]


class ImportController:
    """Single-use controller owning the ImportState of one import attempt.

    The controller only advances through named events: ``start``,
    ``resolved``, ``cancelled``, ``financing_resolved`` and
    ``financing_cancelled``. It presents at most one unmatched resource at a
    time and never touches the sink before every resource has an identifier.
    """

    def __init__(
        self,
        directory: UserDirectory,
        financing_catalog: FinancingCatalog,
        sink: Sink,
        *,
        default_year: Optional[int] = None,
    ) -> None:
        self._directory = directory
        self._financing_catalog = financing_catalog
        self._sink = sink
        self._default_year = default_year

        self.phase = ImportPhase.IDLE
        self.state: Optional[ImportState] = None
        self.queue: Deque[UnmatchedResource] = deque()
        self.summary: Optional[DispatchSummary] = None
        self.financing_skipped = False

    # ------------------------------------------------------------------ views
    @property
    def current_resource(self) -> Optional[UnmatchedResource]:
        """The one unmatched resource currently presented for creation."""
        if self.phase != ImportPhase.AWAITING_RESOLUTION or not self.queue:
            return None
        return self.queue[0]

    @property
    def financing_request(self) -> Optional[FinancingRequest]:
        if self.phase != ImportPhase.AWAITING_FINANCING or self.state is None:
            return None
        terms = self.state.financing_terms
        return FinancingRequest(
            name=terms.name or "",
            financing_rate=terms.financing_rate,
            overhead_rate=terms.overhead_rate,
            eti_value=self.state.eti_value,
        )

    # ----------------------------------------------------------------- events
    def start(self, workbook: Workbook) -> ImportPhase:
        """Extract, reconcile and either suspend or finalize.

        Args:
            workbook: Sheets produced by ``read_workbook``

        Returns:
            The phase the controller settled in
        """
        self._require(ImportPhase.IDLE, "start")
        self._transition(ImportPhase.EXTRACTING)
        try:
            state = extract_import_state(workbook, default_year=self._default_year)
            reconciliation = reconcile_resources(state.workpackages, self._directory)
        except Exception:
            self._fail()
            raise

        state.workpackages = reconciliation.workpackages
        state.pending_unmatched = list(reconciliation.unmatched)
        self.state = state

        if state.pending_unmatched:
            self.queue = deque(state.pending_unmatched)
            self._transition(ImportPhase.AWAITING_RESOLUTION)
            return self.phase
        return self._reconcile_financing()

    def resolved(self, name: str, resource_id: str) -> ImportPhase:
        """The creation sub-flow returned ``resource_id`` for ``name``."""
        self._require(ImportPhase.AWAITING_RESOLUTION, "resolved")
        current = self.queue[0]
        if name != current.name:
            logger.warning("Resolution for %r while %r is presented", name, current.name)
            raise ImportStateError(f"Resource {current.name!r} is awaiting resolution, not {name!r}")
        if not resource_id:
            raise ImportStateError("A resolved resource needs an identifier")

        self.state.resolved_map[name] = resource_id
        self.queue.popleft()
        logger.info("Resolved resource %r as %s (%d left)", name, resource_id, len(self.queue))
        if self.queue:
            return self.phase

        self._apply_resolutions()
        return self._reconcile_financing()

    def cancelled(self) -> ImportPhase:
        """Discard the whole import; nothing is ever dispatched."""
        if self.phase not in {ImportPhase.AWAITING_RESOLUTION, ImportPhase.AWAITING_FINANCING}:
            raise ImportStateError(f"Cannot cancel an import in phase {self.phase.value}")
        logger.warning("Import cancelled while %s; discarding extracted data", self.phase.value)
        self.state = None
        self.queue.clear()
        self._transition(ImportPhase.IDLE)
        return self.phase

    def financing_resolved(self, financing_id: int) -> ImportPhase:
        self._require(ImportPhase.AWAITING_FINANCING, "financing_resolved")
        self.state.financing_id = financing_id
        logger.info("Financing %r created as %s", self.state.financing_name, financing_id)
        return self._finalize()

    def financing_cancelled(self) -> ImportPhase:
        """Skip the financing link; the import itself continues."""
        self._require(ImportPhase.AWAITING_FINANCING, "financing_cancelled")
        logger.info("Financing creation skipped for %r", self.state.financing_name)
        self.financing_skipped = True
        return self._finalize()

    # ---------------------------------------------------------------- helpers
    def _apply_resolutions(self) -> None:
        for resource in self.state.unresolved_resources():
            resource.resolved_id = self.state.resolved_map.get(resource.display_name)
        self.state.pending_unmatched = []

    def _reconcile_financing(self) -> ImportPhase:
        name = self.state.financing_name
        if name:
            try:
                entry = match_financing(name, self._financing_catalog.list_financings())
            except Exception:
                self._fail()
                raise
            if entry is None:
                self._transition(ImportPhase.AWAITING_FINANCING)
                return self.phase
            self.state.financing_id = entry.id
            logger.info("Matched financing %r to catalog entry %s", name, entry.id)
        return self._finalize()

    def _finalize(self) -> ImportPhase:
        self._transition(ImportPhase.FINALIZING)
        try:
            self.summary = dispatch_import(self.state, self._sink)
        except Exception:
            self._fail()
            raise
        self.state = None
        self._transition(ImportPhase.DONE)
        return self.phase

    def _fail(self) -> None:
        self.state = None
        self.queue.clear()
        self._transition(ImportPhase.ERROR)

    def _require(self, expected: ImportPhase, event: str) -> None:
        if self.phase != expected:
            raise ImportStateError(f"Event '{event}' is not valid in phase {self.phase.value}")

    def _transition(self, phase: ImportPhase) -> None:
        logger.info("Import phase %s -> %s", self.phase.value, phase.value)
        self.phase = phase
