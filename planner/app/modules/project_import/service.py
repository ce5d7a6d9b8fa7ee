"""Import service coordinating workbook reading, the controller and the directory."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session

from planner.app.directory import schemas as directory_schemas
from planner.app.directory import service as directory_service

from .controller import ImportController, ImportPhase
from .drafts import ProjectDraftStore
from .errors import ImportCancelledError, ImportStateError
from .schemas import (
    CreateFinancingRequest,
    CreateResourceRequest,
    FinancingPrompt,
    ImportSessionView,
    ImportSummary,
    PendingResource,
    ProjectDraftRead,
)
from .sessions import ImportSession, ImportSessionRegistry
from .workbook import read_workbook

logger = logging.getLogger(__name__)


class ProjectImportService:
    """Entry point used by the HTTP layer for every import event."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        registry: ImportSessionRegistry,
        *,
        default_year: Optional[int] = None,
    ) -> None:
        self._session_factory = session_factory
        self._registry = registry
        self._default_year = default_year

    def start_import(self, *, file_bytes: bytes, filename: str) -> ImportSessionView:
        # an unreadable file aborts before any session exists
        workbook = read_workbook(file_bytes, filename)

        store = ProjectDraftStore()
        controller = ImportController(
            directory_service.SqlUserDirectory(self._session_factory),
            directory_service.SqlFinancingCatalog(self._session_factory),
            store,
            default_year=self._default_year,
        )
        controller.start(workbook)
        session = self._registry.create(filename, controller, store)
        logger.info("Import session %s for %s is %s", session.session_id, filename, controller.phase.value)
        return self._view(session)

    def get_session(self, session_id: str) -> ImportSessionView:
        return self._view(self._registry.get(session_id))

    def resolve_resource(self, session_id: str, *, name: str, resource_id: str) -> ImportSessionView:
        """Resolve the presented name with an existing directory entry."""
        session = self._active(session_id)
        with self._db() as db:
            if directory_service.get_user(db, resource_id) is None:
                raise ImportStateError(f"Resource {resource_id} does not exist")
        session.controller.resolved(name, resource_id)
        return self._view(session)

    def create_resource(self, session_id: str, payload: CreateResourceRequest) -> ImportSessionView:
        """Create a contracted resource for the presented name, then resolve it."""
        session = self._active(session_id)
        current = session.controller.current_resource
        if current is None or current.name != payload.name:
            raise ImportStateError(f"Resource {payload.name!r} is not awaiting resolution")

        salary = payload.salary
        if salary is None:
            salary = directory_service.as_decimal(current.inferred_salary)
        with self._db() as db:
            user = directory_service.create_contracted_resource(
                db,
                directory_schemas.ContractedResourceCreate(
                    name=payload.name,
                    salary=salary,
                    information=payload.information,
                ),
            )
        session.controller.resolved(payload.name, user.id)
        return self._view(session)

    def cancel(self, session_id: str) -> ImportSessionView:
        session = self._active(session_id)
        session.controller.cancelled()
        session.cancelled = True
        return self._view(session)

    def create_financing(self, session_id: str, payload: CreateFinancingRequest) -> ImportSessionView:
        session = self._active(session_id)
        prompt = session.controller.financing_request
        if prompt is None:
            raise ImportStateError("No financing is awaiting creation")

        with self._db() as db:
            financing = directory_service.create_financing(
                db,
                directory_schemas.FinancingCreate(
                    name=payload.name or prompt.name,
                    financing_rate=_first(payload.financing_rate, prompt.financing_rate),
                    overhead_rate=_first(payload.overhead_rate, prompt.overhead_rate),
                    eti_value=_first(payload.eti_value, prompt.eti_value),
                ),
            )
        session.controller.financing_resolved(financing.id)
        return self._view(session)

    def skip_financing(self, session_id: str) -> ImportSessionView:
        session = self._active(session_id)
        session.controller.financing_cancelled()
        return self._view(session)

    # ------------------------------------------------------------------ helpers
    def _active(self, session_id: str) -> ImportSession:
        session = self._registry.get(session_id)
        if session.cancelled:
            raise ImportCancelledError(f"Import session {session_id} was cancelled")
        return session

    @contextmanager
    def _db(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    def _view(self, session: ImportSession) -> ImportSessionView:
        controller = session.controller
        view = ImportSessionView(
            session_id=session.session_id,
            filename=session.filename,
            phase=controller.phase,
            cancelled=session.cancelled,
            remaining_resources=len(controller.queue),
            financing_skipped=controller.financing_skipped,
        )

        current = controller.current_resource
        if current is not None:
            view.pending_resource = PendingResource(name=current.name, inferred_salary=current.inferred_salary)
            view.message = f"Resource '{current.name}' is not registered; create it to continue the import."

        prompt = controller.financing_request
        if prompt is not None:
            view.financing = FinancingPrompt(
                name=prompt.name,
                financing_rate=prompt.financing_rate,
                overhead_rate=prompt.overhead_rate,
                eti_value=prompt.eti_value,
            )
            view.message = f"Financing '{prompt.name}' is not in the catalog; create it or skip."

        if controller.phase == ImportPhase.DONE and controller.summary is not None:
            view.summary = ImportSummary(
                workpackages=controller.summary.workpackages,
                allocations=controller.summary.allocations,
                materials=controller.summary.materials,
            )
            view.draft = ProjectDraftRead.model_validate(session.store.snapshot())
            view.message = "Project data imported successfully."
        elif session.cancelled:
            view.message = "Import cancelled; no data was imported."
        return view


def _first(value: Optional[Decimal], fallback: Optional[float]) -> Decimal:
    if value is not None:
        return value
    return Decimal(str(fallback)) if fallback is not None else Decimal("0")
