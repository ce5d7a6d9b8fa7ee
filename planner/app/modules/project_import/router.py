"""API endpoints driving a project import from upload to dispatched draft."""

from __future__ import annotations

import io
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from planner.app.core.config import settings
from planner.app.core.dependencies import get_import_service

from .schemas import (
    CreateFinancingRequest,
    CreateResourceRequest,
    ImportSessionView,
    ResolveResourceRequest,
)
from .service import ProjectImportService
from .template import TEMPLATE_FILENAME, build_template_workbook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imports", tags=["imports"])

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.post("", response_model=ImportSessionView, status_code=status.HTTP_201_CREATED)
async def start_import(
    file: UploadFile = File(..., description="Project workbook (.xlsx or .xls)"),
    service: ProjectImportService = Depends(get_import_service),
) -> ImportSessionView:
    file_bytes = await file.read()
    if not file_bytes:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(file_bytes) > settings.import_max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Workbook exceeds {settings.import_max_upload_bytes} bytes",
        )

    return service.start_import(file_bytes=file_bytes, filename=file.filename or "uploaded.xlsx")


@router.get("/template")
def download_template(
    start_year: Optional[int] = Query(default=None, ge=1900, le=2100),
    start_month: int = Query(default=1, ge=1, le=12),
) -> StreamingResponse:
    content = build_template_workbook(start_year, start_month)
    return StreamingResponse(
        content=io.BytesIO(content),
        media_type=_XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


@router.get("/{session_id}", response_model=ImportSessionView)
def get_import(
    session_id: str,
    service: ProjectImportService = Depends(get_import_service),
) -> ImportSessionView:
    return service.get_session(session_id)


@router.post("/{session_id}/resources/resolve", response_model=ImportSessionView)
def resolve_resource(
    session_id: str,
    payload: ResolveResourceRequest,
    service: ProjectImportService = Depends(get_import_service),
) -> ImportSessionView:
    return service.resolve_resource(session_id, name=payload.name, resource_id=payload.resource_id)


@router.post("/{session_id}/resources/create", response_model=ImportSessionView)
def create_resource(
    session_id: str,
    payload: CreateResourceRequest,
    service: ProjectImportService = Depends(get_import_service),
) -> ImportSessionView:
    return service.create_resource(session_id, payload)


@router.post("/{session_id}/resources/cancel", response_model=ImportSessionView)
def cancel_import(
    session_id: str,
    service: ProjectImportService = Depends(get_import_service),
) -> ImportSessionView:
    view = service.cancel(session_id)
    logger.info("Import session %s cancelled by the user", session_id)
    return view


@router.post("/{session_id}/financing/create", response_model=ImportSessionView)
def create_financing(
    session_id: str,
    payload: Optional[CreateFinancingRequest] = None,
    service: ProjectImportService = Depends(get_import_service),
) -> ImportSessionView:
    return service.create_financing(session_id, payload or CreateFinancingRequest())


@router.post("/{session_id}/financing/cancel", response_model=ImportSessionView)
def skip_financing(
    session_id: str,
    service: ProjectImportService = Depends(get_import_service),
) -> ImportSessionView:
    return service.skip_financing(session_id)
