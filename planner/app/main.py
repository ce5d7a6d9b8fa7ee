"""Project planner FastAPI application."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from planner.app.core.config import settings
from planner.app.core.database import init_db
from planner.app.core.logging import configure_logging
from planner.app.directory.router import router as directory_router
from planner.app.directory.service import FinancingAlreadyExistsError
from planner.app.modules.project_import.errors import (
    ImportCancelledError,
    ImportSessionNotFoundError,
    ImportStateError,
    UnreadableFileError,
)
from planner.app.modules.project_import.router import router as import_router


def create_app() -> FastAPI:
    configure_logging()
    init_db()
    app = FastAPI(title=settings.app_name, version="0.1.0")

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    api_prefix = settings.api_v1_prefix.rstrip("/")
    app.include_router(import_router, prefix=api_prefix)
    app.include_router(directory_router, prefix=api_prefix)

    # Exception Handlers
    @app.exception_handler(UnreadableFileError)
    async def unreadable_file_handler(request: Request, exc: UnreadableFileError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc)},
        )

    @app.exception_handler(ImportStateError)
    async def import_state_handler(request: Request, exc: ImportStateError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc)},
        )

    @app.exception_handler(ImportSessionNotFoundError)
    async def session_not_found_handler(request: Request, exc: ImportSessionNotFoundError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": str(exc)},
        )

    @app.exception_handler(ImportCancelledError)
    async def import_cancelled_handler(request: Request, exc: ImportCancelledError):
        return JSONResponse(
            status_code=status.HTTP_410_GONE,
            content={"detail": str(exc)},
        )

    @app.exception_handler(FinancingAlreadyExistsError)
    async def financing_exists_handler(request: Request, exc: FinancingAlreadyExistsError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc)},
        )

    @app.exception_handler(ValidationError)
    async def invalid_values_handler(request: Request, exc: ValidationError):
        # values built from the workbook, not from the request body
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.errors(include_url=False, include_context=False, include_input=False)},
        )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
