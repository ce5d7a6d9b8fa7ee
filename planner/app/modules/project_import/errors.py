"""Exceptions surfaced by the project import pipeline."""

from __future__ import annotations


class ProjectImportError(Exception):
    """Base class for import failures."""


class UnreadableFileError(ProjectImportError):
    """Raised when the uploaded binary is not a readable spreadsheet container."""


class ImportStateError(ProjectImportError):
    """Raised when an event is not valid for the controller's current state."""


class ImportCancelledError(ProjectImportError):
    """Raised when acting on an import the user already cancelled."""


class ImportSessionNotFoundError(ProjectImportError):
    """Raised when a session id is unknown or has expired."""
