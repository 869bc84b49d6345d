"""
Custom exception classes for the DatoCMS schema import tool.
"""

from __future__ import annotations


class SchemaImportError(Exception):
    """Base exception for schema import errors."""


class InvalidPlanError(SchemaImportError):
    """Raised when an import plan document cannot be parsed."""


class DuplicateIdentifierError(SchemaImportError):
    """Raised when a source identifier is mapped twice, or a generated id collides."""


class UnresolvedReferenceError(SchemaImportError):
    """Raised when a reference that must always resolve has no mapping."""


class ApiError(SchemaImportError):
    """Raised when the Content Management API rejects a request."""

    def __init__(self, message: str, *, status_code: int | None = None, body: object = None) -> None:
        super().__init__(message)
        self.status_code: int | None = status_code
        self.body: object = body
