"""
DatoCMS Schema Import Tool

Replicates item types, fields, fieldsets and plugins from an import plan into
a destination DatoCMS project, generating fresh ids while keeping every
internal reference intact.
"""

from __future__ import annotations

from .cli import main
from .exceptions import (
    ApiError,
    DuplicateIdentifierError,
    InvalidPlanError,
    SchemaImportError,
    UnresolvedReferenceError,
)
from .events import LoggingEventSubscriber
from .field_rewriter import rewrite_field
from .id_mapping import IdMapping, IdTables, generate_id
from .importer import ImportResult, SchemaImporter, import_schema
from .models import ImportPlan, ItemTypesPlan, ItemTypeToCreate, PluginsPlan, Rename
from .progress import ImportProgress, ProgressTracker
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "DuplicateIdentifierError",
    "IdMapping",
    "IdTables",
    "ImportPlan",
    "ImportProgress",
    "ImportResult",
    "InvalidPlanError",
    "ItemTypeToCreate",
    "ItemTypesPlan",
    "LoggingEventSubscriber",
    "PluginsPlan",
    "ProgressTracker",
    "Rename",
    "SchemaImportError",
    "SchemaImporter",
    "UnresolvedReferenceError",
    "generate_id",
    "import_schema",
    "main",
    "rewrite_field",
    "setup_logging",
]
