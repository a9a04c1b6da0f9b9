"""Core flowspec functionality: paths, scanning, type extraction, the Model and its validation."""

from . import model
from .errors import (
    ConfigError,
    DSLError,
    ErrorContext,
    FlowSpecError,
    GraphError,
    ModelValidationError,
)
from .ids import add_auto_ids, has_all_ids
from .manifest import ProjectManifest, load_manifest
from .scanner import parse_imports
from .type_extractor import INFERRED_TYPE, Classification, TypeInfo, parse_type_definitions
from .validator import ensure_valid, validate_references
from .vfs import FileStore, InMemoryFileStore, LocalFileStore

__all__ = [
    "model",
    "FlowSpecError",
    "GraphError",
    "DSLError",
    "ConfigError",
    "ModelValidationError",
    "ErrorContext",
    "add_auto_ids",
    "has_all_ids",
    "ProjectManifest",
    "load_manifest",
    "parse_imports",
    "INFERRED_TYPE",
    "Classification",
    "TypeInfo",
    "parse_type_definitions",
    "validate_references",
    "ensure_valid",
    "FileStore",
    "InMemoryFileStore",
    "LocalFileStore",
]
