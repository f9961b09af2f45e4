"""Relation metadata - YAML loading and schema validation."""

from docrelate.metadata.loader import (
    RelationConfig,
    RelationLoader,
    RelationSetConfig,
    build_relations,
    setup_from_metadata,
)
from docrelate.metadata.validator import (
    ValidationIssue,
    validate_relation_file,
    validate_relations_dir,
)

__all__ = [
    "RelationConfig",
    "RelationLoader",
    "RelationSetConfig",
    "ValidationIssue",
    "build_relations",
    "setup_from_metadata",
    "validate_relation_file",
    "validate_relations_dir",
]
