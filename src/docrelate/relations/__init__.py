"""Relation hooks between document collections.

A relation declares that documents in a related collection embed (or
reference) documents of an owner collection by key. Hooks registered on
the owner keep the related collection consistent:
- onUpdate / onReplace: cascade | ignore
- onDelete: cascade | restrict | unset | pull | ignore

Usage:
    from docrelate.relations import Relation, RelationPaths, setup_relations

    setup_relations(books, {
        "author": Relation(
            key="_id",
            owner=authors,
            paths=RelationPaths(identifier="author._id", field="author"),
            projection=frozenset({"name"}),
            embedder=projection_embedder(authors, "_id", {"name"}),
            on_update=UpdatePolicy.CASCADE,
            on_delete=DeletePolicy.RESTRICT,
        ),
    })
"""

from docrelate.relations.engine import RelationHookEngine, setup_relations
from docrelate.relations.errors import (
    CascadePartialFailureError,
    RelationConfigError,
    RelationError,
    RestrictionError,
    StorageError,
)
from docrelate.relations.propagator import propagate_delete, propagate_update
from docrelate.relations.relevance import is_relevant, modified_fields, top_level_fields
from docrelate.relations.resolver import resolve_identifiers
from docrelate.relations.restriction import check_restriction
from docrelate.relations.types import (
    DeletePolicy,
    Embedder,
    Modifier,
    Relation,
    RelationPaths,
    Replacement,
    UpdatePolicy,
    parse_mutation,
    projection_embedder,
)

__all__ = [
    "CascadePartialFailureError",
    "DeletePolicy",
    "Embedder",
    "Modifier",
    "Relation",
    "RelationConfigError",
    "RelationError",
    "RelationHookEngine",
    "RelationPaths",
    "Replacement",
    "RestrictionError",
    "StorageError",
    "UpdatePolicy",
    "check_restriction",
    "is_relevant",
    "modified_fields",
    "parse_mutation",
    "projection_embedder",
    "propagate_delete",
    "propagate_update",
    "resolve_identifiers",
    "setup_relations",
    "top_level_fields",
]
