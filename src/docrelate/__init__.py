"""docrelate: referential integrity between document collections.

Relations declared between an owner collection and a related collection
are enforced through before/after hooks on the owner's mutating calls.
"""

from docrelate.relations import (
    CascadePartialFailureError,
    DeletePolicy,
    Relation,
    RelationPaths,
    RestrictionError,
    StorageError,
    UpdatePolicy,
    projection_embedder,
    setup_relations,
)

__version__ = "0.1.0"

__all__ = [
    "CascadePartialFailureError",
    "DeletePolicy",
    "Relation",
    "RelationPaths",
    "RestrictionError",
    "StorageError",
    "UpdatePolicy",
    "projection_embedder",
    "setup_relations",
]
