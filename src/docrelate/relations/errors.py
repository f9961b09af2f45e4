"""Error types raised by the relation hook engine.

- StorageError: any failure reported by a storage collaborator
- RestrictionError: a restrict-policy delete would orphan a reference
- CascadePartialFailureError: some per-identifier cascades committed, some failed
- RelationConfigError: relation metadata could not be turned into a descriptor
"""

from typing import Any


class RelationError(Exception):
    """Base class for all docrelate errors."""


class StorageError(RelationError):
    """A query, update, or delete against a collection failed."""


class RestrictionError(RelationError):
    """Delete blocked because a related document still embeds the owner.

    Attributes:
        owner_collection: Name of the collection the delete targeted
        related_collection: Name of the collection holding the reference
        field_path: Field in the related collection that embeds the owner
        related_id: Identifier of the related document blocking the delete
    """

    def __init__(
        self,
        owner_collection: str,
        related_collection: str,
        field_path: str,
        related_id: Any,
        id_field: str = "_id",
    ):
        self.owner_collection = owner_collection
        self.related_collection = related_collection
        self.field_path = field_path
        self.related_id = related_id
        super().__init__(
            f"Could not delete document from collection `{owner_collection}` "
            f"because it is embedded to related collection `{related_collection}` "
            f"in the field `{field_path}` of document with {id_field}={related_id}"
        )


class CascadePartialFailureError(RelationError):
    """Cascade update committed for some identifiers and failed for others.

    Successful updates are not rolled back, so the related collection may
    hold a mix of refreshed and stale embedded values.

    Attributes:
        related_collection: Name of the collection being updated
        succeeded: Identifiers whose cascade committed
        failures: (identifier, exception) pair for each failed cascade
    """

    def __init__(
        self,
        related_collection: str,
        succeeded: list[Any],
        failures: list[tuple[Any, BaseException]],
    ):
        self.related_collection = related_collection
        self.succeeded = succeeded
        self.failures = failures
        failed = ", ".join(repr(identifier) for identifier, _ in failures)
        super().__init__(
            f"Cascade into `{related_collection}` partially failed: "
            f"{len(succeeded)} identifier(s) updated, {len(failures)} failed ({failed})"
        )


class RelationConfigError(RelationError, ValueError):
    """Relation metadata is invalid or references an unknown collection."""
