"""Hook system types for docrelate.

Defines the data structures passed around the collection mutation lifecycle:
- HookEvent: the named before/after points around each mutating call
- OperationContext: per-call state shared by a call's before and after hooks
- HookParams: the mutable parameter object every hook receives
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class HookEvent(Enum):
    """Lifecycle points emitted around mutating collection calls."""

    BEFORE_UPDATE_ONE = "beforeUpdateOne"
    BEFORE_REPLACE_ONE = "beforeReplaceOne"
    BEFORE_UPSERT_ONE = "beforeUpsertOne"
    BEFORE_UPDATE_MANY = "beforeUpdateMany"
    AFTER_UPDATE_ONE = "afterUpdateOne"
    AFTER_REPLACE_ONE = "afterReplaceOne"
    AFTER_UPSERT_ONE = "afterUpsertOne"
    AFTER_UPDATE_MANY = "afterUpdateMany"
    BEFORE_DELETE_ONE = "beforeDeleteOne"
    BEFORE_DELETE_MANY = "beforeDeleteMany"
    AFTER_DELETE_ONE = "afterDeleteOne"
    AFTER_DELETE_MANY = "afterDeleteMany"


@dataclass
class OperationContext:
    """State handed from a mutating call's before hooks to its after hooks.

    Created fresh for every call and never persisted.

    Attributes:
        modified_identifiers: Relation key -> owner identifiers matched
            before an update/replace/upsert was applied
        deleted_identifiers: Relation key -> owner identifiers matched
            before a delete was applied
    """

    modified_identifiers: dict[str, list[Any]] | None = None
    deleted_identifiers: dict[str, list[Any]] | None = None


@dataclass
class HookParams:
    """Parameters for one mutating call, shared by all of its hooks.

    Attributes:
        condition: Match condition of the call
        modifier: Operator modifier (update paths)
        replacement: Full replacement document (replace path)
        is_updated: Upsert only; True iff an existing document was matched
        meta: Per-call context bridging before and after hooks
        options: Per-call options (e.g. {"relating": False})
        result: Storage result, available to after hooks
    """

    condition: dict[str, Any]
    modifier: dict[str, Any] | None = None
    replacement: dict[str, Any] | None = None
    is_updated: bool = False
    meta: OperationContext = field(default_factory=OperationContext)
    options: dict[str, Any] = field(default_factory=dict)
    result: Any = None

    @property
    def mutation(self) -> dict[str, Any] | None:
        """The modifier or replacement document this call applies."""
        if self.modifier is not None:
            return self.modifier
        return self.replacement


# Hook function signature: async (HookParams) -> None
HookFn = Callable[[HookParams], Awaitable[None]]
