"""DocumentCollection Protocol: the storage interface relation hooks consume."""

from typing import Any, Protocol, runtime_checkable

from docrelate.hooks.types import HookEvent, HookFn


@runtime_checkable
class DocumentCollection(Protocol):
    """Interface a collection must implement to take part in relations.

    Matches the public API of MemoryCollection. Mutating calls must emit
    the before/after HookEvents around the write, sharing one HookParams
    (and so one OperationContext) between both phases, and must accept
    an `options` mapping that is passed through to HookParams.options.
    Failures are raised as StorageError.
    """

    name: str

    def on(self, event: HookEvent | str, hook_fn: HookFn) -> None: ...

    async def find(
        self,
        condition: dict[str, Any],
        projection: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]: ...

    async def find_one(
        self,
        condition: dict[str, Any],
        projection: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None: ...

    async def update_one(
        self,
        condition: dict[str, Any],
        modifier: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> Any: ...

    async def update_many(
        self,
        condition: dict[str, Any],
        modifier: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> Any: ...

    async def delete_one(
        self,
        condition: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> Any: ...

    async def delete_many(
        self,
        condition: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> Any: ...
