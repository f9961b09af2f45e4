"""In-memory document collection.

An async, process-local implementation of DocumentCollection. Every
mutating call builds one HookParams, emits the before event, applies the
write, then emits the after event with params.result set. If a before
hook raises, nothing is written and after hooks do not run.
"""

import copy
import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from docrelate.hooks import HookEvent, HookFn, HookParams, HookRegistry
from docrelate.persistence.documents import (
    apply_modifier,
    matches,
    project,
    seed_from_condition,
)
from docrelate.relations.errors import StorageError
from docrelate.relations.types import Modifier, Replacement, parse_mutation

logger = logging.getLogger(__name__)


@dataclass
class UpdateResult:
    matched_count: int = 0
    modified_count: int = 0
    upserted_id: Any = None


@dataclass
class DeleteResult:
    deleted_count: int = 0


class MemoryCollection:
    """Documents held in a list, in insertion order."""

    def __init__(self, name: str, documents: Iterable[dict[str, Any]] | None = None):
        self.name = name
        self.hooks = HookRegistry()
        self._documents: list[dict[str, Any]] = []
        for doc in documents or []:
            self._insert(doc)

    def __repr__(self) -> str:
        return f"MemoryCollection({self.name!r}, {len(self._documents)} documents)"

    def on(self, event: HookEvent | str, hook_fn: HookFn) -> None:
        """Register a lifecycle hook on this collection."""
        self.hooks.register(event, hook_fn)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def find(
        self,
        condition: dict[str, Any] | None = None,
        projection: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        return [
            project(doc, projection)
            for doc in self._documents
            if matches(doc, condition)
        ]

    async def find_one(
        self,
        condition: dict[str, Any] | None = None,
        projection: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        for doc in self._documents:
            if matches(doc, condition):
                return project(doc, projection)
        return None

    async def count(self, condition: dict[str, Any] | None = None) -> int:
        return sum(1 for doc in self._documents if matches(doc, condition))

    # -------------------------------------------------------------------------
    # Inserts (no lifecycle hooks)
    # -------------------------------------------------------------------------

    async def insert_one(self, doc: dict[str, Any]) -> Any:
        return self._insert(doc)

    async def insert_many(self, docs: Iterable[dict[str, Any]]) -> list[Any]:
        return [self._insert(doc) for doc in docs]

    def _insert(self, doc: dict[str, Any]) -> Any:
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", uuid.uuid4().hex)
        if any(existing["_id"] == doc["_id"] for existing in self._documents):
            raise StorageError(
                f"Duplicate key in collection `{self.name}`: _id={doc['_id']!r}"
            )
        self._documents.append(doc)
        return doc["_id"]

    # -------------------------------------------------------------------------
    # Hooked mutations
    # -------------------------------------------------------------------------

    async def update_one(
        self,
        condition: dict[str, Any],
        modifier: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> UpdateResult:
        operators = _operators(modifier)
        params = HookParams(condition=condition, modifier=modifier, options=dict(options or {}))
        return await self._mutate(
            HookEvent.BEFORE_UPDATE_ONE,
            HookEvent.AFTER_UPDATE_ONE,
            params,
            lambda: self._update(condition, operators, multi=False),
        )

    async def update_many(
        self,
        condition: dict[str, Any],
        modifier: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> UpdateResult:
        operators = _operators(modifier)
        params = HookParams(condition=condition, modifier=modifier, options=dict(options or {}))
        return await self._mutate(
            HookEvent.BEFORE_UPDATE_MANY,
            HookEvent.AFTER_UPDATE_MANY,
            params,
            lambda: self._update(condition, operators, multi=True),
        )

    async def replace_one(
        self,
        condition: dict[str, Any],
        replacement: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> UpdateResult:
        document = _document(replacement)
        params = HookParams(condition=condition, replacement=replacement, options=dict(options or {}))
        return await self._mutate(
            HookEvent.BEFORE_REPLACE_ONE,
            HookEvent.AFTER_REPLACE_ONE,
            params,
            lambda: self._replace(condition, document),
        )

    async def upsert_one(
        self,
        condition: dict[str, Any],
        mutation: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> UpdateResult:
        """Update the first match, or insert when nothing matches.

        mutation may be an operator modifier or a replacement document.
        """
        parsed = _parse(mutation)
        if isinstance(parsed, Modifier):
            params = HookParams(condition=condition, modifier=mutation, options=dict(options or {}))
        else:
            params = HookParams(condition=condition, replacement=mutation, options=dict(options or {}))

        def apply() -> UpdateResult:
            params.is_updated = any(matches(doc, condition) for doc in self._documents)
            if params.is_updated:
                if isinstance(parsed, Modifier):
                    return self._update(condition, dict(parsed.operators), multi=False)
                return self._replace(condition, dict(parsed.document))

            if isinstance(parsed, Modifier):
                doc = seed_from_condition(condition)
                doc = apply_modifier(doc, dict(parsed.operators), condition)
            else:
                doc = copy.deepcopy(dict(parsed.document))
                if "_id" in condition and "_id" not in doc:
                    doc["_id"] = copy.deepcopy(condition["_id"])
            return UpdateResult(upserted_id=self._insert(doc))

        return await self._mutate(
            HookEvent.BEFORE_UPSERT_ONE, HookEvent.AFTER_UPSERT_ONE, params, apply
        )

    async def delete_one(
        self,
        condition: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> DeleteResult:
        params = HookParams(condition=condition, options=dict(options or {}))
        return await self._mutate(
            HookEvent.BEFORE_DELETE_ONE,
            HookEvent.AFTER_DELETE_ONE,
            params,
            lambda: self._delete(condition, multi=False),
        )

    async def delete_many(
        self,
        condition: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> DeleteResult:
        params = HookParams(condition=condition, options=dict(options or {}))
        return await self._mutate(
            HookEvent.BEFORE_DELETE_MANY,
            HookEvent.AFTER_DELETE_MANY,
            params,
            lambda: self._delete(condition, multi=True),
        )

    async def _mutate(
        self,
        before: HookEvent,
        after: HookEvent,
        params: HookParams,
        apply: Callable[[], Any],
    ) -> Any:
        await self.hooks.emit(before, params)
        params.result = apply()
        logger.debug("%s on `%s`: %s", before.value, self.name, params.result)
        await self.hooks.emit(after, params)
        return params.result

    # -------------------------------------------------------------------------
    # Storage primitives
    # -------------------------------------------------------------------------

    def _update(
        self, condition: dict[str, Any], modifier: dict[str, Any], multi: bool
    ) -> UpdateResult:
        result = UpdateResult()
        updated: dict[int, dict[str, Any]] = {}
        for index, doc in enumerate(self._documents):
            if not matches(doc, condition):
                continue
            result.matched_count += 1
            new_doc = apply_modifier(doc, modifier, condition)
            if new_doc != doc:
                updated[index] = new_doc
            if not multi:
                break

        # Nothing is written unless every matched document was updated
        for index, new_doc in updated.items():
            self._documents[index] = new_doc
        result.modified_count = len(updated)
        return result

    def _replace(self, condition: dict[str, Any], replacement: dict[str, Any]) -> UpdateResult:
        for index, doc in enumerate(self._documents):
            if not matches(doc, condition):
                continue
            new_doc = copy.deepcopy(replacement)
            new_doc["_id"] = doc["_id"]
            self._documents[index] = new_doc
            return UpdateResult(matched_count=1, modified_count=int(new_doc != doc))
        return UpdateResult()

    def _delete(self, condition: dict[str, Any], multi: bool) -> DeleteResult:
        kept: list[dict[str, Any]] = []
        deleted = 0
        for doc in self._documents:
            if (multi or deleted == 0) and matches(doc, condition):
                deleted += 1
            else:
                kept.append(doc)
        self._documents = kept
        return DeleteResult(deleted_count=deleted)


def _parse(mutation: dict[str, Any]) -> Modifier | Replacement:
    try:
        return parse_mutation(mutation)
    except ValueError as e:
        raise StorageError(str(e)) from e


def _operators(modifier: dict[str, Any]) -> dict[str, Any]:
    parsed = _parse(modifier)
    if not isinstance(parsed, Modifier):
        raise StorageError("Update requires an operator modifier such as $set")
    return dict(parsed.operators)


def _document(replacement: dict[str, Any]) -> dict[str, Any]:
    parsed = _parse(replacement)
    if not isinstance(parsed, Replacement):
        raise StorageError("Replacement document must not contain update operators")
    return dict(parsed.document)
