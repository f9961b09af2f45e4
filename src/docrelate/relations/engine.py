"""Relation hook engine.

Wires before/after hooks on an owner collection for each declared
relation. Before hooks snapshot the matched owner identifiers into the
call's OperationContext (and enforce restrict-policy deletes); after
hooks read that snapshot and propagate into the related collection.

Per call: before-snapshot -> storage mutation -> after-propagate. An
exception at any stage propagates to the caller and skips the rest.
"""

import logging
from collections.abc import Mapping

from docrelate.hooks import HookEvent, HookParams, relating_hook
from docrelate.persistence.adapter import DocumentCollection
from docrelate.relations.propagator import propagate_delete, propagate_update
from docrelate.relations.relevance import is_relevant
from docrelate.relations.resolver import resolve_identifiers
from docrelate.relations.restriction import check_restriction
from docrelate.relations.types import DeletePolicy, Relation, UpdatePolicy

logger = logging.getLogger(__name__)

SNAPSHOT_DELETE_POLICIES = (
    DeletePolicy.RESTRICT,
    DeletePolicy.CASCADE,
    DeletePolicy.UNSET,
    DeletePolicy.PULL,
)


class RelationHookEngine:
    """Keeps one related collection consistent with one relation's owner.

    Args:
        relation: The relation descriptor (owner, key, paths, policies)
        related: The collection embedding the owner documents
        concurrency: Optional bound on concurrent per-identifier cascades
    """

    def __init__(
        self,
        relation: Relation,
        related: DocumentCollection,
        concurrency: int | None = None,
    ):
        self.relation = relation
        self.related = related
        self.concurrency = concurrency

    def register(self) -> None:
        """Attach this relation's hooks to the owner collection."""
        owner = self.relation.owner
        before_update = relating_hook(self.before_update)
        after_update = relating_hook(self.after_update)
        before_delete = relating_hook(self.before_delete)
        after_delete = relating_hook(self.after_delete)

        owner.on(HookEvent.BEFORE_UPDATE_ONE, before_update)
        owner.on(HookEvent.BEFORE_REPLACE_ONE, before_update)
        owner.on(HookEvent.BEFORE_UPSERT_ONE, before_update)
        owner.on(HookEvent.BEFORE_UPDATE_MANY, before_update)

        owner.on(HookEvent.AFTER_UPDATE_ONE, after_update)
        owner.on(HookEvent.AFTER_REPLACE_ONE, after_update)
        owner.on(HookEvent.AFTER_UPSERT_ONE, relating_hook(self.after_upsert))
        owner.on(HookEvent.AFTER_UPDATE_MANY, after_update)

        owner.on(HookEvent.BEFORE_DELETE_ONE, before_delete)
        owner.on(HookEvent.BEFORE_DELETE_MANY, before_delete)
        owner.on(HookEvent.AFTER_DELETE_ONE, after_delete)
        owner.on(HookEvent.AFTER_DELETE_MANY, after_delete)

    def _update_policy(self, params: HookParams) -> UpdatePolicy:
        return self.relation.update_policy(replace=params.replacement is not None)

    def _touches_relation(self, params: HookParams) -> bool:
        mutation = params.mutation
        return mutation is not None and is_relevant(mutation, self.relation)

    async def before_update(self, params: HookParams) -> None:
        """Snapshot owner identifiers an update/replace/upsert will touch."""
        meta = params.meta
        if meta.modified_identifiers is None:
            meta.modified_identifiers = {}

        key = self.relation.key
        if (
            self._update_policy(params) is UpdatePolicy.CASCADE
            and key not in meta.modified_identifiers
            and self._touches_relation(params)
        ):
            meta.modified_identifiers[key] = await resolve_identifiers(
                self.relation, params.condition
            )

    async def after_update(self, params: HookParams) -> None:
        """Cascade the committed update into the related collection."""
        snapshots = params.meta.modified_identifiers or {}
        identifiers = snapshots.get(self.relation.key) or []
        if not identifiers or not self._touches_relation(params):
            return

        await propagate_update(
            self.relation,
            self.related,
            identifiers,
            self._update_policy(params),
            concurrency=self.concurrency,
        )

    async def after_upsert(self, params: HookParams) -> None:
        """Cascade only when the upsert updated an existing document."""
        if not params.is_updated:
            return
        await self.after_update(params)

    async def before_delete(self, params: HookParams) -> None:
        """Snapshot identifiers about to be deleted; enforce restrict."""
        policy = self.relation.on_delete
        if policy not in SNAPSHOT_DELETE_POLICIES:
            return

        meta = params.meta
        if meta.deleted_identifiers is None:
            meta.deleted_identifiers = {}

        key = self.relation.key
        if key not in meta.deleted_identifiers:
            meta.deleted_identifiers[key] = await resolve_identifiers(
                self.relation, params.condition
            )

        if policy is DeletePolicy.RESTRICT:
            await check_restriction(
                self.relation, self.related, meta.deleted_identifiers[key]
            )

    async def after_delete(self, params: HookParams) -> None:
        """Apply the delete policy to documents referencing deleted owners."""
        snapshots = params.meta.deleted_identifiers or {}
        identifiers = snapshots.get(self.relation.key) or []
        if not identifiers:
            return

        await propagate_delete(
            self.relation, self.related, identifiers, self.relation.on_delete
        )


def setup_relations(
    related: DocumentCollection,
    relations: Mapping[str, Relation],
    concurrency: int | None = None,
) -> dict[str, RelationHookEngine]:
    """Wire hooks for every relation a related collection declares.

    Args:
        related: The collection embedding owner documents
        relations: Embedded field name -> relation descriptor
        concurrency: Optional bound on concurrent per-identifier cascades

    Returns:
        Field name -> registered engine
    """
    engines: dict[str, RelationHookEngine] = {}
    for field_name, relation in relations.items():
        engine = RelationHookEngine(relation, related, concurrency=concurrency)
        engine.register()
        engines[field_name] = engine
        logger.debug(
            "Registered relation `%s.%s` -> `%s` (update=%s, delete=%s)",
            related.name,
            field_name,
            relation.owner.name,
            relation.on_update.value,
            relation.on_delete.value,
        )
    return engines
