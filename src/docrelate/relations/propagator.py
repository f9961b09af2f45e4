"""Cascade propagation into the related collection.

Runs after the owner mutation has been applied, always against the
identifier snapshot captured before it. Writes issued here pass
options={"relating": False} so relations declared on the related
collection do not cascade any further.
"""

import asyncio
import inspect
import logging
from typing import Any

from docrelate.persistence.adapter import DocumentCollection
from docrelate.relations.errors import CascadePartialFailureError
from docrelate.relations.types import DeletePolicy, Relation, UpdatePolicy

logger = logging.getLogger(__name__)

NON_RELATING = {"relating": False}


async def propagate_update(
    relation: Relation,
    related: DocumentCollection,
    identifiers: list[Any],
    policy: UpdatePolicy,
    concurrency: int | None = None,
) -> None:
    """Refresh the embedded value of every related document per identifier.

    Each identifier is refreshed by its own update_many; all run
    concurrently (optionally bounded by concurrency). Updates that
    committed are not rolled back when another one fails.

    Raises:
        CascadePartialFailureError: Some identifiers updated, some failed
        Exception: The first failure, when every identifier failed
    """
    if policy is UpdatePolicy.IGNORE or not identifiers:
        return
    if policy is not UpdatePolicy.CASCADE:
        raise ValueError(f"Unhandled update policy: {policy!r}")

    semaphore = asyncio.Semaphore(concurrency) if concurrency else None

    async def refresh(identifier: Any) -> None:
        if semaphore is None:
            await _refresh_one(relation, related, identifier)
            return
        async with semaphore:
            await _refresh_one(relation, related, identifier)

    results = await asyncio.gather(
        *(refresh(identifier) for identifier in identifiers),
        return_exceptions=True,
    )

    succeeded: list[Any] = []
    failures: list[tuple[Any, BaseException]] = []
    for identifier, result in zip(identifiers, results):
        if isinstance(result, BaseException):
            failures.append((identifier, result))
        else:
            succeeded.append(identifier)

    if not failures:
        logger.debug(
            "Cascaded %d %s update(s) into `%s`",
            len(succeeded),
            relation.key,
            related.name,
        )
        return
    if not succeeded:
        raise failures[0][1]

    error = CascadePartialFailureError(related.name, succeeded, failures)
    logger.warning("%s", error)
    raise error


async def _refresh_one(
    relation: Relation, related: DocumentCollection, identifier: Any
) -> None:
    value = relation.embedder(identifier)
    if inspect.isawaitable(value):
        value = await value
    await related.update_many(
        {relation.paths.identifier: identifier},
        {"$set": {relation.paths.modifier_path: value}},
        options=NON_RELATING,
    )


async def propagate_delete(
    relation: Relation,
    related: DocumentCollection,
    identifiers: list[Any],
    policy: DeletePolicy,
) -> None:
    """Apply the delete policy to related documents embedding identifiers.

    - cascade: delete the related documents
    - unset: remove the embedded field
    - pull: remove matching elements from the embedded array
    - restrict / ignore: nothing to do after the delete
    """
    if not identifiers:
        return

    condition = {relation.paths.identifier: {"$in": list(identifiers)}}

    if policy is DeletePolicy.CASCADE:
        result = await related.delete_many(condition, options=NON_RELATING)
        logger.debug(
            "Deleted %s document(s) from `%s` referencing %s",
            getattr(result, "deleted_count", "?"),
            related.name,
            identifiers,
        )
    elif policy is DeletePolicy.UNSET:
        await related.update_many(
            condition,
            {"$unset": {relation.paths.field: True}},
            options=NON_RELATING,
        )
    elif policy is DeletePolicy.PULL:
        await related.update_many(
            condition,
            {
                "$pull": {
                    relation.paths.field: {
                        relation.key: {"$in": list(identifiers)}
                    }
                }
            },
            options=NON_RELATING,
        )
    elif policy in (DeletePolicy.RESTRICT, DeletePolicy.IGNORE):
        return
    else:
        raise ValueError(f"Unhandled delete policy: {policy!r}")
