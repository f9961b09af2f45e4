"""Identifier resolution against the owner collection."""

import logging
from typing import Any

from docrelate.relations.types import Relation

logger = logging.getLogger(__name__)


async def resolve_identifiers(relation: Relation, condition: dict[str, Any]) -> list[Any]:
    """Return the key of every owner document currently matching condition.

    Only the key field is projected. Storage order is preserved, and any
    StorageError from the owner collection propagates unchanged.
    """
    docs = await relation.owner.find(condition, {relation.key: 1})
    identifiers = [doc.get(relation.key) for doc in docs]
    logger.debug(
        "Resolved %d %s identifier(s) in `%s` for %s",
        len(identifiers),
        relation.key,
        relation.owner.name,
        condition,
    )
    return identifiers
