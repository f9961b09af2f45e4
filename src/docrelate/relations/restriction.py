"""Delete restriction checks for restrict-policy relations."""

from typing import Any

from docrelate.persistence.adapter import DocumentCollection
from docrelate.relations.errors import RestrictionError
from docrelate.relations.types import Relation


async def check_restriction(
    relation: Relation,
    related: DocumentCollection,
    identifiers: list[Any],
) -> None:
    """Fail if any related document still embeds one of the identifiers.

    Raises:
        RestrictionError: Naming the first related document found
    """
    if not identifiers:
        return

    doc = await related.find_one(
        {relation.paths.identifier: {"$in": list(identifiers)}}, {"_id": 1}
    )
    if doc is not None:
        raise RestrictionError(
            owner_collection=relation.owner.name,
            related_collection=related.name,
            field_path=relation.paths.field,
            related_id=doc.get("_id"),
        )
