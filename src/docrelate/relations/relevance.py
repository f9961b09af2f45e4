"""Change relevance analysis.

Decides whether a pending update or replacement touches any owner field
that a relation embeds into its related collection.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from docrelate.relations.types import Modifier, Relation, Replacement, parse_mutation


def top_level_fields(fields: Iterable[str]) -> set[str]:
    """Reduce dotted paths to their first segment ("author.name" -> "author")."""
    return {name.split(".", 1)[0] for name in fields}


def modified_fields(mutation: Replacement | Modifier) -> set[str]:
    """Top-level field names a mutation writes to."""
    if isinstance(mutation, Replacement):
        return top_level_fields(mutation.document)
    if isinstance(mutation, Modifier):
        fields: set[str] = set()
        for updates in mutation.operators.values():
            fields |= top_level_fields(updates)
        return fields
    raise TypeError(f"Unsupported mutation type: {type(mutation).__name__}")


def is_relevant(mutation: Mapping[str, Any] | Replacement | Modifier, relation: Relation) -> bool:
    """Check whether a mutation touches a projected field other than the key.

    Args:
        mutation: Raw modifier/replacement mapping, or an already parsed one
        relation: The relation whose projection is compared

    Returns:
        True if at least one non-key projected field is modified
    """
    if not isinstance(mutation, (Replacement, Modifier)):
        mutation = parse_mutation(mutation)
    return not relation.relevant_fields.isdisjoint(modified_fields(mutation))
