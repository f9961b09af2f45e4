"""Core types for docrelate relations.

- UpdatePolicy / DeletePolicy: what happens to related documents
- RelationPaths: where the owner is embedded in the related collection
- Relation: one declared edge between an owner and a related collection
- Replacement / Modifier: tagged view of a pending mutation
"""

from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from docrelate.persistence.adapter import DocumentCollection

# Embedder signature: identifier -> embedded value (plain or awaitable)
Embedder = Callable[[Any], Any | Awaitable[Any]]


class UpdatePolicy(Enum):
    """Behavior when embedded owner fields change (update or replace)."""

    CASCADE = "cascade"
    IGNORE = "ignore"


class DeletePolicy(Enum):
    """Behavior when an embedded owner document is deleted."""

    CASCADE = "cascade"
    RESTRICT = "restrict"
    UNSET = "unset"
    PULL = "pull"
    IGNORE = "ignore"


@dataclass(frozen=True)
class RelationPaths:
    """Field paths on the related collection.

    Attributes:
        identifier: Path holding the owner key (e.g. "author._id")
        field: Path of the embedded value, unset or pulled on delete
        modifier: Path written on cascade update; defaults to field
            (use "authors.$" to target the matched array element)
    """

    identifier: str
    field: str
    modifier: str | None = None

    @property
    def modifier_path(self) -> str:
        return self.modifier or self.field


@dataclass(frozen=True)
class Relation:
    """A declared relation between an owner collection and a related one.

    The projection always contains the key; it is added on construction
    when missing. When on_replace is not given it follows on_update.
    """

    key: str
    owner: "DocumentCollection"
    paths: RelationPaths
    embedder: Embedder
    projection: frozenset[str] = field(default_factory=frozenset)
    on_update: UpdatePolicy = UpdatePolicy.IGNORE
    on_replace: UpdatePolicy | None = None
    on_delete: DeletePolicy = DeletePolicy.IGNORE

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "projection", frozenset(self.projection) | {self.key}
        )
        if self.on_replace is None:
            object.__setattr__(self, "on_replace", self.on_update)

    @property
    def relevant_fields(self) -> frozenset[str]:
        """Projected owner fields other than the key."""
        return self.projection - {self.key}

    def update_policy(self, replace: bool = False) -> UpdatePolicy:
        """The policy governing an update, or a replace when replace=True."""
        if replace:
            return self.on_replace
        return self.on_update


@dataclass(frozen=True)
class Replacement:
    """A full replacement document."""

    document: Mapping[str, Any]


@dataclass(frozen=True)
class Modifier:
    """An operator modifier such as {"$set": {...}, "$unset": {...}}."""

    operators: Mapping[str, Mapping[str, Any]]


Mutation = Replacement | Modifier


def parse_mutation(mutation: Mapping[str, Any]) -> Mutation:
    """Classify a raw mutation mapping as a replacement or a modifier.

    Raises:
        ValueError: If operator and plain field keys are mixed
    """
    operator_keys = [key for key in mutation if key.startswith("$")]
    if not operator_keys:
        return Replacement(mutation)
    if len(operator_keys) != len(mutation):
        raise ValueError(
            "Mutation mixes update operators with plain fields: "
            f"{sorted(mutation)}"
        )
    return Modifier(mutation)


def projection_embedder(
    owner: "DocumentCollection", key: str, projection: Iterable[str]
) -> Embedder:
    """Build an embedder that snapshots the owner's projected fields."""
    fields: dict[str, int] = {name: 1 for name in sorted(set(projection) | {key})}
    if "_id" not in fields:
        fields["_id"] = 0

    async def embed(identifier: Any) -> dict[str, Any] | None:
        return await owner.find_one({key: identifier}, fields)

    return embed
