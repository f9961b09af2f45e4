"""Load relation metadata from YAML files and build Relation descriptors."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from docrelate.config import RelationSettings
from docrelate.persistence.adapter import DocumentCollection
from docrelate.relations.engine import RelationHookEngine, setup_relations
from docrelate.relations.errors import RelationConfigError
from docrelate.relations.types import (
    DeletePolicy,
    Embedder,
    Relation,
    RelationPaths,
    UpdatePolicy,
    projection_embedder,
)


@dataclass
class PathsConfig:
    """Optional path overrides for a relation."""

    identifier: str | None = None
    field: str | None = None
    modifier: str | None = None


@dataclass
class RelationConfig:
    """One relation field from YAML metadata."""

    field: str  # Field on the related collection embedding the owner
    collection: str  # Owner collection name
    key: str = "_id"
    projection: list[str] = field(default_factory=list)
    many: bool = False  # Embedded as an array of owner documents
    paths: PathsConfig = field(default_factory=PathsConfig)
    on_update: str = "ignore"  # "cascade" | "ignore"
    on_replace: str | None = None  # Defaults to on_update
    on_delete: str = "ignore"  # "cascade" | "restrict" | "unset" | "pull" | "ignore"

    def resolved_paths(self) -> RelationPaths:
        """Fill in path defaults derived from the field name and key."""
        field_path = self.paths.field or self.field
        default_modifier = f"{field_path}.$" if self.many else field_path
        return RelationPaths(
            identifier=self.paths.identifier or f"{field_path}.{self.key}",
            field=field_path,
            modifier=self.paths.modifier or default_modifier,
        )


@dataclass
class RelationSetConfig:
    """All relations declared by one related collection."""

    collection: str
    relations: dict[str, RelationConfig] = field(default_factory=dict)
    source: Path | None = None


class RelationLoader:
    """Loads relation definitions from <relations_path>/*.yaml."""

    def __init__(self, relations_path: Path):
        self.relations_path = relations_path
        self.relation_sets: dict[str, RelationSetConfig] = {}

    def load_all(self) -> None:
        """Load every relation file, in file name order."""
        if not self.relations_path.exists():
            return

        for yaml_file in sorted(self.relations_path.glob("*.yaml")):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
            if not data or "collection" not in data:
                continue

            relation_set = self._resolve_relation_set(data, yaml_file)
            existing = self.relation_sets.get(relation_set.collection)
            if existing is not None:
                raise RelationConfigError(
                    f"Collection '{relation_set.collection}' declares relations in both "
                    f"'{existing.source}' and '{yaml_file}'"
                )
            self.relation_sets[relation_set.collection] = relation_set

    def get_relation_set(self, collection: str) -> RelationSetConfig | None:
        return self.relation_sets.get(collection)

    def list_collections(self) -> list[str]:
        return sorted(self.relation_sets)

    def _resolve_relation_set(self, data: dict, source: Path) -> RelationSetConfig:
        collection = data["collection"]
        relations = {
            name: self._resolve_relation(name, relation_data or {}, collection)
            for name, relation_data in (data.get("relations") or {}).items()
        }
        return RelationSetConfig(collection=collection, relations=relations, source=source)

    def _resolve_relation(self, name: str, data: dict, collection: str) -> RelationConfig:
        """Convert one relation dict to a RelationConfig."""
        if "collection" not in data:
            raise RelationConfigError(
                f"Relation '{collection}.{name}' has no owner collection"
            )

        projection = data.get("projection", [])
        if isinstance(projection, Mapping):
            projection = [key for key, flag in projection.items() if flag]

        paths_data = data.get("paths") or {}
        config = RelationConfig(
            field=name,
            collection=data["collection"],
            key=data.get("key", "_id"),
            projection=list(projection),
            many=bool(data.get("many", False)),
            paths=PathsConfig(
                identifier=paths_data.get("identifier"),
                field=paths_data.get("field"),
                modifier=paths_data.get("modifier"),
            ),
            on_update=data.get("onUpdate", "ignore"),
            on_replace=data.get("onReplace"),
            on_delete=data.get("onDelete", "ignore"),
        )

        # Policies are checked on load
        _update_policy(config.on_update, collection, name)
        if config.on_replace is not None:
            _update_policy(config.on_replace, collection, name)
        _delete_policy(config.on_delete, collection, name)
        return config


def _update_policy(value: str, collection: str, name: str) -> UpdatePolicy:
    try:
        return UpdatePolicy(value)
    except ValueError:
        raise RelationConfigError(
            f"Relation '{collection}.{name}' has invalid update policy '{value}'. "
            f"Expected one of: {', '.join(p.value for p in UpdatePolicy)}"
        ) from None


def _delete_policy(value: str, collection: str, name: str) -> DeletePolicy:
    try:
        return DeletePolicy(value)
    except ValueError:
        raise RelationConfigError(
            f"Relation '{collection}.{name}' has invalid delete policy '{value}'. "
            f"Expected one of: {', '.join(p.value for p in DeletePolicy)}"
        ) from None


def build_relations(
    relation_set: RelationSetConfig,
    collections: Mapping[str, DocumentCollection],
    embedders: Mapping[str, Embedder] | None = None,
) -> dict[str, Relation]:
    """Turn a relation set into Relation descriptors.

    Args:
        relation_set: Loaded configuration for one related collection
        collections: Collection name -> collection handle
        embedders: Optional field name -> embedder overrides; fields without
            one embed the owner's projected fields

    Raises:
        RelationConfigError: If an owner collection is not available
    """
    embedders = embedders or {}
    relations: dict[str, Relation] = {}

    for name, config in relation_set.relations.items():
        owner = collections.get(config.collection)
        if owner is None:
            raise RelationConfigError(
                f"Relation '{relation_set.collection}.{name}' references unknown "
                f"collection '{config.collection}'"
            )

        on_update = _update_policy(config.on_update, relation_set.collection, name)
        on_replace = (
            _update_policy(config.on_replace, relation_set.collection, name)
            if config.on_replace is not None
            else None
        )
        relations[name] = Relation(
            key=config.key,
            owner=owner,
            paths=config.resolved_paths(),
            projection=frozenset(config.projection),
            embedder=embedders.get(name)
            or projection_embedder(owner, config.key, config.projection),
            on_update=on_update,
            on_replace=on_replace,
            on_delete=_delete_policy(config.on_delete, relation_set.collection, name),
        )

    return relations


def setup_from_metadata(
    loader: RelationLoader,
    collections: Mapping[str, DocumentCollection],
    settings: RelationSettings | None = None,
    embedders: Mapping[str, Mapping[str, Embedder]] | None = None,
) -> dict[str, dict[str, RelationHookEngine]]:
    """Wire hooks for every relation set the loader found.

    Args:
        loader: A RelationLoader after load_all()
        collections: Collection name -> collection handle
        settings: Optional settings (cascade concurrency)
        embedders: Optional related collection -> field -> embedder overrides

    Returns:
        Related collection name -> field name -> registered engine
    """
    concurrency = settings.cascade_concurrency if settings else None
    embedders = embedders or {}
    engines: dict[str, dict[str, RelationHookEngine]] = {}

    for name in loader.list_collections():
        relation_set = loader.relation_sets[name]
        related = collections.get(name)
        if related is None:
            raise RelationConfigError(
                f"Relations declared for unknown collection '{name}'"
            )
        relations = build_relations(relation_set, collections, embedders.get(name))
        engines[name] = setup_relations(related, relations, concurrency=concurrency)

    return engines
