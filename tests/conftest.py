"""Shared fixtures: an `authors` owner collection and embedding collections."""

import pytest

from docrelate.hooks import HookEvent
from docrelate.persistence import MemoryCollection
from docrelate.relations import (
    DeletePolicy,
    Relation,
    RelationPaths,
    UpdatePolicy,
    projection_embedder,
)


@pytest.fixture
def authors():
    return MemoryCollection(
        "authors",
        [
            {"_id": 1, "name": "A", "country": "UK"},
            {"_id": 2, "name": "Bea", "country": "FR"},
            {"_id": 3, "name": "Cy", "country": "US"},
        ],
    )


@pytest.fixture
def books():
    """Books embedding a single author snapshot."""
    return MemoryCollection(
        "books",
        [
            {"_id": "b1", "title": "First", "author": {"_id": 1, "name": "A"}},
            {"_id": "b2", "title": "Second", "author": {"_id": 1, "name": "A"}},
            {"_id": "b3", "title": "Third", "author": {"_id": 2, "name": "Bea"}},
            {"_id": "b4", "title": "Fourth", "author": {"_id": 3, "name": "Cy"}},
        ],
    )


@pytest.fixture
def anthologies():
    """Books embedding an array of author snapshots."""
    return MemoryCollection(
        "anthologies",
        [
            {
                "_id": "a1",
                "authors": [{"_id": 1, "name": "A"}, {"_id": 2, "name": "Bea"}],
            },
            {"_id": "a2", "authors": [{"_id": 2, "name": "Bea"}]},
            {"_id": "a3", "authors": [{"_id": 3, "name": "Cy"}]},
        ],
    )


def make_author_relation(authors, **overrides) -> Relation:
    """Relation for books.author -> authors._id embedding the author's name."""
    values = dict(
        key="_id",
        owner=authors,
        paths=RelationPaths(identifier="author._id", field="author"),
        projection=frozenset({"name"}),
        embedder=projection_embedder(authors, "_id", {"name"}),
        on_update=UpdatePolicy.CASCADE,
        on_delete=DeletePolicy.IGNORE,
    )
    values.update(overrides)
    return Relation(**values)


def make_authors_array_relation(authors, **overrides) -> Relation:
    """Relation for anthologies.authors[] -> authors._id."""
    values = dict(
        key="_id",
        owner=authors,
        paths=RelationPaths(
            identifier="authors._id", field="authors", modifier="authors.$"
        ),
        projection=frozenset({"name"}),
        embedder=projection_embedder(authors, "_id", {"name"}),
        on_update=UpdatePolicy.CASCADE,
        on_delete=DeletePolicy.PULL,
    )
    values.update(overrides)
    return Relation(**values)


class WriteRecorder:
    """Records every update/delete issued against a collection."""

    EVENTS = (
        HookEvent.BEFORE_UPDATE_ONE,
        HookEvent.BEFORE_UPDATE_MANY,
        HookEvent.BEFORE_REPLACE_ONE,
        HookEvent.BEFORE_UPSERT_ONE,
        HookEvent.BEFORE_DELETE_ONE,
        HookEvent.BEFORE_DELETE_MANY,
    )

    def __init__(self, collection):
        self.writes = []
        for event in self.EVENTS:
            collection.on(event, self._recorder(event))

    def _recorder(self, event):
        async def record(params):
            self.writes.append((event, params.condition, params.mutation))

        return record


@pytest.fixture
def book_writes(books):
    return WriteRecorder(books)
