"""End-to-end tests: dump a source object graph, load it into another store.

This module verifies:
- A single record produces exactly one line and one load
- References and reference lists are rewritten to destination ids
- A subtype record referenced through its supertype resolves via aliases
- A find-or-create load capability reuses existing destination rows
- Cyclic graphs dump, and load with the forward reference left unresolved
"""

import io
import json

from replicant.dumper import Dumper
from replicant.loader import Loader
from replicant.registry import TypeRegistry

from tests.conftest import (
    Collector,
    InMemoryStore,
    Issue,
    Label,
    Node,
    PublicRepository,
    Repository,
    User,
)


def replicate(*objects, registry: TypeRegistry) -> tuple[str, Loader]:
    """Dump `objects` to a string and load the result with `registry`."""
    stream = io.StringIO()
    with Dumper(stream) as dumper:
        dumper.dump(*objects)
    data = stream.getvalue()
    loader = Loader(registry)
    with loader:
        loader.read(io.StringIO(data))
    return data, loader


class TestSingleRecord:
    def test_one_line_one_load(self, store_registry: TypeRegistry, store: InMemoryStore) -> None:
        data, loader = replicate(Label(1, "a"), registry=store_registry)

        assert data.splitlines() == ['["Label", 1, {"name": "a"}]']
        local_id = loader.keymap[("Label", 1)]
        assert store.row("labels", local_id) == {"name": "a"}
        assert loader.stats() == {"Label": 1}


class TestReferences:
    def test_graph_round_trip(self, store_registry: TypeRegistry, store: InMemoryStore) -> None:
        owner = User(1234, "joe")
        repository = Repository(10, "widgets", owner)
        labels = [Label(333, "bug"), Label(444, "ui")]
        Issue(100, "broken", repository, labels)

        data, loader = replicate(repository, registry=store_registry)

        types = [json.loads(line)[0] for line in data.splitlines()]
        assert types == ["User", "Repository", "Label", "Label", "Issue"]

        keymap = loader.keymap
        repository_row = store.row("repositories", keymap[("Repository", 10)])
        assert repository_row == {"name": "widgets", "owner_id": keymap[("User", 1234)]}
        issue_row = store.row("issues", keymap[("Issue", 100)])
        assert issue_row == {
            "title": "broken",
            "repository_id": keymap[("Repository", 10)],
            "label_ids": [keymap[("Label", 333)], keymap[("Label", 444)]],
        }

    def test_reference_list_order(self, store_registry: TypeRegistry, store: InMemoryStore) -> None:
        repository = Repository(1, "r", User(1, "joe"))
        labels = [Label(i, f"label-{i}") for i in range(10)]
        Issue(1, "many labels", repository, list(reversed(labels)))

        _, loader = replicate(repository, registry=store_registry)

        issue_row = store.row("issues", loader.keymap[("Issue", 1)])
        expected = [loader.keymap[("Label", i)] for i in reversed(range(10))]
        assert issue_row["label_ids"] == expected
        assert [store.row("labels", i)["name"] for i in issue_row["label_ids"]] == [
            f"label-{i}" for i in reversed(range(10))
        ]

    def test_subtype_resolved_through_alias(self, store_registry: TypeRegistry, store: InMemoryStore) -> None:
        """Issue declares a Repository reference; the record is a PublicRepository."""
        repository = PublicRepository(10, "public", User(1, "joe"))
        Issue(100, "broken", repository)

        data, loader = replicate(repository, registry=store_registry)

        assert '"PublicRepository", 10' in data
        local_id = loader.keymap[("PublicRepository", 10)]
        assert loader.keymap[("Repository", 10)] == local_id
        assert store.row("issues", loader.keymap[("Issue", 100)])["repository_id"] == local_id


class TestDestinationState:
    def test_natural_key_reuses_existing_row(self, store_registry: TypeRegistry, store: InMemoryStore) -> None:
        existing_id = store.insert("users", {"login": "joe"})
        repository = Repository(10, "widgets", User(1234, "joe"))

        _, loader = replicate(repository, registry=store_registry)

        assert loader.keymap[("User", 1234)] == existing_id
        assert len(store.tables["users"]) == 1
        repository_row = store.row("repositories", loader.keymap[("Repository", 10)])
        assert repository_row["owner_id"] == existing_id

    def test_listener_sees_loaded_objects(self, store_registry: TypeRegistry) -> None:
        stream = io.StringIO()
        Dumper(stream).dump(User(1, "joe"))
        loader = Loader(store_registry)
        collector = loader.listen(Collector())

        loader.read(io.StringIO(stream.getvalue()))

        assert collector.tuples == [("User", 1, {"login": "joe"}, {"login": "joe"})]


class TestCycles:
    def test_cycle_round_trip(self, store_registry: TypeRegistry, store: InMemoryStore) -> None:
        """The first node's reference points forward and is loaded as None."""
        a, b = Node(1, "a"), Node(2, "b")
        a.peer, b.peer = b, a

        data, loader = replicate(a, registry=store_registry)

        assert len(data.splitlines()) == 2
        a_row = store.row("nodes", loader.keymap[("Node", 1)])
        b_row = store.row("nodes", loader.keymap[("Node", 2)])
        assert a_row == {"name": "a", "peer_id": None}
        assert b_row == {"name": "b", "peer_id": loader.keymap[("Node", 1)]}
