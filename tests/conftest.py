"""Test fixtures and a minimal two-store test domain.

This module provides:
- Record types built on ReplicantRecord (Thing, SpecialThing) for unit tests
- A small source-side object model (User, Repository, Label, Issue) whose
  dump_replicant() implementations dump what they reference first, as a real
  mapping layer would
- Node / EagerNode objects that reference each other, for cycle tests
- InMemoryStore and StoreLoadable, a destination store with its own ids and
  optional natural-key lookup
- A Collector listener and pytest fixtures wiring it all together
"""

import itertools
from datetime import datetime, timezone
from typing import Any

import pytest

from replicant.dumper import Dumper
from replicant.emitter import Listener
from replicant.loader import Loader
from replicant.model import Reference, ReferenceList
from replicant.record import ReplicantRecord
from replicant.registry import TypeRegistry

# --- Record types ---


class Thing(ReplicantRecord):
    """Minimal record type used across dumper and loader tests."""


class SpecialThing(Thing):
    """Subclass of Thing; its loaded ids are also registered as Thing."""


def make_thing(**attributes: Any) -> Thing:
    """Create a Thing with a few default attributes, overridable by keyword."""
    defaults = {
        "number": 123,
        "string": "hello",
        "time": datetime(2011, 9, 9, 18, 12, 31, tzinfo=timezone.utc),
    }
    return Thing(attributes={**defaults, **attributes})


class Collector(Listener):
    """Listener recording every tuple it sees and every completion call."""

    def __init__(self) -> None:
        self.tuples: list[tuple[str, Any, dict, Any]] = []
        self.completed = 0

    def on_tuple(self, type, id, attributes, source_object) -> None:
        self.tuples.append((type, id, dict(attributes), source_object))

    def on_complete(self) -> None:
        self.completed += 1

    @property
    def identities(self) -> list[tuple[str, Any]]:
        return [(type, id) for type, id, _, _ in self.tuples]

    @property
    def objects(self) -> list[Any]:
        return [obj for _, _, _, obj in self.tuples]


# --- Source-side object model ---


class User:
    def __init__(self, id: int, login: str) -> None:
        self.id = id
        self.login = login

    def replicant_id(self) -> tuple[str, int]:
        return ("User", self.id)

    def dump_replicant(self, dumper: Dumper, **options: Any) -> None:
        dumper.write("User", self.id, {"login": self.login}, self)


class Label:
    def __init__(self, id: int, name: str) -> None:
        self.id = id
        self.name = name

    def replicant_id(self) -> tuple[str, int]:
        return ("Label", self.id)

    def dump_replicant(self, dumper: Dumper, **options: Any) -> None:
        dumper.write("Label", self.id, {"name": self.name}, self)


class Repository:
    """Belongs to an owner; has many issues.

    Dumps its owner before itself and its issues after, unless dumped with
    ``include_issues=False``.
    """

    replicant_type = "Repository"

    def __init__(self, id: int, name: str, owner: User) -> None:
        self.id = id
        self.name = name
        self.owner = owner
        self.issues: list["Issue"] = []

    def replicant_id(self) -> tuple[str, int]:
        return (self.replicant_type, self.id)

    def dump_replicant(self, dumper: Dumper, **options: Any) -> None:
        dumper.dump(self.owner)
        attributes = {"name": self.name, "owner_id": Reference("User", self.owner.id)}
        dumper.write(self.replicant_type, self.id, attributes, self)
        if options.get("include_issues", True):
            dumper.dump(self.issues, **options)


class PublicRepository(Repository):
    replicant_type = "PublicRepository"


class Issue:
    def __init__(self, id: int, title: str, repository: Repository, labels: list[Label] = ()) -> None:
        self.id = id
        self.title = title
        self.repository = repository
        self.labels = list(labels)
        repository.issues.append(self)

    def replicant_id(self) -> tuple[str, int]:
        return ("Issue", self.id)

    def dump_replicant(self, dumper: Dumper, **options: Any) -> None:
        dumper.dump(self.repository, **options)
        dumper.dump(self.labels)
        attributes = {
            "title": self.title,
            # declared association type; the referenced record may be a subtype
            "repository_id": Reference("Repository", self.repository.id),
            "label_ids": ReferenceList("Label", [label.id for label in self.labels]),
        }
        dumper.write("Issue", self.id, attributes, self)


class Node:
    """Writes itself, then dumps its peer. Peers may point back."""

    def __init__(self, id: int, name: str) -> None:
        self.id = id
        self.name = name
        self.peer: "Node | None" = None

    def replicant_id(self) -> tuple[str, int]:
        return ("Node", self.id)

    def attributes(self) -> dict:
        peer_id = Reference("Node", self.peer.id) if self.peer is not None else None
        return {"name": self.name, "peer_id": peer_id}

    def dump_replicant(self, dumper: Dumper, **options: Any) -> None:
        dumper.write("Node", self.id, self.attributes(), self)
        dumper.dump(self.peer)


class EagerNode(Node):
    """Dumps its peer before writing itself."""

    def dump_replicant(self, dumper: Dumper, **options: Any) -> None:
        dumper.dump(self.peer)
        dumper.write("Node", self.id, self.attributes(), self)


# --- Destination store ---


class InMemoryStore:
    """Destination store with its own id sequence, shared across tables."""

    def __init__(self, first_id: int = 1000) -> None:
        self.tables: dict[str, dict[int, dict]] = {}
        self._ids = itertools.count(first_id)

    def insert(self, table: str, row: dict) -> int:
        new_id = next(self._ids)
        self.tables.setdefault(table, {})[new_id] = dict(row)
        return new_id

    def update(self, table: str, row_id: int, row: dict) -> None:
        self.tables[table][row_id].update(row)

    def find_by(self, table: str, **conditions: Any) -> int | None:
        for row_id, row in self.tables.get(table, {}).items():
            if all(row.get(key) == value for key, value in conditions.items()):
                return row_id
        return None

    def row(self, table: str, row_id: int) -> dict:
        return self.tables[table][row_id]


class StoreLoadable:
    """Load capability writing rows into an InMemoryStore table.

    With a natural key, an existing row with the same key values is updated
    instead of inserting a new one.
    """

    def __init__(self, store: InMemoryStore, table: str, natural_key: tuple[str, ...] = ()) -> None:
        self.store = store
        self.table = table
        self.natural_key = natural_key

    def load_replicant(self, type_name: str, remote_id: Any, attributes: dict) -> tuple[int, dict]:
        existing = None
        if self.natural_key:
            existing = self.store.find_by(self.table, **{key: attributes.get(key) for key in self.natural_key})
        if existing is not None:
            self.store.update(self.table, existing, attributes)
            return existing, self.store.row(self.table, existing)
        new_id = self.store.insert(self.table, attributes)
        return new_id, self.store.row(self.table, new_id)


# --- Fixtures ---


@pytest.fixture
def registry() -> TypeRegistry:
    """Provide a fresh registry with the record types registered.

    Each test receives its own registry, ensuring test isolation from the
    process-wide default registry.
    """
    registry = TypeRegistry()
    registry.register(Thing)
    registry.register(SpecialThing)
    return registry


@pytest.fixture
def store() -> InMemoryStore:
    """Provide an empty destination store."""
    return InMemoryStore()


@pytest.fixture
def store_registry(store: InMemoryStore) -> TypeRegistry:
    """Provide a registry loading the source object model into `store`."""
    registry = TypeRegistry()
    registry.register("User", StoreLoadable(store, "users", natural_key=("login",)))
    registry.register("Label", StoreLoadable(store, "labels"))
    registry.register("Repository", StoreLoadable(store, "repositories"))
    registry.register("PublicRepository", StoreLoadable(store, "repositories"), aliases=("Repository",))
    registry.register("Issue", StoreLoadable(store, "issues"))
    registry.register("Node", StoreLoadable(store, "nodes"))
    return registry


@pytest.fixture
def dumper() -> Dumper:
    """Provide a Dumper with no listeners."""
    return Dumper()


@pytest.fixture
def loader(registry: TypeRegistry) -> Loader:
    """Provide a Loader bound to the record-type registry."""
    return Loader(registry)


@pytest.fixture
def collector() -> Collector:
    return Collector()
