"""Capability contract required of objects and types outside the core.

The Dumper and Loader never reflect over associations or talk to a database.
Everything they need from the surrounding persistence layer is expressed by
these protocols:

- **Identifiable**: ``replicant_id()`` returns the ``(type_name, id)`` pair
  used to memoize dumps and to build references.
- **Dumpable**: ``dump_replicant(dumper, **options)`` decides which related
  objects to dump, in what order, and calls ``dumper.write(...)`` for itself
  at the point it chooses (usually after what it references and before what
  references it).
- **Loadable**: a type-level ``load_replicant(type_name, remote_id,
  attributes)`` that creates or updates a record and returns
  ``(local_id, instance)``.

Aliases (supertype names a loaded id should also be registered under) are
supplied when a Loadable is registered, see `replicant.registry`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from replicant.model import Attributes, RemoteId

if TYPE_CHECKING:
    from replicant.dumper import Dumper


@runtime_checkable
class Identifiable(Protocol):
    def replicant_id(self) -> tuple[str, RemoteId]: ...


@runtime_checkable
class Dumpable(Protocol):
    def dump_replicant(self, dumper: "Dumper", **options: Any) -> None: ...


@runtime_checkable
class Loadable(Protocol):
    def load_replicant(self, type_name: str, remote_id: RemoteId, attributes: Attributes) -> tuple[Any, Any]: ...
