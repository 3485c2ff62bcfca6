"""Load replicants in a streaming fashion.

The Loader reads ``(type, id, attributes)`` tuples and creates records in the
destination store through the load capability registered for each type.

Tuples are expected to arrive in order such that a record referenced via
foreign key always precedes the referencing record. The Loader maintains a
keymap from ids in the dumping store to ids in the destination store, and
uses it to rewrite every Reference / ReferenceList placeholder before a
record is loaded. The Loader never looks ahead or backtracks: a reference to
a record that has not been fed yet cannot be resolved.

Example load session:
    ```python
    with Loader(registry) as loader:
        loader.log_to(sys.stderr)
        loader.read(sys.stdin)
    ```
"""

from __future__ import annotations

import sys
from typing import IO, Any

from replicant.config import LoaderConfig, UnresolvedReferencePolicy
from replicant.emitter import Emitter
from replicant.errors import LoadError, UnresolvedReferenceError
from replicant.keymap import Keymap
from replicant.logging import get_logger
from replicant.model import Attributes, Reference, ReferenceList, RemoteId, type_name
from replicant.registry import RegisteredType, TypeRegistry, default_registry
from replicant.status import Status
from replicant.wire import read_tuples

logger = get_logger(__name__)

_MISSING = object()


class Loader(Emitter):
    """Forward-only loader of replicant tuples.

    Args:
        registry: Type registry used to resolve type names. Defaults to the
            process-wide `default_registry`.
        config: Loader settings. Defaults to LoaderConfig().
    """

    def __init__(self, registry: TypeRegistry | None = None, config: LoaderConfig | None = None) -> None:
        super().__init__()
        self.registry = registry if registry is not None else default_registry
        self.config = config if config is not None else LoaderConfig()
        self._keymap = Keymap()

    @property
    def keymap(self) -> Keymap:
        return self._keymap

    def log_to(self, out: IO[str] | None = None, verbose: bool = False, quiet: bool = False) -> Status:
        """Register a console status listener, see `replicant.status.Status`."""
        return self.use(Status, "load", out if out is not None else sys.stderr, verbose, quiet)

    def feed(self, type: Any, id: RemoteId, attributes: Attributes) -> Any:
        """Feed a single tuple into the loader.

        Args:
            type: Type name the tuple was dumped under.
            id: The record's id in the dumping store.
            attributes: Attribute mapping. Reference placeholders are
                replaced in place with local ids.

        Returns:
            The instance returned by the type's load capability.
        """
        type = type_name(type)
        instance = self.load(type, id, attributes)
        return self.emit(type, id, attributes, instance)

    def read(self, stream: IO[Any]) -> int:
        """Feed every tuple from a wire-format stream. Returns the number fed.

        Reading stops cleanly at end of stream.
        """
        count = 0
        for replicant in read_tuples(stream):
            self.feed(replicant.type, replicant.id, replicant.attributes)
            count += 1
        return count

    def load(self, type: str, id: RemoteId, attributes: Attributes) -> Any:
        """Load one record into the destination store and register its id."""
        entry = self.registry.resolve(type)
        self.resolve_references(attributes)
        try:
            result = entry.load(type, id, attributes)
        except Exception as boom:
            logger.error(
                {
                    "message": "error loading record",
                    "type": type,
                    "id": id,
                    "error": f"{boom.__class__.__name__}: {boom}",
                }
            )
            raise
        if not isinstance(result, (tuple, list)) or len(result) != 2:
            raise LoadError(f"{type}.load_replicant() must return (local_id, instance), got {result!r}")
        local_id, instance = result
        self.register_id(entry, type, id, local_id)
        logger.debug({"message": "loaded", "type": type, "id": id, "local_id": local_id})
        return instance

    def resolve_references(self, attributes: Attributes) -> Attributes:
        """Replace reference placeholders in `attributes` with local ids.

        For example:
            {'title': 'hello there',
             'repository_id': Reference('Repository', 1234),
             'label_ids': ReferenceList('Label', (333, 444, 555))}
        becomes:
            {'title': 'hello there',
             'repository_id': 17,
             'label_ids': [41, 42, 43]}

        Missing keymap entries become None, or raise under the ``fail`` policy.
        Nothing is rewritten until every reference has resolved, so a raise
        leaves `attributes` unchanged.
        """
        resolved: Attributes = {}
        for key, value in attributes.items():
            if isinstance(value, Reference):
                resolved[key] = self._local_id(value.target_type, value.target_id, key)
            elif isinstance(value, ReferenceList):
                resolved[key] = [self._local_id(value.target_type, remote_id, key) for remote_id in value.target_ids]
        attributes.update(resolved)
        return attributes

    def _local_id(self, target_type: str, remote_id: RemoteId, attribute: str) -> Any:
        local_id = self._keymap.get(target_type, remote_id, _MISSING)
        if local_id is not _MISSING:
            return local_id
        if self.config.on_unresolved_reference == UnresolvedReferencePolicy.FAIL:
            raise UnresolvedReferenceError(target_type, remote_id, attribute)
        logger.warning(
            {
                "message": "reference missing from keymap",
                "type": target_type,
                "remote_id": remote_id,
                "attribute": attribute,
            }
        )
        return None

    def register_id(self, entry: RegisteredType, type: str, remote_id: RemoteId, local_id: Any) -> None:
        """Record a loaded id under its type name and every registered alias."""
        self._keymap.register(type, remote_id, local_id)
        for alias in entry.aliases:
            self._keymap.register(alias, remote_id, local_id)
