"""Dump replicants in a streaming fashion.

The Dumper takes objects and generates one or more replicant tuples. A tuple
has the form ``(type, id, attributes)`` and describes exactly one addressable
record in a datastore (see `replicant.model`).

The Dumper does not decide what gets dumped. Each object's
``dump_replicant(dumper, **options)`` dumps the objects it depends on and
calls ``dumper.write(...)`` for itself. The Dumper's job is to guarantee that
every ``(type, id)`` is written at most once per session, which also makes
dumping cyclic object graphs terminate.

Example dump session:
    ```python
    with Dumper(sys.stdout) as dumper:
        dumper.log_to(sys.stderr)
        dumper.dump(User.get(1234))
    ```
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from typing import IO, Any

from replicant.capabilities import Dumpable, Identifiable
from replicant.emitter import Emitter
from replicant.errors import MissingCapabilityError
from replicant.logging import get_logger
from replicant.model import Attributes, RemoteId, check_attributes, check_remote_id, type_name
from replicant.status import Status
from replicant.wire import WireWriter

logger = get_logger(__name__)


class Dumper(Emitter):
    """Cycle-safe, memoizing writer of replicant tuples.

    Args:
        stream: Optional stream to write the JSON-lines wire format to.
    """

    def __init__(self, stream: IO[Any] | None = None) -> None:
        super().__init__()
        self._dumped: dict[str, set[RemoteId]] = {}
        self._in_progress: set[tuple[str, RemoteId]] = set()
        if stream is not None:
            self.marshal_to(stream)

    def marshal_to(self, stream: IO[Any]) -> WireWriter:
        """Register a listener writing every tuple to `stream`."""
        writer = WireWriter(stream)
        self.listen(writer)
        return writer

    def log_to(self, out: IO[str] | None = None, verbose: bool = False, quiet: bool = False) -> Status:
        """Register a console status listener, see `replicant.status.Status`."""
        return self.use(Status, "dump", out if out is not None else sys.stderr, verbose, quiet)

    def dump(self, *objects: Any, **options: Any) -> None:
        """Dump one or more objects, each at most once per session.

        Lists and iterators are flattened. ``None`` and objects that were
        already written are skipped. Keyword options are passed through to
        every ``dump_replicant`` call.

        Raises:
            MissingCapabilityError: If an object does not define dump_replicant().
        """
        for obj in objects:
            if obj is None:
                continue
            if isinstance(obj, (list, Iterator)):
                self.dump(*obj, **options)
                continue
            if self.dumped(obj):
                continue
            if not isinstance(obj, Dumpable):
                raise MissingCapabilityError(f"{type(obj).__name__} must define dump_replicant()")
            identity = self._identity(obj)
            if identity is None:
                obj.dump_replicant(self, **options)
                continue
            # an object whose handler is still running is not re-entered
            if identity in self._in_progress:
                continue
            self._in_progress.add(identity)
            try:
                obj.dump_replicant(self, **options)
            finally:
                self._in_progress.discard(identity)

    def _identity(self, obj: Any) -> tuple[str, RemoteId] | None:
        if isinstance(obj, Identifiable):
            type_, id = obj.replicant_id()
            return (type_name(type_), id)
        return None

    def dumped(self, obj: Any) -> bool:
        """Check whether an object, or a literal ``(type, id)`` pair, was written."""
        if isinstance(obj, tuple) and len(obj) == 2:
            type_, id = type_name(obj[0]), obj[1]
        else:
            identity = self._identity(obj)
            if identity is None:
                return False
            type_, id = identity
        return id in self._dumped.get(type_, ())

    def write(self, type: Any, id: RemoteId, attributes: Attributes, source_object: Any = None) -> None:
        """Write one tuple, called by dump_replicant() implementations.

        A ``(type, id)`` that was already written is ignored. The pair is
        marked as written before listeners run, so an object that is reached
        again while its own dependents are being dumped is not re-entered.

        Ids are restricted to int, str and float, the ids a Reference can
        carry. Convert other keys (UUIDs, composite keys) to strings first.

        Raises:
            AttributeTypeError: If `id` is not an int, str or float, or an
                attribute value is outside the supported value types. Nothing
                is marked or emitted in that case.
        """
        type = type_name(type)
        check_remote_id(type, id)
        ids = self._dumped.setdefault(type, set())
        if id in ids:
            return
        check_attributes(attributes)
        ids.add(id)
        logger.debug({"message": "write", "type": type, "id": id})
        self.emit(type, id, attributes, source_object)

    def stats(self) -> dict[str, int]:
        """Number of tuples written, by type name."""
        return {name: len(ids) for name, ids in self._dumped.items() if ids}
