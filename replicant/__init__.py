"""
Replicant - move connected graphs of records between data stores.

A dump session walks a graph of domain objects and writes each record once,
as a flat ``(type, id, attributes)`` tuple, with foreign keys replaced by
Reference placeholders. A load session replays those tuples into another
store in a single forward pass, mapping every remote id to the id assigned
locally so that later references can be rewritten.

    # dumping side
    with Dumper(stream) as dumper:
        dumper.dump(repository)

    # loading side
    with Loader(registry) as loader:
        loader.read(stream)
"""

from replicant.config import LoaderConfig, ReplicantConfig, UnresolvedReferencePolicy, configure_logging, load_config
from replicant.dumper import Dumper
from replicant.emitter import Emitter, FunctionListener, Listener
from replicant.errors import (
    AttributeTypeError,
    DuplicateTypeError,
    LoadError,
    MissingCapabilityError,
    ReplicantError,
    StreamDecodeError,
    UnknownTypeError,
    UnresolvedReferenceError,
)
from replicant.keymap import Keymap
from replicant.loader import Loader
from replicant.model import Reference, ReferenceList, ReplicantTuple
from replicant.record import ReplicantRecord
from replicant.registry import RegisteredType, TypeRegistry, default_registry, register_type
from replicant.status import Status
from replicant.wire import WireWriter, read_tuples

__all__ = [
    "Dumper",
    "Loader",
    "Emitter",
    "Listener",
    "FunctionListener",
    "Keymap",
    "Reference",
    "ReferenceList",
    "ReplicantTuple",
    "ReplicantRecord",
    "RegisteredType",
    "TypeRegistry",
    "default_registry",
    "register_type",
    "Status",
    "WireWriter",
    "read_tuples",
    "LoaderConfig",
    "ReplicantConfig",
    "UnresolvedReferencePolicy",
    "load_config",
    "configure_logging",
    "ReplicantError",
    "MissingCapabilityError",
    "UnknownTypeError",
    "DuplicateTypeError",
    "UnresolvedReferenceError",
    "LoadError",
    "AttributeTypeError",
    "StreamDecodeError",
]

__version__ = "0.1.0"
