"""Registry mapping type names to load capabilities.

A stream only carries type names. Before loading, the destination process
registers, for each name it expects, the object that knows how to load that
type and the alias names its ids should also be recorded under. This replaces
resolving type names by reflection at load time.

Example:
    ```python
    registry = TypeRegistry()
    registry.register("Repository", Repository)
    registry.register("PublicRepository", PublicRepository, aliases=("Repository",))

    @registry.loadable("Issue")
    class Issue:
        @classmethod
        def load_replicant(cls, type_name, remote_id, attributes):
            ...
    ```

A process-wide `default_registry` is used by Loaders that are not given
their own.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from replicant.capabilities import Loadable
from replicant.errors import DuplicateTypeError, MissingCapabilityError, UnknownTypeError
from replicant.logging import get_logger
from replicant.model import Attributes, RemoteId, type_name

logger = get_logger(__name__)

T = TypeVar("T")


class RegisteredType(BaseModel):
    """A type name bound to its load capability and alias names."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(description="Type name as it appears in the stream.")
    loadable: Any = Field(description="Object providing load_replicant().", repr=False)
    aliases: tuple[str, ...] = Field(
        default=(),
        description="Additional type names each loaded id is registered under.",
    )

    def load(self, type_name: str, remote_id: RemoteId, attributes: Attributes) -> Any:
        return self.loadable.load_replicant(type_name, remote_id, attributes)


class TypeRegistry:
    """Name to load-capability registry. Not thread-safe; populate at startup."""

    def __init__(self) -> None:
        self._types: dict[str, RegisteredType] = {}

    def register(
        self,
        name: Any,
        loadable: Any = None,
        *,
        aliases: Iterable[str] | None = None,
        replace: bool = False,
    ) -> RegisteredType:
        """Register a load capability under a type name.

        Args:
            name: Type name, or a class to register under its own name (in
                which case `loadable` defaults to the class itself).
            loadable: Object with a ``load_replicant(type_name, remote_id,
                attributes)`` method, usually a class.
            aliases: Extra names to register loaded ids under. Defaults to the
                loadable's ``replicant_aliases`` attribute when it has one.
            replace: Allow overwriting an existing registration.

        Raises:
            MissingCapabilityError: If `loadable` has no load_replicant().
            DuplicateTypeError: If `name` is taken and `replace` is False.
        """
        if loadable is None:
            if not isinstance(name, type):
                raise MissingCapabilityError(f"no loadable given for type {name!r}")
            loadable = name
        name = type_name(name)
        if not isinstance(loadable, Loadable):
            raise MissingCapabilityError(f"{loadable!r} must define load_replicant() to be registered as {name!r}")
        if name in self._types and not replace:
            raise DuplicateTypeError(f"type {name!r} is already registered")
        if aliases is None:
            aliases = getattr(loadable, "replicant_aliases", ())
        entry = RegisteredType(
            name=name,
            loadable=loadable,
            aliases=tuple(alias for alias in aliases if alias != name),
        )
        self._types[name] = entry
        logger.debug({"message": "registered type", "type": name, "aliases": entry.aliases})
        return entry

    def loadable(self, name: str | None = None, *, aliases: Iterable[str] | None = None) -> Callable[[T], T]:
        """Class decorator form of register()."""

        def decorator(cls: T) -> T:
            self.register(name if name is not None else cls, cls, aliases=aliases)
            return cls

        return decorator

    def unregister(self, name: str) -> None:
        self._types.pop(type_name(name), None)

    def resolve(self, name: Any) -> RegisteredType:
        """Look up a registered type.

        Raises:
            UnknownTypeError: If nothing is registered under `name`.
        """
        name = type_name(name)
        try:
            return self._types[name]
        except KeyError:
            raise UnknownTypeError(f"no load capability registered for type {name!r}") from None

    def names(self) -> list[str]:
        return sorted(self._types)

    def __contains__(self, name: object) -> bool:
        return type_name(name) in self._types

    def __iter__(self) -> Iterator[RegisteredType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)


default_registry = TypeRegistry()


def register_type(
    name: Any,
    loadable: Any = None,
    *,
    aliases: Iterable[str] | None = None,
    replace: bool = False,
) -> RegisteredType:
    """Register a type in the process-wide default registry."""
    return default_registry.register(name, loadable, aliases=aliases, replace=replace)
