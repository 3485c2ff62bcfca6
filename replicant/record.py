"""Generic attribute-bag record that supports the dump and load protocols.

Useful in tests, and for dumping data that has no model class of its own:

    ```python
    record = ReplicantRecord(name="Joe", age=24)
    record.age            # 24
    record["name"]        # 'Joe'
    record.attributes     # {'name': 'Joe', 'age': 24}
    ```

Subclasses are typed by class name, so ``class Repository(ReplicantRecord)``
dumps tuples of type "Repository" and registers loaded ids under the names of
its ReplicantRecord ancestors as aliases.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Any, ClassVar, Iterator

from replicant.model import Attributes, RemoteId

if TYPE_CHECKING:
    from replicant.dumper import Dumper


class ReplicantRecord:
    replicant_type: ClassVar[str] = "ReplicantRecord"
    replicant_aliases: ClassVar[tuple[str, ...]] = ()
    _ids: ClassVar[Iterator[int]] = itertools.count(1)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "replicant_type" not in cls.__dict__:
            cls.replicant_type = cls.__name__
        cls.replicant_aliases = tuple(
            base.replicant_type
            for base in cls.__mro__[1:]
            if issubclass(base, ReplicantRecord) and base.replicant_type != cls.replicant_type
        )
        cls._ids = itertools.count(1)

    def __init__(self, id: RemoteId | None = None, attributes: Attributes | None = None, **kwargs: Any):
        object.__setattr__(self, "id", id if id is not None else self.generate_id())
        object.__setattr__(self, "attributes", {})
        for key, value in {**(attributes or {}), **kwargs}.items():
            self[key] = value

    @classmethod
    def generate_id(cls) -> int:
        return next(cls._ids)

    def __getattr__(self, name: str) -> Any:
        try:
            return self.__dict__["attributes"][name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__!r} record has no attribute {name!r}") from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name in ("id", "attributes"):
            object.__setattr__(self, name, value)
        else:
            self[name] = value

    def __getitem__(self, key: str) -> Any:
        return self.attributes[str(key)]

    def __setitem__(self, key: str, value: Any) -> None:
        self.attributes[str(key)] = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReplicantRecord):
            return NotImplemented
        return self.replicant_id() == other.replicant_id() and self.attributes == other.attributes

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, attributes={self.attributes!r})"

    def replicant_id(self) -> tuple[str, RemoteId]:
        return (self.replicant_type, self.id)

    def dump_replicant(self, dumper: "Dumper", **options: Any) -> None:
        dumper.write(self.replicant_type, self.id, dict(self.attributes), self)

    @classmethod
    def load_replicant(cls, type_name: str, remote_id: RemoteId, attributes: Attributes) -> tuple[int, "ReplicantRecord"]:
        record = cls(cls.generate_id(), dict(attributes))
        return (record.id, record)
