"""Tuple and attribute value model.

A replicant tuple describes exactly one addressable record:

    (type, id, attributes, source_object)

`type` and `id` identify the record in the dumping store. `attributes` is an
ordered mapping of attribute names to primitively typed values. Values that
point at other records are not written as raw foreign keys; they are written
as placeholders:

- **Reference**: a single foreign key, e.g. ``Reference("User", 1234)``
- **ReferenceList**: an ordered list of foreign keys of one type, e.g.
  ``ReferenceList("Label", (333, 444, 555))``

The Loader swaps each placeholder for the id(s) the referenced records were
assigned in the destination store. References always name their target type
explicitly, because the type declared by an association may be a supertype
of the record actually referenced.

`source_object` is the object the tuple was generated from (when dumping) or
the object created from it (when loading). It is never serialized.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from replicant.errors import AttributeTypeError

RemoteId = Union[int, str, float]
"""Scalar id of a record in the dumping store."""

Scalar = Union[None, bool, int, float, str, bytes, datetime]
"""Attribute values that travel unchanged."""

SCALAR_TYPES: tuple[type, ...] = (bool, int, float, str, bytes, datetime)


class Reference(BaseModel):
    """Placeholder for a single foreign key, resolved at load time."""

    model_config = ConfigDict(frozen=True)

    target_type: str = Field(description="Type name of the referenced record.")
    target_id: RemoteId = Field(description="Id of the referenced record in the dumping store.")

    def __init__(self, target_type: str | None = None, target_id: RemoteId | None = None, /, **data: Any):
        if target_type is not None:
            data["target_type"] = target_type
        if target_id is not None:
            data["target_id"] = target_id
        super().__init__(**data)


class ReferenceList(BaseModel):
    """Placeholder for an ordered list of foreign keys of one type."""

    model_config = ConfigDict(frozen=True)

    target_type: str = Field(description="Type name shared by all referenced records.")
    target_ids: tuple[RemoteId, ...] = Field(
        default=(),
        description="Ids of the referenced records in the dumping store, in order.",
    )

    def __init__(self, target_type: str | None = None, target_ids: Any = None, /, **data: Any):
        if target_type is not None:
            data["target_type"] = target_type
        if target_ids is not None:
            data["target_ids"] = tuple(target_ids)
        super().__init__(**data)

    def __len__(self) -> int:
        return len(self.target_ids)


AttributeValue = Union[Scalar, Reference, ReferenceList]
Attributes = dict[str, Any]


class ReplicantTuple(BaseModel):
    """One record snapshot moving through a dump or load session."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: str
    id: RemoteId
    attributes: dict[str, Any] = Field(default_factory=dict)
    source_object: Any = Field(default=None, exclude=True, repr=False)

    def identity(self) -> tuple[str, RemoteId]:
        return (self.type, self.id)


def type_name(value: Any) -> str:
    """Normalize a type designator to its string name.

    Strings are returned as-is. Classes are named by their ``replicant_type``
    attribute when they define one, otherwise by their qualified name.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, type):
        name = getattr(value, "replicant_type", None)
        return name if isinstance(name, str) else value.__qualname__
    return str(value)


def is_reference(value: Any) -> bool:
    return isinstance(value, (Reference, ReferenceList))


def check_attribute_value(key: str, value: Any) -> None:
    """Raise AttributeTypeError unless `value` belongs to the attribute union."""
    if value is None or isinstance(value, SCALAR_TYPES) or is_reference(value):
        return
    raise AttributeTypeError(
        f"attribute {key!r} has unsupported value of type {type(value).__name__}; "
        "expected None, bool, int, float, str, bytes, datetime, Reference or ReferenceList"
    )


def check_attributes(attributes: Mapping[str, Any]) -> None:
    for key, value in attributes.items():
        if not isinstance(key, str):
            raise AttributeTypeError(f"attribute names must be strings, got {key!r}")
        check_attribute_value(key, value)


REMOTE_ID_TYPES: tuple[type, ...] = (int, str, float)


def is_remote_id(value: Any) -> bool:
    """True for the scalar ids that references can carry (bools excluded)."""
    return not isinstance(value, bool) and isinstance(value, REMOTE_ID_TYPES)


def check_remote_id(type: str, id: Any) -> None:
    """Raise AttributeTypeError unless `id` can be referenced and written to a stream."""
    if not is_remote_id(id):
        raise AttributeTypeError(f"{type} id must be an int, str or float, got {id!r}")
