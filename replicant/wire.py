"""JSON-lines wire format for replicant streams.

Each tuple is one line holding a JSON array:

    ["User", 1234, {"login": "joe", "created_at": ["datetime", "2011-09-09T18:12:31+00:00"]}]
    ["Email", 77, {"user_id": ["ref", "User", 1234], "email": "joe@example.com"}]

Within the attributes object, a JSON array is always a tagged marker:

- ``["ref", type, id]``: a Reference
- ``["ref_list", type, [id, ...]]``: a ReferenceList, order preserved
- ``["bytes", "<base64>"]``: a bytes value
- ``["datetime", "<ISO 8601>"]``: a datetime value

Everything else (null, booleans, numbers, strings) is plain JSON. Blank lines
are skipped and end of file ends the stream; there is no trailer record.
"""

from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime
from typing import IO, Any, Iterator

from replicant.emitter import Listener
from replicant.errors import AttributeTypeError, StreamDecodeError
from replicant.model import (
    Attributes,
    Reference,
    ReferenceList,
    RemoteId,
    ReplicantTuple,
    check_attribute_value,
    check_attributes,
    check_remote_id,
    is_remote_id,
)

REF = "ref"
REF_LIST = "ref_list"
BYTES = "bytes"
DATETIME = "datetime"


def encode_value(key: str, value: Any) -> Any:
    """Convert one attribute value to its JSON-compatible form."""
    check_attribute_value(key, value)
    if isinstance(value, Reference):
        return [REF, value.target_type, value.target_id]
    if isinstance(value, ReferenceList):
        return [REF_LIST, value.target_type, list(value.target_ids)]
    if isinstance(value, bytes):
        return [BYTES, base64.b64encode(value).decode("ascii")]
    if isinstance(value, datetime):
        return [DATETIME, value.isoformat()]
    return value


def decode_value(key: str, value: Any) -> Any:
    """Convert one JSON attribute value back to its attribute form."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if not isinstance(value, list) or not value or not isinstance(value[0], str):
        raise StreamDecodeError(f"attribute {key!r}: expected a scalar or tagged marker, got {value!r}")
    tag = value[0]
    try:
        if tag == REF:
            _, target_type, target_id = value
            return Reference(target_type, _check_id(target_id))
        if tag == REF_LIST:
            _, target_type, target_ids = value
            if not isinstance(target_ids, list):
                raise StreamDecodeError(f"attribute {key!r}: ref_list ids must be a list")
            return ReferenceList(target_type, [_check_id(i) for i in target_ids])
        if tag == BYTES:
            _, payload = value
            return base64.b64decode(payload, validate=True)
        if tag == DATETIME:
            _, payload = value
            return datetime.fromisoformat(payload)
    except (ValueError, TypeError, binascii.Error) as error:
        if isinstance(error, StreamDecodeError):
            raise
        raise StreamDecodeError(f"attribute {key!r}: malformed {tag!r} marker {value!r}") from error
    raise StreamDecodeError(f"attribute {key!r}: unknown marker tag {tag!r}")


def _check_id(value: Any) -> RemoteId:
    if not is_remote_id(value):
        raise StreamDecodeError(f"record ids must be scalars, got {value!r}")
    return value


def encode_tuple(type: str, id: RemoteId, attributes: Attributes) -> str:
    """Serialize one tuple to a single line of JSON, without the newline."""
    check_remote_id(type, id)
    check_attributes(attributes)
    encoded = {key: encode_value(key, value) for key, value in attributes.items()}
    try:
        return json.dumps([type, id, encoded], ensure_ascii=False, allow_nan=False)
    except ValueError as error:
        raise AttributeTypeError(f"{type} {id!r}: {error}") from error


def decode_tuple(line: str | bytes) -> ReplicantTuple:
    """Parse one line of the stream."""
    try:
        data = json.loads(line)
    except ValueError as error:
        raise StreamDecodeError(f"invalid JSON in stream: {error}") from error
    if not isinstance(data, list) or len(data) != 3:
        raise StreamDecodeError(f"expected a [type, id, attributes] array, got {data!r}")
    type, id, attributes = data
    if not isinstance(type, str) or not type:
        raise StreamDecodeError(f"type must be a non-empty string, got {type!r}")
    if not isinstance(attributes, dict):
        raise StreamDecodeError(f"attributes of {type} {id!r} must be an object")
    return ReplicantTuple(
        type=type,
        id=_check_id(id),
        attributes={key: decode_value(key, value) for key, value in attributes.items()},
    )


def read_tuples(stream: IO[Any]) -> Iterator[ReplicantTuple]:
    """Yield tuples from a text or binary stream until end of file."""
    for line_number, line in enumerate(stream, start=1):
        if not line.strip():
            continue
        try:
            yield decode_tuple(line)
        except StreamDecodeError as error:
            raise StreamDecodeError(f"line {line_number}: {error}") from error


class WireWriter(Listener):
    """Listener that writes every emitted tuple to a stream.

    Accepts text streams and binary streams; binary streams receive UTF-8.
    """

    def __init__(self, stream: IO[Any], flush: bool = False):
        self.stream = stream
        self.flush = flush
        self.count = 0

    def on_tuple(self, type: str, id: RemoteId, attributes: Attributes, source_object: Any) -> None:
        line = encode_tuple(type, id, attributes) + "\n"
        try:
            self.stream.write(line)
        except TypeError:
            self.stream.write(line.encode("utf-8"))
        self.count += 1
        if self.flush:
            self.stream.flush()

    def on_complete(self) -> None:
        if hasattr(self.stream, "flush"):
            self.stream.flush()
