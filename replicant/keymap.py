"""Append-only mapping of remote record ids to local record ids."""

from __future__ import annotations

from typing import Any, Iterator

from replicant.logging import get_logger
from replicant.model import RemoteId

logger = get_logger(__name__)

_MISSING = object()


class Keymap:
    """Maps ``(type_name, remote_id)`` to the id assigned in the local store.

    Populated by the Loader as tuples are fed. Entries are never overwritten:
    registering a different local id for an existing key keeps the original
    and logs a warning.

    Example:
        ```python
        keymap.register("User", 1234, 7)
        keymap[("User", 1234)]     # 7
        ("User", 99) in keymap     # False
        ```
    """

    def __init__(self) -> None:
        self._ids: dict[str, dict[RemoteId, Any]] = {}

    def register(self, type_name: str, remote_id: RemoteId, local_id: Any) -> bool:
        """Record a local id. Returns False if an entry already existed."""
        ids = self._ids.setdefault(type_name, {})
        existing = ids.get(remote_id, _MISSING)
        if existing is _MISSING:
            ids[remote_id] = local_id
            return True
        if existing != local_id:
            logger.warning(
                {
                    "message": "keymap entry already registered, keeping original",
                    "type": type_name,
                    "remote_id": remote_id,
                    "local_id": existing,
                    "rejected_local_id": local_id,
                }
            )
        return False

    def get(self, type_name: str, remote_id: RemoteId, default: Any = None) -> Any:
        return self._ids.get(type_name, {}).get(remote_id, default)

    def lookup(self, type_name: str, remote_id: RemoteId) -> Any:
        """Return the local id, raising KeyError when there is none."""
        value = self.get(type_name, remote_id, _MISSING)
        if value is _MISSING:
            raise KeyError((type_name, remote_id))
        return value

    def types(self) -> list[str]:
        return sorted(self._ids)

    def for_type(self, type_name: str) -> dict[RemoteId, Any]:
        """Copy of the remote-to-local mapping for one type name."""
        return dict(self._ids.get(type_name, {}))

    def __getitem__(self, key: tuple[str, RemoteId]) -> Any:
        type_name, remote_id = key
        return self.lookup(type_name, remote_id)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        type_name, remote_id = key
        return remote_id in self._ids.get(type_name, {})

    def __iter__(self) -> Iterator[tuple[str, RemoteId]]:
        for type_name, ids in self._ids.items():
            for remote_id in ids:
                yield (type_name, remote_id)

    def __len__(self) -> int:
        return sum(len(ids) for ids in self._ids.values())

    def __repr__(self) -> str:
        return f"Keymap({len(self)} entries across {len(self._ids)} types)"
