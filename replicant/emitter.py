"""Listener chain shared by the Dumper and Loader.

Every tuple produced by a dump or load session is emitted to a chain of
listeners. Listeners run in the reverse of registration order, so a listener
registered later sees a tuple first and may modify the attributes mapping
before earlier listeners (e.g. a stream writer) observe it.

Typical usage:
    ```python
    with Dumper() as dumper:
        dumper.marshal_to(sys.stdout)
        dumper.listen(lambda type, id, attrs, obj: print(type, id))
        dumper.dump(user)
    ```
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from typing import Any, Callable, TypeVar

from replicant.model import Attributes, RemoteId

ListenerT = TypeVar("ListenerT", bound="Listener")
EmitterT = TypeVar("EmitterT", bound="Emitter")


class Listener(ABC):
    """Receives every tuple emitted by a Dumper or Loader."""

    @abstractmethod
    def on_tuple(self, type: str, id: RemoteId, attributes: Attributes, source_object: Any) -> None:
        """Handle one emitted tuple."""

    def on_complete(self) -> None:
        """Called once when the session is complete. Defaults to a no-op."""


class FunctionListener(Listener):
    """Adapts a plain ``callable(type, id, attributes, source_object)``."""

    def __init__(self, function: Callable[[str, RemoteId, Attributes, Any], Any]):
        self.function = function

    def on_tuple(self, type: str, id: RemoteId, attributes: Attributes, source_object: Any) -> None:
        self.function(type, id, attributes, source_object)

    def __repr__(self) -> str:
        return f"FunctionListener({self.function!r})"


class Emitter:
    """Base class managing an ordered chain of listeners."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._emitted: Counter[str] = Counter()

    def __enter__(self: EmitterT) -> EmitterT:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.complete()

    @property
    def listeners(self) -> tuple[Listener, ...]:
        """Registered listeners, in the order they are called."""
        return tuple(self._listeners)

    def listen(self, listener: Listener | Callable[..., Any]) -> Listener:
        """Register a listener to run before all previously registered ones.

        Args:
            listener: A Listener instance, or any callable accepting
                (type, id, attributes, source_object).

        Returns:
            The registered Listener (the FunctionListener wrapper for plain callables).
        """
        if not isinstance(listener, Listener):
            if not callable(listener):
                raise TypeError(f"listener must be a Listener or callable, got {type(listener).__name__}")
            listener = FunctionListener(listener)
        self._listeners.insert(0, listener)
        return listener

    def use(self, listener_cls: type[ListenerT], *args: Any, **kwargs: Any) -> ListenerT:
        """Construct ``listener_cls(self, *args, **kwargs)`` and register it."""
        instance = listener_cls(self, *args, **kwargs)
        self.listen(instance)
        return instance

    def emit(self, type: str, id: RemoteId, attributes: Attributes, source_object: Any) -> Any:
        """Send a tuple to every listener. Returns `source_object`."""
        self._emitted[type] += 1
        for listener in self._listeners:
            listener.on_tuple(type, id, attributes, source_object)
        return source_object

    def complete(self) -> None:
        """Notify every listener that the session is complete."""
        for listener in self._listeners:
            listener.on_complete()

    def stats(self) -> dict[str, int]:
        """Number of tuples emitted, by type name."""
        return dict(self._emitted)
