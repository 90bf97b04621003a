"""
rowflow Observable - Value Cells and Event Streams
==================================================

Two small reactive primitives used across the engine:

- ``Observable``: a value cell. Subscribers receive the new value whenever it
  changes; setting an equal value is a no-op. Used for per-group collapse
  state and for caller-side inputs such as a search string feeding a filter.
- ``Signal``: a fire-and-forget event stream with positional arguments. Used
  for ``size_changed``, ``start_index_changed`` and window element updates.

Both return a disposer from ``subscribe``. Dispatch iterates a snapshot of
the callbacks and skips any callback that was unsubscribed by an earlier
callback of the same dispatch, so handlers may freely (un)subscribe while
being notified.
"""

import logging
from typing import Any, Callable, Generic, List, Optional, TypeVar

from .errors import ArgumentTypeError
from .subscriptions import Disposer

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Observable(Generic[T]):
    """
    A reactive value that notifies its subscribers when it changes.

    Example:
        query = Observable("query", "")
        unsubscribe = query.subscribe(print, call_immediately=True)
        query.set("foo")   # prints "foo"
        unsubscribe()
    """

    __slots__ = ("_key", "_value", "_callbacks", "__weakref__")

    def __init__(self, key: Optional[str] = None, initial_value: Optional[T] = None):
        self._key = key or "<unnamed>"
        self._value = initial_value
        self._callbacks: List[Callable[[T], None]] = []

    @property
    def key(self) -> str:
        return self._key

    @property
    def value(self) -> Optional[T]:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        if self._value == new_value:
            return

        self._value = new_value

        callbacks = self._callbacks
        for callback in tuple(callbacks):
            if callback in callbacks:
                callback(new_value)

    def set(self, new_value: T) -> None:
        """Explicit setter (alias for value property)."""
        self.value = new_value

    def get(self) -> Optional[T]:
        """Explicit getter (alias for value property)."""
        return self._value

    def subscribe(
        self, callback: Callable[[T], None], call_immediately: bool = False
    ) -> Disposer:
        """
        Register ``callback`` for future values.

        Args:
            callback: Called with each new value
            call_immediately: Also call it right away with the current value

        Returns:
            Unsubscribe function, safe to call more than once
        """
        # Wrap so that the same function can be subscribed twice and each
        # registration is removed independently.
        def entry(value):
            callback(value)

        self._callbacks.append(entry)

        def unsubscribe():
            if entry in self._callbacks:
                self._callbacks.remove(entry)

        if call_immediately:
            callback(self._value)

        return unsubscribe

    def has_subscribers(self) -> bool:
        return bool(self._callbacks)

    def __bool__(self) -> bool:
        return bool(self._value)

    def __repr__(self) -> str:
        return f"Observable({self._key}={self._value!r})"


class Signal:
    """
    Named event stream. ``emit(*args)`` calls every subscriber with ``args``.

    Unlike ``Observable`` a signal holds no value and never deduplicates.
    """

    __slots__ = ("_name", "_callbacks")

    def __init__(self, name: str):
        self._name = name
        self._callbacks: List[Callable[..., Any]] = []

    @property
    def name(self) -> str:
        return self._name

    def subscribe(self, callback: Callable[..., Any]) -> Disposer:
        if not callable(callback):
            raise ArgumentTypeError(
                f"expected a callable subscriber for '{self._name}', got {type(callback).__name__}"
            )

        def entry(*args):
            callback(*args)

        self._callbacks.append(entry)

        def unsubscribe():
            if entry in self._callbacks:
                self._callbacks.remove(entry)

        return unsubscribe

    def emit(self, *args: Any) -> None:
        callbacks = self._callbacks
        if not callbacks:
            return
        logger.debug(f"{self._name}{args} -> {len(callbacks)} subscribers")
        for callback in tuple(callbacks):
            if callback in callbacks:
                callback(*args)

    def __len__(self) -> int:
        return len(self._callbacks)

    def __repr__(self) -> str:
        return f"Signal({self._name!r}, {len(self._callbacks)} subscribers)"
