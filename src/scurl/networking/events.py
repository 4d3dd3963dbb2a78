"""Listener registry for the request lifecycle events.

Each HttpClient owns one registry. Registration, removal and snapshotting are
guarded by a lock so a single client may be shared between threads; the
listeners themselves are called on a snapshot, outside the lock.
"""

from __future__ import annotations

import itertools
import threading
from enum import Enum
from typing import TYPE_CHECKING, Callable, NewType, Protocol, Union

from .errors import InvalidListenerError

if TYPE_CHECKING:
    from .request import RequestDescriptor
    from .response import Response

ListenerHandle = NewType("ListenerHandle", int)
Listener = Callable[..., None]
Listeners = dict[ListenerHandle, Listener]


class Event(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    ERROR = "error"


class BeforeHandler(Protocol):
    def __call__(self, request: RequestDescriptor) -> None: ...


class AfterHandler(Protocol):
    def __call__(
        self, request: RequestDescriptor, response: Response
    ) -> None: ...


class ErrorHandler(Protocol):
    def __call__(
        self, code: int, message: str, request: RequestDescriptor
    ) -> None: ...


Handler = Union[BeforeHandler, AfterHandler, ErrorHandler]


def _event(event: Event | str) -> Event:
    try:
        return Event(event)
    except ValueError:
        raise InvalidListenerError(f"unknown event: {event!r}") from None


class ListenerRegistry:
    """Thread-safe mapping of event -> handle -> callback."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._listeners: dict[Event, Listeners] = {
            event: {} for event in Event
        }

    def add(self, event: Event | str, callback: Handler) -> ListenerHandle:
        """Register ``callback`` for ``event``.

        Returns:
            An opaque handle to pass to ``remove``.

        Raises:
            InvalidListenerError: If the event is unknown or the callback is
                not callable.
        """
        key = _event(event)
        if not callable(callback):
            raise InvalidListenerError(
                f"listener for {key.value!r} is not callable"
            )
        with self._lock:
            handle = ListenerHandle(next(self._counter))
            self._listeners[key][handle] = callback
        return handle

    def remove(self, event: Event | str, handle: ListenerHandle) -> bool:
        key = _event(event)
        with self._lock:
            return self._listeners[key].pop(handle, None) is not None

    def clear(self, event: Event | str | None = None) -> None:
        key = None if event is None else _event(event)
        with self._lock:
            for name, listeners in self._listeners.items():
                if key is None or name is key:
                    listeners.clear()

    def get(
        self, event: Event | str, handle: ListenerHandle
    ) -> Listener | None:
        key = _event(event)
        with self._lock:
            return self._listeners[key].get(handle)

    def listeners(
        self, event: Event | str | None = None
    ) -> Listeners | dict[str, Listeners]:
        """Return a copy of the listeners for one event, or for all events."""
        key = None if event is None else _event(event)
        with self._lock:
            if key is None:
                return {
                    name.value: dict(items)
                    for name, items in self._listeners.items()
                }
            return dict(self._listeners[key])

    def snapshot(self, event: Event | str) -> list[Listener]:
        """Callbacks for ``event`` in registration order."""
        key = _event(event)
        with self._lock:
            return list(self._listeners[key].values())
