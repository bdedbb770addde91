"""Multicast events — ordered callbacks fired synchronously.

Handlers are called with (sender, options). A handler may clear the event
while it is being fired; iteration stops right there instead of walking a
stale list.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

F = TypeVar("F", bound=Callable[..., Any])


class Event(Generic[F]):
    """An ordered list of distinct handlers."""

    def __init__(self) -> None:
        self.callbacks: list[F] | None = None
        self.on_callbacks_changed: Callable[[], None] | None = None

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def __len__(self) -> int:
        return len(self.callbacks) if self.callbacks is not None else 0

    def fire(self, sender, options) -> None:
        """Call every handler in registration order."""
        if self.callbacks is None:
            return
        i = 0
        while i < len(self.callbacks):
            self.callbacks[i](sender, options)
            if self.callbacks is None:
                return
            i += 1

    def fire_by_creating_options(self, sender, create_options: Callable[[], Any]) -> None:
        """Like fire(), but every handler gets a freshly built options object."""
        if self.callbacks is None:
            return
        i = 0
        while i < len(self.callbacks):
            self.callbacks[i](sender, create_options())
            if self.callbacks is None:
                return
            i += 1

    def clear(self) -> None:
        self.callbacks = None

    def add(self, func: F) -> None:
        if self.has_func(func):
            return
        if self.callbacks is None:
            self.callbacks = []
        self.callbacks.append(func)
        self._fire_callbacks_changed()

    def remove(self, func: F) -> None:
        if self.has_func(func):
            self.callbacks.remove(func)
            self._fire_callbacks_changed()

    def has_func(self, func: F) -> bool:
        if self.callbacks is None:
            return False
        return func in self.callbacks

    def _fire_callbacks_changed(self) -> None:
        if self.on_callbacks_changed is not None:
            self.on_callbacks_changed()

    def __repr__(self) -> str:
        return f"Event({len(self)} callbacks)"


class EventBase(Event[Callable[[Any, Any], Any]]):
    """Event whose handlers take (sender, options)."""
