"""Dependency collection — which (object, property) pairs a computed value reads.

Uses a contextvar as the single "currently collecting" slot. A computed
holder calls start_collecting() right before evaluating its formula; every
Base.get_property_value() made during evaluation lands in the active
Dependencies; finish_collecting() hands the result back.

Only one collection may be active at a time. Starting a second one before
the first is finished raises NestedDependenciesError rather than merging.
"""

from __future__ import annotations

import contextvars
import itertools
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from surveymodel.base import Base


class NestedDependenciesError(RuntimeError):
    """Raised when a dependency collection starts inside another one."""


# The collection in progress, if any.
current_dependencies: contextvars.ContextVar[Dependencies | None] = contextvars.ContextVar(
    "current_dependencies", default=None
)

_id_counter = itertools.count(1)


class Dependencies:
    """The (target, property) pairs read by one evaluation of a computed value.

    Each tracker has a unique id. Subscriptions are registered on the targets
    under that id, so dispose() removes exactly this set of listeners.
    """

    def __init__(self, current_dependency: Callable, target: Base | None, property: str | None) -> None:
        self.current_dependency = current_dependency
        self.target = target
        self.property = property
        self.dependencies: list[tuple[Base, str]] = []
        self.id = str(next(_id_counter))
        self._subscribed = False

    def add_dependency(self, target: Base, property: str) -> None:
        if self.target is target and self.property == property:
            return
        for obj, prop in self.dependencies:
            if obj is target and prop == property:
                return
        self.dependencies.append((target, property))

    def subscribe(self) -> None:
        """Register current_dependency on every recorded pair."""
        if self._subscribed:
            return
        self._subscribed = True
        for obj, prop in self.dependencies:
            obj.register_function_on_property_value_changed(prop, self.current_dependency, self.id)

    def dispose(self) -> None:
        """Remove every subscription made under this tracker's id."""
        if not self._subscribed:
            return
        self._subscribed = False
        for obj, prop in self.dependencies:
            obj.unregister_function_on_property_value_changed(prop, self.id)

    def __len__(self) -> int:
        return len(self.dependencies)

    def __repr__(self) -> str:
        pairs = ", ".join(f"{type(obj).__name__}.{prop}" for obj, prop in self.dependencies)
        return f"Dependencies(#{self.id}: {pairs})"


def start_collecting(updater: Callable, target: Base | None = None, property: str | None = None) -> None:
    """Open a collection. Raises NestedDependenciesError if one is open already."""
    if current_dependencies.get() is not None:
        raise NestedDependenciesError(
            "Attempt to collect nested dependencies. Nested dependencies are not supported."
        )
    current_dependencies.set(Dependencies(updater, target, property))


def finish_collecting() -> Dependencies | None:
    """Close the open collection and return it (None if none was open)."""
    deps = current_dependencies.get()
    current_dependencies.set(None)
    return deps


def collect_dependency(target: Base, property: str) -> None:
    """Record a property read, if a collection is open."""
    deps = current_dependencies.get()
    if deps is None:
        return
    deps.add_dependency(target, property)


def is_collecting() -> bool:
    return current_dependencies.get() is not None
