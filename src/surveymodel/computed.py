"""Computed values — a property whose value is derived from other properties.

A ComputedUpdater wraps a function. Attached to (target, property) it
evaluates the function while collecting dependencies, stores the result on
the target, and subscribes itself to every (object, property) pair the
function read. When any of them changes it re-evaluates, re-collects and
swaps subscriptions: the old tracker is disposed before the new one is
installed.

Unlike snapshot-style caches, re-evaluation is eager and synchronous.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from surveymodel._tracking import Dependencies, finish_collecting, start_collecting

if TYPE_CHECKING:
    from surveymodel.base import Base

T = TypeVar("T")


class ComputedUpdater(Generic[T]):
    """Re-evaluates a function whenever a property it read changes."""

    def __init__(self, updater: Callable[[], T]) -> None:
        self._updater = updater
        self._dependencies: Dependencies | None = None
        self._target: Base | None = None
        self._property: str | None = None

    @property
    def updater(self) -> Callable[[], T]:
        return self._updater

    @property
    def dependencies(self) -> Dependencies | None:
        return self._dependencies

    def set_dependencies(self, dependencies: Dependencies | None) -> None:
        """Dispose the installed tracker, then subscribe the new one."""
        self._clear_dependencies()
        self._dependencies = dependencies
        if dependencies is not None:
            dependencies.subscribe()

    def evaluate(self) -> T:
        """Run the updater under a fresh collection and install its dependencies."""
        start_collecting(self._recompute, self._target, self._property)
        try:
            value = self._updater()
        finally:
            deps = finish_collecting()
        self.set_dependencies(deps)
        return value

    def attach(self, target: Base, property: str) -> T:
        """Bind to target.property and return the first evaluated value."""
        self._target = target
        self._property = property
        return self.evaluate()

    def _recompute(self, _new_value=None) -> None:
        value = self.evaluate()
        if self._target is not None:
            self._target._set_computed_value(self._property, value)

    def _clear_dependencies(self) -> None:
        if self._dependencies is not None:
            self._dependencies.dispose()
            self._dependencies = None

    def dispose(self) -> None:
        """Stop re-evaluating. Unsubscribes from every dependency."""
        self._clear_dependencies()

    def __repr__(self) -> str:
        name = getattr(self._updater, "__name__", "updater")
        return f"ComputedUpdater({name}, {len(self._dependencies or ())} deps)"


def computed(fn: Callable[[], T]) -> ComputedUpdater[T]:
    """Decorator/factory to create a ComputedUpdater from a function.

    Usage:
        order.total = computed(lambda: order.price * order.quantity)
        order.quantity = 3   # total is re-evaluated
    """
    return ComputedUpdater(fn)
