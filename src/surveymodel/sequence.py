"""Instrumented sequences — lists that report every structural edit.

A PropertyArray owns a plain list and is held in a Base property. Every
mutation produces an ArrayChanges record and then, in order:

1. on_push / on_remove for each affected element,
2. the owner's change pipeline (old and new value are the array itself),
3. the array's own on_array_changed event.

Once the owner is disposed, mutations still edit the list but nothing is
reported.
"""

from __future__ import annotations

from collections.abc import Iterable, MutableSequence
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from surveymodel.event import EventBase

OnPush = Callable[[Any, int], None]
OnRemove = Callable[[Any], None]
Notify = Callable[["ArrayChanges", Any], None]


@dataclass
class ArrayChanges:
    """One structural edit: delete_count items at index replaced by items_added."""

    index: int
    delete_count: int
    items_added: list = field(default_factory=list)
    items_removed: list = field(default_factory=list)


class PropertyArray(MutableSequence):
    """A list wrapper that emits ArrayChanges on append, pop, splice and friends."""

    def __init__(
        self,
        items: Iterable | None = None,
        *,
        on_push: OnPush | None = None,
        on_remove: OnRemove | None = None,
        notify: Notify | None = None,
        is_disposed: Callable[[], bool] | None = None,
    ) -> None:
        self._items: list = list(items) if items else []
        self.on_push = on_push
        self.on_remove = on_remove
        self._notify = notify
        self._is_disposed = is_disposed
        self.on_array_changed = EventBase()

    # --- Read operations ---

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator:
        return iter(self._items)

    def __contains__(self, item) -> bool:
        return item in self._items

    def __eq__(self, other) -> bool:
        if isinstance(other, PropertyArray):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return self._items == list(other)
        return NotImplemented

    __hash__ = None

    def to_list(self) -> list:
        return list(self._items)

    # --- Write operations (report) ---

    def append(self, item) -> None:
        self._items.append(item)
        if not self._active():
            return
        if self.on_push is not None:
            self.on_push(item, len(self._items) - 1)
        self._changed(ArrayChanges(len(self._items) - 1, 0, [item], []))

    def appendleft(self, item) -> None:
        self._items.insert(0, item)
        if not self._active():
            return
        if self.on_push is not None:
            self.on_push(item, 0)
        self._changed(ArrayChanges(0, 0, [item], []))

    def pop(self, index: int = -1):
        """Remove and return an item; returns None when the array is empty."""
        if not self._items:
            return None
        if index not in (-1, len(self._items) - 1):
            start, _ = self._span(index)
            return self.splice(start, 1)[0]
        result = self._items.pop()
        if self._active():
            if self.on_remove is not None:
                self.on_remove(result)
            self._changed(ArrayChanges(len(self._items), 1, [], [result]))
        return result

    def popleft(self):
        """Remove and return the first item; returns None when the array is empty."""
        if not self._items:
            return None
        result = self._items.pop(0)
        if self._active():
            if self.on_remove is not None:
                self.on_remove(result)
            self._changed(ArrayChanges(len(self._items), 1, [], [result]))
        return result

    def splice(self, index: int, delete_count: int = 0, *items) -> list:
        """Delete delete_count items at index, insert items there, return the deleted ones."""
        size = len(self._items)
        if index < 0:
            index = max(size + index, 0)
        index = min(index, size)
        delete_count = max(0, min(delete_count, size - index))
        removed = self._items[index:index + delete_count]
        self._items[index:index + delete_count] = items
        if self._active():
            if self.on_remove is not None:
                for item in removed:
                    self.on_remove(item)
            if self.on_push is not None:
                for i, item in enumerate(items):
                    self.on_push(item, index + i)
            self._changed(ArrayChanges(index, delete_count, list(items), removed))
        return removed

    def insert(self, index: int, item) -> None:
        self.splice(index, 0, item)

    def __setitem__(self, index, value) -> None:
        start, count = self._span(index)
        if isinstance(index, slice):
            self.splice(start, count, *value)
        else:
            self.splice(start, count, value)

    def __delitem__(self, index) -> None:
        start, count = self._span(index)
        self.splice(start, count)

    def extend(self, values: Iterable) -> None:
        values = list(values)
        if values:
            self.splice(len(self._items), 0, *values)

    def clear(self) -> None:
        if self._items:
            self.splice(0, len(self._items))

    def replace(self, items: Iterable | None, transform: Callable[[Any], Any] | None = None) -> list:
        """Swap the whole content in place, reporting it as a single edit.

        Each new item is passed through transform first when given. Returns
        the items that were removed.
        """
        deleted = list(self._items)
        self._items.clear()
        for item in items or ():
            if transform is not None:
                item = transform(item)
            self._items.append(item)
        if not self._active():
            return deleted
        if self.on_remove is not None:
            for item in deleted:
                self.on_remove(item)
        if self.on_push is not None:
            for i, item in enumerate(self._items):
                self.on_push(item, i)
        self._changed(ArrayChanges(0, len(deleted), list(self._items), deleted), deleted)
        return deleted

    # --- Internals ---

    def _span(self, index) -> tuple[int, int]:
        size = len(self._items)
        if isinstance(index, slice):
            start, stop, step = index.indices(size)
            if step != 1:
                raise ValueError("PropertyArray does not support extended slices")
            return start, max(0, stop - start)
        if index < 0:
            index += size
        if not 0 <= index < size:
            raise IndexError("PropertyArray index out of range")
        return index, 1

    def _active(self) -> bool:
        return self._is_disposed is None or not self._is_disposed()

    def _changed(self, changes: ArrayChanges, old_value=None) -> None:
        if self._notify is not None:
            self._notify(changes, self if old_value is None else old_value)
        self.on_array_changed.fire(self, changes)

    def __repr__(self) -> str:
        return f"PropertyArray({self._items!r})"
