"""Bindings — which local property mirrors which external value name.

Each Base owns one Bindings table. When a bound property changes, Base
pushes the new value out through update_binding_value(). The table itself
reports changes to its owner as JSON snapshots (a plain dict, or None when
nothing is bound).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from surveymodel.metadata import JsonProperty, serializer

if TYPE_CHECKING:
    from surveymodel.base import Base


class Bindings:
    """Local property name -> external value name."""

    def __init__(self, obj: Base | None) -> None:
        self._obj = obj
        self._properties: list[JsonProperty] | None = None
        # None or a non-empty dict
        self._values: dict[str, str] | None = None

    def get_type(self) -> str:
        return "bindings"

    def get_names(self) -> list[str]:
        """Names of the bindable properties currently visible on the owner."""
        return [prop.name for prop in self._fill_properties() if prop.is_visible("", self._obj)]

    def get_properties(self) -> list[JsonProperty]:
        return list(self._fill_properties())

    def set_binding(self, property_name: str, value_name: str | None) -> None:
        """Bind property_name to value_name; an empty value_name removes the binding."""
        old_value = self.get_json()
        if value_name:
            if self._values is None:
                self._values = {}
            self._values[property_name] = value_name
        elif self._values is not None:
            self._values.pop(property_name, None)
            if not self._values:
                self._values = None
        if old_value == self.get_json():
            return
        self._on_changed_json(old_value)

    def clear_binding(self, property_name: str) -> None:
        self.set_binding(property_name, "")

    def is_empty(self) -> bool:
        return not self._values

    def get_value_name_by_property_name(self, property_name: str) -> str | None:
        if self._values is None:
            return None
        return self._values.get(property_name)

    def get_properties_by_value_name(self, value_name: str) -> list[str]:
        if self._values is None:
            return []
        return [key for key, value in self._values.items() if value == value_name]

    def get_json(self) -> dict[str, str] | None:
        if self.is_empty():
            return None
        return dict(self._values)

    def set_json(self, value: dict[str, str] | None) -> None:
        """Replace the whole table. Notifies even when the content is unchanged."""
        old_value = self.get_json()
        self._values = dict(value) if value else None
        if old_value is None and self._values is None:
            return
        self._on_changed_json(old_value)

    def _fill_properties(self) -> list[JsonProperty]:
        if self._properties is None:
            self._properties = []
            if self._obj is not None:
                self._properties = [
                    prop for prop in serializer.get_properties_by_obj(self._obj) if prop.is_bindable
                ]
        return self._properties

    def _on_changed_json(self, old_value) -> None:
        if self._obj is not None:
            self._obj.on_binding_changed(old_value, self.get_json())

    def __repr__(self) -> str:
        return f"Bindings({self._values!r})"
