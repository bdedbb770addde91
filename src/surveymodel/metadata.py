"""Property metadata — what Base knows about a declared property.

The registry maps a type name (Base.get_type()) to its declared properties,
with single inheritance between types. Base consults it on every default
resolution and every set_property_value(); the serializer walks it to
decide what to write.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from surveymodel.base import Base


@dataclass
class JsonProperty:
    """Declared metadata for one property of a type."""

    name: str
    type: str = "string"
    default_value: Any = None
    is_custom: bool = False
    is_bindable: bool = False
    is_serializable: bool = True
    # type name of the objects held by an array property
    class_name: str | None = None
    visible: bool = True
    visible_if: Callable[[Base], bool] | None = None
    on_get_value: Callable[[Base], Any] | None = None
    on_setting_value: Callable[[Base, Any], Any] | None = None

    def is_visible(self, layout: str, obj: Base | None = None) -> bool:
        if not self.visible:
            return False
        if self.visible_if is not None and obj is not None:
            return bool(self.visible_if(obj))
        return True

    def setting_value(self, obj: Base, value):
        """Coerce a value on its way into the property store."""
        if self.on_setting_value is not None:
            return self.on_setting_value(obj, value)
        return value


class _ClassInfo:
    __slots__ = ("name", "parent", "properties", "creator")

    def __init__(self, name: str, parent: str | None, creator: Callable[[], Base] | None) -> None:
        self.name = name
        self.parent = parent
        self.properties: dict[str, JsonProperty] = {}
        self.creator = creator


class PropertyRegistry:
    """Type name -> declared properties, with inheritance."""

    def __init__(self) -> None:
        self._classes: dict[str, _ClassInfo] = {}

    def add_class(
        self,
        name: str,
        properties: list[JsonProperty | str] = (),
        creator: Callable[[], Base] | None = None,
        parent: str | None = None,
    ) -> None:
        """Declare a type. Strings in properties become plain string properties.

        A "name:type" string declares the type as well ("visible:boolean").
        """
        info = _ClassInfo(name, parent, creator)
        for prop in properties:
            if isinstance(prop, str):
                prop_name, _, prop_type = prop.partition(":")
                prop = JsonProperty(prop_name, prop_type or "string")
            info.properties[prop.name] = prop
        self._classes[name] = info

    def remove_class(self, name: str) -> None:
        self._classes.pop(name, None)

    def add_property(self, class_name: str, prop: JsonProperty) -> JsonProperty:
        """Add a property to an already declared type at runtime. It is marked custom."""
        prop.is_custom = True
        self._classes[class_name].properties[prop.name] = prop
        return prop

    def remove_property(self, class_name: str, name: str) -> None:
        info = self._classes.get(class_name)
        if info is not None:
            info.properties.pop(name, None)

    def find_property(self, class_name: str, name: str) -> JsonProperty | None:
        info = self._classes.get(class_name)
        while info is not None:
            prop = info.properties.get(name)
            if prop is not None:
                return prop
            info = self._classes.get(info.parent) if info.parent else None
        return None

    def get_properties(self, class_name: str) -> list[JsonProperty]:
        """All properties of a type, ancestors first; a subtype's entry overrides."""
        chain = []
        info = self._classes.get(class_name)
        while info is not None:
            chain.append(info)
            info = self._classes.get(info.parent) if info.parent else None
        merged: dict[str, JsonProperty] = {}
        for info in reversed(chain):
            merged.update(info.properties)
        return list(merged.values())

    def get_properties_by_obj(self, obj: Base) -> list[JsonProperty]:
        return self.get_properties(obj.get_type())

    def is_descendant_of(self, class_name: str, ancestor: str) -> bool:
        info = self._classes.get(class_name)
        while info is not None:
            if info.name == ancestor:
                return True
            info = self._classes.get(info.parent) if info.parent else None
        return False

    def create_class(self, name: str) -> Base | None:
        info = self._classes.get(name)
        if info is None or info.creator is None:
            return None
        return info.creator()


# Process-wide registry consulted by Base.
serializer = PropertyRegistry()
