"""JSON (de)serialization of Base objects through the metadata registry.

Writing walks the declared properties and emits every non-default value.
Reading runs inside a loading scope, so the change pipeline, binding
propagation and binding notifications stay silent until loading ends.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from surveymodel.base import Base
from surveymodel.helpers import is_two_value_equals, is_value_empty
from surveymodel.metadata import JsonProperty, serializer
from surveymodel.sequence import PropertyArray

logger = logging.getLogger("surveymodel.jsonobject")


@contextmanager
def loading(obj: Base, json: dict | None = None) -> Iterator[Base]:
    """Bulk-load scope: property writes on obj (and objects it owns) are silent.

    Usage:
        with loading(question):
            question.title = "Age"
            question.choices = [1, 2, 3]
        # nothing was notified
    """
    obj.start_loading_from_json(json)
    logger.debug("Loading %s started", obj.get_type())
    try:
        yield obj
    finally:
        obj.end_loading_from_json()
        logger.debug("Loading %s finished", obj.get_type())


class JsonObject:
    """Converts between Base objects and plain dicts."""

    def to_json_object(self, obj: Base) -> dict:
        result: dict = {}
        for prop in serializer.get_properties_by_obj(obj):
            if not prop.is_serializable:
                continue
            value = self._get_serializable_value(obj, prop)
            if value is not None:
                result[prop.name] = value
        if not obj.bindings.is_empty():
            result["bindings"] = obj.bindings.get_json()
        return result

    def to_object(self, json: dict, obj: Base) -> None:
        with loading(obj, json):
            for key, value in json.items():
                if key == "bindings":
                    obj.bindings.set_json(value)
                    continue
                prop = obj.get_property_by_name(key)
                if prop is None:
                    logger.debug("Unknown property '%s' of '%s' skipped", key, obj.get_type())
                    continue
                self._set_value(obj, prop, value)

    def _get_serializable_value(self, obj: Base, prop: JsonProperty):
        loc_str = obj.get_localizable_string(prop.name)
        if loc_str is not None:
            return loc_str.get_json()
        value = obj.get_property_value(prop.name)
        if is_value_empty(value, trim_string=False):
            return None
        if prop.default_value is not None and is_two_value_equals(value, prop.default_value):
            return None
        if prop.type in ("boolean", "switch") and value is False:
            return None
        return self._value_to_json(value)

    def _value_to_json(self, value):
        if isinstance(value, Base):
            return self.to_json_object(value)
        if isinstance(value, (list, tuple, PropertyArray)):
            return [self._value_to_json(item) for item in value]
        return value

    def _set_value(self, obj: Base, prop: JsonProperty, value) -> None:
        loc_str = obj.get_localizable_string(prop.name)
        if loc_str is not None:
            loc_str.set_json(value)
            return
        current = obj.get_property_value(prop.name)
        if isinstance(current, Base) and isinstance(value, dict):
            self.to_object(value, current)
            return
        if isinstance(value, list) and prop.class_name:
            value = [self._create_item(item, prop.class_name) for item in value]
        obj.set_property_value(prop.name, value)

    def _create_item(self, item, class_name: str):
        if not isinstance(item, dict):
            return item
        created = serializer.create_class(item.get("type", class_name))
        if created is None:
            return item
        self.to_object(item, created)
        return created
