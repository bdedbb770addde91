"""Base — the reactive object every survey element inherits from.

A Base owns a property store. Reads go through get_property_value(), which
records the read for dependency collection and resolves declared defaults.
Writes go through set_property_value(), which runs the change pipeline in a
fixed order:

    a. nothing at all while loading from JSON
    b. push the value out through a binding, if the property is bound
    c. on_property_value_changed() hook
    d. on_property_changed event
    e. on_property_value_changed_callback() on the survey and on self
    f. re-run the property's expression, if it is an expression property
    g. per-property listeners

Everything is synchronous. Exceptions raised by listeners propagate to the
caller of the write; the write itself is not rolled back. Listeners that
write back into the object they listen to can recurse without limit; that
is the caller's responsibility.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol, runtime_checkable

from surveymodel import settings
from surveymodel._tracking import collect_dependency
from surveymodel.bindings import Bindings
from surveymodel.computed import ComputedUpdater
from surveymodel.conditions import ExpressionRunner, create_expression_runner
from surveymodel.event import EventBase
from surveymodel.helpers import is_two_value_equals, is_value_empty
from surveymodel.localizable import LocalizableString, get_string
from surveymodel.metadata import JsonProperty, serializer
from surveymodel.sequence import ArrayChanges, PropertyArray

logger = logging.getLogger("surveymodel.base")


class SurveyNotifier(Protocol):
    """What a Base needs from the survey that contains it."""

    is_design_mode: bool
    is_editing_survey_element: bool

    def get_locale(self) -> str: ...

    def on_property_value_changed_callback(
        self, name: str, old_value, new_value, sender: Base, array_changes: ArrayChanges | None
    ) -> None: ...


@runtime_checkable
class ItemValueLike(Protocol):
    """Items held by an item-value array."""

    loc_owner: Any
    owner_property_name: str | None
    loc_text: LocalizableString


class PropertyValue:
    """Descriptor exposing a stored property as a plain attribute.

    Usage:
        class Question(Base):
            title = PropertyValue()
            visible = PropertyValue(default=True)
    """

    def __init__(self, name: str | None = None, default=None) -> None:
        self.name = name
        self.default = default

    def __set_name__(self, owner, name: str) -> None:
        if self.name is None:
            self.name = name

    def __get__(self, instance: Base | None, owner):
        if instance is None:
            return self
        return instance.get_property_value(self.name, self.default)

    def __set__(self, instance: Base, value) -> None:
        instance.set_property_value(self.name, value)


class _ArrayInfo:
    __slots__ = ("is_item_values", "on_push", "on_remove")

    def __init__(self, on_push, on_remove) -> None:
        self.is_item_values = False
        self.on_push = on_push
        self.on_remove = on_remove


class _ExpressionInfo:
    __slots__ = ("on_execute", "can_run", "runner")

    def __init__(self, on_execute, can_run) -> None:
        self.on_execute = on_execute
        self.can_run = can_run
        self.runner: ExpressionRunner | None = None


class _PropertyListener:
    __slots__ = ("name", "func", "key")

    def __init__(self, name: str, func: Callable, key: str | None) -> None:
        self.name = name
        self.func = func
        self.key = key


class Base:
    """A reactive object: property store, change pipeline, bindings, events."""

    def __init__(self) -> None:
        self._property_hash: dict[str, Any] = {}
        self._localizable_strings: dict[str, LocalizableString] | None = None
        self._arrays_info: dict[str, _ArrayInfo] | None = None
        self._expression_info: dict[str, _ExpressionInfo] | None = None
        self._computed_updaters: dict[str, ComputedUpdater] | None = None
        self._on_prop_change_functions: list[_PropertyListener] | None = None
        self._event_list: list[EventBase] = []
        self._is_disposed = False
        self._is_loading_from_json = False
        self.loading_owner: Base | None = None
        self._bindings = Bindings(self)
        # (sender, {"name", "old_value", "new_value"})
        self.on_property_changed = self.add_event()
        # (sender, {"obj", "name", "old_value", "new_value", "property_name"})
        self.on_item_value_property_changed = self.add_event()
        self._is_creating = True
        self.on_base_creating()
        self._is_creating = False

    def dispose(self) -> None:
        """Clear every event and listener and stop accepting writes. Safe to call twice."""
        for event in self._event_list:
            event.clear()
        if self._computed_updaters:
            for updater in self._computed_updaters.values():
                updater.dispose()
            self._computed_updaters = None
        if self._arrays_info:
            for name in self._arrays_info:
                array = self._property_hash.get(name)
                if isinstance(array, PropertyArray):
                    array.on_array_changed.clear()
        self._on_prop_change_functions = None
        self._is_disposed = True

    @property
    def is_disposed(self) -> bool:
        return self._is_disposed

    def add_event(self) -> EventBase:
        event = EventBase()
        self._event_list.append(event)
        return event

    def on_base_creating(self) -> None:
        pass

    def get_type(self) -> str:
        """The type name used by the metadata registry."""
        return "base"

    def get_template(self) -> str:
        return self.get_type()

    def is_descendant_of(self, type_name: str) -> bool:
        return serializer.is_descendant_of(self.get_type(), type_name)

    def get_survey(self, is_live: bool = False) -> SurveyNotifier | None:
        return None

    @property
    def is_design_mode(self) -> bool:
        survey = self.get_survey()
        return survey is not None and survey.is_design_mode

    @property
    def in_survey(self) -> bool:
        return self.get_survey(True) is not None

    @property
    def is_editing_survey_element(self) -> bool:
        survey = self.get_survey()
        return survey is not None and survey.is_editing_survey_element

    # --- Bindings ---

    @property
    def bindings(self) -> Bindings:
        return self._bindings

    def check_bindings(self, value_name: str, value) -> None:
        pass

    def update_bindings(self, property_name: str, value) -> None:
        value_name = self.bindings.get_value_name_by_property_name(property_name)
        if value_name:
            self.update_binding_value(value_name, value)

    def update_binding_value(self, value_name: str, value) -> None:
        """Push a bound property's new value outward. Override in subclasses."""

    def on_binding_changed(self, old_value, new_value) -> None:
        if self.is_loading_from_json:
            return
        self._do_property_value_changed_callback("bindings", old_value, new_value)

    # --- Loading ---

    @property
    def is_loading_from_json(self) -> bool:
        if self._is_loading_from_json:
            return True
        return self.loading_owner is not None and self.loading_owner.is_loading_from_json

    def start_loading_from_json(self, json=None) -> None:
        self._is_loading_from_json = True

    def end_loading_from_json(self) -> None:
        self._is_loading_from_json = False

    def to_json(self) -> dict:
        from surveymodel.jsonobject import JsonObject  # noqa: PLC0415

        return JsonObject().to_json_object(self)

    def from_json(self, json: dict) -> None:
        from surveymodel.jsonobject import JsonObject  # noqa: PLC0415

        JsonObject().to_object(json, self)
        self.on_survey_load()

    def on_survey_load(self) -> None:
        pass

    def clone(self) -> Base:
        """A new object of the same type with the same serialized properties."""
        cloned = serializer.create_class(self.get_type())
        if cloned is None:
            cloned = type(self)()
        cloned.from_json(self.to_json())
        return cloned

    # --- Metadata ---

    def get_property_by_name(self, name: str) -> JsonProperty | None:
        return serializer.find_property(self.get_type(), name)

    def is_property_visible(self, name: str) -> bool:
        prop = self.get_property_by_name(name)
        return prop.is_visible("", self) if prop is not None else False

    @staticmethod
    def create_progress_info() -> dict[str, int]:
        return {
            "question_count": 0,
            "answered_question_count": 0,
            "required_question_count": 0,
            "required_answered_question_count": 0,
        }

    def get_progress_info(self) -> dict[str, int]:
        return Base.create_progress_info()

    # --- Property store ---

    def is_value_empty(self, value, trim_string: bool = True) -> bool:
        return is_value_empty(value, trim_string)

    def _is_property_empty(self, value) -> bool:
        return not (isinstance(value, str) and value == "") and self.is_value_empty(value)

    def is_two_value_equals(self, x, y) -> bool:
        return is_two_value_equals(x, y)

    def get_property_value(self, name: str, default_value=None):
        """Return a property's value, or its default when the stored value is empty.

        Defaults are resolved on every call: default_value when given, then
        the declared default (sequences excluded), then False for boolean
        properties, then the custom property's on_get_value callback.
        """
        res = self._get_property_value_core(name)
        if self._is_property_empty(res):
            if default_value is not None:
                return default_value
            prop = serializer.find_property(self.get_type(), name)
            if prop is not None and (not prop.is_custom or not self._is_creating):
                if not self._is_property_empty(prop.default_value) and not isinstance(
                    prop.default_value, (list, tuple)
                ):
                    return prop.default_value
                if prop.type in ("boolean", "switch"):
                    return False
                if prop.is_custom and prop.on_get_value is not None:
                    return prop.on_get_value(self)
        return res

    def _get_property_value_core(self, name: str):
        collect_dependency(self, name)
        return self._property_hash.get(name)

    def _set_property_value_core(self, name: str, value) -> bool:
        if self._is_disposed:
            self._warn_disposed(name)
            return False
        self._property_hash[name] = value
        return True

    def _warn_disposed(self, name: str) -> None:
        logger.warning("Attempt to set property '%s' of a disposed object '%s'", name, self.get_type())

    def iterate_properties_hash(self, func: Callable[[dict, str], None]) -> None:
        keys = []
        for key in self._property_hash:
            if key == "value" and self.is_editing_survey_element and isinstance(
                self._property_hash.get("value"), PropertyArray
            ):
                continue
            keys.append(key)
        for key in keys:
            func(self._property_hash, key)

    def set_property_value(self, name: str, value) -> None:
        """Store a value and run the change pipeline if it differs from the current one.

        Assigning a ComputedUpdater makes the property computed: its function
        is evaluated now and again whenever a property it read changes.
        Assigning anything else detaches a previous ComputedUpdater.
        """
        if self._is_disposed:
            self._warn_disposed(name)
            return
        if isinstance(value, ComputedUpdater):
            value = self._attach_computed(name, value)
        else:
            self._detach_computed(name)
        self._assign_property_value(name, value)

    def _assign_property_value(self, name: str, value) -> None:
        if not self.is_loading_from_json:
            prop = self.get_property_by_name(name)
            if prop is not None:
                value = prop.setting_value(self, value)
        old_value = self.get_property_value(name)
        if (
            isinstance(old_value, PropertyArray)
            and self._arrays_info is not None
            and name in self._arrays_info
            and (value is None or isinstance(value, (list, tuple, PropertyArray)))
        ):
            if self.is_two_value_equals(old_value, value):
                return
            self._set_array_property_directly(name, value)
        else:
            self.set_property_value_directly(name, value)
            if not self._is_disposed and not self.is_two_value_equals(old_value, value):
                self.property_value_changed(name, old_value, value)

    def _attach_computed(self, name: str, updater: ComputedUpdater):
        self._detach_computed(name)
        if self._computed_updaters is None:
            self._computed_updaters = {}
        self._computed_updaters[name] = updater
        return updater.attach(self, name)

    def _detach_computed(self, name: str) -> None:
        if not self._computed_updaters:
            return
        updater = self._computed_updaters.pop(name, None)
        if updater is not None:
            updater.dispose()

    def _set_computed_value(self, name: str, value) -> None:
        self._assign_property_value(name, value)

    def _set_array_property_directly(self, name: str, value) -> None:
        info = self._arrays_info[name]
        self._set_array(name, self._property_hash[name], value, info.is_item_values)

    def set_property_value_directly(self, name: str, value) -> None:
        self._set_property_value_core(name, value)

    def clear_property_value(self, name: str) -> None:
        if self._set_property_value_core(name, None):
            del self._property_hash[name]

    # --- Change pipeline ---

    def on_property_value_changed_callback(
        self, name: str, old_value, new_value, sender: Base, array_changes: ArrayChanges | None
    ) -> None:
        """Called for every change of this object when it has no survey. Override in subclasses."""

    def on_property_value_changed(self, name: str, old_value, new_value) -> None:
        """Called after every change of this object's properties. Override in subclasses."""

    def item_value_property_changed(self, item, name: str, old_value, new_value) -> None:
        self.on_item_value_property_changed.fire(
            self,
            {
                "obj": item,
                "name": name,
                "old_value": old_value,
                "new_value": new_value,
                "property_name": getattr(item, "owner_property_name", None),
            },
        )

    def property_value_changed(
        self,
        name: str,
        old_value,
        new_value,
        array_changes: ArrayChanges | None = None,
        target: Base | None = None,
    ) -> None:
        if self.is_loading_from_json:
            return
        self.update_bindings(name, new_value)
        self.on_property_value_changed(name, old_value, new_value)
        self.on_property_changed.fire(self, {"name": name, "old_value": old_value, "new_value": new_value})
        self._do_property_value_changed_callback(name, old_value, new_value, array_changes, self)
        self._check_condition_property_changed(name)
        if not self._on_prop_change_functions:
            return
        for listener in list(self._on_prop_change_functions):
            # skip listeners unregistered by an earlier one
            if listener.name == name and listener in self._on_prop_change_functions:
                listener.func(new_value)

    @property
    def is_internal(self) -> bool:
        return False

    def _get_property_changed_notifiers(self) -> list:
        survey = self.get_survey()
        if survey is None or survey is self:
            return [self]
        return [survey, self]

    def _do_property_value_changed_callback(
        self,
        name: str,
        old_value,
        new_value,
        array_changes: ArrayChanges | None = None,
        target: Base | None = None,
    ) -> None:
        if self.is_internal:
            return
        if target is None:
            target = self
        for notifier in self._get_property_changed_notifiers():
            if notifier is self and self._is_disposed:
                continue
            notifier.on_property_value_changed_callback(name, old_value, new_value, target, array_changes)

    # --- Expression properties ---

    def add_expression_property(
        self,
        name: str,
        on_execute: Callable[[Base, Any], None],
        can_run: Callable[[Base], bool] | None = None,
    ) -> None:
        """Evaluate the expression stored in name whenever it changes and pass the result to on_execute."""
        if self._expression_info is None:
            self._expression_info = {}
        self._expression_info[name] = _ExpressionInfo(on_execute, can_run)

    def get_data_filtered_values(self) -> dict:
        return {}

    def get_data_filtered_properties(self) -> dict:
        return {}

    def run_condition_core(self, values: dict, properties: dict) -> None:
        if not self._expression_info:
            return
        for name in list(self._expression_info):
            self._run_condition_item_core(name, values, properties)

    def can_run_conditions(self) -> bool:
        return not self.is_design_mode

    def _check_condition_property_changed(self, name: str) -> None:
        if not self._expression_info or name not in self._expression_info:
            return
        if not self.can_run_conditions():
            return
        self._run_condition_item_core(name, self.get_data_filtered_values(), self.get_data_filtered_properties())

    def _run_condition_item_core(self, name: str, values: dict, properties: dict) -> None:
        info = self._expression_info[name]
        expression = self.get_property_value(name)
        if not expression:
            return
        if info.can_run is not None and not info.can_run(self):
            return
        if info.runner is None:
            runner = create_expression_runner(expression)
            if runner is None:
                logger.warning(
                    "No expression runner configured, '%s' of '%s' is not evaluated", name, self.get_type()
                )
                return
            runner.on_run_complete = lambda res: info.on_execute(self, res)
            info.runner = runner
        info.runner.expression = expression
        info.runner.run(values, properties)

    # --- Per-property listeners ---

    def register_function_on_property_value_changed(self, name: str, func: Callable, key: str | None = None) -> None:
        """Call func(new_value) whenever name changes.

        A non-None key identifies the registration: registering the same
        (name, key) again replaces the function instead of adding another.
        """
        if self._on_prop_change_functions is None:
            self._on_prop_change_functions = []
        if key:
            for listener in self._on_prop_change_functions:
                if listener.name == name and listener.key == key:
                    listener.func = func
                    return
        self._on_prop_change_functions.append(_PropertyListener(name, func, key))

    def register_function_on_properties_value_changed(
        self, names: list[str], func: Callable, key: str | None = None
    ) -> None:
        for name in names:
            self.register_function_on_property_value_changed(name, func, key)

    def unregister_function_on_property_value_changed(self, name: str, key: str | None = None) -> None:
        if not self._on_prop_change_functions:
            return
        for i, listener in enumerate(self._on_prop_change_functions):
            if listener.name == name and listener.key == key:
                del self._on_prop_change_functions[i]
                return

    def unregister_function_on_properties_value_changed(self, names: list[str], key: str | None = None) -> None:
        for name in names:
            self.unregister_function_on_property_value_changed(name, key)

    # --- Localization ---

    def get_locale(self) -> str:
        survey = self.get_survey()
        return survey.get_locale() if survey is not None else ""

    def locale_changed(self) -> None:
        pass

    def loc_strs_changed(self) -> None:
        """Re-render every localized text, e.g. after a locale switch."""
        if self._arrays_info:
            for name, info in self._arrays_info.items():
                if info.is_item_values:
                    items = self.get_property_value(name)
                    if items and settings.item_value_loc_str_changed is not None:
                        settings.item_value_loc_str_changed(items)
        if self._localizable_strings:
            for loc_str in list(self._localizable_strings.values()):
                loc_str.str_changed()

    def get_localization_string(self, name: str) -> str:
        return get_string(name, self.get_locale())

    def get_localization_format_string(self, name: str, *args) -> str:
        text = self.get_localization_string(name)
        if not text:
            return ""
        return text.format(*args)

    def create_localizable_string(
        self,
        name: str,
        owner=None,
        use_markdown: bool = False,
        default_str: bool | str = False,
    ) -> LocalizableString:
        """Create the localized string behind property name; its changes run the pipeline."""
        localization_name = None
        if default_str:
            localization_name = name if default_str is True else default_str
        loc_str = LocalizableString(owner if owner is not None else self, use_markdown, name, localization_name)
        loc_str.on_str_changed = lambda old, new: self.property_value_changed(name, old, new)
        if self._localizable_strings is None:
            self._localizable_strings = {}
        self._localizable_strings[name] = loc_str
        return loc_str

    def create_custom_localizable_obj(self, name: str) -> None:
        if self.get_localizable_string(name) is not None:
            return
        self.create_localizable_string(name, self, False, True)

    def get_localizable_string(self, name: str) -> LocalizableString | None:
        if self._localizable_strings is None:
            return None
        return self._localizable_strings.get(name)

    def get_localizable_string_text(self, name: str, default_str: str = "") -> str:
        collect_dependency(self, name)
        loc_str = self.get_localizable_string(name)
        if loc_str is None:
            return ""
        return loc_str.text or default_str

    def set_localizable_string_text(self, name: str, value: str) -> None:
        loc_str = self.get_localizable_string(name)
        if loc_str is None:
            return
        if loc_str.text != value:
            loc_str.text = value

    def add_used_locales(self, locales: list[str]) -> None:
        if self._localizable_strings:
            for loc_str in self._localizable_strings.values():
                self._add_loc_string_to_used_locales(loc_str, locales)
        if self._arrays_info:
            for name in self._arrays_info:
                for item in self.get_property_value(name) or ():
                    if isinstance(item, Base):
                        item.add_used_locales(locales)
                    elif isinstance(item, ItemValueLike):
                        self._add_loc_string_to_used_locales(item.loc_text, locales)

    def search_text(self, text: str, found: list[dict]) -> None:
        """Append {"element", "str"} for every localized string containing text."""
        for loc_str in self._get_searchable_localized_strings():
            if loc_str.set_find_text(text):
                found.append({"element": self, "str": loc_str})

    def _get_searchable_localized_strings(self) -> list[LocalizableString]:
        res = []
        if self._localizable_strings:
            keys: list[str] = []
            self.get_searchable_loc_keys(keys)
            for key in keys:
                loc_str = self.get_localizable_string(key)
                if loc_str is not None:
                    res.append(loc_str)
        if self._arrays_info:
            keys = []
            self.get_searchable_item_value_keys(keys)
            for key in keys:
                for item in self.get_property_value(key) or ():
                    if isinstance(item, ItemValueLike):
                        res.append(item.loc_text)
        return res

    def get_searchable_loc_keys(self, keys: list[str]) -> None:
        pass

    def get_searchable_item_value_keys(self, keys: list[str]) -> None:
        pass

    def _add_loc_string_to_used_locales(self, loc_str: LocalizableString, locales: list[str]) -> None:
        for locale in loc_str.get_locales():
            if locale not in locales:
                locales.append(locale)

    # --- Arrays ---

    def create_item_values(self, name: str) -> PropertyArray:
        """Create an array whose items are owned by this object under name."""

        def on_push(item, index):
            if isinstance(item, ItemValueLike):
                item.loc_owner = self
                item.owner_property_name = name

        result = self.create_new_array(name, on_push)
        self._arrays_info[name].is_item_values = True
        return result

    def ensure_array(self, name: str, on_push=None, on_remove=None) -> PropertyArray | None:
        if self._arrays_info is not None and name in self._arrays_info:
            return None
        return self.create_new_array(name, on_push, on_remove)

    def create_new_array(
        self,
        name: str,
        on_push: Callable[[Any, int], None] | None = None,
        on_remove: Callable[[Any], None] | None = None,
    ) -> PropertyArray:
        """Store a fresh PropertyArray under name and route its edits into the pipeline."""

        def notify(changes: ArrayChanges, old_value) -> None:
            self.property_value_changed(name, old_value, array, changes)

        array = PropertyArray(
            on_push=on_push,
            on_remove=on_remove,
            notify=notify,
            is_disposed=lambda: self._is_disposed,
        )
        self._set_property_value_core(name, array)
        if self._arrays_info is None:
            self._arrays_info = {}
        self._arrays_info[name] = _ArrayInfo(on_push, on_remove)
        return array

    def get_item_value_type(self) -> str | None:
        return None

    def _set_array(self, name: str, src: PropertyArray, dest, is_item_values: bool) -> None:
        if self._is_disposed:
            self._warn_disposed(name)
            return
        transform = None
        if is_item_values and settings.item_value_factory is not None:
            item_type = self.get_item_value_type()
            transform = lambda item: settings.item_value_factory(item, item_type)  # noqa: E731
        src.replace(dest, transform)

    # --- Misc ---

    @staticmethod
    def _copy_object(dst: dict, src: dict) -> None:
        for key, value in src.items():
            if isinstance(value, dict):
                nested: dict = {}
                Base._copy_object(nested, value)
                value = nested
            dst[key] = value

    def copy_css_classes(self, dest: dict, source) -> None:
        if not source:
            return
        if isinstance(source, str):
            dest["root"] = source
        else:
            Base._copy_object(dest, source)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.get_type()!r})"
