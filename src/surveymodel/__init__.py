"""surveymodel: the reactive object model behind survey elements."""

from importlib.metadata import version as _version

__version__ = _version("surveymodel")

from surveymodel._tracking import (
    Dependencies,
    NestedDependenciesError,
    collect_dependency,
    finish_collecting,
    start_collecting,
)
from surveymodel.event import Event, EventBase
from surveymodel.sequence import ArrayChanges, PropertyArray
from surveymodel.computed import ComputedUpdater, computed
from surveymodel.bindings import Bindings
from surveymodel.metadata import JsonProperty, PropertyRegistry, serializer
from surveymodel.localizable import LocalizableString, register_locale_strings
from surveymodel.base import Base, PropertyValue, SurveyNotifier
from surveymodel.jsonobject import JsonObject, loading
# surveymodel.textual is opt-in, import it explicitly

__all__ = [
    "ArrayChanges",
    "Base",
    "Bindings",
    "ComputedUpdater",
    "computed",
    "Dependencies",
    "Event",
    "EventBase",
    "JsonObject",
    "JsonProperty",
    "LocalizableString",
    "NestedDependenciesError",
    "PropertyArray",
    "PropertyRegistry",
    "PropertyValue",
    "SurveyNotifier",
    "collect_dependency",
    "finish_collecting",
    "loading",
    "register_locale_strings",
    "serializer",
    "start_collecting",
]
