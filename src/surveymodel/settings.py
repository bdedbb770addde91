"""Process-wide hooks the core calls into.

Each hook is set once at startup by the layer that owns the concrete
implementation:

    surveymodel.settings.set_item_value_factory(ItemValue.create)
    surveymodel.settings.set_expression_runner_factory(ExpressionRunner)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from surveymodel.conditions import ExpressionRunner

# (item, item_type) -> domain item; used when an item-value array is refilled
item_value_factory: Callable[[Any, str | None], Any] | None = None

# (items) -> None; called for item-value arrays on Base.loc_strs_changed()
item_value_loc_str_changed: Callable[[Any], None] | None = None

# (expression) -> ExpressionRunner; used by expression properties
expression_runner_factory: Callable[[str], ExpressionRunner] | None = None


def set_item_value_factory(factory: Callable[[Any, str | None], Any] | None) -> None:
    """Set the converter from raw array elements to item-value objects."""
    global item_value_factory
    item_value_factory = factory


def set_item_value_loc_str_changed(callback: Callable[[Any], None] | None) -> None:
    """Set the callback that refreshes localized texts of item-value arrays."""
    global item_value_loc_str_changed
    item_value_loc_str_changed = callback


def set_expression_runner_factory(factory: Callable[[str], ExpressionRunner] | None) -> None:
    """Set the constructor for expression runners."""
    global expression_runner_factory
    expression_runner_factory = factory
