"""Value predicates shared by the property store and the binding map.

Equality here is exact: strings are compared case-sensitively and without
trimming, booleans never equal numbers, and composite values are compared
element by element.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence


def _is_sequence(value) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def is_value_empty(value, trim_string: bool = True) -> bool:
    """True for None, "", and empty sequences or mappings.

    Whitespace-only strings count as empty unless trim_string is False.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return (value.strip() if trim_string else value) == ""
    if _is_sequence(value) or isinstance(value, Mapping):
        return len(value) == 0
    return False


def _is_unset_like(value) -> bool:
    if isinstance(value, str):
        return value == ""
    return _is_sequence(value) and len(value) == 0


def is_two_value_equals(x, y) -> bool:
    """Deep equality used to decide whether a write is a change."""
    if x is y:
        return True
    # None, "" and empty sequences are interchangeable with "unset"
    if x is None:
        return _is_unset_like(y)
    if y is None:
        return _is_unset_like(x)
    if isinstance(x, bool) or isinstance(y, bool):
        return type(x) is type(y) and x == y
    if _is_sequence(x) and _is_sequence(y):
        if len(x) != len(y):
            return False
        return all(is_two_value_equals(a, b) for a, b in zip(x, y))
    if isinstance(x, Mapping) and isinstance(y, Mapping):
        if set(x.keys()) != set(y.keys()):
            return False
        return all(is_two_value_equals(x[key], y[key]) for key in x)
    if _is_sequence(x) or _is_sequence(y) or isinstance(x, Mapping) or isinstance(y, Mapping):
        return False
    return x == y
