"""
Filter and sorting functions for client-side table row models.

Filter functions take ``(value, filter_value)`` and return True when the row
should be kept. Sorting functions return a sort key; ``None`` values always
sort last regardless of direction (handled by the controller).
"""

from __future__ import annotations

import numbers
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, Union

from vibechecc.engine.errors import TableConfigError

FilterFn = Callable[[Any, Any], bool]
SortKeyFn = Callable[[Any], Any]


def _is_empty(filter_value: Any) -> bool:
    return filter_value is None or filter_value == ""


def fuzzy_filter(value: Any, filter_value: Any) -> bool:
    """Case-insensitive substring match on the string form of the value."""
    if _is_empty(filter_value):
        return True
    if value is None:
        return False
    return str(filter_value).lower() in str(value).lower()


# Same behaviour as fuzzy; kept under its own name for column definitions
includes_string = fuzzy_filter


def equals_string(value: Any, filter_value: Any) -> bool:
    if _is_empty(filter_value):
        return True
    if value is None:
        return False
    return str(value).lower() == str(filter_value).lower()


def equals(value: Any, filter_value: Any) -> bool:
    if _is_empty(filter_value):
        return True
    # Select filters always hand back strings
    if isinstance(filter_value, str) and not isinstance(value, str) and value is not None:
        return str(value) == filter_value
    return value == filter_value


def in_range(value: Any, filter_value: Any) -> bool:
    """``filter_value`` is a ``(min, max)`` pair; either bound may be None."""
    if _is_empty(filter_value):
        return True
    low, high = filter_value
    if value is None:
        return False
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


FILTER_FNS: Dict[str, FilterFn] = {
    "fuzzy": fuzzy_filter,
    "includesString": includes_string,
    "equalsString": equals_string,
    "equals": equals,
    "inRange": in_range,
}


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------

_DIGITS = re.compile(r"(\d+)")


def basic_key(value: Any) -> Any:
    """Natural order within one type; mixed columns sort numbers, then strings, then other types by name."""
    if isinstance(value, numbers.Real):
        return (0, "", value)
    if isinstance(value, str):
        return (1, "", value)
    return (2, type(value).__name__, value)


def alphanumeric_key(value: Any) -> Any:
    """Case-insensitive key comparing digit runs numerically ("item2" < "item10")."""
    parts = _DIGITS.split(str(value).lower())
    return tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in parts if p != "")


def datetime_key(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).timestamp()
    if isinstance(value, str):
        return datetime.fromisoformat(value).timestamp()
    return value


SORTING_FNS: Dict[str, SortKeyFn] = {
    "basic": basic_key,
    "alphanumeric": alphanumeric_key,
    "datetime": datetime_key,
}


def resolve_filter_fn(
    fn: Union[str, FilterFn, None],
    registry: Dict[str, FilterFn] = FILTER_FNS,
) -> FilterFn:
    """Look up a filter function by name; callables pass through."""
    if fn is None:
        return registry.get("fuzzy", fuzzy_filter)
    if callable(fn):
        return fn
    try:
        return registry[fn]
    except KeyError:
        raise TableConfigError(f"Unknown filter function '{fn}'", filter_fn=fn) from None


def resolve_sorting_fn(fn: Union[str, SortKeyFn, None]) -> SortKeyFn:
    """Look up a sorting key function by name; callables pass through."""
    if fn is None:
        return basic_key
    if callable(fn):
        return fn
    try:
        return SORTING_FNS[fn]
    except KeyError:
        raise TableConfigError(f"Unknown sorting function '{fn}'", sorting_fn=fn) from None
