"""
Null-marker algebra for folding facts into raw records.

Within one pass over a batch of facts an attribute slot is in one of three
states:

- ``MISSING``: the record has no key for the attribute
- ``NULL``: the attribute was explicitly cleared during this pass
- a present value (a scalar or tuple, or a frozenset for cardinality-many
  attributes)

``NULL`` lets "delete this value" survive the rest of the fold instead of
being lost to ordinary None handling. It is resolved to MISSING or an empty
set by the filter pass and never appears in a finished record.
"""

from __future__ import annotations

from typing import Any


class _Sentinel:
    """Named singleton marker."""

    __slots__ = ("_name",)

    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Sentinel":
        return self

    def __deepcopy__(self, memo: dict) -> "_Sentinel":
        return self


NULL = _Sentinel("NULL")
MISSING = _Sentinel("MISSING")

COLLECTION_TYPES = (list, tuple, set, frozenset)


def is_collection(value: Any) -> bool:
    """Lists, tuples and sets are collections; strings and mappings are not."""
    return isinstance(value, COLLECTION_TYPES)


def is_null_value(value: Any) -> bool:
    """
    None, the null marker, and empty collections are all null.

    ``0``, ``False`` and ``""`` are ordinary values.
    """
    if value is None or value is NULL:
        return True
    return is_collection(value) and len(value) == 0


def freeze_value(value: Any) -> Any:
    """Lists and tuples become tuples, sets become frozensets; other values pass through."""
    if isinstance(value, (list, tuple)):
        return tuple(value)
    if isinstance(value, (set, frozenset)):
        return frozenset(value)
    return value


def with_null_marker(value: Any) -> Any:
    """Replace any null value with the NULL marker."""
    return NULL if is_null_value(value) else value


def merge_value(prior: Any, incoming: Any, cardinality_many: bool) -> Any:
    """
    Merge an incoming fact value into an attribute slot.

    Cardinality-one:
        - a null incoming value sets the NULL marker
        - once NULL, the slot stays NULL for the rest of the pass
        - otherwise the incoming value replaces the prior one; lists are
          stored as tuples and sets as frozensets

    Cardinality-many:
        - a null incoming value resets the slot to NULL
        - otherwise the incoming scalar is added to (or the incoming
          collection unioned with) the working set; a NULL or MISSING
          prior starts a new, empty set

    Args:
        prior: Current slot value, MISSING, or NULL
        incoming: Raw value from the fact
        cardinality_many: Whether the attribute is multi-valued

    Returns:
        The new slot value (never MISSING)
    """
    if is_null_value(incoming):
        return NULL

    if not cardinality_many:
        if prior is NULL:
            return NULL
        return freeze_value(incoming)

    working = prior if isinstance(prior, frozenset) else frozenset()
    if is_collection(incoming):
        return working | frozenset(incoming)
    return working | {incoming}
