"""
Retraction engine.

Applies retracted facts against existing raw records:

- the entity id key is never removed
- retracting a null value clears the attribute: an empty set for
  cardinality-many attributes, a removed key otherwise
- retracting exactly the current value removes the key
- retracting elements from a set removes them (set difference)
- anything else is a mismatch and leaves the record alone
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Mapping
from typing import Any

from entitymap.projections.folding import E_KEY, RawData, RawRecord
from entitymap.projections.null_marker import freeze_value, is_collection, is_null_value
from entitymap.schemas.facts import DataTuple

logger = logging.getLogger(__name__)

_ABSENT = object()


def _without(record: RawRecord, attribute: Hashable) -> RawRecord:
    return {key: val for key, val in record.items() if key != attribute}


def remove_attribute_value(
    record: RawRecord,
    attribute: Hashable,
    value: Any,
    cardinality_many: frozenset,
) -> RawRecord:
    """
    Return ``record`` with ``value`` retracted from ``attribute``.

    The input record is returned unchanged (same object) when the
    retraction doesn't apply.
    """
    if attribute == E_KEY:
        return record

    if is_null_value(value):
        if attribute in cardinality_many:
            return {**record, attribute: frozenset()}
        return _without(record, attribute)

    existing = record.get(attribute, _ABSENT)
    if existing is _ABSENT:
        return record

    if _values_equal(existing, freeze_value(value)):
        return _without(record, attribute)

    if isinstance(existing, frozenset):
        if is_collection(value):
            to_remove = frozenset(v for v in value if isinstance(v, Hashable))
        elif isinstance(value, Hashable):
            to_remove = frozenset([value])
        else:
            return record
        return {**record, attribute: existing - to_remove}

    return record


def apply_retractions(
    facts: Iterable[DataTuple],
    raw_data: Mapping[Hashable, RawRecord],
    cardinality_many: frozenset,
) -> RawData:
    """
    Apply retracted facts, in order, to a copy of ``raw_data``.

    Retractions naming entities that aren't in ``raw_data`` are inert.

    Args:
        facts: Retracted facts in arrival order
        raw_data: Existing entity id -> raw record mapping
        cardinality_many: Attribute names holding sets of values

    Returns:
        New entity id -> raw record mapping
    """
    retracted: RawData = dict(raw_data)
    for fact in facts:
        record = retracted.get(fact.entity)
        if record is None:
            logger.debug(
                "Ignoring retraction for unknown entity",
                extra={"entity_id": repr(fact.entity), "attribute": repr(fact.attribute)},
            )
            continue
        retracted[fact.entity] = remove_attribute_value(
            record, fact.attribute, fact.value, cardinality_many
        )
    return retracted


def _values_equal(existing: Any, value: Any) -> bool:
    # A set only equals another set; [1, 2] against frozenset({1, 2}) falls
    # through to set difference instead.
    if isinstance(existing, frozenset) and not isinstance(value, (set, frozenset)):
        return False
    return existing == value
