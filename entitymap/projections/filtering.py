"""
Null filter and pruner.

Runs at the end of every fold or retraction pass:

1. cardinality-many attributes missing from a record become empty sets
2. NULL markers become empty sets (cardinality-many) or removed keys
3. entities left with nothing but their id, or nothing but empty sets,
   are dropped
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping

from entitymap.projections.folding import E_KEY, RawData, RawRecord
from entitymap.projections.null_marker import NULL


def filter_record(record: RawRecord, cardinality_many: frozenset) -> RawRecord:
    """Resolve the NULL markers of a single record."""
    filtered: RawRecord = {}
    for attribute, value in record.items():
        if value is NULL:
            if attribute in cardinality_many:
                filtered[attribute] = frozenset()
            continue
        filtered[attribute] = value
    for attribute in cardinality_many:
        filtered.setdefault(attribute, frozenset())
    return filtered


def filter_null_attributes(
    raw_data: Mapping[Hashable, RawRecord],
    cardinality_many: frozenset,
) -> RawData:
    return {
        entity_id: filter_record(record, cardinality_many)
        for entity_id, record in raw_data.items()
    }


def is_empty_entity(record: RawRecord) -> bool:
    """True when every attribute besides the entity id is an empty set."""
    return all(
        isinstance(value, frozenset) and not value
        for attribute, value in record.items()
        if attribute != E_KEY
    )


def prune_empty_entities(raw_data: Mapping[Hashable, RawRecord]) -> RawData:
    return {
        entity_id: record
        for entity_id, record in raw_data.items()
        if not is_empty_entity(record)
    }


def resolve_nulls(
    raw_data: Mapping[Hashable, RawRecord],
    cardinality_many: frozenset,
) -> RawData:
    """Filter null attributes, then prune entities left empty."""
    return prune_empty_entities(filter_null_attributes(raw_data, cardinality_many))
