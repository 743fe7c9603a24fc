"""
Raw record folder.

Reduces a batch of asserted facts into per-entity raw attribute maps,
merging each fact into whatever the entity already holds. The result may
still carry NULL markers; ``filtering.resolve_nulls`` finishes the pass.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Hashable

from entitymap.projections.null_marker import MISSING, merge_value
from entitymap.schemas.facts import DataTuple

# Reserved raw record key holding the entity's own id
E_KEY = "datom/e"

RawRecord = dict[Hashable, Any]
RawData = dict[Hashable, RawRecord]


def new_record(entity_id: Hashable) -> RawRecord:
    """A raw record holding nothing but its entity id."""
    return {E_KEY: entity_id}


def add_attribute_value(
    record: RawRecord,
    attribute: Hashable,
    value: Any,
    cardinality_many: frozenset,
) -> RawRecord:
    """
    Return a copy of ``record`` with ``value`` merged into ``attribute``.

    The entity id key can't be asserted; the record is returned unchanged.
    """
    if attribute == E_KEY:
        return record
    prior = record.get(attribute, MISSING)
    merged = merge_value(prior, value, attribute in cardinality_many)
    return {**record, attribute: merged}


def fold_assertions(
    facts: Iterable[DataTuple],
    raw_data: Mapping[Hashable, RawRecord],
    cardinality_many: frozenset,
) -> RawData:
    """
    Fold asserted facts, in order, into a copy of ``raw_data``.

    Records for unseen entities are created on first reference. Input
    records are never modified; every touched record is replaced by a
    new dict.

    Args:
        facts: Asserted facts in arrival order
        raw_data: Existing entity id -> raw record mapping
        cardinality_many: Attribute names holding sets of values

    Returns:
        New entity id -> raw record mapping, possibly holding NULL markers
    """
    folded: RawData = dict(raw_data)
    for fact in facts:
        record = folded.get(fact.entity)
        if record is None:
            record = new_record(fact.entity)
        folded[fact.entity] = add_attribute_value(
            record, fact.attribute, fact.value, cardinality_many
        )
    return folded
