"""
Entity Map: materialized views over entity-attribute-value facts.

Folds asserted and retracted facts into per-entity attribute maps with
cardinality-one / cardinality-many semantics, then exposes them as an
immutable view keyed by entity id or by an attribute value, optionally
validated into pydantic models.

Usage:
    from entitymap import DataTuple, EntityMap, TypedRecord

    people = EntityMap.from_records(
        records,
        "identifier",
        cardinality_many="name",
        index_by="id",
        aggregate_into=TypedRecord(Person, {"identifier": "id", "name": "names"}),
    )
    people = people.update([DataTuple.retraction(0, "name", "Bill")])
"""

from entitymap.entity_map import EntityMap
from entitymap.errors import (
    AttributeNotFound,
    EntityMapError,
    EntityNotFound,
    PutAttributeOk,
    PutAttributeResult,
)
from entitymap.projections.aggregation import rename_keys
from entitymap.projections.folding import E_KEY
from entitymap.schemas.aggregates import PlainMap, TypedRecord
from entitymap.schemas.facts import DataTuple, Datom, Transaction

__all__ = [
    "EntityMap",
    "E_KEY",
    "rename_keys",
    # Facts
    "DataTuple",
    "Datom",
    "Transaction",
    # Aggregation targets
    "PlainMap",
    "TypedRecord",
    # Put-attribute results
    "PutAttributeOk",
    "EntityNotFound",
    "AttributeNotFound",
    "PutAttributeResult",
    "EntityMapError",
]
