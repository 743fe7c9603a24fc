"""
EntityMap: an immutable, queryable view over entity-attribute-value facts.

An EntityMap keeps two things:

- ``raw_data``: the ground truth, entity id -> raw attribute map
- ``inner_view``: what callers read, index key -> aggregate

``inner_view`` is always re-derived from ``raw_data`` and the map's
configuration (cardinality-many attributes, aggregation, index field).
Every operation returns a new EntityMap; none mutates an existing one.

Semantics:
- A null value asserted for a cardinality-one attribute deletes it, even if
  other values for the same attribute arrive in the same batch.
- A null value asserted for a cardinality-many attribute resets it to the
  empty set; later values in the batch are added to the fresh set.
- A scalar asserted for a cardinality-many attribute is added to the set; a
  non-empty collection is unioned with it.
- Records always overwrite: each record field is written as an assertion
  plus a null retraction, so cardinality-many values are replaced rather
  than unioned with what the entity held before.
- Entities left with only nil / empty-set attributes are removed.
- Cardinality-one lists are stored as tuples and sets as frozensets; plain
  map aggregates are read-only mappings.

Indexing happens on the aggregate field name (the model field when a
TypedRecord aggregation is used); cardinality-many names refer to the
incoming raw attributes.

Example:
    >>> em = EntityMap.new(
    ...     [
    ...         DataTuple.assertion(0, "name", "Bill"),
    ...         DataTuple.assertion(0, "age", 32),
    ...         DataTuple.assertion(0, "name", "Billy"),
    ...     ],
    ...     cardinality_many="name",
    ... )
    >>> em.raw_data[0]["name"] == {"Bill", "Billy"}
    True
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Any, Optional, Union

from entitymap.errors import (
    AttributeNotFound,
    EntityNotFound,
    PutAttributeOk,
    PutAttributeResult,
)
from entitymap.projections.aggregation import aggregate_all
from entitymap.projections.filtering import resolve_nulls
from entitymap.projections.folding import RawData, fold_assertions
from entitymap.projections.indexing import field_value, index_view
from entitymap.projections.retraction import apply_retractions
from entitymap.schemas.aggregates import Aggregation, PlainMap, to_aggregation
from entitymap.schemas.facts import DataTuple, Transaction, to_data_tuple

logger = logging.getLogger(__name__)

Fact = Union[DataTuple, Mapping[str, Any]]

# Marks "keep the current index field" in aggregate_by
_KEEP = object()


def to_attribute_set(attributes: Any) -> frozenset:
    """
    Normalize the ``cardinality_many`` option to a frozenset.

    Accepts None, a single attribute name, or any iterable of names.
    """
    if attributes is None:
        return frozenset()
    if isinstance(attributes, (str, bytes)) or not isinstance(attributes, Iterable):
        return frozenset([attributes])
    return frozenset(attributes)


def rows_to_records(rows: Iterable[Sequence[Any]], header: Sequence[Hashable]) -> list[dict]:
    """Zip each positional row with the header into a record."""
    return [dict(zip(header, row)) for row in rows]


def records_to_facts(
    records: Iterable[Mapping[Hashable, Any]],
    primary_key: Hashable,
    overwrite: bool = False,
) -> list[DataTuple]:
    """
    Translate flat records into facts.

    Each field becomes an assertion for the entity named by the record's
    primary key field. With ``overwrite``, each assertion is paired with a
    null retraction for the same attribute so the record value replaces
    whatever the entity held before.
    """
    facts: list[DataTuple] = []
    for record in records:
        entity_id = record.get(primary_key)
        for attribute, value in record.items():
            facts.append(DataTuple.assertion(entity_id, attribute, value))
            if overwrite:
                facts.append(DataTuple.retraction(entity_id, attribute, None))
    return facts


class EntityMap:
    """
    Immutable entity-keyed (or index-keyed) view over a set of facts.

    Build one with :meth:`new`, :meth:`from_records`, :meth:`from_rows` or
    :meth:`from_transaction`; every update returns a new instance.

    Attributes:
        raw_data: Read-only entity id -> raw attribute map
        inner_view: Read-only index key -> aggregate
        cardinality_many: Raw attribute names holding sets of values
        index_by: Aggregate field the view is keyed by, or None for entity ids
        aggregate_into: Aggregation variant (PlainMap or TypedRecord)
    """

    __slots__ = (
        "_raw_data",
        "_inner_view",
        "_entity_ids",
        "_cardinality_many",
        "_index_by",
        "_aggregate_into",
    )

    def __init__(
        self,
        raw_data: Optional[Mapping[Hashable, Mapping]] = None,
        *,
        cardinality_many: Any = None,
        index_by: Optional[Hashable] = None,
        aggregate_into: Any = None,
    ):
        """
        Derive the view from already-resolved raw data.

        Most callers want :meth:`new`; this constructor expects raw records
        that already satisfy the filter rules.
        """
        self._raw_data: RawData = {
            entity_id: dict(record) for entity_id, record in (raw_data or {}).items()
        }
        self._cardinality_many = to_attribute_set(cardinality_many)
        self._index_by = index_by
        self._aggregate_into: Aggregation = to_aggregation(aggregate_into)
        aggregated = aggregate_all(self._raw_data, self._aggregate_into)
        self._inner_view, self._entity_ids = index_view(aggregated, self._index_by)

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def new(
        cls,
        facts: Iterable[Fact] = (),
        *,
        cardinality_many: Any = None,
        index_by: Optional[Hashable] = None,
        aggregate_into: Any = None,
    ) -> "EntityMap":
        """
        Create an EntityMap from a batch of facts.

        Only asserted facts contribute; retractions have nothing to retract
        from in a new map.

        Args:
            facts: DataTuples, Datoms, or fact mappings
            cardinality_many: Raw attribute name(s) holding sets of values
            index_by: Aggregate field to key the view by
            aggregate_into: PlainMap (default), TypedRecord, a pydantic
                model class, or a (model, rename) pair

        Returns:
            New EntityMap
        """
        cardinality = to_attribute_set(cardinality_many)
        assertions = [fact for fact in map(to_data_tuple, facts) if fact.added]
        raw_data = resolve_nulls(fold_assertions(assertions, {}, cardinality), cardinality)
        return cls(
            raw_data,
            cardinality_many=cardinality,
            index_by=index_by,
            aggregate_into=aggregate_into,
        )

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[Hashable, Any]],
        primary_key: Hashable,
        **options: Any,
    ) -> "EntityMap":
        """
        Create an EntityMap from flat records.

        The value at ``primary_key`` is the entity id; every field, the
        primary key included, becomes an attribute. Records sharing an id
        are merged: cardinality-one values overwrite in order, and
        cardinality-many values are unioned.
        """
        return cls.new(records_to_facts(records, primary_key), **options)

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Sequence[Any]],
        header: Sequence[Hashable],
        primary_key: Hashable,
        **options: Any,
    ) -> "EntityMap":
        """Create an EntityMap from positional rows and a header of attribute names."""
        return cls.from_records(rows_to_records(rows, header), primary_key, **options)

    @classmethod
    def from_transaction(cls, transaction: Transaction, **options: Any) -> "EntityMap":
        """Create an EntityMap from the datoms of a transaction."""
        return cls.new(**options).update_from_transaction(transaction)

    # =========================================================================
    # Configuration
    # =========================================================================

    @property
    def raw_data(self) -> Mapping[Hashable, Mapping]:
        return MappingProxyType(
            {entity_id: MappingProxyType(record) for entity_id, record in self._raw_data.items()}
        )

    @property
    def inner_view(self) -> Mapping[Hashable, Any]:
        return MappingProxyType(self._inner_view)

    @property
    def cardinality_many(self) -> frozenset:
        return self._cardinality_many

    @property
    def index_by_field(self) -> Optional[Hashable]:
        return self._index_by

    @property
    def aggregate_into(self) -> Aggregation:
        return self._aggregate_into

    @property
    def field_to_raw_attribute(self) -> dict:
        return self._aggregate_into.field_to_raw_attribute

    def _derive(
        self,
        raw_data: Mapping[Hashable, Mapping],
        *,
        index_by: Any = _KEEP,
        aggregate_into: Any = _KEEP,
    ) -> "EntityMap":
        return EntityMap(
            raw_data,
            cardinality_many=self._cardinality_many,
            index_by=self._index_by if index_by is _KEEP else index_by,
            aggregate_into=self._aggregate_into if aggregate_into is _KEEP else aggregate_into,
        )

    # =========================================================================
    # Updates
    # =========================================================================

    def update(self, facts: Iterable[Fact]) -> "EntityMap":
        """
        Apply a batch of asserted and retracted facts.

        Retractions are applied first, then assertions are folded into the
        result; nulls are resolved and empty entities pruned after each
        phase. Configuration carries over unchanged.

        Args:
            facts: DataTuples, Datoms, or fact mappings in arrival order

        Returns:
            New EntityMap
        """
        data_tuples = [to_data_tuple(fact) for fact in facts]
        assertions = [fact for fact in data_tuples if fact.added]
        retractions = [fact for fact in data_tuples if not fact.added]
        cardinality = self._cardinality_many

        raw_data = apply_retractions(retractions, self._raw_data, cardinality)
        raw_data = resolve_nulls(raw_data, cardinality)
        raw_data = fold_assertions(assertions, raw_data, cardinality)
        raw_data = resolve_nulls(raw_data, cardinality)

        updated = self._derive(raw_data)
        logger.debug(
            "Applied entity map update",
            extra={
                "assertions": len(assertions),
                "retractions": len(retractions),
                "entity_count": len(updated._raw_data),
                "view_count": len(updated._inner_view),
            },
        )
        return updated

    def update_from_records(
        self,
        records: Iterable[Mapping[Hashable, Any]],
        primary_key: Hashable,
    ) -> "EntityMap":
        """
        Write flat records into the map.

        Every field a record carries replaces the entity's value for that
        attribute. For cardinality-many attributes the final value is the
        union of the values given across the records; there is no partial
        update of a set through records.
        """
        return self.update(records_to_facts(records, primary_key, overwrite=True))

    def update_from_rows(
        self,
        rows: Iterable[Sequence[Any]],
        header: Sequence[Hashable],
        primary_key: Hashable,
    ) -> "EntityMap":
        return self.update_from_records(rows_to_records(rows, header), primary_key)

    def update_from_transaction(self, transaction: Transaction) -> "EntityMap":
        return self.update(transaction.all_datoms())

    def put(self, record: Mapping[Hashable, Any], primary_key: Hashable) -> "EntityMap":
        """Add or replace the attributes of one entity given as a record."""
        return self.update_from_records([record], primary_key)

    def put_attribute(
        self,
        index_key: Hashable,
        field: Hashable,
        value: Any,
        *,
        overwrite_collection: bool = False,
    ) -> PutAttributeResult:
        """
        Set one attribute of one entity.

        ``index_key`` is an entity id for an unindexed map, or a value of the
        index field otherwise. ``field`` is named in aggregate vocabulary and
        translated back to its raw attribute.

        By default a value for a cardinality-many attribute is added to the
        existing set; ``overwrite_collection`` replaces the set instead.

        Returns:
            PutAttributeOk with the new map, EntityNotFound, or
            AttributeNotFound
        """
        entity_id = self._entity_id_for(index_key)
        if entity_id is None:
            return EntityNotFound(index_key)

        raw_attribute = self._aggregate_into.resolve_raw_attribute(field)
        if raw_attribute is None:
            return AttributeNotFound(field)

        facts = [DataTuple.assertion(entity_id, raw_attribute, value)]
        if overwrite_collection:
            facts.append(DataTuple.retraction(entity_id, raw_attribute, None))
        return PutAttributeOk(self.update(facts))

    def delete(self, index_key: Hashable) -> "EntityMap":
        """
        Remove the entity behind ``index_key``.

        Every entity whose aggregate carries the key is removed, including
        ones an index collision kept out of the view, so the key is gone from
        the result. Returns this map unchanged if the key isn't in the view.
        """
        return self.drop([index_key])

    def drop(self, index_keys: Iterable[Hashable]) -> "EntityMap":
        """Remove the entities behind all of ``index_keys``; unknown keys are ignored."""
        entity_ids = self._entity_ids_behind(index_keys)
        if not entity_ids:
            return self
        raw_data = {
            key: record for key, record in self._raw_data.items() if key not in entity_ids
        }
        return self._derive(raw_data)

    def take(self, index_keys: Iterable[Hashable]) -> "EntityMap":
        """Return a map holding only the entities behind ``index_keys``."""
        entity_ids = self._entity_ids_behind(index_keys)
        raw_data = {
            key: record for key, record in self._raw_data.items() if key in entity_ids
        }
        return self._derive(raw_data)

    # =========================================================================
    # Re-derivation
    # =========================================================================

    def index_by(self, field: Optional[Hashable]) -> "EntityMap":
        """
        Re-key the view by an aggregate field (None for entity ids).

        The raw data is carried over untouched.
        """
        return self._derive(self._raw_data, index_by=field)

    def aggregate_by(self, aggregate_into: Any, index_by: Any = _KEEP) -> "EntityMap":
        """
        Re-aggregate the raw data, optionally re-indexing at the same time.

        Without ``index_by`` the current index field is kept.
        """
        return self._derive(
            self._raw_data,
            index_by=index_by,
            aggregate_into=to_aggregation(aggregate_into),
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, index_key: Hashable, default: Any = None) -> Any:
        return self._inner_view.get(index_key, default)

    def get_attribute(self, index_key: Hashable, field: Hashable, default: Any = None) -> Any:
        """Value of an aggregate field for one entity, or ``default``."""
        if index_key not in self._inner_view:
            return default
        return field_value(self._inner_view[index_key], field, default)

    def fetch(self, index_key: Hashable) -> Any:
        """Like :meth:`get`, but raises KeyError for an unknown key."""
        return self._inner_view[index_key]

    def has_key(self, index_key: Hashable) -> bool:
        return index_key in self._inner_view

    def keys(self) -> list:
        return list(self._inner_view.keys())

    def values(self) -> list:
        return list(self._inner_view.values())

    def items(self) -> list:
        return list(self._inner_view.items())

    def equal(self, other: "EntityMap") -> bool:
        """Whether two maps expose equal views; configuration is ignored."""
        return self._inner_view == other._inner_view

    def __getitem__(self, index_key: Hashable) -> Any:
        return self.fetch(index_key)

    def __contains__(self, index_key: object) -> bool:
        return index_key in self._inner_view

    def __iter__(self) -> Iterator:
        return iter(self._inner_view)

    def __len__(self) -> int:
        return len(self._inner_view)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EntityMap):
            return NotImplemented
        return self.equal(other)

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"EntityMap(entities={len(self._raw_data)}, view={len(self._inner_view)}, "
            f"index_by={self._index_by!r}, aggregate_into={self._aggregate_into!r})"
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _entity_id_for(self, index_key: Hashable) -> Optional[Hashable]:
        """
        Resolve an index key to the entity id behind it.

        Keys in the view resolve through the index. Otherwise the raw data
        is searched, so entities the aggregator left out of the view can
        still be reached by their raw index attribute.
        """
        if index_key in self._entity_ids:
            return self._entity_ids[index_key]
        if self._index_by is None:
            return index_key if index_key in self._raw_data else None

        raw_attribute = self._aggregate_into.resolve_raw_attribute(self._index_by)
        if raw_attribute is None:
            return None
        for entity_id, record in self._raw_data.items():
            if record.get(raw_attribute) == index_key:
                return entity_id
        return None

    def _entity_ids_behind(self, index_keys: Iterable[Hashable]) -> set:
        """
        Entity ids of every aggregate whose index value is one of ``index_keys``.

        Keys not in the view are ignored. With an index field the raw data is
        re-aggregated, so entities that lost an index collision are found too.
        """
        keys = {key for key in index_keys if key in self._inner_view}
        if not keys:
            return set()
        if self._index_by is None:
            return {self._entity_ids[key] for key in keys}

        entity_ids = set()
        for entity_id, aggregate in aggregate_all(self._raw_data, self._aggregate_into).items():
            value = field_value(aggregate, self._index_by)
            if isinstance(value, Hashable) and value in keys:
                entity_ids.add(entity_id)
        return entity_ids
