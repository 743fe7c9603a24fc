"""
Aggregator: raw records to caller-facing aggregates.

A ``PlainMap`` aggregation exposes a read-only copy of each raw record. A
``TypedRecord`` aggregation renames raw attributes to model fields and
validates the result into the configured pydantic model. Records the model
rejects are unrepresentable: they are left out of the aggregated view but
stay in the raw data, so a later update can make them representable again.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping
from types import MappingProxyType
from typing import Any, Optional

from pydantic import ValidationError

from entitymap.core.config import settings
from entitymap.projections.folding import E_KEY, RawRecord
from entitymap.schemas.aggregates import Aggregation, PlainMap, TypedRecord

logger = logging.getLogger(__name__)


def rename_keys(mapping: Mapping[Hashable, Any], rename: Mapping[Hashable, Hashable]) -> dict:
    """
    Return a copy of ``mapping`` with keys renamed through ``rename``.

    Keys without an entry in ``rename`` are kept as they are.

    Example:
        >>> rename_keys({"identifier": "a", "age": 3}, {"identifier": "id"})
        {'id': 'a', 'age': 3}
    """
    return {rename.get(key, key): value for key, value in mapping.items()}


def aggregate(record: RawRecord, aggregate_into: Aggregation) -> Optional[Any]:
    """
    Build the aggregate for one raw record.

    Args:
        record: Raw attribute map of a single entity
        aggregate_into: Aggregation variant

    Returns:
        The aggregate, or None if the record can't be represented
    """
    if isinstance(aggregate_into, PlainMap):
        return MappingProxyType(dict(record))

    if isinstance(aggregate_into, TypedRecord):
        fields = rename_keys(record, aggregate_into.rename)
        try:
            return aggregate_into.model.model_validate(fields)
        except ValidationError as exc:
            if settings.LOG_DROPPED_AGGREGATES:
                logger.debug(
                    "Entity cannot be represented by aggregate model",
                    extra={
                        "entity_id": repr(record.get(E_KEY)),
                        "model": aggregate_into.model.__name__,
                        "error_count": exc.error_count(),
                    },
                )
            return None

    raise TypeError(f"Unsupported aggregation: {aggregate_into!r}")


def aggregate_all(
    raw_data: Mapping[Hashable, RawRecord],
    aggregate_into: Aggregation,
) -> dict[Hashable, Any]:
    """
    Aggregate every entity, keyed by entity id.

    Unrepresentable entities are omitted.
    """
    aggregated: dict[Hashable, Any] = {}
    for entity_id, record in raw_data.items():
        value = aggregate(record, aggregate_into)
        if value is not None:
            aggregated[entity_id] = value
    return aggregated
