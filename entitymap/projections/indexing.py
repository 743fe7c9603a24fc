"""
Indexer: re-key the aggregated view by an aggregate field.

Index values are assumed unique. When two entities share an index value,
the one visited later (raw data iteration order) replaces the earlier one;
this is a documented limitation rather than an error. Entities whose
index value is null, or unhashable, are left out of the index but stay in
the raw data.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping
from typing import Any, Optional

from entitymap.core.config import settings
from entitymap.projections.null_marker import is_null_value

logger = logging.getLogger(__name__)


def field_value(aggregate: Any, field_name: Hashable, default: Any = None) -> Any:
    """Read a field from a plain map aggregate or a typed record."""
    if isinstance(aggregate, Mapping):
        return aggregate.get(field_name, default)
    if isinstance(field_name, str):
        return getattr(aggregate, field_name, default)
    return default


def index_view(
    aggregated: Mapping[Hashable, Any],
    field_name: Optional[Hashable],
) -> tuple[dict[Hashable, Any], dict[Hashable, Hashable]]:
    """
    Key each aggregate by its value at ``field_name``.

    Args:
        aggregated: Entity id -> aggregate
        field_name: Aggregate field to index by; None keeps entity ids

    Returns:
        (index key -> aggregate, index key -> entity id)
    """
    if field_name is None:
        return dict(aggregated), {entity_id: entity_id for entity_id in aggregated}

    view: dict[Hashable, Any] = {}
    entity_ids: dict[Hashable, Hashable] = {}
    for entity_id, aggregate in aggregated.items():
        key = field_value(aggregate, field_name)
        if is_null_value(key):
            continue
        if not isinstance(key, Hashable):
            logger.warning(
                "Skipping entity with unhashable index value",
                extra={"entity_id": repr(entity_id), "index_by": repr(field_name)},
            )
            continue
        if key in entity_ids and settings.LOG_INDEX_COLLISIONS:
            logger.warning(
                "Index key collision; later entity replaces earlier one",
                extra={
                    "index_by": repr(field_name),
                    "index_key": repr(key),
                    "replaced_entity_id": repr(entity_ids[key]),
                    "entity_id": repr(entity_id),
                },
            )
        view[key] = aggregate
        entity_ids[key] = entity_id
    return view, entity_ids
