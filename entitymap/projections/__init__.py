"""Projection passes that turn facts into the entity map view."""

from entitymap.projections.aggregation import aggregate, aggregate_all, rename_keys
from entitymap.projections.filtering import (
    filter_null_attributes,
    prune_empty_entities,
    resolve_nulls,
)
from entitymap.projections.folding import E_KEY, fold_assertions
from entitymap.projections.indexing import field_value, index_view
from entitymap.projections.null_marker import MISSING, NULL, is_null_value, merge_value
from entitymap.projections.retraction import apply_retractions

__all__ = [
    # Null-marker algebra
    "MISSING",
    "NULL",
    "is_null_value",
    "merge_value",
    # Folding and retraction
    "E_KEY",
    "fold_assertions",
    "apply_retractions",
    # Filtering
    "filter_null_attributes",
    "prune_empty_entities",
    "resolve_nulls",
    # Aggregation and indexing
    "aggregate",
    "aggregate_all",
    "rename_keys",
    "field_value",
    "index_view",
]
