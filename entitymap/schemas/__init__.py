# Schemas package

from entitymap.schemas.aggregates import (
    Aggregation,
    PlainMap,
    TypedRecord,
    to_aggregation,
)
from entitymap.schemas.facts import (
    DataTuple,
    Datom,
    Transaction,
    to_data_tuple,
)

__all__ = [
    # Facts
    "DataTuple",
    "Datom",
    "Transaction",
    "to_data_tuple",
    # Aggregation targets
    "Aggregation",
    "PlainMap",
    "TypedRecord",
    "to_aggregation",
]
