"""
Aggregation targets for the entity map view.

An aggregate is the caller-facing projection of a raw record. The choice is
a closed variant:

- ``PlainMap``: the aggregate is the raw attribute map itself.
- ``TypedRecord``: the raw attribute map is renamed through a rename table
  and validated into a pydantic model. Fields the raw record doesn't carry
  keep the model's declared defaults, so a cardinality-many field declared
  as ``frozenset[str] = frozenset()`` aggregates to an empty set rather than
  None.

Example:
    class Person(BaseModel):
        id: str | None = None
        names: frozenset[str] = frozenset()
        age: int | None = None

    aggregate_into = TypedRecord(Person, {"identifier": "id", "name": "names"})
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Hashable, Mapping, Optional, Union

from pydantic import BaseModel


@dataclass(frozen=True)
class PlainMap:
    """Identity aggregation: each entity is exposed as its raw attribute map."""

    @property
    def field_to_raw_attribute(self) -> dict[Hashable, Hashable]:
        return {}

    def resolve_raw_attribute(self, field_name: Hashable) -> Optional[Hashable]:
        """Every aggregate field is a raw attribute."""
        return field_name


@dataclass(frozen=True)
class TypedRecord:
    """
    Aggregation into a pydantic model.

    Attributes:
        model: Pydantic model class each entity is validated into
        rename: Raw attribute name -> model field name
    """

    model: type[BaseModel]
    rename: Mapping[Hashable, str] = field(default_factory=dict)

    @property
    def field_to_raw_attribute(self) -> dict[str, Hashable]:
        """Inverse of the rename table."""
        return {field_name: raw_attr for raw_attr, field_name in self.rename.items()}

    def resolve_raw_attribute(self, field_name: Hashable) -> Optional[Hashable]:
        """
        Translate a model field name back to the raw attribute it comes from.

        Renamed fields resolve through the inverted rename table; other model
        fields are assumed to share their raw attribute's name. Returns None
        when the field is not part of the model at all.
        """
        inverse = self.field_to_raw_attribute
        if field_name in inverse:
            return inverse[field_name]
        if field_name in self.model.model_fields:
            return field_name
        return None


Aggregation = Union[PlainMap, TypedRecord]


def to_aggregation(aggregate_into: Any) -> Aggregation:
    """
    Normalize the ``aggregate_into`` option.

    Accepts None (plain maps), an Aggregation, a pydantic model class, or a
    ``(model, rename)`` pair.
    """
    if aggregate_into is None:
        return PlainMap()
    if isinstance(aggregate_into, (PlainMap, TypedRecord)):
        return aggregate_into
    if isinstance(aggregate_into, type) and issubclass(aggregate_into, BaseModel):
        return TypedRecord(aggregate_into)
    if isinstance(aggregate_into, tuple) and len(aggregate_into) == 2:
        model, rename = aggregate_into
        return TypedRecord(model, dict(rename or {}))
    raise TypeError(f"Unsupported aggregate_into: {aggregate_into!r}")
