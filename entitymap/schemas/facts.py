"""
Fact schemas consumed by the entity map.

A fact is a single entity-attribute-value triple tagged as an assertion
or a retraction. The database driver that feeds the map produces
``Datom`` values (facts carrying a transaction id) and ``Transaction``
values bundling the datoms a transaction added and retracted; callers
building facts by hand use ``DataTuple`` directly.

Unlike datoms read from a database, a DataTuple value may be a
collection (list, tuple, set) or null, which is how records and
"clear this attribute" requests are expressed.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Hashable

from pydantic import BaseModel, ConfigDict, Field


class DataTuple(BaseModel):
    """An atomic assertion or retraction of one attribute value for one entity."""

    model_config = ConfigDict(frozen=True)

    entity: Hashable
    attribute: Hashable
    value: Any = None
    added: bool = False

    @classmethod
    def assertion(cls, entity: Hashable, attribute: Hashable, value: Any) -> "DataTuple":
        """Build an asserted fact."""
        return cls(entity=entity, attribute=attribute, value=value, added=True)

    @classmethod
    def retraction(cls, entity: Hashable, attribute: Hashable, value: Any = None) -> "DataTuple":
        """Build a retracted fact. A null value clears the attribute."""
        return cls(entity=entity, attribute=attribute, value=value, added=False)


class Datom(DataTuple):
    """A fact as delivered by the database, stamped with its transaction id."""

    tx: int = 0


class Transaction(BaseModel):
    """
    Result of a database transaction.

    Attributes:
        basis_t_before: Database basis before the transaction
        basis_t_after: Database basis after the transaction
        added_datoms: Facts asserted by the transaction
        retracted_datoms: Facts retracted by the transaction
        tempids: Mapping of temporary ids to the entity ids they resolved to
    """

    model_config = ConfigDict(frozen=True)

    basis_t_before: int = 0
    basis_t_after: int = 0
    added_datoms: list[DataTuple] = Field(default_factory=list)
    retracted_datoms: list[DataTuple] = Field(default_factory=list)
    tempids: dict[int, int] = Field(default_factory=dict)

    def all_datoms(self) -> list[DataTuple]:
        """Retractions first, then assertions."""
        return [*self.retracted_datoms, *self.added_datoms]


def to_data_tuple(fact: DataTuple | Mapping[str, Any]) -> DataTuple:
    """
    Coerce a fact supplied at the boundary into a DataTuple.

    Mappings with ``entity``/``attribute``/``value``/``added`` keys are
    validated; DataTuple instances (including Datoms) pass through.

    Raises:
        pydantic.ValidationError: If a mapping does not describe a fact
        TypeError: If the value is neither a DataTuple nor a mapping
    """
    if isinstance(fact, DataTuple):
        return fact
    if isinstance(fact, Mapping):
        return DataTuple.model_validate(dict(fact))
    raise TypeError(f"Expected a DataTuple or mapping, got {type(fact).__name__}")
