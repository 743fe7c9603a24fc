"""
Results and errors for entity map point mutations.

``EntityMap.put_attribute`` reports its two failure conditions as values
rather than exceptions, so callers can branch on the outcome:

    result = entity_map.put_attribute("bill", "age", 33)
    if result.ok:
        entity_map = result.entity_map
    else:
        logger.warning(result.message)

Callers that prefer exceptions use ``result.unwrap()``, which raises
``EntityMapError`` for a failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Hashable, Union

if TYPE_CHECKING:
    from entitymap.entity_map import EntityMap


class EntityMapError(Exception):
    """Raised when a failed put-attribute result is unwrapped.

    Attributes:
        message: Human-readable error description
        failure: The failure result that was unwrapped
    """

    def __init__(self, message: str, failure: Any = None):
        super().__init__(message)
        self.message = message
        self.failure = failure


@dataclass(frozen=True)
class PutAttributeOk:
    """The attribute was written; ``entity_map`` is the updated map."""

    entity_map: "EntityMap"

    ok = True

    def unwrap(self) -> "EntityMap":
        return self.entity_map


@dataclass(frozen=True)
class EntityNotFound:
    """The index key didn't resolve to an entity id."""

    index_key: Hashable

    ok = False

    @property
    def message(self) -> str:
        return f"Unable to find entity ID for index key {self.index_key!r}"

    def unwrap(self) -> "EntityMap":
        raise EntityMapError(self.message, failure=self)


@dataclass(frozen=True)
class AttributeNotFound:
    """The aggregate field didn't resolve to a raw attribute name."""

    field: Hashable

    ok = False

    @property
    def message(self) -> str:
        return f"Unable to determine raw attribute key for aggregate attribute {self.field!r}"

    def unwrap(self) -> "EntityMap":
        raise EntityMapError(self.message, failure=self)


PutAttributeResult = Union[PutAttributeOk, EntityNotFound, AttributeNotFound]
