"""
Transaction Group Model

A TransactionGroup bundles the entities that one atomic TransactWriteItems
call should upsert and delete. Entities may belong to different tables.

Usage:
    group = TransactionGroup.with_update([user_1, user_2])
    group = TransactionGroup(to_update=[user_1], to_delete=[installation])
    group = (TransactionGroup.builder()
             .with_update([user_1])
             .with_delete([user_9])
             .build())
"""

from typing import Any, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict


class TransactionGroup(BaseModel):
    """Immutable set of entities to upsert and delete in one transaction.

    Either side may be absent (None); a group with both sides absent is
    legal and writes nothing.
    """

    to_update: Optional[Tuple[Any, ...]] = None
    to_delete: Optional[Tuple[Any, ...]] = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @classmethod
    def with_update(cls, entities: Sequence[Any]) -> 'TransactionGroup':
        return cls(to_update=tuple(entities))

    @classmethod
    def with_delete(cls, entities: Sequence[Any]) -> 'TransactionGroup':
        return cls(to_delete=tuple(entities))

    @classmethod
    def builder(cls) -> 'TransactionGroupBuilder':
        return TransactionGroupBuilder()

    @property
    def action_count(self) -> int:
        """Number of Put and Delete actions this group compiles to."""
        return len(self.to_update or ()) + len(self.to_delete or ())

    @property
    def is_empty(self) -> bool:
        return self.action_count == 0


class TransactionGroupBuilder:
    """Fluent builder for TransactionGroup; each call replaces that side."""

    def __init__(self):
        self._to_update: Optional[Tuple[Any, ...]] = None
        self._to_delete: Optional[Tuple[Any, ...]] = None

    def with_update(self, entities: Sequence[Any]) -> 'TransactionGroupBuilder':
        self._to_update = tuple(entities)
        return self

    def with_delete(self, entities: Sequence[Any]) -> 'TransactionGroupBuilder':
        self._to_delete = tuple(entities)
        return self

    def build(self) -> TransactionGroup:
        return TransactionGroup(to_update=self._to_update, to_delete=self._to_delete)
