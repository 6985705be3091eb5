"""
DynamoDB Template

Single entry point for application code. Owns one gateway and one schema
provider and shares them with the transactional coordinators:

    template = DynamoDBTemplate(config)
    template.save(user)
    template.transaction_write(TransactionGroup.with_update([user, installation]))
    users = template.transaction_load([User(id="1"), User(id="2")])
"""

import logging
from typing import Any, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel

from .config import DynamoDBConfig
from .core import DynamoDBGateway, SchemaDefinitionProvider, create_gateway
from .handlers import TransactionalReadCoordinator, TransactionalWriteCoordinator
from .models import FailedBatch, TransactionGroup
from .utils import build_model_key, item_to_model, model_to_item

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=BaseModel)


class DynamoDBTemplate:
    """Entity persistence over DynamoDB: single-item CRUD, transactions and batches."""

    def __init__(self, config: DynamoDBConfig, gateway: Optional[DynamoDBGateway] = None):
        self.config = config
        self.gateway = gateway or create_gateway(config)
        self.provider = SchemaDefinitionProvider(config)
        self.writer = TransactionalWriteCoordinator(config, self.gateway, self.provider)
        self.reader = TransactionalReadCoordinator(config, self.gateway, self.provider)

    def save(self, entity: M) -> M:
        """Upsert one entity (PutItem) and return it."""
        descriptor = self.provider.describe_entity(entity)
        self.gateway.put_item(descriptor.table_name, model_to_item(entity))
        logger.debug(f"Saved {descriptor.entity_name} in {descriptor.table_name}")
        return entity

    def load(self, entity_type: Type[M], partition_value: Any, sort_value: Any = None) -> Optional[M]:
        """
        Load one entity by primary key.

        Args:
            entity_type: Entity class
            partition_value: Partition key value
            sort_value: Sort key value, required when the table has a sort key

        Returns:
            The entity, or None if no item has that key

        Raises:
            ValidationError: A required key value is missing
        """
        descriptor = self.provider.describe_schema(entity_type)
        key_values = dict(zip(descriptor.key_fields, (partition_value, sort_value)))
        key = build_model_key(entity_type, **key_values)
        item = self.gateway.get_item(descriptor.table_name, key)
        return item_to_model(item, entity_type) if item is not None else None

    def delete(self, entity: Any) -> None:
        """Delete the item with the entity's key; deleting an absent item is a no-op."""
        descriptor = self.provider.describe_entity(entity)
        self.gateway.delete_item(descriptor.table_name, descriptor.extract_key(model_to_item(entity)))

    def transaction_write(self, group: TransactionGroup) -> None:
        """Apply a TransactionGroup atomically. See TransactionalWriteCoordinator.transaction_write."""
        self.writer.transaction_write(group)

    def transaction_load(self, templates: Sequence[Any]) -> List[Optional[Any]]:
        """Order-preserving batch point read. See TransactionalReadCoordinator.transaction_load."""
        return self.reader.transaction_load(templates)

    def batch_save(self, entities: Sequence[Any]) -> List[FailedBatch]:
        return self.writer.batch_save(entities)

    def batch_save_with_transaction(self, entities: Sequence[Any]) -> None:
        self.writer.batch_save_with_transaction(entities)
