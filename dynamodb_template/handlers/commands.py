"""
Transactional Write API

This module compiles entity collections into DynamoDB write requests:
- transaction_write: one atomic TransactWriteItems call (puts, then deletes)
- batch_save: best-effort BatchWriteItem with UnprocessedItems retry logic
- batch_save_with_transaction: upserts routed through transaction_write

Entities may belong to different tables; each one is resolved to its table
schema through the SchemaDefinitionProvider.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import DynamoDBConfig
from ..core import DynamoDBGateway, SchemaDefinitionProvider, create_gateway
from ..core.schema_provider import resolve_descriptors
from ..exceptions import RetryableError, TransactionConflictError, TransactionTooLargeError
from ..models import FailedBatch, SchemaDescriptor, TransactionGroup
from ..utils import backoff_delay, chunked, model_to_item

logger = logging.getLogger(__name__)

BATCH_WRITE_LIMIT = 25


class TransactionalWriteCoordinator:
    """
    Write-side API for multi-entity, multi-table mutations.

    Provides:
    - Atomic all-or-nothing writes of a TransactionGroup
    - Client-side detection of duplicate keys and oversized transactions
    - Non-atomic bulk upserts with retry of unprocessed items
    """

    def __init__(
        self,
        config: DynamoDBConfig,
        gateway: Optional[DynamoDBGateway] = None,
        provider: Optional[SchemaDefinitionProvider] = None
    ):
        """Initialize write coordinator with configuration."""
        self.config = config
        self.gateway = gateway or create_gateway(config)
        self.provider = provider or SchemaDefinitionProvider(config)

    def transaction_write(self, group: TransactionGroup) -> None:
        """
        Apply every upsert and delete of the group atomically.

        DynamoDB Operation: TransactWriteItems (single call)

        Args:
            group: Entities to upsert (to_update) and delete (to_delete)

        Raises:
            TransactionConflictError: Two actions target the same item, or the service cancelled the transaction
            TransactionTooLargeError: More actions than transaction_max_items
            ValidationError: An entity is not persistable or lacks key attributes
            StorageError: Any other service failure
        """
        if group.is_empty:
            logger.debug("Empty transaction group, nothing to write")
            return

        transact_items = self.compile_transaction(group)
        self.gateway.transact_write_items(transact_items)
        logger.info(
            f"Transaction committed: {len(group.to_update or ())} put(s), "
            f"{len(group.to_delete or ())} delete(s)"
        )

    def compile_transaction(self, group: TransactionGroup) -> List[Dict[str, Any]]:
        """Build the TransactItems list for a group without sending it.

        Raises:
            TransactionConflictError: Duplicate (table, key) among the actions
            TransactionTooLargeError: More actions than transaction_max_items
        """
        if group.action_count > self.config.transaction_max_items:
            raise TransactionTooLargeError(group.action_count, self.config.transaction_max_items)

        to_update = list(group.to_update or ())
        to_delete = list(group.to_delete or ())
        seen: Dict[Tuple[Any, ...], str] = {}
        transact_items = []

        for entity, descriptor in zip(to_update, resolve_descriptors(self.provider, to_update)):
            item = model_to_item(entity)
            self._claim_key(seen, descriptor, descriptor.extract_key(item), 'Put')
            transact_items.append({'Put': {'TableName': descriptor.table_name, 'Item': item}})

        for entity, descriptor in zip(to_delete, resolve_descriptors(self.provider, to_delete)):
            key = descriptor.extract_key(model_to_item(entity))
            self._claim_key(seen, descriptor, key, 'Delete')
            transact_items.append({'Delete': {'TableName': descriptor.table_name, 'Key': key}})

        return transact_items

    @staticmethod
    def _claim_key(
        seen: Dict[Tuple[Any, ...], str],
        descriptor: SchemaDescriptor,
        key: Dict[str, Any],
        action: str
    ) -> None:
        signature = descriptor.key_signature(key)
        if signature in seen:
            raise TransactionConflictError(
                f"{action} of {descriptor.entity_name} {key} conflicts with an earlier "
                f"{seen[signature]} of the same item in table '{descriptor.table_name}'",
                duplicate_key=key,
                table_name=descriptor.table_name
            )
        seen[signature] = action

    def batch_save_with_transaction(self, entities: Sequence[Any]) -> None:
        """Upsert all entities in one atomic transaction."""
        self.transaction_write(TransactionGroup.with_update(entities))

    def batch_save(self, entities: Sequence[Any]) -> List[FailedBatch]:
        """
        Upsert entities with BatchWriteItem, best-effort and non-atomic.

        DynamoDB Operation: BatchWriteItem in chunks of 25 put requests

        Args:
            entities: Entities of any registered types

        Returns:
            Entities left unwritten after all retries, grouped per table (empty when all succeeded)
        """
        if not entities:
            return []

        # BatchWriteItem rejects duplicate keys in one request; last write wins
        pending: Dict[Tuple[Any, ...], Tuple[Any, Dict[str, Any], SchemaDescriptor]] = {}
        for entity, descriptor in zip(entities, resolve_descriptors(self.provider, list(entities))):
            item = model_to_item(entity)
            pending[descriptor.key_signature(descriptor.extract_key(item))] = (entity, item, descriptor)

        failed: List[FailedBatch] = []
        for chunk in chunked(list(pending.values()), BATCH_WRITE_LIMIT):
            failed.extend(self._write_chunk_with_retry(chunk))

        written = len(pending) - sum(len(batch.unprocessed) for batch in failed)
        logger.info(f"Batch saved {written}/{len(pending)} entities")
        return failed

    def _write_chunk_with_retry(
        self,
        chunk: Sequence[Tuple[Any, Dict[str, Any], SchemaDescriptor]]
    ) -> List[FailedBatch]:
        """Write a single chunk with retry logic for UnprocessedItems."""
        remaining = {
            descriptor.key_signature(descriptor.extract_key(item)): (entity, item, descriptor)
            for entity, item, descriptor in chunk
        }
        reason = None
        max_retries = self.config.batch_max_retries

        for attempt in range(max_retries + 1):
            request_items: Dict[str, List[Dict[str, Any]]] = {}
            for _, item, descriptor in remaining.values():
                request_items.setdefault(descriptor.table_name, []).append({'PutRequest': {'Item': item}})

            try:
                response = self.gateway.batch_write_item(request_items)
            except RetryableError as e:
                reason = str(e)
                if attempt < max_retries:
                    delay = backoff_delay(attempt)
                    logger.warning(f"Throttled, backing off for {delay:.2f}s (attempt {attempt + 1}/{max_retries + 1})")
                    time.sleep(delay)
                continue

            unprocessed = response.get('UnprocessedItems') or {}
            if not unprocessed:
                return []

            still_remaining = {}
            for table_name, requests in unprocessed.items():
                for request in requests:
                    item = request['PutRequest']['Item']
                    for signature, (entity, original, descriptor) in remaining.items():
                        if descriptor.table_name == table_name and descriptor.extract_key(original) == descriptor.extract_key(item):
                            still_remaining[signature] = (entity, original, descriptor)
                            break
            remaining = still_remaining
            if not remaining:
                return []
            reason = f"{len(remaining)} item(s) left unprocessed by BatchWriteItem"

            if attempt < max_retries:
                delay = backoff_delay(attempt)
                logger.warning(
                    f"Retrying {len(remaining)} unprocessed items after {delay:.2f}s "
                    f"(attempt {attempt + 1}/{max_retries + 1})"
                )
                time.sleep(delay)

        logger.error(f"Failed to write {len(remaining)} items after {max_retries} retries")
        by_table: Dict[str, List[Any]] = {}
        for entity, _, descriptor in remaining.values():
            by_table.setdefault(descriptor.table_name, []).append(entity)
        return [
            FailedBatch(table_name=table_name, unprocessed=unprocessed_entities, reason=reason)
            for table_name, unprocessed_entities in by_table.items()
        ]
