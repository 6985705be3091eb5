"""
Transactional Read API

Ordered multi-entity point reads across tables using BatchGetItem:
- keys are extracted from key-bearing template entities
- duplicate keys are requested once
- results come back in request order, None where the item does not exist
"""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import DynamoDBConfig
from ..core import DynamoDBGateway, SchemaDefinitionProvider, create_gateway
from ..core.schema_provider import resolve_descriptors
from ..exceptions import RetryableError
from ..utils import backoff_delay, chunked, item_to_model, model_to_item

logger = logging.getLogger(__name__)

BATCH_GET_LIMIT = 100


class TransactionalReadCoordinator:
    """Read-side API resolving template entities into stored entities, order preserved."""

    def __init__(
        self,
        config: DynamoDBConfig,
        gateway: Optional[DynamoDBGateway] = None,
        provider: Optional[SchemaDefinitionProvider] = None
    ):
        self.config = config
        self.gateway = gateway or create_gateway(config)
        self.provider = provider or SchemaDefinitionProvider(config)

    def transaction_load(self, templates: Sequence[Any]) -> List[Optional[Any]]:
        """
        Load the stored entity for every template.

        DynamoDB Operation: BatchGetItem in chunks of 100 keys

        Args:
            templates: Entity instances carrying at least their key attributes

        Returns:
            One element per template, in the same order: the hydrated entity
            (same class as the template) or None when the item is absent

        Raises:
            ValidationError: A template lacks its key attributes
            RetryableError: Keys still unprocessed after batch_max_retries
        """
        if not templates:
            return []

        templates = list(templates)
        descriptors = resolve_descriptors(self.provider, templates)

        signatures: List[Tuple[Any, ...]] = []
        unique_keys: Dict[Tuple[Any, ...], Tuple[str, Dict[str, Any]]] = {}
        for template, descriptor in zip(templates, descriptors):
            key = descriptor.extract_key(model_to_item(template))
            signature = descriptor.key_signature(key)
            signatures.append(signature)
            unique_keys.setdefault(signature, (descriptor.table_name, key))

        key_fields = {descriptor.table_name: descriptor.key_fields for descriptor in descriptors}
        found: Dict[Tuple[Any, ...], Dict[str, Any]] = {}
        for chunk in chunked(list(unique_keys.values()), BATCH_GET_LIMIT):
            for table_name, item in self._get_chunk_with_retry(chunk):
                signature = (table_name,) + tuple(item[name] for name in key_fields[table_name])
                found[signature] = item

        results = []
        for template, signature in zip(templates, signatures):
            item = found.get(signature)
            results.append(item_to_model(item, type(template)) if item is not None else None)

        logger.debug(f"Loaded {len(found)}/{len(unique_keys)} distinct items for {len(templates)} templates")
        return results

    def _get_chunk_with_retry(
        self,
        chunk: Sequence[Tuple[str, Dict[str, Any]]]
    ) -> List[Tuple[str, Dict[str, Any]]]:
        """Fetch one chunk of keys, retrying UnprocessedKeys with backoff."""
        request_items: Dict[str, Dict[str, Any]] = {}
        for table_name, key in chunk:
            request_items.setdefault(table_name, {'Keys': []})['Keys'].append(key)

        items: List[Tuple[str, Dict[str, Any]]] = []
        max_retries = self.config.batch_max_retries

        for attempt in range(max_retries + 1):
            response = self.gateway.batch_get_item(request_items)
            for table_name, table_items in (response.get('Responses') or {}).items():
                items.extend((table_name, item) for item in table_items)

            request_items = response.get('UnprocessedKeys') or {}
            if not request_items:
                return items

            if attempt < max_retries:
                delay = backoff_delay(attempt)
                pending = sum(len(request['Keys']) for request in request_items.values())
                logger.warning(
                    f"Retrying {pending} unprocessed keys after {delay:.2f}s "
                    f"(attempt {attempt + 1}/{max_retries + 1})"
                )
                time.sleep(delay)

        logger.error(f"BatchGetItem left keys unprocessed after {max_retries} retries")
        raise RetryableError(f"Batch read left keys unprocessed after {max_retries} retries for tables {list(request_items)}")
