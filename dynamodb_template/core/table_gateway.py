"""
Thin DynamoDB Gateway

This module provides a lightweight wrapper around boto3 DynamoDB operations.
Unlike a per-table repository, one gateway serves every table an application
touches, because transactions and batch calls span tables:

1. Creates the boto3 resource lazily from DynamoDBConfig
2. Exposes the item-level operations the coordinators compose
3. Maps every botocore ClientError to a domain exception

Table administration (create/delete/describe/wait) lives in TableAdmin,
which reuses this gateway's low-level client.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ..config import DynamoDBConfig
from ..exceptions import (
    ConflictError,
    ConnectionError,
    NotFoundError,
    RetryableError,
    TransactionConflictError,
    ValidationError,
)

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "dynamodb_template"

DUPLICATE_ITEM_MESSAGE = "multiple operations on one item"


def map_dynamodb_error(
    error: ClientError,
    operation: str,
    table_name: str,
    resource_id: Optional[str] = None
) -> Exception:
    """Map DynamoDB ClientError to domain-specific exceptions.

    Args:
        error: The boto3 ClientError
        operation: The operation that failed (e.g., "PutItem", "TransactWriteItems")
        table_name: The DynamoDB table name (or a comma separated list for multi-table calls)
        resource_id: Optional resource identifier for context

    Returns:
        Appropriate domain exception
    """
    error_code = error.response.get('Error', {}).get('Code', 'Unknown')
    error_message = error.response.get('Error', {}).get('Message', str(error))

    context = f"{operation} on {table_name}"
    if resource_id:
        context += f" (resource: {resource_id})"

    full_message = f"{context}: {error_message}"

    if error_code == 'ConditionalCheckFailedException':
        return ConflictError(f"Conditional check failed - {full_message}", resource_id, original_error=error)

    elif error_code == 'TransactionCanceledException':
        reasons = error.response.get('CancellationReasons') or error.response.get('Error', {}).get('CancellationReasons') or []
        return TransactionConflictError(
            f"Transaction cancelled - {full_message}",
            table_name=table_name,
            cancellation_reasons=reasons,
            original_error=error
        )

    elif error_code == 'TransactionConflictException':
        return TransactionConflictError(f"Transaction conflict - {full_message}", table_name=table_name, original_error=error)

    elif error_code == 'ValidationException':
        if DUPLICATE_ITEM_MESSAGE in error_message:
            return TransactionConflictError(f"Duplicate item in transaction - {full_message}", table_name=table_name, original_error=error)
        return ValidationError(f"Validation failed - {full_message}", original_error=error)

    elif error_code == 'ResourceNotFoundException':
        return NotFoundError(f"Table not found - {full_message}", 'table', table_name, original_error=error)

    elif error_code == 'ResourceInUseException':
        return ConflictError(f"Resource in use - {full_message}", resource_id or table_name, original_error=error)

    elif error_code == 'IdempotentParameterMismatchException':
        return ValidationError(f"Idempotent parameter mismatch - {full_message}", original_error=error)

    elif error_code in ['LimitExceededException', 'ItemCollectionSizeLimitExceededException']:
        return ValidationError(f"DynamoDB limit exceeded - {full_message}", original_error=error)

    elif error_code in [
        'ProvisionedThroughputExceededException', 'RequestLimitExceeded',
        'ThrottlingException', 'TransactionInProgressException'
    ]:
        return RetryableError(f"Throttling - {full_message}", original_error=error)

    elif error_code in [
        'InternalServerError', 'ServiceUnavailable', 'ServiceUnavailableException',
        'RequestTimeoutException'
    ]:
        return RetryableError(f"Service unavailable - {full_message}", original_error=error)

    elif error_code in [
        'UnrecognizedClientException', 'AccessDeniedException',
        'InvalidSignatureException', 'ExpiredTokenException'
    ]:
        return ConnectionError(f"Authentication/authorization failed - {full_message}", original_error=error)

    # Default to ConnectionError for unknown errors
    logger.warning(f"Unknown DynamoDB error code '{error_code}' mapped to ConnectionError")
    return ConnectionError(f"DynamoDB operation failed - {full_message}", original_error=error)


class DynamoDBGateway:
    """
    Thin gateway for DynamoDB operations across tables.

    Designed to be used by the lifecycle manager and the transactional
    coordinators rather than directly by clients.
    """

    def __init__(self, config: DynamoDBConfig):
        """Initialize gateway.

        Args:
            config: DynamoDB configuration
        """
        self.config = config
        self._dynamodb = None
        self._lock = threading.Lock()

        if config.enable_debug_logging:
            logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG)

    @property
    def dynamodb(self):
        """Lazy initialization of DynamoDB resource."""
        if self._dynamodb is None:
            with self._lock:
                if self._dynamodb is None:
                    self._dynamodb = self._create_resource()
        return self._dynamodb

    @property
    def client(self):
        """Low-level client sharing the resource's connection pool and type serialization."""
        return self.dynamodb.meta.client

    def _create_resource(self):
        try:
            session = boto3.Session(
                aws_access_key_id=self.config.aws_access_key_id,
                aws_secret_access_key=self.config.aws_secret_access_key,
                region_name=self.config.region_name
            )

            dynamodb_config = {
                'region_name': self.config.region_name
            }

            if self.config.endpoint_url:
                dynamodb_config['endpoint_url'] = self.config.endpoint_url

            boto_config = Config(
                retries={'max_attempts': self.config.retries},
                max_pool_connections=self.config.max_pool_connections,
                read_timeout=self.config.timeout_seconds,
                connect_timeout=self.config.timeout_seconds
            )
            dynamodb_config['config'] = boto_config

            return session.resource('dynamodb', **dynamodb_config)
        except Exception as e:
            logger.error(f"Failed to create DynamoDB resource: {e}")
            raise ConnectionError(f"Failed to connect to DynamoDB: {e}", e) from e

    def table(self, table_name: str):
        """Get boto3 DynamoDB Table resource."""
        try:
            return self.dynamodb.Table(table_name)
        except ConnectionError:
            raise
        except Exception as e:
            logger.error(f"Failed to access table '{table_name}': {e}")
            raise ConnectionError(f"Failed to access table '{table_name}': {e}", e) from e

    def put_item(self, table_name: str, item: Dict[str, Any]) -> None:
        """
        Put item into a DynamoDB table (insert-or-replace).

        Args:
            table_name: Target table
            item: Item to store
        """
        try:
            self.table(table_name).put_item(Item=item)
            logger.debug(f"Put item in {table_name}: {item}")
        except ClientError as e:
            raise map_dynamodb_error(e, "PutItem", table_name) from e

    def get_item(self, table_name: str, key: Dict[str, Any], consistent_read: bool = False) -> Optional[Dict[str, Any]]:
        """Get one item by primary key, None when absent."""
        try:
            response = self.table(table_name).get_item(Key=key, ConsistentRead=consistent_read)
            return response.get('Item')
        except ClientError as e:
            raise map_dynamodb_error(e, "GetItem", table_name, str(key)) from e

    def delete_item(self, table_name: str, key: Dict[str, Any]) -> None:
        """
        Delete item from a DynamoDB table.

        Deleting an absent item is not an error.
        """
        try:
            self.table(table_name).delete_item(Key=key)
            logger.debug(f"Deleted item from {table_name}: {key}")
        except ClientError as e:
            raise map_dynamodb_error(e, "DeleteItem", table_name, str(key)) from e

    def transact_write_items(self, transact_items: List[Dict[str, Any]]) -> None:
        """
        Execute transactional write operations.

        Args:
            transact_items: List of transaction items

        Example:
            gateway.transact_write_items([
                {'Put': {'TableName': 'dev_users', 'Item': {...}}},
                {'Delete': {'TableName': 'dev_installations', 'Key': {...}}}
            ])
        """
        tables = _table_names(transact_items)
        try:
            self.client.transact_write_items(TransactItems=transact_items)
            logger.debug(f"Transaction of {len(transact_items)} actions completed on {tables}")
        except ClientError as e:
            raise map_dynamodb_error(e, "TransactWriteItems", tables) from e

    def batch_write_item(self, request_items: Dict[str, List[Dict[str, Any]]]) -> Dict[str, Any]:
        """Execute BatchWriteItem; the caller handles UnprocessedItems."""
        try:
            return self.dynamodb.batch_write_item(RequestItems=request_items)
        except ClientError as e:
            raise map_dynamodb_error(e, "BatchWriteItem", ", ".join(request_items)) from e

    def batch_get_item(self, request_items: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        """Execute BatchGetItem; the caller handles UnprocessedKeys."""
        try:
            return self.dynamodb.batch_get_item(RequestItems=request_items)
        except ClientError as e:
            raise map_dynamodb_error(e, "BatchGetItem", ", ".join(request_items)) from e


def _table_names(transact_items: List[Dict[str, Any]]) -> str:
    names = []
    for transact_item in transact_items:
        for action in transact_item.values():
            if action.get('TableName') not in names:
                names.append(action.get('TableName'))
    return ", ".join(str(name) for name in names)


def create_gateway(config: DynamoDBConfig) -> DynamoDBGateway:
    """
    Factory function to create a DynamoDBGateway instance.

    Args:
        config: DynamoDB configuration

    Returns:
        Configured DynamoDBGateway instance
    """
    return DynamoDBGateway(config)
