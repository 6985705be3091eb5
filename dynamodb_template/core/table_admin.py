"""
Table Administration

Control-plane operations used by the schema lifecycle manager: create,
delete and describe tables, plus the idempotent "ensure created" and
"ensure deleted" helpers that wait on boto3 waiters until the table reaches
the requested state.
"""

import logging
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError, WaiterError

from ..exceptions import RetryableError, SchemaConflictError
from .table_gateway import DynamoDBGateway, map_dynamodb_error

logger = logging.getLogger(__name__)


class TableAdmin:
    """Administrative surface of DynamoDB, built on the gateway's low-level client."""

    def __init__(self, gateway: DynamoDBGateway):
        self.gateway = gateway
        self.config = gateway.config

    @property
    def client(self):
        return self.gateway.client

    def create_table(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        Submit CreateTable.

        Args:
            request: CreateTable parameters (SchemaDescriptor.to_create_table_request())

        Returns:
            The TableDescription of the new table

        Raises:
            SchemaConflictError: A table with this name already exists
        """
        table_name = request['TableName']
        try:
            response = self.client.create_table(**request)
            logger.debug(f"CreateTable submitted for {table_name}")
            return response.get('TableDescription', {})
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ResourceInUseException':
                raise SchemaConflictError(table_name, original_error=e) from e
            raise map_dynamodb_error(e, "CreateTable", table_name) from e

    def delete_table(self, table_name: str) -> bool:
        """
        Submit DeleteTable.

        Returns:
            True if a delete was issued, False if the table did not exist
        """
        try:
            self.client.delete_table(TableName=table_name)
            logger.debug(f"DeleteTable submitted for {table_name}")
            return True
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ResourceNotFoundException':
                logger.debug(f"Table {table_name} does not exist, nothing to delete")
                return False
            raise map_dynamodb_error(e, "DeleteTable", table_name) from e

    def describe_table(self, table_name: str) -> Optional[Dict[str, Any]]:
        """Live TableDescription, or None when the table does not exist."""
        try:
            return self.client.describe_table(TableName=table_name)['Table']
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ResourceNotFoundException':
                return None
            raise map_dynamodb_error(e, "DescribeTable", table_name) from e

    def table_exists(self, table_name: str) -> bool:
        return self.describe_table(table_name) is not None

    def ensure_created(self, request: Dict[str, Any]) -> None:
        """Create the table if it is missing, then wait until it is ACTIVE."""
        table_name = request['TableName']
        if not self.table_exists(table_name):
            try:
                self.create_table(request)
            except SchemaConflictError:
                logger.debug(f"Table {table_name} was created concurrently")
        self._wait('table_exists', table_name)

    def ensure_deleted(self, table_name: str) -> None:
        """Delete the table if it exists, then wait until it is gone."""
        if self.table_exists(table_name):
            self.delete_table(table_name)
        self._wait('table_not_exists', table_name)

    def _wait(self, waiter_name: str, table_name: str) -> None:
        try:
            self.client.get_waiter(waiter_name).wait(
                TableName=table_name,
                WaiterConfig={
                    'Delay': self.config.table_wait_delay_seconds,
                    'MaxAttempts': self.config.table_wait_max_attempts
                }
            )
        except WaiterError as e:
            logger.error(f"Waiter {waiter_name} gave up on {table_name}: {e}")
            raise RetryableError(f"Timed out waiting for {waiter_name} on table '{table_name}'", original_error=e) from e
