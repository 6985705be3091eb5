"""
Core infrastructure components for DynamoDB operations.

This module contains the foundational components used by the handlers:
- DynamoDBGateway: Thin wrapper over boto3 DynamoDB item operations
- TableAdmin: Table create/delete/describe with idempotent wait helpers
- SchemaDefinitionProvider: Entity class -> SchemaDescriptor
"""

from .schema_provider import SchemaDefinitionProvider
from .table_admin import TableAdmin
from .table_gateway import DynamoDBGateway, create_gateway, map_dynamodb_error

__all__ = [
    "DynamoDBGateway",
    "SchemaDefinitionProvider",
    "TableAdmin",
    "create_gateway",
    "map_dynamodb_error",
]
