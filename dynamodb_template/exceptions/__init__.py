# Base exception class
from .base import DynamoDBTemplateError

from .domain_exceptions import (
    ConfigurationError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    RetryableError,
    SchemaConflictError,
    SchemaMismatchError,
    SchemaReconciliationError,
    StorageError,
    TransactionConflictError,
    TransactionTooLargeError,
    ValidationError,
)

__all__ = [
    # Base exception
    "DynamoDBTemplateError",

    # Domain exceptions (alphabetically ordered)
    "ConfigurationError",
    "ConflictError",
    "ConnectionError",
    "NotFoundError",
    "RetryableError",
    "SchemaConflictError",
    "SchemaMismatchError",
    "SchemaReconciliationError",
    "StorageError",
    "TransactionConflictError",
    "TransactionTooLargeError",
    "ValidationError",
]
