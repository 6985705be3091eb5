"""
Domain-Specific Exceptions for dynamodb_template

Every exception extends DynamoDBTemplateError so callers can catch the whole
family at once, or pick the precise failure they care about.

Organized by category:
1. Configuration Errors
2. Validation Errors
3. Conflict Errors (schema and transaction)
4. Schema Reconciliation Errors
5. Storage Errors (transport, throttling, missing resources)
"""

from typing import Any, Dict, List, Optional

from .base import DynamoDBTemplateError


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(DynamoDBTemplateError):
    """Raised when configuration is unusable, e.g. an unknown entity2ddl mode.

    Raised at startup, before any table operation runs.
    """

    def __init__(self, message: str, key: Optional[str] = None, value: Optional[Any] = None):
        self.key = key
        self.value = value
        context = {}
        if key:
            context['key'] = key
        if value is not None:
            context['value'] = value
        super().__init__(message, None, context)


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(DynamoDBTemplateError):
    """Raised when data validation fails.

    Used for:
    - Pydantic model validation failures while hydrating items
    - Entity classes without a usable Meta definition
    - Requests rejected by DynamoDB as malformed
    """

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        """Initialize validation error.

        Args:
            message: Human-readable error message
            errors: Dictionary of field-level validation errors
            original_error: The original exception that caused this error
        """
        self.errors = errors or {}
        context = {}
        if self.errors:
            context['validation_errors'] = self.errors
        super().__init__(message, original_error, context)


class TransactionTooLargeError(ValidationError):
    """Raised when a transaction holds more actions than one TransactWriteItems call accepts.

    Raised before any network call; the transaction is never split.
    """

    def __init__(self, action_count: int, max_items: int):
        self.action_count = action_count
        self.max_items = max_items
        super().__init__(
            f"Transaction has {action_count} actions, limit is {max_items}",
            errors={'action_count': action_count, 'max_items': max_items}
        )


# =============================================================================
# Conflict Errors
# =============================================================================

class ConflictError(DynamoDBTemplateError):
    """Raised when an operation fails due to existing or concurrently modified data.

    Used for:
    - ConditionalCheckFailedException from DynamoDB
    - ResourceInUseException on table administration
    """

    def __init__(self, message: str, resource_id: Optional[str] = None, original_error: Optional[Exception] = None):
        """Initialize conflict error.

        Args:
            message: Human-readable error message
            resource_id: ID of the conflicting resource (table name, item key)
            original_error: The original exception that caused this error
        """
        self.resource_id = resource_id
        context = {}
        if resource_id:
            context['resource_id'] = resource_id
        super().__init__(message, original_error, context)


class SchemaConflictError(ConflictError):
    """Raised when a table is created while a table of the same name already exists."""

    def __init__(self, table_name: str, original_error: Optional[Exception] = None):
        self.table_name = table_name
        super().__init__(f"Table '{table_name}' already exists", table_name, original_error)


class TransactionConflictError(ConflictError):
    """Raised when a transactional write cannot be applied as a unit.

    Two causes share this error:
    - two actions of one transaction target the same (table, key) item
    - DynamoDB cancelled the transaction because of a conflicting write

    Never retried automatically.
    """

    def __init__(
        self,
        message: str,
        duplicate_key: Optional[Dict[str, Any]] = None,
        table_name: Optional[str] = None,
        cancellation_reasons: Optional[List[Dict[str, Any]]] = None,
        original_error: Optional[Exception] = None
    ):
        self.duplicate_key = duplicate_key
        self.table_name = table_name
        self.cancellation_reasons = cancellation_reasons or []
        super().__init__(message, table_name, original_error)
        if duplicate_key is not None:
            self.context['duplicate_key'] = duplicate_key
        if self.cancellation_reasons:
            self.context['cancellation_reasons'] = [r.get('Code') for r in self.cancellation_reasons]


# =============================================================================
# Schema Reconciliation Errors
# =============================================================================

class SchemaMismatchError(DynamoDBTemplateError):
    """Raised when a live table disagrees with the schema declared by its entity.

    Carries both sides so the mismatch can be diagnosed without
    re-describing the live table.
    """

    def __init__(self, table_name: str, element: str, expected: Any, actual: Any):
        self.table_name = table_name
        self.element = element
        self.expected = expected
        self.actual = actual
        message = f"{element} of table '{table_name}' is not as expected. Expected: <{expected}> but found <{actual}>"
        super().__init__(message, None, {'table_name': table_name})


class SchemaReconciliationError(DynamoDBTemplateError):
    """Aggregate of the lifecycle failures collected during one startup pass."""

    def __init__(self, failures: Dict[str, Exception]):
        self.failures = failures
        details = "; ".join(f"{table}: {error}" for table, error in failures.items())
        super().__init__(
            f"Schema reconciliation failed for {len(failures)} table(s): {details}",
            None,
            {'tables': sorted(failures)}
        )


# =============================================================================
# Storage Errors
# =============================================================================

class StorageError(DynamoDBTemplateError):
    """Base for transport and service level failures."""


class ConnectionError(StorageError):
    """Raised when connection to DynamoDB fails.

    Used for:
    - Network connectivity issues
    - Authentication/authorization failures
    - Unknown service errors
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, original_error, context)


class RetryableError(StorageError):
    """Raised when an operation fails for a temporary reason and can be retried.

    Used for:
    - ProvisionedThroughputExceededException, RequestLimitExceeded
    - Temporary service unavailability
    - Batch requests left unprocessed after all retries
    """

    def __init__(self, message: str, retry_after_seconds: Optional[int] = None, original_error: Optional[Exception] = None):
        self.retry_after_seconds = retry_after_seconds
        context = {}
        if retry_after_seconds:
            context['retry_after_seconds'] = retry_after_seconds
        super().__init__(message, original_error, context)


class NotFoundError(StorageError):
    """Raised when a DynamoDB resource (table, index) is not found."""

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_name: Optional[str] = None, original_error: Optional[Exception] = None):
        self.resource_type = resource_type
        self.resource_name = resource_name
        context = {}
        if resource_type:
            context['resource_type'] = resource_type
        if resource_name:
            context['resource_name'] = resource_name
        super().__init__(message, original_error, context)
