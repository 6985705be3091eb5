from .config import DynamoDBConfig
from .exceptions import (
    ConfigurationError,
    ConflictError,
    ConnectionError,
    DynamoDBTemplateError,
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
from .models import (
    # Entity declarations
    DynamoDBMixin,
    GSIDefinition,
    TableMeta,
    # Lifecycle
    ENTITY2DDL_CONFIGURATION_KEY,
    LifecycleMode,
    SchemaDescriptor,
    # Transactions and batches
    FailedBatch,
    TransactionGroup,
    TransactionGroupBuilder,
)
from .core import (
    DynamoDBGateway,
    SchemaDefinitionProvider,
    TableAdmin,
    create_gateway,
)
from .handlers import (
    SchemaLifecycleManager,
    TransactionalReadCoordinator,
    TransactionalWriteCoordinator,
)
from .template import DynamoDBTemplate

__version__ = "1.0.0"
__all__ = [
    # Configuration
    "DynamoDBConfig",

    # Exceptions
    "ConfigurationError",
    "ConflictError",
    "ConnectionError",
    "DynamoDBTemplateError",
    "NotFoundError",
    "RetryableError",
    "SchemaConflictError",
    "SchemaMismatchError",
    "SchemaReconciliationError",
    "StorageError",
    "TransactionConflictError",
    "TransactionTooLargeError",
    "ValidationError",

    # Entity declarations
    "DynamoDBMixin",
    "GSIDefinition",
    "TableMeta",

    # Lifecycle
    "ENTITY2DDL_CONFIGURATION_KEY",
    "LifecycleMode",
    "SchemaDescriptor",

    # Transactions and batches
    "FailedBatch",
    "TransactionGroup",
    "TransactionGroupBuilder",

    # Infrastructure
    "DynamoDBGateway",
    "SchemaDefinitionProvider",
    "TableAdmin",
    "create_gateway",

    # Handlers
    "SchemaLifecycleManager",
    "TransactionalReadCoordinator",
    "TransactionalWriteCoordinator",
    "DynamoDBTemplate",
]
