# Base mixins
from .base import DynamoDBMixin

# Table schema declarations and resolved descriptors
from .schema import (
    ENTITY2DDL_CONFIGURATION_KEY,
    AttributeDefinition,
    GlobalSecondaryIndexDescriptor,
    GSIDefinition,
    KeySchemaElement,
    LifecycleMode,
    ProvisionedThroughput,
    SchemaDescriptor,
    TableMeta,
)

# Transactional write unit
from .transaction import TransactionGroup, TransactionGroupBuilder

# Batch results
from .results import FailedBatch

__all__ = [
    # Base mixins
    "DynamoDBMixin",

    # Schema declarations
    "ENTITY2DDL_CONFIGURATION_KEY",
    "GSIDefinition",
    "LifecycleMode",
    "TableMeta",

    # Resolved schema
    "AttributeDefinition",
    "GlobalSecondaryIndexDescriptor",
    "KeySchemaElement",
    "ProvisionedThroughput",
    "SchemaDescriptor",

    # Transactions and batches
    "FailedBatch",
    "TransactionGroup",
    "TransactionGroupBuilder",
]
