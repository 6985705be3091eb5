"""
Handler Layer for DynamoDB Template

This module contains the application layer handlers built on the core
infrastructure:

- lifecycle.py: SchemaLifecycleManager, table create/drop/validate at startup
- commands.py: TransactionalWriteCoordinator, atomic and batch writes
- queries.py: TransactionalReadCoordinator, ordered batch point reads

Architecture:
handlers/ (this layer) -> core/ (infrastructure) -> DynamoDB
handlers/ (this layer) <- models/ (schema and transaction models)
"""

from .commands import TransactionalWriteCoordinator
from .lifecycle import LIFECYCLE_ACTIONS, SHUTDOWN_ACTIONS, SchemaLifecycleManager
from .queries import TransactionalReadCoordinator

__all__ = [
    'LIFECYCLE_ACTIONS',
    'SHUTDOWN_ACTIONS',
    'SchemaLifecycleManager',
    'TransactionalReadCoordinator',
    'TransactionalWriteCoordinator',
]
