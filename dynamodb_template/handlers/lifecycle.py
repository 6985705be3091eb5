"""
Schema Lifecycle Manager

Reconciles the live DynamoDB tables with the schema declared by every
registered entity class, once per application start, according to the
configured lifecycle mode (spring.data.dynamodb.entity2ddl.auto):

    none         nothing is touched
    create-only  create the table
    drop         delete the table if it exists
    create       drop, then create
    create-drop  drop, then create; drop again on shutdown
    validate     compare key schema and GSIs with the live table

Usage:
    manager = SchemaLifecycleManager(config, [User, Installation])
    manager.on_startup()
    ...
    manager.on_shutdown()
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional, Sequence, Tuple, Type, Union

from ..config import DynamoDBConfig
from ..core import DynamoDBGateway, SchemaDefinitionProvider, TableAdmin, create_gateway
from ..exceptions import SchemaMismatchError, SchemaReconciliationError
from ..models import LifecycleMode, SchemaDescriptor
from ..models.schema import gsi_signature, key_schema_signature

logger = logging.getLogger(__name__)

LIFECYCLE_ACTIONS: Dict[LifecycleMode, Tuple[str, ...]] = {
    LifecycleMode.NONE: (),
    LifecycleMode.CREATE_ONLY: ('create',),
    LifecycleMode.DROP: ('drop',),
    LifecycleMode.CREATE: ('drop', 'create'),
    LifecycleMode.CREATE_DROP: ('drop', 'create'),
    LifecycleMode.VALIDATE: ('validate',),
}

SHUTDOWN_ACTIONS: Dict[LifecycleMode, Tuple[str, ...]] = {
    LifecycleMode.CREATE_DROP: ('drop',),
}


class SchemaLifecycleManager:
    """
    Drives table creation, deletion and validation for registered entities.

    The lifecycle mode is resolved from configuration when the manager is
    built, so an invalid value fails before any table is touched.
    """

    def __init__(
        self,
        config: DynamoDBConfig,
        entity_types: Sequence[Type[Any]],
        gateway: Optional[DynamoDBGateway] = None,
        admin: Optional[TableAdmin] = None,
        provider: Optional[SchemaDefinitionProvider] = None
    ):
        """Initialize the manager.

        Args:
            config: DynamoDB configuration, entity2ddl_auto selects the mode
            entity_types: Entity classes whose tables are managed
            gateway: Gateway to build the TableAdmin from (created from config if omitted)
            admin: TableAdmin to use instead of one built on the gateway
            provider: Schema provider (created from config if omitted)

        Raises:
            ConfigurationError: entity2ddl_auto is not a valid lifecycle mode
        """
        self.config = config
        self.mode = config.lifecycle_mode
        self.entity_types = list(entity_types)
        self.admin = admin or TableAdmin(gateway or create_gateway(config))
        self.provider = provider or SchemaDefinitionProvider(config)

    # =========================================================================
    # Per-entity operations
    # =========================================================================

    def execute(self, mode: Union[LifecycleMode, str], entity_type: Type[Any]) -> None:
        """
        Apply one lifecycle mode to one entity's table.

        Raises:
            ConfigurationError: Unknown mode
            SchemaConflictError: create against an existing table
            SchemaMismatchError: validate found a different schema
            StorageError: Service failure
        """
        mode = LifecycleMode.from_configuration_value(mode)
        actions = LIFECYCLE_ACTIONS[mode]
        if not actions:
            logger.info(f"Lifecycle mode '{mode.value}', leaving table of {entity_type.__name__} untouched")
            return

        descriptor = self.provider.describe_schema(entity_type)
        for action in actions:
            getattr(self, action)(descriptor)

    reconcile_schema = execute

    def create(self, descriptor: SchemaDescriptor) -> None:
        """Create the table, then wait until it is ACTIVE.

        Raises:
            SchemaConflictError: The table already exists
        """
        request = descriptor.to_create_table_request()
        logger.debug(f"Creating table {descriptor.table_name}: {request}")
        self.admin.create_table(request)
        self.admin.ensure_created(request)
        logger.info(f"Created table {descriptor.table_name} for {descriptor.entity_name}")

    def drop(self, descriptor: SchemaDescriptor) -> None:
        """Delete the table and wait until it is gone; an absent table is fine."""
        deleted = self.admin.delete_table(descriptor.table_name)
        self.admin.ensure_deleted(descriptor.table_name)
        if deleted:
            logger.info(f"Dropped table {descriptor.table_name} for {descriptor.entity_name}")

    def validate(self, descriptor: SchemaDescriptor) -> None:
        """
        Compare the live table with the declared schema.

        The key schema must match exactly (names, types and order). When the
        entity declares GSIs, the live GSIs must match by name, key schema and
        projection type. Capacity, streams and billing mode are not compared.

        Raises:
            SchemaMismatchError: On the first difference found
        """
        expected = descriptor.to_create_table_request()
        actual = self.admin.describe_table(descriptor.table_name) or {}

        expected_keys = key_schema_signature(expected['KeySchema'])
        actual_keys = key_schema_signature(actual.get('KeySchema'))
        if expected_keys != actual_keys:
            raise SchemaMismatchError(descriptor.table_name, "Key schema", expected_keys, actual_keys)

        if expected.get('GlobalSecondaryIndexes'):
            expected_gsis = gsi_signature(expected['GlobalSecondaryIndexes'])
            actual_gsis = gsi_signature(actual.get('GlobalSecondaryIndexes'))
            if expected_gsis != actual_gsis:
                raise SchemaMismatchError(descriptor.table_name, "Global secondary indexes", expected_gsis, actual_gsis)

        logger.info(f"Validated table {descriptor.table_name} for {descriptor.entity_name}")

    # =========================================================================
    # Application lifecycle hooks
    # =========================================================================

    def on_startup(self) -> None:
        """
        Reconcile every registered entity with the configured mode.

        All entities are processed; failures are collected and raised together.

        Raises:
            SchemaReconciliationError: At least one entity failed, keyed by table
        """
        logger.info(f"Checking repositories/entities {[entity.__name__ for entity in self.entity_types]}")
        self._run_all(LIFECYCLE_ACTIONS[self.mode], "startup")

    def on_shutdown(self) -> None:
        """Drop the managed tables when the mode is create-drop."""
        actions = SHUTDOWN_ACTIONS.get(self.mode, ())
        if actions:
            self._run_all(actions, "shutdown")

    def _run_all(self, actions: Tuple[str, ...], phase: str) -> None:
        if not actions:
            logger.info(f"Lifecycle mode '{self.mode.value}', skipping {phase} schema reconciliation")
            return

        workers = min(self.config.lifecycle_max_workers, max(len(self.entity_types), 1))
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                outcomes = list(executor.map(lambda entity: self._apply(entity, actions), self.entity_types))
        else:
            outcomes = [self._apply(entity, actions) for entity in self.entity_types]

        failures = dict(outcome for outcome in outcomes if outcome is not None)
        if failures:
            logger.error(f"Schema {phase} failed for {sorted(failures)}")
            raise SchemaReconciliationError(failures)
        logger.info(f"Schema {phase} ({self.mode.value}) finished for {len(self.entity_types)} entities")

    def _apply(self, entity_type: Type[Any], actions: Tuple[str, ...]) -> Optional[Tuple[str, Exception]]:
        """Run actions for one entity, returning (table, error) instead of raising."""
        target = entity_type.__name__
        try:
            descriptor = self.provider.describe_schema(entity_type)
            target = descriptor.table_name
            for action in actions:
                getattr(self, action)(descriptor)
            return None
        except Exception as e:
            logger.error(f"Schema lifecycle failed for {target}: {e}")
            return target, e

