"""
Schema Definition Provider

Derives a SchemaDescriptor from an entity class's Meta declaration:

- table name, resolved through DynamoDBConfig.get_table_name (prefix/environment)
- key schema: partition key (HASH) then optional sort key (RANGE)
- attribute definitions for every attribute used by the table or GSI keys,
  typed from the pydantic field annotation unless Meta.attribute_types says otherwise
- GSI descriptors with the configured projection type
- provisioned throughput from configuration
"""

import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Type, Union, get_args, get_origin

from pydantic import BaseModel

from ..config import DynamoDBConfig
from ..exceptions import ValidationError
from ..models.schema import (
    AttributeDefinition,
    GlobalSecondaryIndexDescriptor,
    KeySchemaElement,
    ProvisionedThroughput,
    SchemaDescriptor,
)
from ..utils import extract_model_metadata

logger = logging.getLogger(__name__)

VALID_ATTRIBUTE_TYPES = ('S', 'N', 'B')


def _unwrap_optional(annotation: Any) -> Any:
    """Optional[X] / Union[X, None] -> X."""
    if get_origin(annotation) is Union:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def infer_attribute_type(annotation: Any) -> Optional[str]:
    """DynamoDB scalar type for a key field annotation, None if it cannot be a key."""
    annotation = _unwrap_optional(annotation)
    if not isinstance(annotation, type):
        return None
    # bool before int: stored as 'true'/'false' strings
    if issubclass(annotation, bool):
        return 'S'
    if issubclass(annotation, Enum):
        # stored as the member value
        value_types = {infer_attribute_type(type(member.value)) for member in annotation}
        if len(value_types) != 1 or None in value_types:
            raise ValidationError(
                f"Enum {annotation.__name__} cannot be a key: member values must share one DynamoDB type",
                errors={annotation.__name__: sorted(str(t) for t in value_types)}
            )
        return value_types.pop()
    if issubclass(annotation, (str, datetime, date, uuid.UUID)):
        return 'S'
    if issubclass(annotation, (int, float, Decimal)):
        return 'N'
    if issubclass(annotation, bytes):
        return 'B'
    return None


class SchemaDefinitionProvider:
    """Builds SchemaDescriptors for entity classes; holds no state besides config."""

    def __init__(self, config: DynamoDBConfig):
        self.config = config

    def describe_schema(self, entity_type: Type[BaseModel]) -> SchemaDescriptor:
        """Resolve the table schema of an entity class.

        Args:
            entity_type: Pydantic model class with a Meta(TableMeta) declaration

        Returns:
            SchemaDescriptor for the entity's table

        Raises:
            ValidationError: Missing Meta, unknown key fields or non-key-able field types
        """
        metadata = extract_model_metadata(entity_type)
        attribute_types: Dict[str, str] = {}

        key_schema = [KeySchemaElement(attribute_name=metadata['partition_key'], key_type='HASH')]
        self._register_attribute(entity_type, metadata, metadata['partition_key'], attribute_types)
        if metadata['sort_key']:
            key_schema.append(KeySchemaElement(attribute_name=metadata['sort_key'], key_type='RANGE'))
            self._register_attribute(entity_type, metadata, metadata['sort_key'], attribute_types)

        indexes = []
        for gsi in metadata['gsis']:
            gsi_key_schema = [KeySchemaElement(attribute_name=gsi.partition_key, key_type='HASH')]
            self._register_attribute(entity_type, metadata, gsi.partition_key, attribute_types)
            if gsi.sort_key:
                gsi_key_schema.append(KeySchemaElement(attribute_name=gsi.sort_key, key_type='RANGE'))
                self._register_attribute(entity_type, metadata, gsi.sort_key, attribute_types)

            if gsi.projection:
                projection_type = 'INCLUDE'
                non_key_attributes = tuple(gsi.projection)
            else:
                projection_type = self.config.gsi_projection_type
                non_key_attributes = ()

            indexes.append(GlobalSecondaryIndexDescriptor(
                index_name=gsi.name,
                key_schema=gsi_key_schema,
                projection_type=projection_type,
                non_key_attributes=non_key_attributes
            ))

        descriptor = SchemaDescriptor(
            entity_name=entity_type.__name__,
            table_name=self.config.get_table_name(metadata['table_name']),
            key_schema=key_schema,
            attribute_definitions=[
                AttributeDefinition(attribute_name=name, attribute_type=attribute_type)
                for name, attribute_type in attribute_types.items()
            ],
            global_secondary_indexes=indexes,
            provisioned_throughput=ProvisionedThroughput(
                read_capacity_units=self.config.read_capacity_units,
                write_capacity_units=self.config.write_capacity_units
            )
        )
        logger.debug(f"Resolved schema for {entity_type.__name__}: table={descriptor.table_name}, keys={descriptor.key_fields}")
        return descriptor

    def describe_entity(self, entity: Any) -> SchemaDescriptor:
        """Resolve the schema of an entity instance's class."""
        return self.describe_schema(type(entity))

    def _register_attribute(
        self,
        entity_type: Type[BaseModel],
        metadata: Dict[str, Any],
        name: str,
        attribute_types: Dict[str, str]
    ) -> None:
        if name in attribute_types:
            return

        explicit = metadata['attribute_types'].get(name)
        if explicit is not None:
            if explicit not in VALID_ATTRIBUTE_TYPES:
                raise ValidationError(
                    f"{entity_type.__name__}.Meta.attribute_types['{name}'] must be one of {list(VALID_ATTRIBUTE_TYPES)}",
                    errors={name: explicit}
                )
            attribute_types[name] = explicit
            return

        field = entity_type.model_fields.get(name)
        if field is None:
            raise ValidationError(
                f"Key attribute '{name}' is not a field of {entity_type.__name__}",
                errors={name: 'unknown field'}
            )

        attribute_type = infer_attribute_type(field.annotation)
        if attribute_type is None:
            raise ValidationError(
                f"Cannot derive a DynamoDB key type for {entity_type.__name__}.{name} ({field.annotation}); "
                f"declare it in Meta.attribute_types",
                errors={name: str(field.annotation)}
            )
        attribute_types[name] = attribute_type


def resolve_descriptors(provider: SchemaDefinitionProvider, entities: List[Any]) -> List[SchemaDescriptor]:
    """Descriptor per entity, resolving each entity class once."""
    by_type: Dict[type, SchemaDescriptor] = {}
    descriptors = []
    for entity in entities:
        entity_type = type(entity)
        if entity_type not in by_type:
            by_type[entity_type] = provider.describe_schema(entity_type)
        descriptors.append(by_type[entity_type])
    return descriptors
