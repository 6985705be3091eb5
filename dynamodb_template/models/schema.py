"""
Table Schema Models

Entity classes declare their table through an inner ``Meta`` class deriving
from TableMeta:

    class User(DynamoDBMixin, BaseModel):
        id: str
        name: str

        class Meta(TableMeta):
            table_name = "users"
            partition_key = "id"

The SchemaDefinitionProvider turns such a declaration into a SchemaDescriptor,
the fully resolved shape of the table (prefixed name, key schema, attribute
definitions, GSIs, capacity) that the lifecycle manager and the transactional
coordinators work from.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from ..exceptions import ConfigurationError, ValidationError

ENTITY2DDL_CONFIGURATION_KEY = "spring.data.dynamodb.entity2ddl.auto"


# =============================================================================
# Lifecycle Mode
# =============================================================================

class LifecycleMode(str, Enum):
    """Table lifecycle applied to every registered entity at startup.

    Values mirror the hbm2ddl-style settings of the
    spring.data.dynamodb.entity2ddl.auto property.
    """

    NONE = "none"
    CREATE_ONLY = "create-only"
    DROP = "drop"
    CREATE = "create"
    CREATE_DROP = "create-drop"
    VALIDATE = "validate"

    @classmethod
    def from_configuration_value(cls, value: Any) -> 'LifecycleMode':
        """Resolve a configuration string into a mode.

        Raises:
            ConfigurationError: If value is not one of the six accepted strings
        """
        if isinstance(value, cls):
            return value
        for mode in cls:
            if mode.value == value:
                return mode
        raise ConfigurationError(
            f"{value} is not a valid configuration value! Expected one of: {[m.value for m in cls]}",
            key=ENTITY2DDL_CONFIGURATION_KEY,
            value=value
        )


# =============================================================================
# Entity Table Declarations
# =============================================================================

class GSIDefinition:
    """Defines a Global Secondary Index for DynamoDB."""
    def __init__(
        self,
        name: str,
        partition_key: str,
        sort_key: Optional[str] = None,
        projection: Optional[List[str]] = None
    ):
        self.name = name
        self.partition_key = partition_key
        self.sort_key = sort_key
        self.projection = projection  # None means the configured projection type

    def __repr__(self) -> str:
        return f"GSIDefinition(name={self.name!r}, partition_key={self.partition_key!r}, sort_key={self.sort_key!r})"


class TableMeta:
    """Base class for table metadata definitions."""
    table_name: str
    partition_key: str
    sort_key: Optional[str] = None
    gsis: List[GSIDefinition] = []
    # Explicit DynamoDB scalar types ('S', 'N', 'B') for key attributes,
    # overriding the type inferred from the field annotation
    attribute_types: Dict[str, str] = {}


# =============================================================================
# Resolved Schema Descriptor
# =============================================================================

class KeySchemaElement(BaseModel):
    attribute_name: str
    key_type: str  # HASH or RANGE

    model_config = ConfigDict(frozen=True)

    def to_request(self) -> Dict[str, str]:
        return {'AttributeName': self.attribute_name, 'KeyType': self.key_type}


class AttributeDefinition(BaseModel):
    attribute_name: str
    attribute_type: str  # S, N or B

    model_config = ConfigDict(frozen=True)

    def to_request(self) -> Dict[str, str]:
        return {'AttributeName': self.attribute_name, 'AttributeType': self.attribute_type}


class ProvisionedThroughput(BaseModel):
    read_capacity_units: int
    write_capacity_units: int

    model_config = ConfigDict(frozen=True)

    def to_request(self) -> Dict[str, int]:
        return {
            'ReadCapacityUnits': self.read_capacity_units,
            'WriteCapacityUnits': self.write_capacity_units
        }


class GlobalSecondaryIndexDescriptor(BaseModel):
    index_name: str
    key_schema: Tuple[KeySchemaElement, ...]
    projection_type: str = "ALL"
    non_key_attributes: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    def to_request(self, throughput: ProvisionedThroughput) -> Dict[str, Any]:
        projection: Dict[str, Any] = {'ProjectionType': self.projection_type}
        if self.projection_type == 'INCLUDE' and self.non_key_attributes:
            projection['NonKeyAttributes'] = list(self.non_key_attributes)
        return {
            'IndexName': self.index_name,
            'KeySchema': [element.to_request() for element in self.key_schema],
            'Projection': projection,
            'ProvisionedThroughput': throughput.to_request()
        }


class SchemaDescriptor(BaseModel):
    """Resolved table schema of one entity type.

    Built fresh from the entity's Meta declaration and the active
    configuration; never stored.
    """

    entity_name: str
    table_name: str
    key_schema: Tuple[KeySchemaElement, ...]
    attribute_definitions: Tuple[AttributeDefinition, ...]
    global_secondary_indexes: Tuple[GlobalSecondaryIndexDescriptor, ...] = ()
    provisioned_throughput: ProvisionedThroughput

    model_config = ConfigDict(frozen=True)

    @property
    def key_fields(self) -> List[str]:
        """Key attribute names in key schema order (partition key first)."""
        return [element.attribute_name for element in self.key_schema]

    def extract_key(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """Pick the primary key attributes out of a serialized item.

        Raises:
            ValidationError: If a key attribute is missing from the item
        """
        missing = [name for name in self.key_fields if item.get(name) is None]
        if missing:
            raise ValidationError(
                f"{self.entity_name} is missing key attribute(s) {missing} for table '{self.table_name}'",
                errors={name: 'missing' for name in missing}
            )
        return {name: item[name] for name in self.key_fields}

    def key_signature(self, key: Dict[str, Any]) -> Tuple[Any, ...]:
        """Hashable identity of an item: table name plus key values in key order."""
        return (self.table_name,) + tuple(key[name] for name in self.key_fields)

    def to_create_table_request(self) -> Dict[str, Any]:
        """Build CreateTable parameters with throughput on the table and every GSI."""
        request: Dict[str, Any] = {
            'TableName': self.table_name,
            'KeySchema': [element.to_request() for element in self.key_schema],
            'AttributeDefinitions': [definition.to_request() for definition in self.attribute_definitions],
            'BillingMode': 'PROVISIONED',
            'ProvisionedThroughput': self.provisioned_throughput.to_request()
        }
        if self.global_secondary_indexes:
            request['GlobalSecondaryIndexes'] = [
                gsi.to_request(self.provisioned_throughput) for gsi in self.global_secondary_indexes
            ]
        return request


# =============================================================================
# Comparison Helpers
# =============================================================================

def key_schema_signature(key_schema: Optional[List[Dict[str, Any]]]) -> List[Tuple[str, str]]:
    """Order-preserving (name, key type) pairs of a KeySchema list."""
    return [(element['AttributeName'], element['KeyType']) for element in key_schema or []]


def gsi_signature(indexes: Optional[List[Dict[str, Any]]]) -> List[Tuple[Any, ...]]:
    """Name-sorted (name, key schema, projection type, non-key attributes) entries of a GSI list.

    Capacity, status and size fields of a live description are ignored.
    """
    signature = []
    for index in indexes or []:
        projection = index.get('Projection') or {}
        signature.append((
            index['IndexName'],
            tuple(key_schema_signature(index.get('KeySchema'))),
            projection.get('ProjectionType', 'ALL'),
            tuple(sorted(projection.get('NonKeyAttributes') or ()))
        ))
    return sorted(signature)


__all__ = [
    "ENTITY2DDL_CONFIGURATION_KEY",
    "LifecycleMode",
    "GSIDefinition",
    "TableMeta",
    "KeySchemaElement",
    "AttributeDefinition",
    "ProvisionedThroughput",
    "GlobalSecondaryIndexDescriptor",
    "SchemaDescriptor",
    "key_schema_signature",
    "gsi_signature",
]
