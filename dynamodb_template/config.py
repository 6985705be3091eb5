import os
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models.schema import ENTITY2DDL_CONFIGURATION_KEY, LifecycleMode

# Load environment variables from .env file if it exists
load_dotenv()

# Property names accepted by DynamoDBConfig.from_properties, mapped to fields
PROPERTY_FIELDS: Dict[str, str] = {
    ENTITY2DDL_CONFIGURATION_KEY: "entity2ddl_auto",
    "amazon.dynamodb.endpoint": "endpoint_url",
    "amazon.aws.accesskey": "aws_access_key_id",
    "amazon.aws.secretkey": "aws_secret_access_key",
    "amazon.aws.region": "region_name",
}


class DynamoDBConfig(BaseModel):
    """Configuration for DynamoDB connection, table lifecycle and transactional operations."""

    aws_access_key_id: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_ACCESS_KEY_ID"),
        description="AWS access key ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_SECRET_ACCESS_KEY"),
        description="AWS secret access key"
    )

    region_name: str = Field(
        default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"),
        description="AWS region name"
    )

    # DynamoDB specific settings
    endpoint_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("DYNAMODB_ENDPOINT_URL"),
        description="DynamoDB endpoint URL (for local development)"
    )

    # Table configuration
    table_prefix: str = Field(
        default_factory=lambda: os.getenv("DYNAMODB_TABLE_PREFIX", ""),
        description="Prefix to add to all table names"
    )

    # Connection settings
    max_pool_connections: int = Field(
        default=50,
        description="Maximum number of connections in the connection pool"
    )

    retries: int = Field(
        default=3,
        description="Number of retry attempts botocore makes for failed requests"
    )

    timeout_seconds: float = Field(
        default=30.0,
        description="Connect and read timeout in seconds"
    )

    # Environment settings
    environment: str = Field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "dev"),
        description="Current environment (dev, test, staging, prod)"
    )

    # Logging settings
    enable_debug_logging: bool = Field(
        default_factory=lambda: os.getenv("DYNAMODB_DEBUG_LOGGING", "false").lower() == "true",
        description="Enable debug logging for DynamoDB operations"
    )

    # Schema lifecycle settings
    entity2ddl_auto: str = Field(
        default_factory=lambda: os.getenv("DYNAMODB_ENTITY2DDL_AUTO", LifecycleMode.NONE.value),
        description=f"Table lifecycle mode, property '{ENTITY2DDL_CONFIGURATION_KEY}'"
    )

    read_capacity_units: int = Field(
        default=10,
        description="Read capacity units for created tables and their GSIs"
    )

    write_capacity_units: int = Field(
        default=10,
        description="Write capacity units for created tables and their GSIs"
    )

    gsi_projection_type: str = Field(
        default="ALL",
        description="Projection type for GSIs that do not list their projected attributes"
    )

    table_wait_delay_seconds: int = Field(
        default=1,
        description="Delay between polls while waiting for a table to appear or disappear"
    )

    table_wait_max_attempts: int = Field(
        default=60,
        description="Maximum polls while waiting for a table to appear or disappear"
    )

    lifecycle_max_workers: int = Field(
        default=1,
        description="Threads used to reconcile entity tables at startup (1 = sequential)"
    )

    # Transaction and batch settings
    transaction_max_items: int = Field(
        default=100,
        description="Maximum actions in one TransactWriteItems call"
    )

    batch_max_retries: int = Field(
        default=3,
        description="Retry attempts for UnprocessedItems/UnprocessedKeys in batch calls"
    )

    @field_validator('region_name')
    @classmethod
    def validate_region(cls, v):
        """Validate AWS region name."""
        if not v:
            raise ValueError("AWS region name is required")
        return v

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        valid_environments = ['dev', 'test', 'staging', 'prod']
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v

    @field_validator('gsi_projection_type')
    @classmethod
    def validate_projection_type(cls, v):
        valid_types = ['ALL', 'KEYS_ONLY', 'INCLUDE']
        if v not in valid_types:
            raise ValueError(f"GSI projection type must be one of: {valid_types}")
        return v

    @field_validator('read_capacity_units', 'write_capacity_units', 'transaction_max_items', 'lifecycle_max_workers', 'table_wait_max_attempts')
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("Value must be at least 1")
        return v

    @field_validator('batch_max_retries', 'retries', 'table_wait_delay_seconds')
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("Value must not be negative")
        return v

    @property
    def lifecycle_mode(self) -> LifecycleMode:
        """Resolve entity2ddl_auto into a LifecycleMode.

        Raises:
            ConfigurationError: If the configured value is not one of the six modes
        """
        return LifecycleMode.from_configuration_value(self.entity2ddl_auto)

    def get_table_name(self, base_name: str) -> str:
        """Get the full table name with prefix and environment.

        Args:
            base_name: Base table name

        Returns:
            Full table name with prefix and environment
        """
        parts = []

        if self.table_prefix:
            parts.append(self.table_prefix)

        if self.environment != "prod":
            parts.append(self.environment)

        parts.append(base_name)

        return "_".join(parts)

    @classmethod
    def from_env(cls) -> 'DynamoDBConfig':
        """Create configuration from environment variables.

        Returns:
            DynamoDBConfig instance
        """
        return cls()

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any], **kwargs) -> 'DynamoDBConfig':
        """Create configuration from dotted property names.

        Recognizes 'spring.data.dynamodb.entity2ddl.auto' and the amazon.*
        connection properties; unknown properties are ignored.

        Args:
            properties: Property name to value mapping
            **kwargs: Explicit field values, applied after the properties

        Returns:
            DynamoDBConfig instance
        """
        values = {
            field_name: properties[property_name]
            for property_name, field_name in PROPERTY_FIELDS.items()
            if property_name in properties
        }
        values.update(kwargs)
        return cls(**values)

    @classmethod
    def for_local_development(cls) -> 'DynamoDBConfig':
        """Create configuration for local DynamoDB development.

        Returns:
            DynamoDBConfig instance configured for local development
        """
        return cls(
            aws_access_key_id="local",
            aws_secret_access_key="local",
            region_name="us-east-1",
            endpoint_url="http://localhost:8000",
            environment="dev",
            enable_debug_logging=True,
            entity2ddl_auto=LifecycleMode.CREATE.value
        )

    model_config = ConfigDict(
        validate_assignment=True,
        use_enum_values=True
    )
