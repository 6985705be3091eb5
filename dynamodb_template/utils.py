"""
dynamodb_template Utilities - Consolidated Module

This single module contains the helpers shared by the gateway, the schema
provider and the transactional coordinators.

Key Features:
- Data serialization/deserialization between pydantic entities and DynamoDB items
- Model-agnostic key building using the entity's Meta class
- Batch helpers (chunking, exponential backoff)

Architecture Compliance:
- Items are stored with UTC ISO datetimes and boto3-compatible numbers
- Generic model support: works with any pydantic BaseModel that declares Meta
"""

import logging
import random
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Sequence, Type, TypeVar

from pydantic import BaseModel

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=BaseModel)
T = TypeVar('T')


# =============================================================================
# Timezone Utilities
# =============================================================================

def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC.

    Naive datetimes are assumed to already be in UTC.

    Examples:
        >>> dt = datetime(2024, 1, 1, 10, 0)
        >>> to_utc(dt)  # -> 2024-01-01 10:00:00+00:00
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


# =============================================================================
# Data Serialization
# =============================================================================

def to_dynamodb_value(obj: Any) -> Any:
    """Recursively convert a Python value into a boto3-compatible DynamoDB value.

    - datetime -> UTC ISO string, date -> ISO string
    - bool -> 'true'/'false' string (usable as GSI key)
    - float -> Decimal (boto3 rejects floats)
    - Enum -> its value
    - dict/list/set -> converted element-wise
    """
    if isinstance(obj, dict):
        return {k: to_dynamodb_value(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [to_dynamodb_value(element) for element in obj]
    elif isinstance(obj, (set, frozenset)):
        return {to_dynamodb_value(element) for element in obj}
    elif isinstance(obj, datetime):
        return to_utc(obj).isoformat()
    elif isinstance(obj, date):
        return obj.isoformat()
    elif isinstance(obj, bool):
        return str(obj).lower()
    elif isinstance(obj, Enum):
        return to_dynamodb_value(obj.value)
    elif isinstance(obj, float):
        return Decimal(str(obj))
    return obj


def model_to_item(model: BaseModel) -> Dict[str, Any]:
    """Convert pydantic model to DynamoDB item.

    None values are dropped, DynamoDB does not store empty attributes.

    Args:
        model: Pydantic model instance

    Returns:
        DynamoDB item dictionary
    """
    if not isinstance(model, BaseModel):
        raise ValidationError(f"Cannot persist {type(model).__name__}: entities must be pydantic models")
    return to_dynamodb_value(model.model_dump(exclude_none=True))


def item_to_model(item: Dict[str, Any], model_class: Type[M]) -> M:
    """Convert DynamoDB item to pydantic model.

    Pydantic's lax mode reverses the storage conversions: ISO strings become
    datetimes, 'true'/'false' become booleans, Decimals become int/float.

    Raises:
        ValidationError: If conversion fails
    """
    try:
        return model_class.model_validate(item)
    except Exception as e:
        logger.error(f"Failed to convert item to {model_class.__name__}: {e}")
        raise ValidationError(f"Failed to convert item to {model_class.__name__}: {e}", original_error=e) from e


# =============================================================================
# Domain Model Introspection (Meta Class Only)
# =============================================================================

def extract_model_metadata(model_class: Type[BaseModel]) -> Dict[str, Any]:
    """Extract metadata from a pydantic model's Meta class.

    Args:
        model_class: Pydantic BaseModel class with Meta class

    Returns:
        Dictionary with model metadata

    Raises:
        ValidationError: If model doesn't have the required Meta class attributes

    Example:
        >>> metadata = extract_model_metadata(User)
        >>> metadata['partition_key']
        'id'
    """
    meta = getattr(model_class, 'Meta', None)
    if meta is None:
        raise ValidationError(f"Model {model_class.__name__} must have a Meta class with table_name and partition_key attributes")

    table_name = getattr(meta, 'table_name', None)
    partition_key = getattr(meta, 'partition_key', None)
    sort_key = getattr(meta, 'sort_key', None)  # Can be None for simple keys
    gsis = getattr(meta, 'gsis', [])

    if not table_name:
        raise ValidationError(f"Model {model_class.__name__}.Meta must define table_name")
    if not partition_key:
        raise ValidationError(f"Model {model_class.__name__}.Meta must define partition_key")

    return {
        'table_name': table_name,
        'partition_key': partition_key,
        'sort_key': sort_key,
        'available_fields': list(model_class.model_fields.keys()),
        'gsis': gsis,
        'attribute_types': dict(getattr(meta, 'attribute_types', {}) or {}),
    }


def build_model_key(model_class: Type[BaseModel], **key_values: Any) -> Dict[str, Any]:
    """Build a DynamoDB key using the model's Meta class definitions.

    Key values go through the same conversion as stored items, so the key
    matches what model_to_item wrote.

    Examples:
        >>> build_model_key(User, id="user-123")
        {'id': 'user-123'}

    Raises:
        ValidationError: If model lacks Meta class, or required key fields are missing
    """
    metadata = extract_model_metadata(model_class)
    key = {}

    partition_key = metadata['partition_key']
    if key_values.get(partition_key) is None:
        raise ValidationError(f"Missing partition key '{partition_key}' for {model_class.__name__}")
    key[partition_key] = to_dynamodb_value(key_values[partition_key])

    sort_key = metadata['sort_key']
    if sort_key:
        if key_values.get(sort_key) is None:
            raise ValidationError(f"Missing sort key '{sort_key}' for {model_class.__name__}")
        key[sort_key] = to_dynamodb_value(key_values[sort_key])

    return key


# =============================================================================
# Batch Helpers
# =============================================================================

def chunked(items: Sequence[T], size: int) -> List[Sequence[T]]:
    """Split items into consecutive chunks of at most size elements."""
    if size <= 0:
        raise ValueError("size must be > 0")
    return [items[i:i + size] for i in range(0, len(items), size)]


def backoff_delay(attempt: int, base: float = 0.05, cap: float = 2.0) -> float:
    """Exponential backoff with jitter for the given 0-based retry attempt."""
    return min(cap, base * (2 ** attempt)) + random.uniform(0, base)


__all__ = [
    "to_utc",
    "to_dynamodb_value",
    "model_to_item",
    "item_to_model",
    "extract_model_metadata",
    "build_model_key",
    "chunked",
    "backoff_delay",
]
