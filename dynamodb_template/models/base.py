"""
Base Model Components and Mixins

Entities persisted through the template are plain pydantic models with an
inner ``Meta(TableMeta)`` class. Inheriting DynamoDBMixin is optional; it adds
convenience methods over the module-level conversions in ``utils`` so an
entity can serialize itself:

```python
class User(DynamoDBMixin, BaseModel):
    id: str
    name: str

    class Meta(TableMeta):
        table_name = "users"
        partition_key = "id"

item = User(id="u-1", name="Ada").to_dynamodb_item()
user = User.from_dynamodb_item(item)
```
"""

from typing import Any, Dict

from pydantic import BaseModel

from ..utils import build_model_key, item_to_model, model_to_item


class DynamoDBMixin(BaseModel):
    """
    Mixin providing DynamoDB serialization and deserialization functionality.

    DynamoDB Requirements:
    - datetime -> UTC ISO string
    - bool -> 'true'/'false' string (for GSI compatibility)
    - float -> Decimal, Decimal preserved (boto3 Number type)
    - None values are not stored
    """

    def to_dynamodb_item(self) -> Dict[str, Any]:
        """Convert model to DynamoDB-compatible item."""
        return model_to_item(self)

    @classmethod
    def from_dynamodb_item(cls, item: Dict[str, Any]):
        """
        Create model instance from DynamoDB item.

        Raises:
            ValidationError: If item data is invalid for the model
        """
        return item_to_model(item, cls)

    def dynamodb_key(self) -> Dict[str, Any]:
        """Primary key of this entity as declared by its Meta class."""
        return build_model_key(type(self), **self.model_dump())
