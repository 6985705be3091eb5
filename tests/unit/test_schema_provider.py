from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

import pytest
from pydantic import BaseModel

from dynamodb_template.core.schema_provider import (
    SchemaDefinitionProvider,
    infer_attribute_type,
    resolve_descriptors,
)
from dynamodb_template.exceptions import ValidationError
from dynamodb_template.models import GSIDefinition, TableMeta
from tests.helpers import Installation, Playlist, User, make_config


class Color(str, Enum):
    RED = "red"


class Priority(int, Enum):
    LOW = 1


class Shade(Enum):
    DARK = 1
    LIGHT = 2


class Mixed(Enum):
    ONE = 1
    TWO = "two"


@pytest.fixture
def provider():
    return SchemaDefinitionProvider(make_config(read_capacity_units=4, write_capacity_units=2))


class TestInferAttributeType:

    @pytest.mark.parametrize("annotation,expected", [
        (str, 'S'),
        (Optional[str], 'S'),
        (int, 'N'),
        (float, 'N'),
        (Decimal, 'N'),
        (bool, 'S'),
        (datetime, 'S'),
        (bytes, 'B'),
        (Color, 'S'),
        (Priority, 'N'),
        (Shade, 'N'),
        (List[str], None),
        (Dict[str, int], None),
    ])
    def test_annotations(self, annotation, expected):
        assert infer_attribute_type(annotation) == expected

    def test_enum_with_mixed_value_types(self):
        with pytest.raises(ValidationError, match="Enum Mixed cannot be a key"):
            infer_attribute_type(Mixed)


class TestSchemaDefinitionProvider:

    def test_simple_key(self, provider):
        descriptor = provider.describe_schema(User)

        assert descriptor.entity_name == "User"
        assert descriptor.table_name == "app_test_users"
        assert descriptor.key_fields == ["id"]
        assert [d.to_request() for d in descriptor.attribute_definitions] == [
            {'AttributeName': 'id', 'AttributeType': 'S'}
        ]
        assert descriptor.global_secondary_indexes == ()
        assert descriptor.provisioned_throughput.read_capacity_units == 4
        assert descriptor.provisioned_throughput.write_capacity_units == 2

    def test_composite_key(self, provider):
        descriptor = provider.describe_schema(Playlist)

        assert descriptor.table_name == "app_test_playlists"
        assert [e.to_request() for e in descriptor.key_schema] == [
            {'AttributeName': 'user_id', 'KeyType': 'HASH'},
            {'AttributeName': 'name', 'KeyType': 'RANGE'},
        ]

    def test_gsi_attributes_are_defined(self, provider):
        descriptor = provider.describe_schema(Installation)

        names = [d.attribute_name for d in descriptor.attribute_definitions]
        assert names == ["id", "user_id", "platform"]

        gsi = descriptor.global_secondary_indexes[0]
        assert gsi.index_name == "UserIndex"
        assert gsi.projection_type == "ALL"
        assert [e.attribute_name for e in gsi.key_schema] == ["user_id", "platform"]

    def test_configured_projection_type(self):
        provider = SchemaDefinitionProvider(make_config(gsi_projection_type="KEYS_ONLY"))

        descriptor = provider.describe_schema(Installation)

        assert descriptor.global_secondary_indexes[0].projection_type == "KEYS_ONLY"

    def test_explicit_projection_uses_include(self, provider):
        class Device(BaseModel):
            id: str
            owner: str
            model: str = ""

            class Meta(TableMeta):
                table_name = "devices"
                partition_key = "id"
                gsis = [GSIDefinition("OwnerIndex", "owner", projection=["model"])]

        gsi = provider.describe_schema(Device).global_secondary_indexes[0]

        assert gsi.projection_type == "INCLUDE"
        assert gsi.non_key_attributes == ("model",)

    def test_numeric_key_and_override(self, provider):
        class Reading(BaseModel):
            sensor: int
            taken_at: str
            payload: Dict[str, int] = {}

            class Meta(TableMeta):
                table_name = "readings"
                partition_key = "sensor"
                sort_key = "taken_at"
                attribute_types = {"taken_at": "N"}

        definitions = {d.attribute_name: d.attribute_type for d in provider.describe_schema(Reading).attribute_definitions}

        assert definitions == {"sensor": "N", "taken_at": "N"}

    def test_missing_meta(self, provider):
        class Plain(BaseModel):
            id: str

        with pytest.raises(ValidationError, match="must have a Meta class"):
            provider.describe_schema(Plain)

    def test_unknown_key_field(self, provider):
        class Broken(BaseModel):
            id: str

            class Meta(TableMeta):
                table_name = "broken"
                partition_key = "identifier"

        with pytest.raises(ValidationError, match="is not a field of Broken"):
            provider.describe_schema(Broken)

    def test_unusable_key_type(self, provider):
        class Tagged(BaseModel):
            tags: List[str]

            class Meta(TableMeta):
                table_name = "tagged"
                partition_key = "tags"

        with pytest.raises(ValidationError, match="Cannot derive a DynamoDB key type"):
            provider.describe_schema(Tagged)

    def test_invalid_explicit_type(self, provider):
        class Odd(BaseModel):
            id: str

            class Meta(TableMeta):
                table_name = "odd"
                partition_key = "id"
                attribute_types = {"id": "BOOL"}

        with pytest.raises(ValidationError, match="must be one of"):
            provider.describe_schema(Odd)

    def test_describe_entity(self, provider):
        assert provider.describe_entity(User(id="1")).table_name == "app_test_users"

    def test_resolve_descriptors_per_entity(self, provider):
        entities = [User(id="1"), Playlist(user_id="1", name="a"), User(id="2")]

        descriptors = resolve_descriptors(provider, entities)

        assert [d.table_name for d in descriptors] == [
            "app_test_users", "app_test_playlists", "app_test_users"
        ]
        assert descriptors[0] is descriptors[2]

    def test_plain_enum_key_uses_value_type(self, provider):
        class Paint(BaseModel):
            shade: Shade

            class Meta(TableMeta):
                table_name = "paints"
                partition_key = "shade"

        descriptor = provider.describe_schema(Paint)

        assert [a.to_request() for a in descriptor.attribute_definitions] == [
            {'AttributeName': 'shade', 'AttributeType': 'N'}
        ]
