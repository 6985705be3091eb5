"""
Tests for SchemaLifecycleManager dispatch, validation and failure collection.

TableAdmin is mocked so each test checks exactly which table operations a
lifecycle mode performs.
"""

from typing import Optional
from unittest.mock import Mock, call

import pytest
from pydantic import BaseModel

from dynamodb_template.exceptions import (
    ConfigurationError,
    SchemaConflictError,
    SchemaMismatchError,
    SchemaReconciliationError,
)
from dynamodb_template.handlers import LIFECYCLE_ACTIONS, SchemaLifecycleManager
from dynamodb_template.models import GSIDefinition, LifecycleMode, TableMeta
from tests.helpers import ALL_ENTITIES, Installation, Playlist, User, make_config


@pytest.fixture
def mock_admin():
    admin = Mock()
    admin.delete_table.return_value = True
    return admin


class Doc(BaseModel):
    id: str
    owner: Optional[str] = None
    title: Optional[str] = None

    class Meta(TableMeta):
        table_name = "docs"
        partition_key = "id"
        gsis = [GSIDefinition("OwnerIndex", "owner", projection=["title"])]


def build_manager(mock_admin, mode="create", entities=None, **overrides):
    config = make_config(entity2ddl_auto=mode, **overrides)
    return SchemaLifecycleManager(config, entities or [User], admin=mock_admin)


def live_description(request):
    """DescribeTable-shaped view of a CreateTable request."""
    description = {
        'TableName': request['TableName'],
        'KeySchema': request['KeySchema'],
        'AttributeDefinitions': request['AttributeDefinitions'],
        'ProvisionedThroughput': {'ReadCapacityUnits': 1, 'WriteCapacityUnits': 1, 'NumberOfDecreasesToday': 0},
        'TableStatus': 'ACTIVE'
    }
    if 'GlobalSecondaryIndexes' in request:
        description['GlobalSecondaryIndexes'] = [
            dict(index, IndexStatus='ACTIVE') for index in request['GlobalSecondaryIndexes']
        ]
    return description


class TestModeDispatch:

    def test_action_table_covers_every_mode(self):
        assert set(LIFECYCLE_ACTIONS) == set(LifecycleMode)

    def test_create_drops_then_creates(self, mock_admin):
        manager = build_manager(mock_admin)

        manager.execute("create", User)

        assert mock_admin.method_calls[0] == call.delete_table('app_test_users')
        assert mock_admin.method_calls[1] == call.ensure_deleted('app_test_users')
        request = mock_admin.create_table.call_args[0][0]
        assert request['TableName'] == 'app_test_users'
        assert request['ProvisionedThroughput'] == {'ReadCapacityUnits': 10, 'WriteCapacityUnits': 10}
        mock_admin.ensure_created.assert_called_once_with(request)

    def test_create_only_does_not_drop(self, mock_admin):
        build_manager(mock_admin).execute(LifecycleMode.CREATE_ONLY, User)

        mock_admin.delete_table.assert_not_called()
        mock_admin.create_table.assert_called_once()

    def test_create_only_on_existing_table_conflicts(self, mock_admin):
        mock_admin.create_table.side_effect = SchemaConflictError('app_test_users')

        with pytest.raises(SchemaConflictError):
            build_manager(mock_admin).execute("create-only", User)

        mock_admin.ensure_created.assert_not_called()

    def test_drop(self, mock_admin):
        mock_admin.delete_table.return_value = False

        build_manager(mock_admin).execute("drop", User)

        mock_admin.delete_table.assert_called_once_with('app_test_users')
        mock_admin.ensure_deleted.assert_called_once_with('app_test_users')
        mock_admin.create_table.assert_not_called()

    def test_create_drop_startup_matches_create(self, mock_admin):
        build_manager(mock_admin).execute("create-drop", User)

        assert [c[0] for c in mock_admin.method_calls] == [
            'delete_table', 'ensure_deleted', 'create_table', 'ensure_created'
        ]

    def test_none_touches_nothing(self, mock_admin):
        build_manager(mock_admin).execute("none", User)

        assert mock_admin.method_calls == []

    def test_reconcile_schema_alias(self, mock_admin):
        build_manager(mock_admin).reconcile_schema("drop", User)

        mock_admin.delete_table.assert_called_once()

    def test_unknown_mode_on_execute(self, mock_admin):
        with pytest.raises(ConfigurationError):
            build_manager(mock_admin).execute("update", User)

        assert mock_admin.method_calls == []

    def test_unknown_configured_mode_fails_at_construction(self, mock_admin):
        with pytest.raises(ConfigurationError, match="update is not a valid configuration value"):
            build_manager(mock_admin, mode="update")

        assert mock_admin.method_calls == []


class TestValidate:

    def test_matching_table(self, mock_admin):
        manager = build_manager(mock_admin, mode="validate", entities=[Installation])
        request = manager.provider.describe_schema(Installation).to_create_table_request()
        mock_admin.describe_table.return_value = live_description(request)

        manager.execute("validate", Installation)

        mock_admin.describe_table.assert_called_once_with('app_test_installations')

    def test_capacity_differences_are_ignored(self, mock_admin):
        manager = build_manager(mock_admin, mode="validate", read_capacity_units=99)
        request = manager.provider.describe_schema(User).to_create_table_request()
        mock_admin.describe_table.return_value = live_description(request)

        manager.execute("validate", User)

    def test_key_schema_mismatch(self, mock_admin):
        mock_admin.describe_table.return_value = {
            'TableName': 'app_test_users',
            'KeySchema': [{'AttributeName': 'user_id', 'KeyType': 'HASH'}]
        }

        with pytest.raises(SchemaMismatchError) as exc_info:
            build_manager(mock_admin).execute("validate", User)

        error = exc_info.value
        assert error.table_name == 'app_test_users'
        assert error.expected == [('id', 'HASH')]
        assert error.actual == [('user_id', 'HASH')]
        assert "Key schema of table 'app_test_users' is not as expected" in str(error)

    def test_key_order_matters(self, mock_admin):
        mock_admin.describe_table.return_value = {
            'KeySchema': [
                {'AttributeName': 'name', 'KeyType': 'HASH'},
                {'AttributeName': 'user_id', 'KeyType': 'RANGE'},
            ]
        }

        with pytest.raises(SchemaMismatchError):
            build_manager(mock_admin).execute("validate", Playlist)

    def test_missing_gsi(self, mock_admin):
        manager = build_manager(mock_admin, entities=[Installation])
        request = manager.provider.describe_schema(Installation).to_create_table_request()
        description = live_description(request)
        del description['GlobalSecondaryIndexes']
        mock_admin.describe_table.return_value = description

        with pytest.raises(SchemaMismatchError, match="Global secondary indexes"):
            manager.execute("validate", Installation)

    def test_gsi_projection_mismatch(self, mock_admin):
        manager = build_manager(mock_admin, entities=[Installation])
        request = manager.provider.describe_schema(Installation).to_create_table_request()
        description = live_description(request)
        description['GlobalSecondaryIndexes'][0]['Projection'] = {'ProjectionType': 'KEYS_ONLY'}
        mock_admin.describe_table.return_value = description

        with pytest.raises(SchemaMismatchError) as exc_info:
            manager.execute("validate", Installation)

        assert exc_info.value.element == "Global secondary indexes"

    def test_gsi_included_attributes_mismatch(self, mock_admin):
        manager = build_manager(mock_admin, entities=[Doc])
        request = manager.provider.describe_schema(Doc).to_create_table_request()
        assert request['GlobalSecondaryIndexes'][0]['Projection'] == {
            'ProjectionType': 'INCLUDE', 'NonKeyAttributes': ['title']
        }
        description = live_description(request)
        description['GlobalSecondaryIndexes'][0]['Projection'] = {
            'ProjectionType': 'INCLUDE', 'NonKeyAttributes': ['other_attr']
        }
        mock_admin.describe_table.return_value = description

        with pytest.raises(SchemaMismatchError, match="Global secondary indexes"):
            manager.execute("validate", Doc)

    def test_gsi_matching_included_attributes(self, mock_admin):
        manager = build_manager(mock_admin, entities=[Doc])
        request = manager.provider.describe_schema(Doc).to_create_table_request()
        mock_admin.describe_table.return_value = live_description(request)

        manager.execute("validate", Doc)

    def test_missing_table(self, mock_admin):
        mock_admin.describe_table.return_value = None

        with pytest.raises(SchemaMismatchError) as exc_info:
            build_manager(mock_admin).execute("validate", User)

        assert exc_info.value.actual == []


class TestStartupAndShutdown:

    def test_startup_runs_every_entity(self, mock_admin):
        manager = build_manager(mock_admin, entities=ALL_ENTITIES)

        manager.on_startup()

        created = [c[0][0]['TableName'] for c in mock_admin.create_table.call_args_list]
        assert created == ['app_test_users', 'app_test_installations', 'app_test_playlists']

    def test_startup_logs_registered_entities(self, mock_admin, caplog):
        manager = build_manager(mock_admin, mode="none", entities=ALL_ENTITIES)

        with caplog.at_level("INFO", logger="dynamodb_template"):
            manager.on_startup()

        assert "Checking repositories/entities ['User', 'Installation', 'Playlist']" in caplog.text
        assert mock_admin.method_calls == []

    def test_startup_collects_all_failures(self, mock_admin):
        def create_table(request):
            if request['TableName'] != 'app_test_installations':
                raise SchemaConflictError(request['TableName'])

        mock_admin.create_table.side_effect = create_table
        manager = build_manager(mock_admin, mode="create-only", entities=ALL_ENTITIES)

        with pytest.raises(SchemaReconciliationError) as exc_info:
            manager.on_startup()

        failures = exc_info.value.failures
        assert set(failures) == {'app_test_users', 'app_test_playlists'}
        assert all(isinstance(error, SchemaConflictError) for error in failures.values())
        assert mock_admin.create_table.call_count == 3

    def test_startup_in_parallel(self, mock_admin):
        manager = build_manager(mock_admin, mode="drop", entities=ALL_ENTITIES, lifecycle_max_workers=3)

        manager.on_startup()

        dropped = sorted(c[0][0] for c in mock_admin.delete_table.call_args_list)
        assert dropped == ['app_test_installations', 'app_test_playlists', 'app_test_users']

    def test_shutdown_drops_for_create_drop(self, mock_admin):
        manager = build_manager(mock_admin, mode="create-drop")

        manager.on_shutdown()

        mock_admin.delete_table.assert_called_once_with('app_test_users')
        mock_admin.create_table.assert_not_called()

    @pytest.mark.parametrize("mode", ["none", "create-only", "drop", "create", "validate"])
    def test_shutdown_is_noop_otherwise(self, mock_admin, mode):
        build_manager(mock_admin, mode=mode).on_shutdown()

        assert mock_admin.method_calls == []
