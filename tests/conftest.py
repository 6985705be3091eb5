"""
Test configuration and fixtures for DynamoDB Template.

Provides configuration fixtures for unit tests and moto-backed fixtures
(in-process DynamoDB) for integration tests.
"""

import sys
from pathlib import Path

# Add parent directory to path so we can import dynamodb_template
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from moto import mock_aws

from dynamodb_template import (
    DynamoDBGateway,
    DynamoDBTemplate,
    SchemaLifecycleManager,
)
from tests.helpers import ALL_ENTITIES, make_config


@pytest.fixture
def mock_config():
    """DynamoDB configuration for mocked testing."""
    return make_config()


@pytest.fixture
def aws():
    """Activate moto's in-process AWS for the duration of a test."""
    with mock_aws():
        yield


@pytest.fixture
def gateway(aws, mock_config):
    """Gateway bound to moto."""
    return DynamoDBGateway(mock_config)


@pytest.fixture
def lifecycle_manager(gateway, mock_config):
    """Lifecycle manager for every sample entity, mode 'create'."""
    return SchemaLifecycleManager(mock_config, ALL_ENTITIES, gateway=gateway)


@pytest.fixture
def template(lifecycle_manager, gateway, mock_config):
    """Template with all sample tables created."""
    lifecycle_manager.on_startup()
    return DynamoDBTemplate(mock_config, gateway=gateway)
