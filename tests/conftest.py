"""
Test configuration and fixtures for the prenup entity store.

Provides a moto-backed wide table, the store built on it and the services wired
together the way an application would wire them.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

# Add parent directory to path so we can import prenup_store
sys.path.insert(0, str(Path(__file__).parent.parent))

import boto3
import pytest
from moto import mock_aws

from prenup_store import (
    AuthConfig,
    DocumentService,
    DynamoDBConfig,
    FinancialService,
    PrenupCreate,
    PrenupService,
    StateComplianceService,
    UserCreate,
    UserService,
    USState,
    VersionedEntityStore,
    create_table_gateway,
)
from prenup_store.core import entity_table_definition


@pytest.fixture
def mock_dynamodb_config():
    """DynamoDB configuration for mocked testing."""
    return DynamoDBConfig(
        aws_access_key_id="test_key",
        aws_secret_access_key="test_secret",
        region_name="us-east-1",
        endpoint_url=None,  # Use default AWS endpoint for moto
        environment="test",
        table_prefix="unit"
    )


@pytest.fixture
def auth_config():
    """Fast bcrypt rounds and a fixed signing secret."""
    return AuthConfig(jwt_secret="test-secret", jwt_expires_in_days=7, bcrypt_rounds=4)


@pytest.fixture
def mock_dynamodb_resource():
    """Mock DynamoDB resource."""
    with mock_aws():
        yield boto3.resource('dynamodb', region_name='us-east-1')


@pytest.fixture
def entity_table(mock_dynamodb_resource, mock_dynamodb_config):
    """Create the wide entity table (PK/SK + secondary indexes)."""
    table = mock_dynamodb_resource.create_table(
        **entity_table_definition(mock_dynamodb_config.get_table_name())
    )
    table.wait_until_exists()
    return table


@pytest.fixture
def store(mock_dynamodb_config, entity_table):
    """Versioned entity store over the mocked table."""
    return VersionedEntityStore(create_table_gateway(mock_dynamodb_config))


class SteppingClock:
    """Deterministic clock: every call advances one second."""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.current = self.current + timedelta(seconds=1)
        return self.current


@pytest.fixture
def clock():
    """Patch the store's clock so consecutive writes get distinct timestamps."""
    stepping_clock = SteppingClock()
    with patch('prenup_store.core.entity_store.utc_now', stepping_clock):
        yield stepping_clock


# Service Fixtures

@pytest.fixture
def user_service(store, auth_config):
    return UserService(store, auth_config)


@pytest.fixture
def compliance_service():
    return StateComplianceService()


@pytest.fixture
def prenup_service(store, user_service, compliance_service):
    return PrenupService(store, user_service, compliance_service)


@pytest.fixture
def financial_service(store, prenup_service, user_service):
    return FinancialService(store, prenup_service, user_service)


@pytest.fixture
def document_service(store, prenup_service):
    return DocumentService(store, prenup_service)


# Sample Data Fixtures

@pytest.fixture
def sample_user_data():
    """Sample registration payload."""
    return UserCreate(
        email="alice@example.com",
        password="correct-horse-battery",
        first_name="Alice",
        last_name="Anders"
    )


@pytest.fixture
def creator(user_service, sample_user_data):
    """Registered user who owns the sample prenup."""
    return user_service.create_user(sample_user_data)


@pytest.fixture
def partner(user_service):
    """Second registered user."""
    return user_service.create_user(UserCreate(
        email="bob@example.com",
        password="another-secret-pw",
        first_name="Bob",
        last_name="Baker"
    ))


@pytest.fixture
def outsider(user_service):
    """Registered user with no relation to the sample prenup."""
    return user_service.create_user(UserCreate(
        email="eve@example.com",
        password="eavesdropper-pw",
        first_name="Eve",
        last_name="Evans"
    ))


@pytest.fixture
def prenup(prenup_service, creator):
    """DRAFT prenup created by ``creator``."""
    return prenup_service.create_prenup(PrenupCreate(
        title="Our Agreement",
        state=USState.CALIFORNIA,
        created_by=creator.id
    ))


@pytest.fixture
def prenup_with_partner(prenup_service, prenup, partner):
    """Sample prenup with ``partner`` assigned."""
    return prenup_service.add_partner(prenup.id, partner.id)
