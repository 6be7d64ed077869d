"""
Shared pytest fixtures for sqlexport tests.

This module provides fixtures for:
- Flask app, test client and CLI runner
- Export configuration and validated settings
- Blob descriptors at controlled ages
- Mock fixtures for Azure collaborators (SQL poller, blob container)
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from sqlexport import create_app
from sqlexport import scheduler as scheduler_module
from sqlexport.backup.settings import ExportSettings
from sqlexport.backup.storage import BlobDescriptor
from sqlexport.utils.redaction import secret_redactor


ADMIN_PASSWORD = 'Adm1n-P@ssw0rd-xyz'
STORAGE_KEY = 'c3RvcmFnZS1rZXktdmFsdWU9PQ=='


@pytest.fixture(autouse=True)
def reset_global_state():
    """Secrets and scheduler state are process-wide; reset between tests."""
    yield
    secret_redactor.clear()
    scheduler_module.scheduler = None
    scheduler_module.flask_app = None
    scheduler_module.last_run = None


@pytest.fixture
def export_config():
    """Config mapping with every required setting present."""
    return {
        'AZURE_SUBSCRIPTION_ID': '00000000-0000-0000-0000-000000000000',
        'RESOURCE_GROUP_NAME': 'rg-data',
        'DATABASE_SERVER_NAME': 'sql-prod',
        'DATABASE_NAME': 'orders',
        'DATABASE_ADMIN_USERNAME': 'sqladmin',
        'DATABASE_ADMIN_PASSWORD': ADMIN_PASSWORD,
        'STORAGE_ACCOUNT_NAME': 'acct1',
        'STORAGE_KEY': STORAGE_KEY,
        'BLOB_CONTAINER_NAME': 'backups',
        'RETENTION_DAYS': '0',
        'EXPORT_POLL_INTERVAL': '15',
    }


@pytest.fixture
def export_settings(export_config):
    return ExportSettings.from_config(export_config)


@pytest.fixture
def app(export_config):
    """
    Create Flask app with test configuration.

    The scheduler is never started.
    """
    app = create_app('testing', enable_scheduler=False)
    app.config.update(export_config)
    yield app


@pytest.fixture
def client(app):
    """Flask test client for making HTTP requests."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Flask CLI test runner."""
    return app.test_cli_runner()


@pytest.fixture
def now():
    return datetime(2024, 3, 1, 10, 5, tzinfo=timezone.utc)


@pytest.fixture
def make_blob(now):
    """
    Factory for BlobDescriptor fixtures.

    Args (of the returned callable):
        name: Blob name
        age: timedelta before `now`
        blob_type: BlockBlob, PageBlob or AppendBlob
        blob_tier: Access tier (Hot, Cool, Archive) or None
    """
    def _make(name, age=timedelta(days=1), blob_type='BlockBlob', blob_tier='Hot'):
        return BlobDescriptor(
            name=name,
            last_modified=now - age,
            blob_type=blob_type,
            container_name='backups',
            blob_tier=blob_tier
        )
    return _make


@pytest.fixture
def mock_poller():
    """
    Mock LROPoller for an export operation.

    Set `status.side_effect` to a list of states to drive the poll loop.
    """
    poller = MagicMock()
    poller.continuation_token.return_value = 'token-123'
    poller.status.return_value = 'Succeeded'
    poller.result.return_value = MagicMock(error_message=None)
    return poller


@pytest.fixture
def mock_sql_client(mock_poller):
    """Mock SqlManagementClient whose begin_export returns mock_poller."""
    client = MagicMock()
    client.databases.begin_export.return_value = mock_poller
    return client


@pytest.fixture
def mock_container_client():
    """Mock ContainerClient for an existing, empty container."""
    container = MagicMock()
    container.exists.return_value = True
    container.list_blobs.return_value = []
    return container


@pytest.fixture
def mock_service_client(mock_container_client):
    """Mock BlobServiceClient handing out mock_container_client."""
    service = MagicMock()
    service.get_container_client.return_value = mock_container_client
    return service
