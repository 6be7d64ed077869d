"""
Unit tests for blob storage handling (sqlexport/backup/storage.py).

Tests blob naming, BlobStorage container handling, listing and deletion.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from azure.core.exceptions import HttpResponseError, ResourceExistsError
from azure.storage.blob import BlobType, StandardBlobTier

from sqlexport.backup.errors import BlobOperationError, ContainerError, StorageError
from sqlexport.backup.storage import (
    BlobDescriptor,
    BlobStorage,
    backup_prefix,
    build_blob_name,
    build_blob_uri
)


class TestBlobNaming:
    """Test target blob naming and URI generation."""

    def test_build_blob_uri(self):
        """Test the exact URI format for a known timestamp."""
        timestamp = datetime(2024, 3, 1, 10, 5, tzinfo=timezone.utc)

        uri = build_blob_uri('acct1', 'backups', 'orders', timestamp)

        assert uri == 'https://acct1.blob.core.windows.net/backups/orders/orders202403011005.bacpac'

    def test_build_blob_name_drops_seconds(self):
        """Test that the timestamp keeps minute precision only."""
        timestamp = datetime(2024, 12, 31, 23, 59, 58)

        assert build_blob_name('orders', timestamp) == 'orders/orders202412312359.bacpac'

    def test_blob_name_matches_retention_prefix(self):
        """Test that every generated name falls under the pruning prefix."""
        name = build_blob_name('inventory', datetime(2024, 1, 2, 3, 4))

        assert name.startswith(backup_prefix('inventory'))
        assert backup_prefix('inventory') == 'inventory/inventory'


class TestBlobStorageInit:
    """Test BlobStorage construction."""

    @patch('sqlexport.backup.storage.BlobServiceClient')
    def test_builds_service_client_from_account_key(self, mock_service_class):
        """Test that the account URL and key are passed to the SDK."""
        storage = BlobStorage('acct1', 'secret-key', 'backups')

        mock_service_class.assert_called_once_with(
            account_url='https://acct1.blob.core.windows.net',
            credential='secret-key'
        )
        mock_service_class.return_value.get_container_client.assert_called_once_with('backups')
        assert storage.container_name == 'backups'

    @patch('sqlexport.backup.storage.BlobServiceClient')
    def test_init_failure_raises_storage_error(self, mock_service_class):
        """Test that client construction errors are wrapped."""
        mock_service_class.side_effect = ValueError('bad account url')

        with pytest.raises(StorageError, match='Failed to initialize blob client'):
            BlobStorage('acct1', 'key', 'backups')


class TestEnsureContainer:
    """Test container existence check and creation."""

    def test_existing_container_is_not_created(self, mock_service_client, mock_container_client):
        """Test that an existing container results in zero create calls."""
        mock_container_client.exists.return_value = True
        storage = BlobStorage('acct1', 'key', 'backups', service_client=mock_service_client)

        created = storage.ensure_container()

        assert created is False
        mock_container_client.create_container.assert_not_called()

    def test_missing_container_is_created_once(self, mock_service_client, mock_container_client):
        """Test that a missing container results in exactly one create call."""
        mock_container_client.exists.return_value = False
        storage = BlobStorage('acct1', 'key', 'backups', service_client=mock_service_client)

        created = storage.ensure_container()

        assert created is True
        mock_container_client.create_container.assert_called_once_with()

    def test_concurrently_created_container_is_not_an_error(self, mock_service_client, mock_container_client):
        """Test that losing a creation race is treated as already existing."""
        mock_container_client.exists.return_value = False
        mock_container_client.create_container.side_effect = ResourceExistsError('ContainerAlreadyExists')
        storage = BlobStorage('acct1', 'key', 'backups', service_client=mock_service_client)

        assert storage.ensure_container() is False

    def test_creation_failure_raises_container_error(self, mock_service_client, mock_container_client):
        """Test that other creation errors are fatal."""
        mock_container_client.exists.return_value = False
        mock_container_client.create_container.side_effect = HttpResponseError('InvalidResourceName')
        storage = BlobStorage('acct1', 'key', 'backups', service_client=mock_service_client)

        with pytest.raises(ContainerError, match='backups'):
            storage.ensure_container()


class TestListAndDelete:
    """Test blob listing and deletion."""

    def test_list_blobs_maps_properties(self, mock_service_client, mock_container_client):
        """Test that SDK blob properties become BlobDescriptor snapshots."""
        modified = datetime(2024, 2, 1, tzinfo=timezone.utc)
        blob = MagicMock()
        blob.name = 'orders/orders202402010000.bacpac'
        blob.last_modified = modified
        blob.blob_type = BlobType.BLOCKBLOB
        blob.blob_tier = 'Cool'
        mock_container_client.list_blobs.return_value = [blob]
        storage = BlobStorage('acct1', 'key', 'backups', service_client=mock_service_client)

        blobs = storage.list_blobs('orders/orders')

        mock_container_client.list_blobs.assert_called_once_with(name_starts_with='orders/orders')
        assert blobs == [BlobDescriptor(
            name='orders/orders202402010000.bacpac',
            last_modified=modified,
            blob_type='BlockBlob',
            container_name='backups',
            blob_tier='Cool'
        )]

    @pytest.mark.parametrize('sdk_tier,expected', [
        (StandardBlobTier.ARCHIVE, 'Archive'),
        ('Archive', 'Archive'),
        (None, None),
    ])
    def test_list_blobs_maps_access_tier(self, mock_service_client, mock_container_client, sdk_tier, expected):
        blob = MagicMock()
        blob.name = 'orders/orders202301010000.bacpac'
        blob.last_modified = datetime(2023, 1, 1, tzinfo=timezone.utc)
        blob.blob_type = BlobType.BLOCKBLOB
        blob.blob_tier = sdk_tier
        mock_container_client.list_blobs.return_value = [blob]
        storage = BlobStorage('acct1', 'key', 'backups', service_client=mock_service_client)

        blobs = storage.list_blobs('orders/orders')

        assert blobs[0].blob_tier == expected

    def test_list_blobs_failure_raises(self, mock_service_client, mock_container_client):
        """Test that listing errors are wrapped."""
        mock_container_client.list_blobs.side_effect = HttpResponseError('AuthorizationFailure')
        storage = BlobStorage('acct1', 'key', 'backups', service_client=mock_service_client)

        with pytest.raises(BlobOperationError, match='list'):
            storage.list_blobs('orders/orders')

    def test_delete_blob(self, mock_service_client, mock_container_client):
        """Test deleting a blob by name."""
        storage = BlobStorage('acct1', 'key', 'backups', service_client=mock_service_client)

        storage.delete_blob('orders/orders202401010000.bacpac')

        mock_container_client.delete_blob.assert_called_once_with('orders/orders202401010000.bacpac')

    def test_delete_blob_failure_raises(self, mock_service_client, mock_container_client):
        """Test that deletion errors are wrapped."""
        mock_container_client.delete_blob.side_effect = HttpResponseError('LeaseIdMissing')
        storage = BlobStorage('acct1', 'key', 'backups', service_client=mock_service_client)

        with pytest.raises(BlobOperationError, match='orders/orders202401010000.bacpac'):
            storage.delete_blob('orders/orders202401010000.bacpac')
