"""
Azure Blob Storage handler for bacpac archives.

Blob layout inside the container:
{database}/{database}{YYYYMMDDHHmm}.bacpac

The same prefix is used when listing for retention, so export naming and
pruning always agree.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from azure.core.exceptions import AzureError, ResourceExistsError
from azure.storage.blob import BlobServiceClient, BlobType

from .errors import BlobOperationError, ContainerError, StorageError


BACKUP_EXTENSION = '.bacpac'
BLOB_ENDPOINT = 'https://{account}.blob.core.windows.net'
TIMESTAMP_FORMAT = '%Y%m%d%H%M'


@dataclass(frozen=True)
class BlobDescriptor:
    """Snapshot of one blob returned by a list call."""
    name: str
    last_modified: datetime
    blob_type: str
    container_name: str
    blob_tier: Optional[str] = None


def backup_prefix(database_name: str) -> str:
    """Prefix shared by every backup blob of a database."""
    return f"{database_name}/{database_name}"


def build_blob_name(database_name: str, timestamp: datetime) -> str:
    return f"{backup_prefix(database_name)}{timestamp.strftime(TIMESTAMP_FORMAT)}{BACKUP_EXTENSION}"


def build_blob_uri(account_name: str, container_name: str, database_name: str, timestamp: datetime) -> str:
    """
    Build the fully-qualified target URI for an export.

    Args:
        account_name: Storage account name
        container_name: Blob container name
        database_name: Database being exported
        timestamp: Export time (minute precision is kept)

    Returns:
        https://{account}.blob.core.windows.net/{container}/{db}/{db}{YYYYMMDDHHmm}.bacpac
    """
    endpoint = BLOB_ENDPOINT.format(account=account_name)
    return f"{endpoint}/{container_name}/{build_blob_name(database_name, timestamp)}"


class BlobStorage:
    """
    Handler for one blob container in a storage account.

    Authenticates with the storage account key.
    """

    def __init__(self, account_name: str, account_key: str, container_name: str,
                 service_client: Optional[BlobServiceClient] = None):
        """
        Initialize blob storage handler.

        Args:
            account_name: Storage account name
            account_key: Storage account access key
            container_name: Container holding the backups
            service_client: Pre-built BlobServiceClient (optional)
        """
        self.account_name = account_name
        self.container_name = container_name

        try:
            self.service_client = service_client or BlobServiceClient(
                account_url=BLOB_ENDPOINT.format(account=account_name),
                credential=account_key
            )
            self.container_client = self.service_client.get_container_client(container_name)
        except (AzureError, ValueError) as e:
            raise StorageError(f"Failed to initialize blob client: {e}") from e

    def ensure_container(self) -> bool:
        """
        Create the container if it does not exist.

        Returns:
            True if the container was created, False if it already existed

        Raises:
            ContainerError: If the check or creation fails
        """
        try:
            if self.container_client.exists():
                return False
            self.container_client.create_container()
            return True
        except ResourceExistsError:
            # Created concurrently between exists() and create_container()
            return False
        except AzureError as e:
            raise ContainerError(f"Failed to ensure container {self.container_name}: {e}") from e

    def list_blobs(self, prefix: str) -> List[BlobDescriptor]:
        """
        List blobs whose name starts with prefix.

        Args:
            prefix: Blob name prefix to filter by

        Returns:
            List of BlobDescriptor

        Raises:
            BlobOperationError: If listing fails
        """
        try:
            return [
                BlobDescriptor(
                    name=blob.name,
                    last_modified=blob.last_modified,
                    blob_type=_blob_type_name(blob.blob_type),
                    container_name=self.container_name,
                    blob_tier=_blob_tier_name(blob.blob_tier)
                )
                for blob in self.container_client.list_blobs(name_starts_with=prefix)
            ]
        except AzureError as e:
            raise BlobOperationError(f"Failed to list blobs under {prefix}: {e}") from e

    def delete_blob(self, name: str):
        """
        Delete a blob from the container.

        Args:
            name: Blob name

        Raises:
            BlobOperationError: If deletion fails
        """
        try:
            self.container_client.delete_blob(name)
        except AzureError as e:
            raise BlobOperationError(f"Failed to delete blob {name}: {e}") from e


def _blob_type_name(blob_type) -> str:
    # BlobType is a str enum; older SDKs may hand back plain strings
    if isinstance(blob_type, BlobType):
        return blob_type.value
    return str(blob_type) if blob_type is not None else ''


def _blob_tier_name(blob_tier) -> Optional[str]:
    if blob_tier is None:
        return None
    return getattr(blob_tier, 'value', blob_tier)
