"""
Azure identity session.

Authenticates with the ambient managed identity before any other call is
made and hands out management clients bound to that identity.
"""

import logging
from typing import Optional

from azure.core.exceptions import AzureError, ClientAuthenticationError
from azure.identity import DefaultAzureCredential
from azure.mgmt.sql import SqlManagementClient
from azure.mgmt.storage import StorageManagementClient

from .errors import AuthenticationError, StorageError


logger = logging.getLogger(__name__)

MANAGEMENT_SCOPE = 'https://management.azure.com/.default'


class AzureSession:
    """
    Authenticated capability handle passed explicitly to each step.

    Holds the credential and subscription; nothing downstream mutates it.
    """

    def __init__(self, credential, subscription_id: str):
        self.credential = credential
        self.subscription_id = subscription_id

    def sql_client(self) -> SqlManagementClient:
        return SqlManagementClient(self.credential, self.subscription_id)

    def storage_client(self) -> StorageManagementClient:
        return StorageManagementClient(self.credential, self.subscription_id)


def authenticate(subscription_id: str, client_id: Optional[str] = None) -> AzureSession:
    """
    Establish an Azure session using the ambient managed identity.

    A token is requested eagerly so a missing or misconfigured identity fails
    here instead of halfway through the run.

    Args:
        subscription_id: Azure subscription holding the database and storage
        client_id: Client ID of a user-assigned managed identity (optional)

    Returns:
        AzureSession bound to the credential

    Raises:
        AuthenticationError: If no token can be obtained
    """
    logger.info("Authenticating with managed identity")

    try:
        credential = DefaultAzureCredential(managed_identity_client_id=client_id)
        credential.get_token(MANAGEMENT_SCOPE)
    except ClientAuthenticationError as e:
        logger.error(f"Authentication failed: {e}")
        raise AuthenticationError(f"Failed to authenticate with managed identity: {e}") from e

    logger.info("Authentication succeeded")
    return AzureSession(credential, subscription_id)


def resolve_storage_key(session: AzureSession, resource_group: str, account_name: str) -> str:
    """
    Look up the primary access key of a storage account.

    Used when no storage key is configured explicitly; the storage account
    may live in a different resource group than the database server.

    Args:
        session: Authenticated AzureSession
        resource_group: Resource group of the storage account
        account_name: Storage account name

    Returns:
        First account key value

    Raises:
        StorageError: If the keys cannot be listed
    """
    logger.info(f"Resolving access key for storage account {account_name} ({resource_group})")

    try:
        result = session.storage_client().storage_accounts.list_keys(resource_group, account_name)
    except AzureError as e:
        raise StorageError(f"Failed to list keys for storage account {account_name}: {e}") from e

    keys = list(result.keys or [])
    if not keys:
        raise StorageError(f"Storage account {account_name} returned no access keys")

    return keys[0].value
