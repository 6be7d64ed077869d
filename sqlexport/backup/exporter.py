"""
Database export to blob storage.

Submits an Azure SQL "export database" operation and polls its status on a
fixed interval until it leaves the InProgress state. There is no backoff,
attempt cap or timeout; the export engine decides when the run ends.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from azure.core.exceptions import AzureError
from azure.mgmt.sql.models import ExportDatabaseDefinition

from .errors import ExportSubmissionError


logger = logging.getLogger(__name__)

IN_PROGRESS = 'InProgress'
SUCCEEDED = 'Succeeded'
DEFAULT_POLL_INTERVAL = 15
STORAGE_KEY_TYPE = 'StorageAccessKey'


@dataclass(frozen=True)
class ExportRequest:
    """Parameters of one export. Secrets are excluded from repr."""
    resource_group: str
    server_name: str
    database_name: str
    admin_username: str
    admin_password: str = field(repr=False)
    target_blob_uri: str
    storage_key: str = field(repr=False)

    def to_definition(self) -> ExportDatabaseDefinition:
        return ExportDatabaseDefinition(
            storage_key_type=STORAGE_KEY_TYPE,
            storage_key=self.storage_key,
            storage_uri=self.target_blob_uri,
            administrator_login=self.admin_username,
            administrator_login_password=self.admin_password
        )


@dataclass
class ExportOperationStatus:
    status_link: Optional[str]
    state: str
    error_details: Optional[str] = None

    @property
    def in_progress(self) -> bool:
        return self.state == IN_PROGRESS

    @property
    def succeeded(self) -> bool:
        return self.state == SUCCEEDED


class ExportOperation:
    """
    Status handle for a submitted export.

    Wraps the SDK poller; each status() call reads the current state of the
    same operation.
    """

    def __init__(self, poller):
        self.poller = poller
        try:
            self.status_link = poller.continuation_token()
        except (AttributeError, TypeError):
            # Not every polling method can be resumed
            self.status_link = None

    def status(self) -> ExportOperationStatus:
        """
        Read the poller's cached operation state.

        The HTTP status requests are made by the SDK poller's own background
        thread every `polling_interval` seconds, not by this call. A finished
        export is therefore seen up to one interval late.

        Returns:
            ExportOperationStatus
        """
        state = self.poller.status()
        if state == IN_PROGRESS:
            return ExportOperationStatus(self.status_link, state)
        return ExportOperationStatus(self.status_link, state, self._error_details(state))

    def _error_details(self, state: str) -> Optional[str]:
        try:
            result = self.poller.result()
        except AzureError as e:
            return str(e)
        if result is None:
            return None if state == SUCCEEDED else f"Export finished with status {state}"
        return getattr(result, 'error_message', None)


def print_progress():
    """Console progress tick for each status poll."""
    print('.', end='', flush=True)


class DatabaseExporter:
    """
    Submits exports and waits for them to finish.
    """

    def __init__(self, sql_client, poll_interval: int = DEFAULT_POLL_INTERVAL,
                 sleep: Callable[[float], None] = time.sleep,
                 progress: Optional[Callable[[], None]] = print_progress):
        """
        Initialize exporter.

        Args:
            sql_client: SqlManagementClient (or compatible)
            poll_interval: Seconds between status polls
            sleep: Blocking wait function
            progress: Called once per in-progress poll (optional)
        """
        self.sql_client = sql_client
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._progress = progress

    def submit(self, request: ExportRequest) -> ExportOperation:
        """
        Submit an export request.

        Args:
            request: ExportRequest

        Returns:
            ExportOperation handle

        Raises:
            ExportSubmissionError: If the SQL service rejects the request
        """
        logger.info(
            f"Submitting export of {request.server_name}/{request.database_name} "
            f"to {request.target_blob_uri}"
        )

        try:
            poller = self.sql_client.databases.begin_export(
                request.resource_group,
                request.server_name,
                request.database_name,
                request.to_definition(),
                polling_interval=self.poll_interval
            )
        except AzureError as e:
            raise ExportSubmissionError(f"Export request for {request.database_name} failed: {e}") from e

        return ExportOperation(poller)

    def wait(self, operation: ExportOperation) -> ExportOperationStatus:
        """
        Poll an operation until it is no longer in progress.

        Args:
            operation: Handle returned by submit()

        Returns:
            Terminal ExportOperationStatus
        """
        status = operation.status()

        while status.in_progress:
            if self._progress:
                self._progress()
            self._sleep(self.poll_interval)
            status = operation.status()

        logger.info(f"Export operation finished with status {status.state}")
        return status

    def export(self, request: ExportRequest) -> ExportOperationStatus:
        """Submit an export and block until it finishes."""
        return self.wait(self.submit(request))
