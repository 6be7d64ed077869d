"""
Export executor - orchestrates one complete export run.

Workflow:
1. Authenticate with the managed identity
2. Resolve the storage account key (if not configured)
3. Ensure the blob container exists (if configured)
4. Submit the export and poll until it finishes
5. Apply the retention policy (if retention_days > 0)

Any error is logged and re-raised; there is no partial-success model.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from sqlexport.utils.redaction import secret_redactor
from .errors import ExportFailedError
from .exporter import DatabaseExporter, ExportOperationStatus, ExportRequest
from .identity import authenticate, resolve_storage_key
from .retention import RetentionPolicy, RetentionPruner
from .settings import ExportSettings
from .storage import BlobStorage, build_blob_uri


logger = logging.getLogger(__name__)


@dataclass
class ExportRunResult:
    blob_uri: str
    status: ExportOperationStatus
    deleted_blobs: List[str] = field(default_factory=list)
    container_created: bool = False
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return self.status.succeeded

    def to_dict(self) -> dict:
        return {
            'blob_uri': self.blob_uri,
            'status': self.status.state,
            'error_details': self.status.error_details,
            'deleted_blobs': list(self.deleted_blobs),
            'container_created': self.container_created,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }


class ExportExecutor:
    """
    Orchestrates the export workflow for one database.
    """

    def __init__(self, settings: ExportSettings):
        """
        Initialize export executor.

        Args:
            settings: Validated ExportSettings
        """
        self.settings = settings
        self.session = None
        self.storage = None
        self.logs = []
        secret_redactor.register(*settings.secrets)

    def execute(self) -> ExportRunResult:
        """
        Execute the export run.

        Returns:
            ExportRunResult with the final export status and deleted blobs

        Raises:
            ExportJobError: Any step failure; nothing is retried
        """
        started_at = datetime.now(timezone.utc)
        self._log(f"Starting export run for database: {self.settings.database_name}")

        try:
            result = self._execute_workflow(started_at)
        except Exception as e:
            self._log(f"Export run failed: {e}", level=logging.ERROR)
            raise

        result.started_at = started_at
        result.completed_at = datetime.now(timezone.utc)
        self._log("Export run completed")
        return result

    def _execute_workflow(self, started_at: datetime) -> ExportRunResult:
        settings = self.settings

        # Step 1: Authenticate
        self._log("Authenticating")
        self.session = authenticate(settings.subscription_id, settings.client_id)

        # Step 2: Storage key
        storage_key = settings.storage_key.get_secret_value() if settings.storage_key else None
        if not storage_key:
            self._log(f"Resolving storage key for account {settings.storage_account_name}")
            storage_key = resolve_storage_key(
                self.session, settings.storage_resource_group, settings.storage_account_name
            )
            secret_redactor.register(storage_key)

        self.storage = BlobStorage(settings.storage_account_name, storage_key, settings.container_name)

        # Step 3: Container
        container_created = False
        if settings.ensure_container:
            container_created = self.storage.ensure_container()
            if container_created:
                self._log(f"Created container: {settings.container_name}")
            else:
                self._log(f"Container exists: {settings.container_name}")

        # Step 4: Export
        blob_uri = build_blob_uri(
            settings.storage_account_name, settings.container_name, settings.database_name, started_at
        )
        request = ExportRequest(
            resource_group=settings.resource_group,
            server_name=settings.server_name,
            database_name=settings.database_name,
            admin_username=settings.admin_username,
            admin_password=settings.admin_password.get_secret_value(),
            target_blob_uri=blob_uri,
            storage_key=storage_key
        )

        self._log(f"Starting export to {blob_uri}")
        exporter = DatabaseExporter(self.session.sql_client(), poll_interval=settings.poll_interval)
        status = exporter.export(request)

        if status.succeeded:
            self._log(f"Export finished: {status.state}")
        else:
            detail = f" ({status.error_details})" if status.error_details else ""
            self._log(f"Export finished: {status.state}{detail}", level=logging.ERROR)
            if settings.fail_on_export_failure:
                raise ExportFailedError(f"Export of {settings.database_name} ended with status {status.state}{detail}",
                                        status=status)

        result = ExportRunResult(blob_uri=blob_uri, status=status, container_created=container_created)

        # Step 5: Retention
        policy = RetentionPolicy(settings.retention_days)
        if policy.enabled:
            self._log(f"Applying retention policy: {policy.retention_days} days")
            result.deleted_blobs = RetentionPruner(self.storage).prune(settings.database_name, policy)
            self._log(f"Deleted {len(result.deleted_blobs)} expired backup(s)")
        else:
            self._log("Retention not configured, skipping")

        return result

    def _log(self, message: str, level: int = logging.INFO):
        """
        Add a log message with timestamp.

        Args:
            message: Log message
            level: Logging level for the module logger
        """
        message = secret_redactor.redact(message)
        timestamp = datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')
        self.logs.append(f"[{timestamp}] {message}")
        logger.log(level, message)


def run_export(settings: ExportSettings) -> ExportRunResult:
    """
    Execute one export run.

    Args:
        settings: Validated ExportSettings

    Returns:
        ExportRunResult
    """
    executor = ExportExecutor(settings)
    return executor.execute()
