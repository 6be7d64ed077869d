"""
Retention policy enforcement for bacpac backups.

Deletes block-blob backups of one database that are older than the
retention window. Page and append blobs, and blobs in the Archive access
tier, are never deleted.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from .storage import BACKUP_EXTENSION, BlobDescriptor, BlobStorage, backup_prefix


logger = logging.getLogger(__name__)

BLOCK_BLOB = 'BlockBlob'
ARCHIVE_TIER = 'Archive'


@dataclass(frozen=True)
class RetentionPolicy:
    """Number of days a backup is kept. Zero or negative disables pruning."""
    retention_days: int = 0

    @property
    def enabled(self) -> bool:
        return self.retention_days > 0

    def cutoff(self, now: Optional[datetime] = None) -> datetime:
        now = now or datetime.now(timezone.utc)
        return now - timedelta(days=self.retention_days)


def select_expired(blobs: Iterable[BlobDescriptor], database_name: str, cutoff: datetime) -> List[BlobDescriptor]:
    """
    Filter blobs down to the ones eligible for deletion.

    A blob is eligible when its name is under the database's backup prefix,
    it has the bacpac extension, it is a block blob outside the Archive
    tier, and it was last modified strictly before cutoff.

    Args:
        blobs: Candidate blobs
        database_name: Database whose backups are pruned
        cutoff: Timezone-aware UTC cutoff

    Returns:
        List of expired BlobDescriptor
    """
    prefix = backup_prefix(database_name)
    return [
        blob for blob in blobs
        if blob.name.startswith(prefix)
        and blob.name.endswith(BACKUP_EXTENSION)
        and blob.blob_type == BLOCK_BLOB
        and blob.blob_tier != ARCHIVE_TIER
        and blob.last_modified < cutoff
    ]


class RetentionPruner:
    """
    Removes expired backups from a container.
    """

    def __init__(self, storage: BlobStorage):
        self.storage = storage

    def prune(self, database_name: str, policy: RetentionPolicy, now: Optional[datetime] = None) -> List[str]:
        """
        Delete expired backups of a database.

        Stops at the first failed deletion; blobs not yet reached are left
        in place.

        Args:
            database_name: Database whose backups are pruned
            policy: RetentionPolicy to apply
            now: Reference time (defaults to current UTC time)

        Returns:
            Names of deleted blobs

        Raises:
            BlobOperationError: If listing or a deletion fails
        """
        if not policy.enabled:
            logger.info("Retention disabled, skipping cleanup")
            return []

        cutoff = policy.cutoff(now)
        prefix = backup_prefix(database_name)
        logger.info(f"Removing backups under {prefix} older than {cutoff.isoformat()}")

        blobs = self.storage.list_blobs(prefix)
        expired = select_expired(blobs, database_name, cutoff)

        deleted = []
        for blob in expired:
            self.storage.delete_blob(blob.name)
            deleted.append(blob.name)
            logger.info(f"Deleted blob: {blob.name}")

        logger.info(f"Retention cleanup complete: {len(deleted)} of {len(blobs)} blob(s) deleted")
        return deleted
