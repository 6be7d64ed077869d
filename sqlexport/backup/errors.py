"""
Exception hierarchy for export runs.

Every error a run can raise derives from ExportJobError so callers (CLI,
scheduler) can report it and exit non-zero without catching SDK types.
"""


class ExportJobError(Exception):
    """Base class for all export run failures."""
    pass


class ConfigurationError(ExportJobError):
    """Raised when required settings are missing or invalid."""
    pass


class AuthenticationError(ExportJobError):
    """Raised when the ambient identity cannot obtain a token."""
    pass


class StorageError(ExportJobError):
    """Raised when a storage account operation fails."""
    pass


class ContainerError(StorageError):
    """Raised when the target container cannot be checked or created."""
    pass


class BlobOperationError(StorageError):
    """Raised when listing or deleting blobs fails."""
    pass


class ExportSubmissionError(ExportJobError):
    """Raised when the export request is rejected by the SQL service."""
    pass


class ExportFailedError(ExportJobError):
    """Raised when the export operation finishes in a non-successful state."""

    def __init__(self, message, status=None):
        super().__init__(message)
        self.status = status
