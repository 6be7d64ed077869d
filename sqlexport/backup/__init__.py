"""
Export module for sqlexport.

This module handles the core export functionality including:
- Managed identity authentication
- Blob container and blob handling
- Database export submission and status polling
- Retention policy enforcement
- Execution orchestration
"""

from .errors import (
    ExportJobError,
    ConfigurationError,
    AuthenticationError,
    StorageError,
    ContainerError,
    BlobOperationError,
    ExportSubmissionError,
    ExportFailedError
)
from .executor import ExportExecutor, ExportRunResult, run_export
from .exporter import DatabaseExporter, ExportRequest, ExportOperationStatus
from .identity import authenticate, resolve_storage_key
from .retention import RetentionPolicy, RetentionPruner
from .settings import ExportSettings
from .storage import BlobStorage, BlobDescriptor, build_blob_uri

__all__ = [
    'ExportJobError',
    'ConfigurationError',
    'AuthenticationError',
    'StorageError',
    'ContainerError',
    'BlobOperationError',
    'ExportSubmissionError',
    'ExportFailedError',
    'ExportExecutor',
    'ExportRunResult',
    'run_export',
    'DatabaseExporter',
    'ExportRequest',
    'ExportOperationStatus',
    'authenticate',
    'resolve_storage_key',
    'RetentionPolicy',
    'RetentionPruner',
    'ExportSettings',
    'BlobStorage',
    'BlobDescriptor',
    'build_blob_uri'
]
