"""Utility modules for clipmerge."""

from clipmerge.utils.errors import (
    ClipMergeError,
    DatabaseError,
    DownloadError,
    JobConflictError,
    JobNotFoundError,
    JobRequestError,
    StorageError,
    TranscodeError,
    TranscodeTimeoutError,
    TransientDownloadError,
    UploadError,
    UrlGenerationError,
)
from clipmerge.utils.log import configure_logging
from clipmerge.utils.retry import with_retry

__all__ = [
    "ClipMergeError",
    "JobRequestError",
    "JobNotFoundError",
    "JobConflictError",
    "DownloadError",
    "TransientDownloadError",
    "TranscodeError",
    "TranscodeTimeoutError",
    "StorageError",
    "UploadError",
    "UrlGenerationError",
    "DatabaseError",
    "configure_logging",
    "with_retry",
]
