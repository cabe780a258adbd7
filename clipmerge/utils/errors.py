"""Custom exception classes for clipmerge."""

from typing import Optional


class ClipMergeError(Exception):
    """Base exception for all application errors."""

    pass


class JobRequestError(ClipMergeError):
    """A processing request is missing required fields."""

    pass


class JobNotFoundError(ClipMergeError):
    """No job row exists for the given id."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class JobConflictError(ClipMergeError):
    """Another execution already owns the job."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job {job_id} is already being processed")


class DownloadError(ClipMergeError):
    """A source clip could not be downloaded."""

    def __init__(self, url: str, status_code: Optional[int] = None, message: str = "") -> None:
        self.url = url
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"Failed to download {url}: {status_code}")
        else:
            super().__init__(f"Failed to download {url}: {message}")


class TransientDownloadError(DownloadError):
    """Download failure worth retrying (network error, 5xx, 429)."""

    pass


class TranscodeError(ClipMergeError):
    """ffmpeg exited with a non-zero status or could not be started."""

    def __init__(
        self, returncode: Optional[int], stderr: str = "", message: Optional[str] = None
    ) -> None:
        self.returncode = returncode
        self.stderr = stderr
        if message is None:
            detail = stderr.strip() or "no diagnostic output"
            message = f"ffmpeg failed (exit code {returncode}): {detail}"
        super().__init__(message)


class TranscodeTimeoutError(TranscodeError):
    """ffmpeg did not finish before its deadline."""

    def __init__(self, timeout: float, stderr: str = "") -> None:
        self.timeout = timeout
        super().__init__(None, stderr, message=f"ffmpeg timed out after {timeout}s")


class StorageError(ClipMergeError):
    """Errors from the blob store."""

    pass


class UploadError(StorageError):
    """Uploading the output file failed."""

    pass


class UrlGenerationError(StorageError):
    """A signed or public URL could not be produced."""

    pass


class DatabaseError(ClipMergeError):
    """Errors from the job table."""

    pass
