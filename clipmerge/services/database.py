"""Database service for the Supabase job table."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

from clipmerge.models.job import JobStatus, VideoJob
from clipmerge.utils.errors import DatabaseError, JobNotFoundError

logger = logging.getLogger(__name__)

STATUS_COLUMNS = "id,status,output_url,error_message,updated_at"

# Primary keys may be text or integer columns
JobId = Union[str, int]


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class DatabaseService:
    """Service for Supabase job table operations."""

    def __init__(self, supabase_client: Any, table_name: str = "videos") -> None:
        """
        Initialize the DatabaseService.

        Args:
            supabase_client: Supabase client instance
            table_name: Name of the job table
        """
        self.supabase = supabase_client
        self.table_name = table_name

    def _table(self) -> Any:
        return self.supabase.table(self.table_name)

    # ==================== READS ====================

    async def get_job(self, job_id: str) -> VideoJob:
        """
        Retrieve a job by ID.

        Raises:
            JobNotFoundError: If no row has this id
            DatabaseError: If the query fails
        """
        try:
            result = self._table().select("*").eq("id", job_id).limit(1).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to get job {job_id}: {e}")

        if not result.data:
            raise JobNotFoundError(job_id)

        return VideoJob.from_row(result.data[0])

    async def get_job_status(self, job_id: str) -> dict[str, Any]:
        """
        Retrieve the public status fields of a job.

        Returns:
            Dict with id, status, output_url, error_message and updated_at

        Raises:
            JobNotFoundError: If no row has this id
            DatabaseError: If the query fails
        """
        try:
            result = self._table().select(STATUS_COLUMNS).eq("id", job_id).limit(1).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to get status for job {job_id}: {e}")

        if not result.data:
            raise JobNotFoundError(job_id)

        row = dict(result.data[0])
        row["status"] = JobStatus.normalize(row.get("status"))
        return row

    async def fetch_next_processing(self) -> Optional[dict[str, Any]]:
        """
        Find at most one job waiting in the 'processing' state.

        The row is returned unparsed so that a malformed row can still be
        claimed and marked failed by its id.

        Returns:
            Raw row dict if one is waiting, None otherwise

        Raises:
            DatabaseError: If the query fails
        """
        try:
            result = (
                self._table()
                .select("*")
                .eq("status", JobStatus.PROCESSING.value)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to fetch processing jobs: {e}")

        if not result.data:
            return None

        return dict(result.data[0])

    # ==================== CLAIMS ====================

    async def claim_job(self, job_id: JobId) -> bool:
        """
        Move a job from 'processing' to 'in_progress' if nobody else did.

        The status filter makes the update conditional, so only one caller
        can win the transition.

        Returns:
            True if this caller now owns the job
        """
        try:
            result = (
                self._table()
                .update({"status": JobStatus.IN_PROGRESS.value, "updated_at": utcnow_iso()})
                .eq("id", job_id)
                .eq("status", JobStatus.PROCESSING.value)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to claim job {job_id}: {e}")

        return bool(result.data)

    async def begin_job(self, job_id: JobId) -> bool:
        """
        Mark a job 'in_progress' from any state except 'in_progress'.

        Used by the intake path, which may re-run finished jobs.

        Returns:
            True if a row was updated
        """
        try:
            result = (
                self._table()
                .update({"status": JobStatus.IN_PROGRESS.value, "updated_at": utcnow_iso()})
                .eq("id", job_id)
                .neq("status", JobStatus.IN_PROGRESS.value)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to start job {job_id}: {e}")

        return bool(result.data)

    async def job_exists(self, job_id: JobId) -> bool:
        try:
            result = self._table().select("id").eq("id", job_id).limit(1).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to look up job {job_id}: {e}")
        return bool(result.data)

    async def release_stale_claims(self, older_than_seconds: float) -> int:
        """
        Put 'in_progress' jobs untouched for older_than_seconds back to 'processing'.

        Recovers jobs whose worker died between claim and terminal update.
        Best effort: errors are logged and 0 is returned.

        Returns:
            Number of rows released
        """
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=older_than_seconds)
        try:
            result = (
                self._table()
                .update({"status": JobStatus.PROCESSING.value, "updated_at": utcnow_iso()})
                .eq("status", JobStatus.IN_PROGRESS.value)
                .lt("updated_at", cutoff.isoformat())
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to release stale jobs: {e}")
            return 0

        released = len(result.data or [])
        if released:
            logger.warning(f"Released {released} stale in_progress job(s) back to processing")
        return released

    # ==================== TERMINAL UPDATES ====================

    async def mark_done(self, job_id: JobId, output_url: str) -> bool:
        """
        Record a successful run.

        Raises:
            DatabaseError: If the update fails
        """
        update_data = {
            "status": JobStatus.DONE.value,
            "output_url": output_url,
            "error_message": None,
            "updated_at": utcnow_iso(),
        }
        try:
            result = self._table().update(update_data).eq("id", job_id).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to mark job {job_id} done: {e}")

        if not result.data:
            logger.warning(f"Job {job_id} not found while marking it done")
        return bool(result.data)

    async def mark_failed(self, job_id: JobId, error_message: str) -> bool:
        """
        Record a failed run. Best effort: errors are logged, never raised.

        Returns:
            True if the row was updated, False otherwise
        """
        update_data = {
            "status": JobStatus.FAILED.value,
            "error_message": error_message,
            "updated_at": utcnow_iso(),
        }
        try:
            result = self._table().update(update_data).eq("id", job_id).execute()
            if not result.data:
                logger.warning(f"Job {job_id} not found while marking it failed")
            return bool(result.data)
        except Exception as e:
            logger.error(f"Failed to update job {job_id} to failed: {e}")
            return False


def create_database_service(supabase_client: Optional[Any] = None) -> DatabaseService:
    """
    Create a DatabaseService instance using application settings.

    Args:
        supabase_client: Optional Supabase client; a cached one is used if omitted

    Returns:
        Configured DatabaseService instance
    """
    from clipmerge.config import get_settings
    from clipmerge.services.supabase_client import get_supabase_client

    settings = get_settings()
    return DatabaseService(
        supabase_client=supabase_client or get_supabase_client(),
        table_name=settings.jobs_table,
    )
