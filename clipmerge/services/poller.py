"""Background poller that picks up jobs left in the 'processing' state."""

import asyncio
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from clipmerge.models.job import PipelineJob, PipelineResult, VideoJob
from clipmerge.services.database import DatabaseService
from clipmerge.services.pipeline import JobPipeline

logger = logging.getLogger(__name__)


def describe_invalid_row(row: Dict[str, Any], error: ValidationError) -> str:
    """Error message stored on a job row that cannot be turned into a pipeline job."""
    if not row.get("input_files"):
        return "Job has no input files"
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'row'}: {err['msg']}"
        for err in error.errors()
    )
    return f"Invalid job row: {problems}"


class JobPoller:
    """Runs one job per tick on a fixed interval."""

    def __init__(
        self,
        db: DatabaseService,
        pipeline: JobPipeline,
        interval: float = 30.0,
        claim_timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize the JobPoller.

        Args:
            db: Job table access
            pipeline: Pipeline that runs claimed jobs
            interval: Seconds between ticks
            claim_timeout: Seconds after which an 'in_progress' row is
                considered abandoned and put back to 'processing'; None disables
        """
        self.db = db
        self.pipeline = pipeline
        self.interval = interval
        self.claim_timeout = claim_timeout
        self._stop = asyncio.Event()

    async def poll_once(self) -> Optional[PipelineResult]:
        """
        Claim and process at most one waiting job.

        The row is claimed before it is parsed, so a malformed row is moved
        to 'failed' instead of being picked again on every tick.

        Returns:
            PipelineResult if a job finished successfully, None otherwise
        """
        logger.info("Checking for video jobs...")

        if self.claim_timeout is not None:
            await self.db.release_stale_claims(self.claim_timeout)

        row = await self.db.fetch_next_processing()
        if row is None:
            logger.info("No jobs found.")
            return None

        row_id = row.get("id")
        if row_id is None:
            logger.error(f"Skipping job row without an id: {row}")
            return None

        if not await self.db.claim_job(row_id):
            logger.info(f"Job {row_id} was claimed elsewhere, skipping")
            return None

        try:
            pipeline_job = PipelineJob.from_video_job(VideoJob.from_row(row))
        except ValidationError as e:
            message = describe_invalid_row(row, e)
            logger.error(f"Job {row_id}: {message}")
            await self.db.mark_failed(row_id, message)
            return None

        try:
            return await self.pipeline.run(pipeline_job)
        except Exception:
            # Already recorded on the row by the pipeline
            return None

    async def run_forever(self) -> None:
        """Tick until stop() is called. A failing tick never ends the loop."""
        logger.info(f"Poller started, interval {self.interval}s")
        while not self._stop.is_set():
            try:
                await self.poll_once()
            except Exception as e:
                logger.error(f"Error fetching jobs: {e}")

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
        logger.info("Poller stopped")

    def stop(self) -> None:
        self._stop.set()


def create_job_poller(interval: Optional[float] = None) -> JobPoller:
    """Create a JobPoller wired from application settings."""
    from clipmerge.config import get_settings
    from clipmerge.services.database import create_database_service
    from clipmerge.services.pipeline import create_job_pipeline

    settings = get_settings()
    return JobPoller(
        db=create_database_service(),
        pipeline=create_job_pipeline(),
        interval=interval if interval is not None else settings.poll_interval_seconds,
        claim_timeout=settings.claim_timeout_seconds,
    )
