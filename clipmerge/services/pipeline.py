"""Job pipeline shared by the intake API and the background poller."""

import logging
from typing import Optional

from clipmerge.models.job import JobStatus, PipelineJob, PipelineResult
from clipmerge.services.database import DatabaseService
from clipmerge.services.downloader import ClipDownloader
from clipmerge.services.storage import StorageService
from clipmerge.services.transcoder import Transcoder
from clipmerge.services.workspace import job_workspace

logger = logging.getLogger(__name__)


class JobPipeline:
    """Download, concatenate, upload and record one job."""

    def __init__(
        self,
        db: DatabaseService,
        storage: StorageService,
        downloader: ClipDownloader,
        transcoder: Transcoder,
        work_dir: Optional[str] = None,
    ) -> None:
        """
        Initialize the JobPipeline.

        Args:
            db: Job table access
            storage: Blob store for outputs
            downloader: Source clip fetcher
            transcoder: ffmpeg runner
            work_dir: Parent directory for job workspaces
        """
        self.db = db
        self.storage = storage
        self.downloader = downloader
        self.transcoder = transcoder
        self.work_dir = work_dir

    async def run(self, job: PipelineJob) -> PipelineResult:
        """
        Process a job end to end.

        On failure the job row is marked failed (best effort) and the
        original error is re-raised.

        Returns:
            PipelineResult with the output URL
        """
        logger.info(f"Processing job {job.job_id} ({len(job.files)} clips)")
        if job.options:
            logger.debug(f"Job {job.job_id}: ignoring options {sorted(job.options)}")

        try:
            result = await self._execute(job)
        except Exception as e:
            logger.error(f"Job {job.job_id} failed: {e}")
            await self.db.mark_failed(job.job_id, str(e))
            raise

        logger.info(f"Job {job.job_id} completed: {result.output_url}")
        return result

    async def _execute(self, job: PipelineJob) -> PipelineResult:
        with job_workspace(self.work_dir) as workspace:
            # 1. Fetch inputs
            clips = await self.downloader.download_all(
                [f.source_url for f in job.files], workspace
            )

            # 2. Concatenate
            output = await self.transcoder.concatenate(clips, workspace)

            # 3. Publish
            data = output.read_bytes()
            path = job.storage_path
            await self.storage.upload_video(path, data)

        output_url = await self.storage.get_url(path)

        # 4. Record
        await self.db.mark_done(job.job_id, output_url)

        return PipelineResult(
            job_id=job.job_id,
            status=JobStatus.DONE,
            output_url=output_url,
            storage_path=path,
        )


def create_job_pipeline() -> JobPipeline:
    """Create a JobPipeline wired from application settings."""
    from clipmerge.config import get_settings
    from clipmerge.services.database import create_database_service
    from clipmerge.services.downloader import create_clip_downloader
    from clipmerge.services.storage import create_storage_service
    from clipmerge.services.transcoder import create_transcoder

    settings = get_settings()
    return JobPipeline(
        db=create_database_service(),
        storage=create_storage_service(),
        downloader=create_clip_downloader(),
        transcoder=create_transcoder(),
        work_dir=settings.work_dir,
    )
