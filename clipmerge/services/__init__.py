"""Services for clipmerge."""

from clipmerge.services.database import DatabaseService, create_database_service
from clipmerge.services.downloader import ClipDownloader, create_clip_downloader
from clipmerge.services.pipeline import JobPipeline, create_job_pipeline
from clipmerge.services.poller import JobPoller, create_job_poller
from clipmerge.services.storage import StorageService, create_storage_service
from clipmerge.services.transcoder import Transcoder, create_transcoder

__all__ = [
    "DatabaseService",
    "create_database_service",
    "ClipDownloader",
    "create_clip_downloader",
    "JobPipeline",
    "create_job_pipeline",
    "JobPoller",
    "create_job_poller",
    "StorageService",
    "create_storage_service",
    "Transcoder",
    "create_transcoder",
]
