"""FastAPI dependencies for the clipmerge API."""

from clipmerge.config import Settings, get_settings
from clipmerge.services.database import DatabaseService, create_database_service
from clipmerge.services.pipeline import JobPipeline, create_job_pipeline


def get_settings_dep() -> Settings:
    """Dependency for application settings."""
    return get_settings()


def get_database_service_dep() -> DatabaseService:
    """Dependency for database service."""
    return create_database_service()


def get_job_pipeline_dep() -> JobPipeline:
    """Dependency for the job pipeline."""
    return create_job_pipeline()
