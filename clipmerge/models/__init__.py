"""Pydantic data models for clipmerge."""

from clipmerge.models.job import (
    InputFile,
    JobStatus,
    PipelineJob,
    PipelineResult,
    VideoJob,
)

__all__ = [
    "InputFile",
    "JobStatus",
    "PipelineJob",
    "PipelineResult",
    "VideoJob",
]
