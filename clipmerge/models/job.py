"""Job Pydantic models shared by the intake API and the poller."""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class JobStatus(str, Enum):
    """Lifecycle states of a row in the job table."""

    PROCESSING = "processing"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: Any) -> "JobStatus":
        """Map a stored status to the enum, accepting the legacy 'completed' label."""
        if isinstance(value, JobStatus):
            return value
        if value == "completed":
            return cls.DONE
        return cls(value)

    @staticmethod
    def normalize(value: Any) -> Any:
        """Rename the legacy 'completed' label; any other stored value passes through."""
        if value == "completed":
            return JobStatus.DONE.value
        return value

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.DONE, JobStatus.FAILED)


class InputFile(BaseModel):
    """One source clip. Accepts a bare URL string or ``{signedUrl|url}``."""

    signed_url: Optional[str] = Field(default=None, alias="signedUrl")
    url: Optional[str] = None

    model_config = {"populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _from_bare_url(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"url": data}
        return data

    @model_validator(mode="after")
    def _require_location(self) -> "InputFile":
        if not (self.signed_url or self.url):
            raise ValueError("Each file needs a signedUrl or url")
        return self

    @property
    def source_url(self) -> str:
        """URL to fetch, preferring the signed one."""
        return self.signed_url or self.url  # type: ignore[return-value]


class VideoJob(BaseModel):
    """A row of the job table."""

    id: str = Field(min_length=1)
    status: JobStatus
    user_id: Optional[str] = None
    input_files: List[InputFile] = Field(default_factory=list)
    output_url: Optional[str] = None
    error_message: Optional[str] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        # integer primary keys come back from PostgREST as ints
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> JobStatus:
        return JobStatus.parse(value)

    @field_validator("input_files", mode="before")
    @classmethod
    def _default_input_files(cls, value: Any) -> Any:
        return value or []

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "VideoJob":
        """Build a VideoJob from a Supabase row dict."""
        return cls.model_validate({k: v for k, v in row.items() if k in cls.model_fields})

    @property
    def source_urls(self) -> List[str]:
        return [f.source_url for f in self.input_files]


class PipelineJob(BaseModel):
    """Everything the pipeline needs to process one job."""

    job_id: str = Field(min_length=1)
    user_id: Optional[str] = None
    files: List[InputFile] = Field(min_length=1)
    options: Optional[dict[str, Any]] = None

    @property
    def storage_path(self) -> str:
        """Object path of the final output inside the bucket."""
        owner = self.user_id or "outputs"
        return f"{owner}/{self.job_id}-final.mp4"

    @classmethod
    def from_video_job(cls, job: VideoJob) -> "PipelineJob":
        return cls(job_id=job.id, user_id=job.user_id, files=job.input_files)


class PipelineResult(BaseModel):
    """Outcome of a successful pipeline run."""

    job_id: str
    status: JobStatus = JobStatus.DONE
    output_url: str
    storage_path: str
