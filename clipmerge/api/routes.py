"""FastAPI routes for the clipmerge API."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from clipmerge.api.deps import get_database_service_dep, get_job_pipeline_dep
from clipmerge.models.job import InputFile, JobStatus, PipelineJob
from clipmerge.services.database import DatabaseService
from clipmerge.services.pipeline import JobPipeline
from clipmerge.utils.errors import (
    ClipMergeError,
    JobConflictError,
    JobNotFoundError,
    JobRequestError,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "job_id, user_id and files[] are required"

# Create router
router = APIRouter(prefix="/api")


# ==================== Exception Handlers ====================


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies are client errors."""
    return JSONResponse(
        status_code=400,
        content={
            "error": REQUIRED_FIELDS_MESSAGE,
            "error_type": "ValidationError",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


async def clipmerge_exception_handler(request: Request, exc: ClipMergeError) -> JSONResponse:
    """Handle application-specific errors."""
    status_code = 500

    if isinstance(exc, JobRequestError):
        status_code = 400
    elif isinstance(exc, JobNotFoundError):
        status_code = 404
    elif isinstance(exc, JobConflictError):
        status_code = 409

    return JSONResponse(
        status_code=status_code,
        content={
            "error": str(exc),
            "error_type": type(exc).__name__,
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc),
            "error_type": "InternalError",
        },
    )


# ==================== Request/Response Models ====================


class ProcessRequest(BaseModel):
    """Request model for the process endpoint."""

    job_id: str = Field(min_length=1, description="Id of the job row")
    user_id: str = Field(min_length=1, description="Owner of the job")
    files: List[InputFile] = Field(min_length=1, description="Clips in concatenation order")
    options: Optional[Dict[str, Any]] = None

    model_config = {"str_strip_whitespace": True}


class ProcessResponse(BaseModel):
    """Response model for the process endpoint."""

    job_id: str
    status: JobStatus
    output_url: str = Field(alias="outputUrl")

    model_config = {"populate_by_name": True}


class StatusResponse(BaseModel):
    """Response model for the status endpoint."""

    id: Union[str, int]
    status: Optional[str] = None
    output_url: Optional[str] = None
    error_message: Optional[str] = None
    updated_at: Optional[datetime] = None


# ==================== Endpoints ====================


@router.post("/process", response_model=ProcessResponse)
async def process_job(
    request: ProcessRequest,
    db: DatabaseService = Depends(get_database_service_dep),
    pipeline: JobPipeline = Depends(get_job_pipeline_dep),
) -> ProcessResponse:
    """
    Concatenate the given clips synchronously.

    Downloads every file, joins them with ffmpeg, uploads the result and
    returns its URL once the job is done.
    """
    if not await db.begin_job(request.job_id):
        # Nothing updated: either the row is already in progress or it does not exist
        if await db.job_exists(request.job_id):
            raise JobConflictError(request.job_id)
        logger.warning(f"Job {request.job_id} has no row; processing anyway")

    job = PipelineJob(
        job_id=request.job_id,
        user_id=request.user_id,
        files=request.files,
        options=request.options,
    )
    result = await pipeline.run(job)

    return ProcessResponse(
        job_id=result.job_id,
        status=result.status,
        output_url=result.output_url,
    )


@router.get("/status/{job_id}", response_model=StatusResponse)
async def get_status(
    job_id: str,
    db: DatabaseService = Depends(get_database_service_dep),
) -> StatusResponse:
    """
    Get processing status for a job.

    Returns the current status including output_url when done or
    error_message when failed.
    """
    row = await db.get_job_status(job_id)
    return StatusResponse(**row)
