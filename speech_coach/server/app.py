"""FastAPI application exposing speech analysis as background jobs.

WHY: The recording screen and the interview flow run in a browser; they
upload an answer, then poll until its analysis is ready. Transcription
takes too long to hold a request open, so each upload becomes a job.

HOW: POST /analyses accepts a multipart audio upload, creates a job and
runs transcription plus analysis in the background. GET polls one job or
lists them all. DELETE cancels and removes a job. /health is for load
balancers.

RULES:
- Error responses use a consistent ErrorResponse schema
- Background analysis uses FastAPI BackgroundTasks
- The job store is a singleton created at import time
- File validation checks extension against SUPPORTED_AUDIO_FORMATS
- Cancellation reaches the transcription poll loop through the job's cancel_event
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, List

from fastapi import BackgroundTasks, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from speech_coach import __version__
from speech_coach.api.client import AnalysisCancelled, AnalysisFailure, TranscriptionJobClient
from speech_coach.config import SUPPORTED_AUDIO_FORMATS, AnalysisThresholds
from speech_coach.core.messages import DEFAULT_MESSAGES, PLAIN_MESSAGES
from speech_coach.core.pipeline import analyze_transcript
from speech_coach.server.jobs import Job, JobStatus, JobStore
from speech_coach.server.models import (
    AnalysisCreatedResponse,
    AnalysisJobResponse,
    ErrorResponse,
    HealthResponse,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

job_store = JobStore()


async def _periodic_cleanup() -> None:
    """Run job cleanup every 5 minutes."""
    while True:
        await asyncio.sleep(300)
        removed = job_store.cleanup_expired()
        if removed:
            logger.info("Cleaned up %d expired job(s)", removed)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="Speech Coach API",
    description=(
        "Analyze recorded answers: speaking pace, filler words, long pauses, "
        "articulation and coaching feedback. Submit a recording, poll for "
        "status, and read the analysis from the completed job."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _job_to_response(job: Job) -> AnalysisJobResponse:
    result = None
    if job.status == JobStatus.COMPLETED and job.result is not None:
        result = job.result.to_dict()
    return AnalysisJobResponse(
        id=job.id,
        status=job.status.value,
        filename=job.filename,
        created_at=job.created_at,
        config=job.config,
        error=job.error,
        result=result,
    )


def _validate_file_extension(filename: str) -> None:
    """Raise HTTPException if the file extension is not supported."""
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_AUDIO_FORMATS:
        raise HTTPException(
            status_code=400,
            detail="Unsupported file type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted(SUPPORTED_AUDIO_FORMATS))
            ),
        )


async def _run_analysis(job_id: str, store: JobStore) -> None:
    """Transcribe and analyze the uploaded recording for one job.

    RULES:
    - Updates job status at each stage (transcribing, analyzing, completed)
    - AnalysisCancelled marks the job cancelled; other failures mark it failed
    - No partial result is stored on failure
    """
    job = store.get_job(job_id)
    if job is None:
        return

    catalog = PLAIN_MESSAGES if job.config.get("plain") else DEFAULT_MESSAGES

    try:
        store.update_job(job_id, status=JobStatus.TRANSCRIBING)
        async with TranscriptionJobClient() as client:
            transcript = await client.transcribe(job.input_path, cancel_event=job.cancel_event)

        store.update_job(job_id, status=JobStatus.ANALYZING)
        result = analyze_transcript(transcript, AnalysisThresholds.from_env(), catalog)
        store.update_job(job_id, status=JobStatus.COMPLETED, result=result)
        logger.info("Job %s completed", job_id)

    except AnalysisCancelled:
        logger.info("Job %s cancelled", job_id)
        store.update_job(job_id, status=JobStatus.CANCELLED)
    except AnalysisFailure as exc:
        logger.exception("Analysis failed for job %s", job_id)
        store.update_job(job_id, status=JobStatus.FAILED, error=str(exc))


def _run_analysis_sync(job_id: str, store: JobStore) -> None:
    """Synchronous wrapper for the async analysis.

    WHY: FastAPI BackgroundTasks run synchronous callables in a worker
    thread. This wraps the async pipeline with asyncio.run().
    """
    asyncio.run(_run_analysis(job_id, store))


# ---------------------------------------------------------------------------
# Endpoints: Analyses
# ---------------------------------------------------------------------------


@app.post(
    "/analyses",
    response_model=AnalysisCreatedResponse,
    status_code=201,
    tags=["analyses"],
    summary="Submit a recording for analysis",
    description=(
        "Upload one recorded answer. Returns a job ID immediately; the "
        "transcription and analysis run in the background. Poll "
        "GET /analyses/{id} for status and the result."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Invalid file type"},
        429: {"model": ErrorResponse, "description": "Too many concurrent jobs"},
    },
)
async def create_analysis(
    background_tasks: BackgroundTasks,
    file: Annotated[
        UploadFile,
        File(description="Recorded audio answer"),
    ],
    plain: Annotated[
        bool,
        Form(description="Render feedback without emoji markers."),
    ] = False,
) -> AnalysisCreatedResponse:
    # Sanitize filename to prevent path traversal
    filename = Path(file.filename or "upload").name
    _validate_file_extension(filename)

    try:
        job = job_store.create_job(filename=filename, config={"plain": plain})
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))

    content = await file.read()
    job.input_path.write_bytes(content)

    background_tasks.add_task(job_store.run_in_background, job.id, _run_analysis_sync)

    return AnalysisCreatedResponse(
        id=job.id,
        status=job.status.value,
        filename=job.filename,
    )


@app.get(
    "/analyses",
    response_model=List[AnalysisJobResponse],
    tags=["analyses"],
    summary="List analysis jobs",
    description="All jobs still held by the server, oldest first.",
)
async def list_analyses() -> List[AnalysisJobResponse]:
    return [_job_to_response(job) for job in job_store.list_jobs()]


@app.get(
    "/analyses/{job_id}",
    response_model=AnalysisJobResponse,
    tags=["analyses"],
    summary="Get analysis job status",
    description=(
        "Poll this endpoint to track an analysis job. The result (transcript, "
        "metrics, feedback, recommendations) is included once completed."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Job not found"},
    },
)
async def get_analysis(job_id: str) -> AnalysisJobResponse:
    job = job_store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found: {}".format(job_id))
    return _job_to_response(job)


@app.delete(
    "/analyses/{job_id}",
    status_code=204,
    tags=["analyses"],
    summary="Cancel and delete an analysis job",
    description=(
        "Cancel a running analysis (the transcription poll loop stops at its "
        "next check) and remove the job with its uploaded recording."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Job not found"},
    },
)
async def delete_analysis(job_id: str) -> Response:
    job = job_store.cancel_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found: {}".format(job_id))
    job_store.delete_job(job_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the speech-coach-api console script."""
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
