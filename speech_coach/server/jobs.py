"""In-memory analysis job store with background execution and TTL cleanup.

WHY: The HTTP API needs to track analysis jobs through their lifecycle
(pending → transcribing → analyzing → completed | failed | cancelled).
Transcription takes tens of seconds to minutes, so the API returns a job
ID immediately and does the work in the background.

HOW: Three components work together:
  JobStatus  — enum of valid job states
  Job        — dataclass holding job metadata, status, result and temp directory
  JobStore   — thread-safe dict-based store with create/update/get/list/cancel/delete,
               a background runner, and TTL cleanup

RULES:
- All store mutations are protected by threading.Lock for thread safety
- Each job gets a dedicated temp directory for the uploaded audio
- Each job owns a threading.Event the pipeline polls for cancellation
- Cancelling or deleting a job sets its cancel event
- Background runner marks the job failed on unhandled exceptions
- Job IDs are UUID4 hex strings generated at creation time
- Default TTL is 1 hour (3600 seconds)
"""

from __future__ import annotations

import enum
import logging
import shutil
import tempfile
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from speech_coach.core.ir import AnalysisResult

logger = logging.getLogger(__name__)

# Default time-to-live for finished jobs (seconds)
DEFAULT_TTL_SECONDS = 3600


class JobStatus(str, enum.Enum):
    """Valid states for an analysis job.

    RULES:
    - pending: job created, not yet started
    - transcribing: audio uploaded / remote transcription running
    - analyzing: transcript received, metrics and feedback running
    - completed: result available
    - failed: unrecoverable error at any stage
    - cancelled: abandoned by the client
    """

    PENDING = "pending"
    TRANSCRIBING = "transcribing"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED})


@dataclass
class Job:
    """Metadata and state for a single analysis job.

    RULES:
    - id: UUID4 hex string, unique and immutable after creation
    - filename: original uploaded filename (for display)
    - output_dir: temp directory holding the uploaded audio
    - completed_at: epoch timestamp when job reached a terminal state, or None
    - error: error message if status is FAILED, else None
    - result: the AnalysisResult once status is COMPLETED
    - cancel_event: set when the client cancels or deletes the job
    """

    id: str
    status: JobStatus
    filename: str
    output_dir: Path
    created_at: float
    updated_at: float
    completed_at: Optional[float] = None
    error: Optional[str] = None
    result: Optional[AnalysisResult] = None
    config: Dict[str, Any] = field(default_factory=dict)
    cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def input_path(self) -> Path:
        return self.output_dir / self.filename


class JobStore:
    """Thread-safe in-memory store for analysis jobs.

    WHY: Concurrent API requests and background tasks access job state
    simultaneously. A centralized store with locking prevents races.

    RULES:
    - All public methods that mutate state acquire self._lock
    - get_job() returns None for missing job IDs (no exceptions)
    - create_job() raises ValueError once max_jobs jobs are stored
    - Terminal states are final: later status updates are ignored
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_jobs: int = 100,
    ) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_jobs = max_jobs

    def create_job(
        self,
        filename: str,
        config: Optional[Dict[str, Any]] = None,
    ) -> Job:
        """Create a new job in PENDING state with a dedicated temp directory."""
        with self._lock:
            if len(self._jobs) >= self.max_jobs:
                raise ValueError(
                    "Maximum number of concurrent jobs ({}) reached".format(
                        self.max_jobs
                    )
                )

            job_id = uuid.uuid4().hex
            now = time.time()
            output_dir = Path(tempfile.mkdtemp(prefix="speech_coach_job_"))

            job = Job(
                id=job_id,
                status=JobStatus.PENDING,
                filename=filename,
                output_dir=output_dir,
                created_at=now,
                updated_at=now,
                config=config or {},
            )

            self._jobs[job_id] = job

        logger.info("Created job %s for file %s", job_id, filename)
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self) -> List[Job]:
        """Return all jobs, oldest first."""
        with self._lock:
            return sorted(self._jobs.values(), key=lambda j: j.created_at)

    def update_job(
        self,
        job_id: str,
        status: Optional[JobStatus] = None,
        error: Optional[str] = None,
        result: Optional[AnalysisResult] = None,
    ) -> Optional[Job]:
        """Update a job's mutable fields.

        RULES:
        - Returns the updated Job, or None if job_id not found
        - Only non-None arguments are applied
        - A job already in a terminal state keeps that state
        - completed_at is set when the job first reaches a terminal state
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None

            if job.status.is_terminal:
                return job

            now = time.time()

            if status is not None:
                job.status = status
            if error is not None:
                job.error = error
            if result is not None:
                job.result = result

            job.updated_at = now

            if job.status.is_terminal:
                job.completed_at = now

            return job

    def cancel_job(self, job_id: str) -> Optional[Job]:
        """Signal a running job to stop and mark it CANCELLED."""
        job = self.get_job(job_id)
        if job is None:
            return None
        job.cancel_event.set()
        self.update_job(job_id, status=JobStatus.CANCELLED)
        logger.info("Cancelled job %s", job_id)
        return job

    def delete_job(self, job_id: str) -> bool:
        """Delete a job, cancel it if still running, and remove its temp dir."""
        with self._lock:
            job = self._jobs.pop(job_id, None)

        if job is None:
            return False

        job.cancel_event.set()
        self._cleanup_output_dir(job.output_dir)
        logger.info("Deleted job %s", job_id)
        return True

    def run_in_background(
        self,
        job_id: str,
        task: Callable[[str, JobStore], None],
    ) -> None:
        """Run ``task(job_id, store)``, marking the job failed if it raises.

        WHY: BackgroundTasks swallow exceptions after the response is sent;
        the failure has to land in the job so the polling client sees it.
        """
        try:
            task(job_id, self)
        except Exception as exc:
            logger.exception("Background task failed for job %s", job_id)
            self.update_job(job_id, status=JobStatus.FAILED, error=str(exc))

    def cleanup_expired(self) -> int:
        """Remove finished jobs older than the TTL and return how many went.

        RULES:
        - Only terminal-state jobs are candidates
        - TTL is measured from completed_at, not created_at
        """
        now = time.time()
        expired_jobs: List[Job] = []

        with self._lock:
            for job_id, job in list(self._jobs.items()):
                if not job.status.is_terminal or job.completed_at is None:
                    continue
                if now - job.completed_at > self._ttl_seconds:
                    expired_jobs.append(self._jobs.pop(job_id))

        for job in expired_jobs:
            self._cleanup_output_dir(job.output_dir)
            logger.info("Expired job %s (finished %.0fs ago)", job.id, now - job.completed_at)

        return len(expired_jobs)

    @staticmethod
    def _cleanup_output_dir(output_dir: Path) -> None:
        if output_dir.exists():
            try:
                shutil.rmtree(output_dir)
            except OSError:
                logger.warning("Failed to clean up temp dir: %s", output_dir)
