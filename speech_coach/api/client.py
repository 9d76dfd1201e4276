"""Async HTTP client for the AssemblyAI asynchronous transcription API.

WHY: Every analysis starts with a remote transcription job: upload the
audio, start the job, poll it until it completes or fails. This module
owns that state machine so the pipeline, CLI and server never touch HTTP.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. TranscriptionJobClient
is an async context manager: enter it to get an authenticated client,
exit to close the connection pool. Each step is a separate method:
upload_file → submit → poll → await_completion (or transcribe for all).

RULES:
- Always use the async context manager (async with TranscriptionJobClient() as client:)
- Polling uses a fixed interval and stops after max_polls (TranscriptionTimeout)
- Transport errors, HTTP 5xx and 429 are retried max_retries times, then NetworkError
- A job in "error" status raises TranscriptionFailed at once, never retried
- Malformed payloads become UploadFailed / TranscriptionFailed, never partial data
- cancel_event (threading.Event) is honoured before every poll
- Status callback (on_status) is optional; when provided, called with status strings
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx

from speech_coach.api.models import (
    JobStatus,
    PayloadError,
    SubmitResponse,
    TranscriptionJob,
    TranscriptPayload,
    UploadResponse,
)
from speech_coach.config import (
    ASSEMBLYAI_BASE_URL,
    MAX_POLLS,
    MAX_RETRIES,
    POLL_INTERVAL_S,
    RETRY_BACKOFF_S,
    load_api_key,
)
from speech_coach.core.ir import WordTranscript

logger = logging.getLogger(__name__)

# Feature flags sent with every transcription request
TRANSCRIPTION_FEATURES: dict[str, bool] = {
    "punctuate": True,
    "format_text": True,
    "disfluencies": True,
    "auto_highlights": True,
    "speaker_labels": False,
    "sentiment_analysis": False,
}


# ---------------------------------------------------------------------------
# Failure taxonomy
# ---------------------------------------------------------------------------


class AnalysisFailure(Exception):
    """Base class for every typed failure an analysis can end with.

    WHY: Callers get either a complete AnalysisResult or one of these;
    catching the base class is enough to report any failure to the user.
    """


class UploadFailed(AnalysisFailure):
    """Raised when the audio upload does not yield a usable remote URL."""


class TranscriptionFailed(AnalysisFailure):
    """Raised when the remote job reaches "error" or returns unusable data.

    RULES:
    - reason carries the service's error message or the validation problem
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__("Transcription failed: {}".format(reason))


class NetworkError(AnalysisFailure):
    """Raised when a request keeps failing after all retries."""


class TranscriptionTimeout(AnalysisFailure, TimeoutError):
    """Raised when a job is still not finished after max_polls polls."""


class AnalysisCancelled(AnalysisFailure):
    """Raised when the caller sets the cancel event while a job is running."""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class TranscriptionJobClient:
    """Async client driving one or more AssemblyAI transcription jobs.

    WHY: Provides a typed interface for the full transcription workflow
    (upload → submit → poll) with auth, bounded retries, bounded waiting
    and cancellation handled in one place.

    HOW: Wraps httpx.AsyncClient with the API key header. Each job's
    lifecycle belongs to exactly one await_completion() call; separate
    jobs may share a client.

    RULES:
    - Use as: async with TranscriptionJobClient() as client: ...
    - api_key defaults to load_api_key() from .env
    - poll_interval / max_polls / max_retries default to config values
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        poll_interval: float | None = None,
        max_polls: int | None = None,
        max_retries: int | None = None,
        retry_backoff: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or ASSEMBLYAI_BASE_URL).rstrip("/")
        self._poll_interval = POLL_INTERVAL_S if poll_interval is None else poll_interval
        self._max_polls = MAX_POLLS if max_polls is None else max_polls
        self._max_retries = MAX_RETRIES if max_retries is None else max_retries
        self._retry_backoff = RETRY_BACKOFF_S if retry_backoff is None else retry_backoff
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> TranscriptionJobClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"authorization": self._api_key},
            timeout=httpx.Timeout(120.0, connect=15.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "TranscriptionJobClient must be used as an async context manager: "
                "async with TranscriptionJobClient() as client: ..."
            )
        return self._client

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, retrying transient failures.

        HOW: Transport errors, HTTP 5xx and HTTP 429 are retried with a
        linear backoff (retry_backoff × attempt). Any other response is
        returned to the caller, whatever its status.

        RULES:
        - At most 1 + max_retries attempts
        - Raises NetworkError with the last failure once attempts run out
        """
        client = self._ensure_client()
        attempts = self._max_retries + 1
        last_error = ""

        for attempt in range(1, attempts + 1):
            try:
                resp = await client.request(method, url, **kwargs)
            except httpx.TransportError as exc:
                last_error = "{}: {}".format(type(exc).__name__, exc)
            else:
                if resp.status_code < 500 and resp.status_code != 429:
                    return resp
                last_error = "HTTP {}: {}".format(resp.status_code, resp.text[:200])

            logger.warning(
                "%s %s failed (attempt %d/%d): %s",
                method, url, attempt, attempts, last_error,
            )
            if attempt < attempts:
                await asyncio.sleep(self._retry_backoff * attempt)

        raise NetworkError(
            "{} {} failed after {} attempts: {}".format(method, url, attempts, last_error)
        )

    # ------------------------------------------------------------------
    # Step 1: Upload audio
    # ------------------------------------------------------------------

    async def upload_file(
        self,
        audio_path: Path,
        on_status: Callable[[str], None] | None = None,
    ) -> str:
        """Upload a local audio file and return its remote URL.

        HOW: Sends the raw bytes as the body of POST /upload. The response
        JSON contains the upload_url used by submit().

        RULES:
        - Raises UploadFailed if the file cannot be read, the service
          rejects it, or the response has no usable upload_url
        - Raises NetworkError if the upload keeps failing transiently

        Args:
            audio_path: Path to the recorded audio file.
            on_status: Optional callback for status updates.

        Returns:
            The upload_url string assigned by the service.
        """
        if on_status:
            on_status("Uploading audio...")

        audio_path = Path(audio_path)
        try:
            content = audio_path.read_bytes()
        except OSError as exc:
            raise UploadFailed("Cannot read audio file {}: {}".format(audio_path, exc)) from exc

        resp = await self._request(
            "POST",
            "/upload",
            content=content,
            headers={"content-type": "application/octet-stream"},
        )
        if resp.status_code not in (200, 201):
            raise UploadFailed(
                "Upload rejected with HTTP {}: {}".format(resp.status_code, resp.text)
            )

        try:
            upload = UploadResponse.from_dict(resp.json())
        except (ValueError, PayloadError) as exc:
            raise UploadFailed(str(exc)) from exc

        logger.info("Uploaded %s (%d bytes)", audio_path.name, len(content))
        return upload.upload_url

    # ------------------------------------------------------------------
    # Step 2: Submit transcription job
    # ------------------------------------------------------------------

    async def submit(
        self,
        audio_path: Path,
        on_status: Callable[[str], None] | None = None,
    ) -> TranscriptionJob:
        """Upload audio and start a transcription job for it.

        WHY: The service transcribes remote URLs only, so every job starts
        with an upload. Feature flags enable punctuation, text formatting,
        disfluency tagging and highlights, and disable diarization and
        sentiment analysis, which the analysis never reads.

        RULES:
        - Returns a TranscriptionJob in status "submitted"
        - Raises TranscriptionFailed if the service refuses the job or
          answers without a job id

        Args:
            audio_path: Path to the recorded audio file.
            on_status: Optional callback for status updates.

        Returns:
            The new TranscriptionJob.
        """
        audio_url = await self.upload_file(audio_path, on_status=on_status)

        if on_status:
            on_status("Starting transcription...")

        body = dict(TRANSCRIPTION_FEATURES, audio_url=audio_url)
        resp = await self._request("POST", "/transcript", json=body)
        if resp.status_code not in (200, 201):
            raise TranscriptionFailed(
                "job submission rejected with HTTP {}: {}".format(resp.status_code, resp.text)
            )

        try:
            submitted = SubmitResponse.from_dict(resp.json())
        except (ValueError, PayloadError) as exc:
            raise TranscriptionFailed(str(exc)) from exc

        logger.info("Submitted transcription job %s", submitted.id)
        return TranscriptionJob(id=submitted.id, audio_url=audio_url)

    # ------------------------------------------------------------------
    # Step 3: Poll
    # ------------------------------------------------------------------

    async def poll(self, job: TranscriptionJob) -> TranscriptPayload:
        """Fetch the job's current state once and record it on the job.

        Each poll is idempotent; repeating it after a transport failure is
        safe, which is why _request() may retry it.
        """
        resp = await self._request("GET", "/transcript/{}".format(job.id))
        if resp.status_code != 200:
            raise TranscriptionFailed(
                "status check for job {} returned HTTP {}: {}".format(
                    job.id, resp.status_code, resp.text
                )
            )

        try:
            payload = TranscriptPayload.from_dict(resp.json())
        except (ValueError, PayloadError) as exc:
            raise TranscriptionFailed(str(exc)) from exc

        job.poll_count += 1
        job.status = JobStatus(payload.status)
        logger.debug("Job %s poll %d: %s", job.id, job.poll_count, job.status.value)
        return payload

    async def await_completion(
        self,
        job: TranscriptionJob,
        cancel_event: threading.Event | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> WordTranscript:
        """Poll a job until it completes or fails.

        WHY: Transcription is not instant. The job moves through
        queued → processing → completed | error, and only the terminal
        states end the wait.

        HOW: Polls, then sleeps poll_interval seconds, until a terminal
        status, max_polls polls, or cancellation.

        RULES:
        - Returns the WordTranscript when status is "completed"
        - Raises TranscriptionFailed when status is "error" (not retried)
        - Raises TranscriptionTimeout after max_polls non-terminal polls
        - Raises AnalysisCancelled when cancel_event is set between polls

        Args:
            job: The job returned by submit().
            cancel_event: Optional event a caller sets to abandon the job.
            on_status: Optional callback for status updates.

        Returns:
            The completed transcript.
        """
        while True:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Job %s cancelled after %d poll(s)", job.id, job.poll_count)
                raise AnalysisCancelled("Transcription job {} was cancelled".format(job.id))

            if job.poll_count >= self._max_polls:
                raise TranscriptionTimeout(
                    "Transcription job {} not finished after {} polls "
                    "({:.0f}s interval)".format(job.id, job.poll_count, self._poll_interval)
                )

            payload = await self.poll(job)

            if job.status.is_terminal:
                return self._finish(job, payload, on_status)

            if on_status:
                if job.status == JobStatus.QUEUED:
                    on_status("Transcription queued...")
                else:
                    on_status("Transcribing... (poll {})".format(job.poll_count))

            await asyncio.sleep(self._poll_interval)

    @staticmethod
    def _finish(
        job: TranscriptionJob,
        payload: TranscriptPayload,
        on_status: Callable[[str], None] | None,
    ) -> WordTranscript:
        """Turn a terminal poll into a transcript or a TranscriptionFailed."""
        if job.status == JobStatus.ERROR:
            job.error_detail = payload.error or "unknown error"
            if on_status:
                on_status("Transcription error: {}".format(job.error_detail))
            logger.error("Job %s failed: %s", job.id, job.error_detail)
            raise TranscriptionFailed(job.error_detail)

        try:
            transcript = payload.to_transcript()
        except PayloadError as exc:
            raise TranscriptionFailed(str(exc)) from exc
        job.transcript = transcript
        if on_status:
            on_status("Transcription complete.")
        logger.info(
            "Job %s completed: %d words, %.1fs of audio",
            job.id, len(transcript.words), transcript.duration_seconds,
        )
        return transcript

    async def transcribe(
        self,
        audio_path: Path,
        cancel_event: threading.Event | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> WordTranscript:
        """Submit a recording and wait for its transcript."""
        job = await self.submit(audio_path, on_status=on_status)
        return await self.await_completion(job, cancel_event=cancel_event, on_status=on_status)
