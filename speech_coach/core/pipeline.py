"""Analysis pipeline: audio file → AnalysisResult.

WHY: Callers (recording screen, interview flow, CLI, HTTP server) want a
single operation that turns a recorded answer into metrics and coaching
feedback, and either succeeds completely or fails with a typed error.

HOW: AnalysisPipeline.run() drives the transcription job to completion,
then hands the transcript to the pure half, analyze_transcript(), which
runs the metrics analyzer and the feedback generator.

RULES:
- Job client failures (AnalysisFailure subclasses) propagate unchanged
- No partial results: a failure never yields a fallback AnalysisResult
- The pipeline keeps no state between calls; independent runs may overlap
- Metrics and feedback cannot fail for a well-formed transcript
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from pathlib import Path

from speech_coach.api.client import TranscriptionJobClient
from speech_coach.config import AnalysisThresholds
from speech_coach.core.feedback import generate_feedback
from speech_coach.core.ir import AnalysisResult, WordTranscript
from speech_coach.core.messages import MessageCatalog
from speech_coach.core.metrics import analyze as analyze_metrics

logger = logging.getLogger(__name__)


def analyze_transcript(
    transcript: WordTranscript,
    thresholds: AnalysisThresholds | None = None,
    catalog: MessageCatalog | None = None,
) -> AnalysisResult:
    """Derive metrics and feedback from a completed transcript."""
    metrics = analyze_metrics(transcript, thresholds)
    report = generate_feedback(metrics, thresholds, catalog)
    return AnalysisResult(
        transcript=transcript,
        metrics=metrics,
        feedback=report.feedback,
        recommendations=report.recommendations,
    )


class AnalysisPipeline:
    """Composes transcription, metrics and feedback for one recording at a time.

    RULES:
    - client_factory returns a fresh (not yet entered) TranscriptionJobClient;
      defaults to TranscriptionJobClient() configured from .env
    - thresholds and catalog apply to every run of this pipeline
    """

    def __init__(
        self,
        client_factory: Callable[[], TranscriptionJobClient] | None = None,
        thresholds: AnalysisThresholds | None = None,
        catalog: MessageCatalog | None = None,
    ) -> None:
        self._client_factory = client_factory or TranscriptionJobClient
        self._thresholds = thresholds
        self._catalog = catalog

    async def run(
        self,
        audio_path: Path,
        cancel_event: threading.Event | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> AnalysisResult:
        """Transcribe a recording and analyze it.

        Args:
            audio_path: Local audio file of one recorded answer.
            cancel_event: Optional event a caller sets to abandon the job.
            on_status: Optional callback for status updates.

        Returns:
            The complete AnalysisResult.
        """
        async with self._client_factory() as client:
            transcript = await client.transcribe(
                Path(audio_path), cancel_event=cancel_event, on_status=on_status,
            )

        if on_status:
            on_status("Analyzing speech...")
        result = analyze_transcript(transcript, self._thresholds, self._catalog)
        logger.info(
            "Analyzed %s: %d wpm, %.1f fillers/min, %d long pause(s)",
            Path(audio_path).name,
            result.metrics.speaking_pace,
            result.metrics.filler_rate,
            result.metrics.pause_count,
        )
        return result


def analyze(
    audio_path: Path,
    thresholds: AnalysisThresholds | None = None,
    catalog: MessageCatalog | None = None,
    cancel_event: threading.Event | None = None,
    on_status: Callable[[str], None] | None = None,
) -> AnalysisResult:
    """Synchronous entry point: analyze one recorded answer.

    Raises whichever AnalysisFailure the transcription produced.
    """
    pipeline = AnalysisPipeline(thresholds=thresholds, catalog=catalog)
    return asyncio.run(pipeline.run(audio_path, cancel_event=cancel_event, on_status=on_status))
