"""AssemblyAI client package — async HTTP interface to the transcription service.

WHY: Every analysis needs a remote transcription job driven from upload
to completion. This package encapsulates all service communication
behind async client classes.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. TranscriptionJobClient
runs the upload → submit → poll workflow; ContentScorer grades answers.
Response payloads are validated and parsed into the dataclasses defined
in models.py.

RULES:
- All HTTP calls go through the clients here (no direct httpx usage elsewhere)
- Every failure surfaces as a typed exception, never a default value
"""

from speech_coach.api.client import (
    AnalysisCancelled,
    AnalysisFailure,
    NetworkError,
    TranscriptionFailed,
    TranscriptionJobClient,
    TranscriptionTimeout,
    UploadFailed,
)
from speech_coach.api.lemur import (
    ContentAnalysis,
    ContentScorer,
    ContentScoringFailed,
    parse_model_answer,
)
from speech_coach.api.models import JobStatus, TranscriptionJob

__all__ = [
    "AnalysisCancelled",
    "AnalysisFailure",
    "ContentAnalysis",
    "ContentScorer",
    "ContentScoringFailed",
    "JobStatus",
    "NetworkError",
    "TranscriptionFailed",
    "TranscriptionJob",
    "TranscriptionJobClient",
    "TranscriptionTimeout",
    "UploadFailed",
    "parse_model_answer",
]
