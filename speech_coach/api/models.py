"""AssemblyAI request/response dataclasses and boundary schemas.

WHY: The transcription service returns loosely-typed JSON whose fields
appear and disappear with the job status and enabled features. Validating
each payload against a JSON Schema at the boundary means nothing past
this module ever sees an undefined field.

HOW: Three schemas (upload, submit, poll) are checked with jsonschema.
Typed dataclasses with from_dict() factories then carry the values.
TranscriptPayload.to_transcript() converts a completed poll response to
the WordTranscript IR (milliseconds → seconds, disfluency tagging,
highlight parsing). TranscriptionJob is the transient per-job state.

RULES:
- validate_payload() raises PayloadError with a readable message
- Word times from the service are integer milliseconds
- audio_duration is in seconds; falls back to the last word's end
- A word is a disfluency if tagged so, or its token is in DISFLUENCY_TOKENS
- status is one of: "queued", "processing", "completed", "error"
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

import jsonschema

from speech_coach.config import DISFLUENCY_TOKENS
from speech_coach.core.ir import Highlight, TimeSpan, Word, WordKind, WordTranscript
from speech_coach.core.metrics import normalize_token

# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

UPLOAD_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["upload_url"],
    "properties": {
        "upload_url": {"type": "string", "minLength": 1},
    },
}

SUBMIT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["id"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "status": {"type": "string"},
    },
}

_WORD_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["text", "start", "end", "confidence"],
    "properties": {
        "text": {"type": "string"},
        "start": {"type": "number", "minimum": 0},
        "end": {"type": "number", "minimum": 0},
        "confidence": {"type": "number", "minimum": 0, "maximum": 1},
        "type": {"type": ["string", "null"]},
    },
}

_HIGHLIGHT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["text", "count"],
    "properties": {
        "text": {"type": "string"},
        "count": {"type": "integer", "minimum": 0},
        "rank": {"type": ["number", "null"]},
        "timestamps": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "required": ["start", "end"],
                "properties": {
                    "start": {"type": "number"},
                    "end": {"type": "number"},
                },
            },
        },
    },
}

POLL_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["id", "status"],
    "properties": {
        "id": {"type": "string"},
        "status": {"enum": ["queued", "processing", "completed", "error"]},
        "text": {"type": ["string", "null"]},
        "words": {"type": ["array", "null"], "items": _WORD_SCHEMA},
        "utterances": {"type": ["array", "null"]},
        "audio_duration": {"type": ["number", "null"]},
        "error": {"type": ["string", "null"]},
        "auto_highlights_result": {
            "type": ["object", "null"],
            "properties": {
                "status": {"type": "string"},
                "results": {"type": ["array", "null"], "items": _HIGHLIGHT_SCHEMA},
            },
        },
    },
}


class PayloadError(ValueError):
    """Raised when a service response does not match its schema."""


def validate_payload(data: Any, schema: dict[str, Any], what: str) -> None:
    """Validate a decoded JSON response against ``schema``.

    Args:
        data: The decoded JSON body.
        schema: One of UPLOAD_SCHEMA, SUBMIT_SCHEMA, POLL_SCHEMA.
        what: Short name of the response, used in the error message.
    """
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        location = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise PayloadError(
            "Malformed {} response at {}: {}".format(what, location, exc.message)
        ) from exc


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


@dataclass
class UploadResponse:
    upload_url: str

    @classmethod
    def from_dict(cls, data: dict) -> UploadResponse:
        validate_payload(data, UPLOAD_SCHEMA, "upload")
        return cls(upload_url=data["upload_url"])


@dataclass
class SubmitResponse:
    id: str

    @classmethod
    def from_dict(cls, data: dict) -> SubmitResponse:
        validate_payload(data, SUBMIT_SCHEMA, "transcript submission")
        return cls(id=data["id"])


@dataclass
class TranscriptPayload:
    """A validated GET /transcript/{id} response.

    WHY: The polling loop needs the status on every poll, and the full
    word list only once the job completes. Holding both in one typed
    object keeps the conversion to the IR in a single place.

    RULES:
    - words/highlights/utterances are empty until status is "completed"
    - error is only meaningful when status is "error"
    """

    id: str
    status: str
    text: str = ""
    words: list[dict] = field(default_factory=list)
    highlights: list[dict] = field(default_factory=list)
    utterances: list[Any] = field(default_factory=list)
    audio_duration: float | None = None
    error: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> TranscriptPayload:
        validate_payload(data, POLL_SCHEMA, "transcript status")
        highlights_result = data.get("auto_highlights_result") or {}
        return cls(
            id=data["id"],
            status=data["status"],
            text=data.get("text") or "",
            words=list(data.get("words") or []),
            highlights=list(highlights_result.get("results") or []),
            utterances=list(data.get("utterances") or []),
            audio_duration=data.get("audio_duration"),
            error=data.get("error"),
        )

    def to_transcript(self) -> WordTranscript:
        """Convert a completed payload to the WordTranscript IR.

        RULES:
        - Words are sorted by start time (stable) to guarantee ordering
        - Raises PayloadError when no positive duration can be determined
        """
        words = sorted((_parse_word(w) for w in self.words), key=lambda w: w.start)

        duration = float(self.audio_duration or 0.0)
        if duration <= 0 and words:
            duration = max(w.end for w in words)
        if duration <= 0:
            raise PayloadError(
                "Completed transcript {} has no usable audio duration".format(self.id)
            )

        return WordTranscript(
            text=self.text,
            words=tuple(words),
            duration_seconds=duration,
            highlights=tuple(_parse_highlight(h) for h in self.highlights),
            utterances=tuple(self.utterances),
        )


def _parse_word(data: dict) -> Word:
    tagged = data.get("type") == WordKind.DISFLUENCY.value
    kind = (
        WordKind.DISFLUENCY
        if tagged or normalize_token(data["text"]) in DISFLUENCY_TOKENS
        else WordKind.SPOKEN
    )
    start = data["start"] / 1000.0
    end = max(data["end"] / 1000.0, start)
    return Word(
        text=data["text"],
        start=start,
        end=end,
        confidence=float(data["confidence"]),
        kind=kind,
    )


def _parse_highlight(data: dict) -> Highlight:
    spans = tuple(
        TimeSpan(start=t["start"] / 1000.0, end=t["end"] / 1000.0)
        for t in data.get("timestamps") or []
    )
    return Highlight(
        text=data["text"],
        count=data["count"],
        rank=data.get("rank"),
        timestamps=spans,
    )


# ---------------------------------------------------------------------------
# Job state
# ---------------------------------------------------------------------------


class JobStatus(str, enum.Enum):
    """Lifecycle of a remote transcription job.

    RULES:
    - submitted: created locally after POST /transcript
    - queued / processing: non-terminal, re-polled
    - completed / error: terminal
    """

    SUBMITTED = "submitted"
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


@dataclass
class TranscriptionJob:
    """Transient state of one remote transcription job.

    Created by TranscriptionJobClient.submit(), mutated only by poll
    responses, discarded when the pipeline call returns.
    """

    id: str
    audio_url: str
    status: JobStatus = JobStatus.SUBMITTED
    poll_count: int = 0
    transcript: WordTranscript | None = None
    error_detail: str | None = None
