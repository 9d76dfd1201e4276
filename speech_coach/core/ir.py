"""Intermediate representation dataclasses for transcripts and analysis results.

WHY: The transcription service returns loosely-typed JSON; the metrics
analyzer, feedback generator, formatters and HTTP API all need the same
well-typed records. The IR is the stable contract between ingest,
analysis and presentation.

HOW: Frozen dataclasses with tuple sequences, so a transcript or a
metrics object can be shared between concurrent callers without copying:
  Word / Highlight / WordTranscript   — the normalized transcription
  FillerCount / PronunciationFlag /
  Pause / RepeatedWord                — derived metric records
  SpeechMetrics                       — everything analyze() derives
  FeedbackItem                        — one fired feedback rule
  FeedbackReport / AnalysisResult     — what the pipeline hands back

RULES:
- All times are float seconds (converted from service milliseconds)
- Confidence is a float in [0, 1]; confidence_score is an int 0–100
- Records are never mutated after construction
- to_dict() output is JSON-serializable
"""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any


class WordKind(str, enum.Enum):
    """Whether a word carries meaning or is a speech habit."""

    SPOKEN = "spoken"
    DISFLUENCY = "disfluency"


@dataclass(frozen=True)
class Word:
    """A single transcribed word with timing and confidence.

    RULES:
    - start <= end, both in seconds from the start of the audio
    - kind is DISFLUENCY for fillers ("um", "uh"), SPOKEN otherwise
    """

    text: str
    start: float
    end: float
    confidence: float
    kind: WordKind = WordKind.SPOKEN

    @property
    def is_filler(self) -> bool:
        return self.kind == WordKind.DISFLUENCY


@dataclass(frozen=True)
class TimeSpan:
    start: float
    end: float


@dataclass(frozen=True)
class Highlight:
    """A phrase the service judged notable, with how often it occurred."""

    text: str
    count: int
    rank: float | None = None
    timestamps: tuple[TimeSpan, ...] = ()


@dataclass(frozen=True)
class WordTranscript:
    """The complete normalized transcription of one recording.

    WHY: Everything downstream of the transcription service works from
    this one record; nothing else from the service response survives.

    RULES:
    - words are in chronological order (non-decreasing start)
    - duration_seconds > 0 and no word starts after it
    - utterances are passed through untouched and never interpreted
    """

    text: str
    words: tuple[Word, ...]
    duration_seconds: float
    highlights: tuple[Highlight, ...] = ()
    utterances: tuple[Any, ...] = ()

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60.0


# ---------------------------------------------------------------------------
# Derived metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FillerCount:
    word: str
    count: int


@dataclass(frozen=True)
class PronunciationFlag:
    word: str
    confidence: float


@dataclass(frozen=True)
class Pause:
    """Silence between two consecutive words, longer than the pause threshold."""

    start: float
    end: float
    duration: float


@dataclass(frozen=True)
class RepeatedWord:
    word: str
    count: int


@dataclass(frozen=True)
class SpeechMetrics:
    """Quantitative speaking-performance metrics for one transcript.

    WHY: The feedback rules, the report formatters and the HTTP API all
    read the same numbers. Computing them once into an immutable record
    keeps them consistent.

    HOW: Built by core.metrics.analyze(); fully determined by the input
    WordTranscript and the thresholds used.

    RULES:
    - filler_rate: fillers per minute, one decimal place
    - speaking_pace: spoken (non-filler) words per minute, integer
    - confidence_score: mean spoken-word confidence as an int 0–100
    - confidence_mean: the same mean unrounded, 0–1 (None when built by hand)
    - top_fillers: at most N entries, descending count, first-seen ties
    - vocabulary_fillers: one entry per vocabulary term, zeros included
    - long_pauses: chronological
    - repeated_words: count > 1, descending count
    - highlights: the transcript's highlights, passed through
    """

    duration_seconds: float
    total_words: int
    spoken_word_count: int
    filler_count: int
    filler_rate: float
    speaking_pace: int
    confidence_score: int
    top_fillers: tuple[FillerCount, ...] = ()
    vocabulary_fillers: tuple[FillerCount, ...] = ()
    pronunciation_flags: tuple[PronunciationFlag, ...] = ()
    long_pauses: tuple[Pause, ...] = ()
    repeated_words: tuple[RepeatedWord, ...] = ()
    highlights: tuple[Highlight, ...] = ()
    confidence_mean: float | None = None

    @property
    def pause_count(self) -> int:
        return len(self.long_pauses)

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60.0

    @property
    def mean_confidence(self) -> float:
        """Mean confidence as a 0–1 fraction, for threshold comparisons.

        Uses the unrounded mean when analyze() recorded one, so a mean of
        0.8049 stays above 0.8 even though confidence_score reads 80.
        """
        if self.confidence_mean is not None:
            return self.confidence_mean
        return self.confidence_score / 100.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------


class ItemKind(str, enum.Enum):
    FEEDBACK = "feedback"
    RECOMMENDATION = "recommendation"


class Category(str, enum.Enum):
    FILLERS = "fillers"
    PACE = "pace"
    PAUSES = "pauses"
    CONFIDENCE = "confidence"
    PRONUNCIATION = "pronunciation"
    GENERAL = "general"


@dataclass(frozen=True)
class FeedbackItem:
    """One fired feedback rule: which message to show, and with which values.

    RULES:
    - key identifies the message in a catalog (e.g. "pace_slow")
    - params hold raw values; formatting belongs to the catalog
    """

    category: Category
    key: str
    kind: ItemKind
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FeedbackReport:
    """Ordered coaching statements and recommendations."""

    feedback: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalysisResult:
    """Everything the pipeline returns for one recording.

    RULES:
    - Only ever built from a completed transcript (no partial results)
    - Owned by the caller; the pipeline keeps no reference to it
    """

    transcript: WordTranscript
    metrics: SpeechMetrics
    feedback: tuple[str, ...] = field(default_factory=tuple)
    recommendations: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        transcript = self.transcript
        return {
            "transcript": {
                "text": transcript.text,
                "duration_seconds": transcript.duration_seconds,
                "words": [
                    {
                        "text": w.text,
                        "start": w.start,
                        "end": w.end,
                        "confidence": w.confidence,
                        "kind": w.kind.value,
                    }
                    for w in transcript.words
                ],
            },
            "metrics": self.metrics.to_dict(),
            "feedback": list(self.feedback),
            "recommendations": list(self.recommendations),
        }
