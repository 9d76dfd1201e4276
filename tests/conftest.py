"""Shared test fixtures for the speech_coach test suite.

WHY: Metrics, feedback, client and server tests all need word-level
transcripts and AssemblyAI-shaped payloads. Centralizing the builders
here keeps every module working from the same sample data.

HOW: Plain helper functions build Word/WordTranscript records and raw
service payloads; pytest fixtures expose the common samples.

RULES:
- Payload words use integer milliseconds, like the service
- IR words use float seconds
- ASSEMBLYAI_API_KEY is set for every test so clients can be built
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import pytest

from speech_coach.core.ir import Highlight, TimeSpan, Word, WordKind, WordTranscript


def make_word(
    text: str,
    start: float,
    end: Optional[float] = None,
    confidence: float = 0.95,
    filler: bool = False,
) -> Word:
    return Word(
        text=text,
        start=start,
        end=start + 0.3 if end is None else end,
        confidence=confidence,
        kind=WordKind.DISFLUENCY if filler else WordKind.SPOKEN,
    )


def make_transcript(
    words: Sequence[Word],
    duration: float = 60.0,
    highlights: Sequence[Highlight] = (),
) -> WordTranscript:
    return WordTranscript(
        text=" ".join(w.text for w in words),
        words=tuple(words),
        duration_seconds=duration,
        highlights=tuple(highlights),
    )


def evenly_spaced(count: int, duration: float, confidence: float = 0.95) -> List[Word]:
    """``count`` spoken words spread over ``duration`` seconds, no long gaps."""
    step = duration / count
    return [
        make_word("word{}".format(i), i * step, i * step + step * 0.8, confidence)
        for i in range(count)
    ]


SAMPLE_WORDS: List[Dict[str, Any]] = [
    {"text": "So,",        "start": 240,  "end": 480,  "confidence": 0.97},
    {"text": "um",         "start": 560,  "end": 720,  "confidence": 0.88},
    {"text": "I",          "start": 800,  "end": 880,  "confidence": 0.99},
    {"text": "think",      "start": 900,  "end": 1100, "confidence": 0.96},
    {"text": "the",        "start": 1120, "end": 1200, "confidence": 0.98},
    {"text": "answer",     "start": 1220, "end": 1600, "confidence": 0.94},
    {"text": "is",         "start": 4400, "end": 4500, "confidence": 0.97},
    {"text": "basically",  "start": 4520, "end": 5000, "confidence": 0.91},
    {"text": "Kubernetes.", "start": 5100, "end": 5900, "confidence": 0.42},
]


def completed_payload(
    job_id: str = "tr_123",
    words: Optional[List[Dict[str, Any]]] = None,
    audio_duration: Optional[float] = 6.5,
) -> Dict[str, Any]:
    words = SAMPLE_WORDS if words is None else words
    return {
        "id": job_id,
        "status": "completed",
        "text": " ".join(w["text"] for w in words),
        "words": words,
        "utterances": None,
        "audio_duration": audio_duration,
        "error": None,
        "auto_highlights_result": {
            "status": "success",
            "results": [
                {
                    "text": "the answer",
                    "count": 1,
                    "rank": 0.08,
                    "timestamps": [{"start": 1120, "end": 1600}],
                },
            ],
        },
    }


def status_payload(status: str, job_id: str = "tr_123", error: Optional[str] = None) -> Dict[str, Any]:
    return {"id": job_id, "status": status, "error": error}


@pytest.fixture(autouse=True)
def _api_key(monkeypatch):
    """Give every test a fake API key."""
    monkeypatch.setenv("ASSEMBLYAI_API_KEY", "test-key")


@pytest.fixture
def sample_payload():
    return completed_payload()


@pytest.fixture
def sample_transcript():
    """60-second answer: 120 clear spoken words, no fillers, no long pauses."""
    return make_transcript(evenly_spaced(120, 60.0), duration=60.0)


@pytest.fixture
def filler_transcript():
    """A short answer with tagged fillers, a long pause and a mumbled word."""
    words = [
        make_word("So", 0.0, 0.3),
        make_word("um", 0.4, 0.6, confidence=0.8, filler=True),
        make_word("I", 0.7, 0.8),
        make_word("think", 0.9, 1.2),
        make_word("uh", 1.3, 1.5, confidence=0.7, filler=True),
        make_word("the", 1.6, 1.7),
        make_word("answer", 1.8, 2.2),
        make_word("um", 5.2, 5.4, filler=True),
        make_word("is", 5.5, 5.6),
        make_word("like", 5.7, 5.9),
        make_word("Kubernetes", 6.0, 6.8, confidence=0.4),
    ]
    highlights = (Highlight(text="the answer", count=1, rank=0.08,
                            timestamps=(TimeSpan(1.6, 2.2),)),)
    return make_transcript(words, duration=30.0, highlights=highlights)
