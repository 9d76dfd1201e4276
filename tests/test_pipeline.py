"""Tests for the analysis pipeline composition.

HOW: The pipeline accepts a client factory, so these tests inject a fake
transcription client and never touch HTTP.
"""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path

import pytest

from speech_coach.api.client import AnalysisCancelled, NetworkError, TranscriptionFailed
from conftest import completed_payload
from speech_coach.api.models import TranscriptPayload
from speech_coach.config import AnalysisThresholds
from speech_coach.core.messages import PLAIN_MESSAGES
from speech_coach.core.pipeline import AnalysisPipeline, analyze_transcript


class FakeClient:

    def __init__(self, transcript=None, error=None):
        self.transcript = transcript
        self.error = error
        self.calls = []
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.closed = True

    async def transcribe(self, audio_path, cancel_event=None, on_status=None):
        self.calls.append((audio_path, cancel_event))
        if self.error is not None:
            raise self.error
        if on_status:
            on_status("Transcription complete.")
        return self.transcript


class TestAnalysisPipeline:

    def test_run_returns_complete_result(self, sample_transcript):
        client = FakeClient(transcript=sample_transcript)
        pipeline = AnalysisPipeline(client_factory=lambda: client, catalog=PLAIN_MESSAGES)

        result = asyncio.run(pipeline.run(Path("answer1.webm")))

        assert result.transcript is sample_transcript
        assert result.metrics.speaking_pace == 120
        assert result.feedback
        assert result.recommendations[-2:] == (
            "Record yourself regularly to track your progress.",
            "Practice with an audience, even a friend, to build confidence.",
        )
        assert client.closed

    def test_cancel_event_reaches_client(self, sample_transcript):
        client = FakeClient(transcript=sample_transcript)
        cancel = threading.Event()
        pipeline = AnalysisPipeline(client_factory=lambda: client)

        asyncio.run(pipeline.run(Path("answer1.webm"), cancel_event=cancel))

        assert client.calls == [(Path("answer1.webm"), cancel)]

    @pytest.mark.parametrize("error", [
        TranscriptionFailed("Audio file is empty"),
        NetworkError("connection refused"),
        AnalysisCancelled("cancelled"),
    ])
    def test_failures_propagate_unchanged(self, error):
        pipeline = AnalysisPipeline(client_factory=lambda: FakeClient(error=error))
        with pytest.raises(type(error)) as exc_info:
            asyncio.run(pipeline.run(Path("answer1.webm")))
        assert exc_info.value is error

    def test_status_messages(self, sample_transcript):
        messages = []
        pipeline = AnalysisPipeline(client_factory=lambda: FakeClient(transcript=sample_transcript))
        asyncio.run(pipeline.run(Path("answer1.webm"), on_status=messages.append))
        assert messages == ["Transcription complete.", "Analyzing speech..."]

    def test_thresholds_apply(self, sample_transcript):
        strict = AnalysisThresholds(slow_pace_wpm=150)
        pipeline = AnalysisPipeline(
            client_factory=lambda: FakeClient(transcript=sample_transcript),
            thresholds=strict,
            catalog=PLAIN_MESSAGES,
        )
        result = asyncio.run(pipeline.run(Path("answer1.webm")))
        assert "Your pace is too slow (120 words per minute)." in result.feedback

    def test_concurrent_runs_are_independent(self, sample_transcript, filler_transcript):
        pipeline = AnalysisPipeline(client_factory=lambda: FakeClient(transcript=sample_transcript))
        other = AnalysisPipeline(client_factory=lambda: FakeClient(transcript=filler_transcript))

        async def _both():
            return await asyncio.gather(
                pipeline.run(Path("a.webm")),
                other.run(Path("b.webm")),
            )

        first, second = asyncio.run(_both())
        assert first.metrics.filler_count == 0
        assert second.metrics.filler_count == 3


class TestAnalyzeTranscript:

    def test_to_dict_shape(self, filler_transcript):
        data = analyze_transcript(filler_transcript).to_dict()
        assert set(data) == {"transcript", "metrics", "feedback", "recommendations"}
        assert data["transcript"]["words"][1] == {
            "text": "um", "start": 0.4, "end": 0.6, "confidence": 0.8, "kind": "disfluency",
        }

    def test_punctuated_fillers_counted_together(self):
        words = [
            {"text": t, "start": i * 500, "end": i * 500 + 300, "confidence": 0.9}
            for i, t in enumerate(["Um,", "I", "um,", "uh", "um.", "uh"])
        ]
        transcript = TranscriptPayload.from_dict(
            completed_payload(words=words, audio_duration=60.0)
        ).to_transcript()

        result = analyze_transcript(transcript, catalog=PLAIN_MESSAGES)

        assert result.metrics.top_fillers[0].word == "um"
        assert result.metrics.top_fillers[0].count == 3
        assert 'Your most frequent filler word was "um" (3 times).' in result.feedback
