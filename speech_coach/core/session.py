"""Interview session aggregation across recorded answers.

WHY: A mock interview asks several questions. Each answer gets its own
speech analysis and content score; the session adds them up into one
overall score the user sees at the end.

HOW: InterviewSession collects QuestionResponse records in the order the
questions were answered. overall_score is the rounded mean of the
content scores.

RULES:
- One QuestionResponse per recorded answer
- overall_score is None until at least one answer is recorded
- complete() stamps completed_at and freezes the overall score
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field

from speech_coach.api.lemur import ContentAnalysis
from speech_coach.core.ir import AnalysisResult


@dataclass
class QuestionResponse:
    question_id: str
    question: str
    speech: AnalysisResult
    content: ContentAnalysis
    recorded_at: float = field(default_factory=time.time)

    @property
    def transcript_text(self) -> str:
        return self.speech.transcript.text


@dataclass
class InterviewSession:
    """A mock interview in progress or completed."""

    domain: str
    experience_level: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    responses: list[QuestionResponse] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    completed_at: float | None = None
    final_score: int | None = None

    def add_response(
        self,
        question_id: str,
        question: str,
        speech: AnalysisResult,
        content: ContentAnalysis,
    ) -> QuestionResponse:
        if self.completed_at is not None:
            raise ValueError("Session {} is already completed".format(self.id))
        response = QuestionResponse(
            question_id=question_id,
            question=question,
            speech=speech,
            content=content,
        )
        self.responses.append(response)
        return response

    @property
    def overall_score(self) -> int | None:
        if not self.responses:
            return None
        total = sum(r.content.overall_score for r in self.responses)
        return int(total / len(self.responses) + 0.5)

    def complete(self) -> int | None:
        """Mark the session finished and return its overall score."""
        self.completed_at = time.time()
        self.final_score = self.overall_score
        return self.final_score
