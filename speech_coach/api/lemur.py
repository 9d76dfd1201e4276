"""Content-scoring client for interview answers (AssemblyAI LeMUR tasks).

WHY: Speech metrics say how an answer sounded; the interview flow also
needs to know how good the answer was. The content scorer asks an LLM to
grade a transcript against its question and returns typed scores.

HOW: ContentScorer posts a grading prompt plus the transcript text to the
LeMUR task endpoint and parses the JSON object embedded in the model's
answer into a ContentAnalysis.

RULES:
- Only the transcript text is needed from the speech analysis
- Scores are integers clamped to 0–100
- Any failure raises ContentScoringFailed; there are no fallback scores
- Use as an async context manager, like TranscriptionJobClient
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

import httpx

from speech_coach.config import LEMUR_BASE_URL, LEMUR_MODEL, load_api_key

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

SCORING_PROMPT = """Analyze this {domain} interview response for a {experience_level} position.
Question: {question}

Evaluate the response in the transcript on:
- Relevance to question (0-100)
- Structure/organization (0-100)
- Clarity of communication (0-100)
- Completeness of answer (0-100)
- Overall score (weighted average)

Return only a JSON object with the keys relevanceScore, structureScore,
clarityScore, completenessScore, overallScore, strengths (3 items),
improvements (3 items), detailedFeedback (one paragraph) and
followupQuestions (2 items)."""


class ContentScoringFailed(Exception):
    """Raised when the content scorer cannot produce a usable analysis."""


def _score(data: dict, key: str) -> int:
    value = data.get(key, 0)
    try:
        return max(0, min(100, int(round(float(value)))))
    except (TypeError, ValueError):
        raise ContentScoringFailed("Score {!r} is not a number: {!r}".format(key, value))


def _strings(data: dict, key: str) -> list[str]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ContentScoringFailed("Field {!r} is not a list".format(key))
    return [str(v) for v in value]


@dataclass
class ContentAnalysis:
    """Scores and written feedback for the content of one answer."""

    relevance_score: int
    structure_score: int
    clarity_score: int
    completeness_score: int
    overall_score: int
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    detailed_feedback: str = ""
    followup_questions: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> ContentAnalysis:
        """Parse the model's camelCase JSON answer."""
        return cls(
            relevance_score=_score(data, "relevanceScore"),
            structure_score=_score(data, "structureScore"),
            clarity_score=_score(data, "clarityScore"),
            completeness_score=_score(data, "completenessScore"),
            overall_score=_score(data, "overallScore"),
            strengths=_strings(data, "strengths"),
            improvements=_strings(data, "improvements"),
            detailed_feedback=str(data.get("detailedFeedback") or ""),
            followup_questions=_strings(data, "followupQuestions"),
        )


def parse_model_answer(answer: str) -> ContentAnalysis:
    """Extract and parse the JSON object from a free-text model answer."""
    match = _JSON_OBJECT.search(answer or "")
    if match is None:
        raise ContentScoringFailed("Model answer contains no JSON object")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ContentScoringFailed("Model answer is not valid JSON: {}".format(exc)) from exc
    if not isinstance(data, dict):
        raise ContentScoringFailed("Model answer is not a JSON object")
    return ContentAnalysis.from_dict(data)


class ContentScorer:
    """Async client grading interview answers with a LeMUR task.

    RULES:
    - Use as: async with ContentScorer() as scorer: ...
    - api_key defaults to load_api_key() from .env
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or LEMUR_BASE_URL).rstrip("/")
        self._model = model or LEMUR_MODEL
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ContentScorer:
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

    async def score_response(
        self,
        question: str,
        transcript_text: str,
        domain: str,
        experience_level: str,
    ) -> ContentAnalysis:
        """Grade one answer.

        Args:
            question: The interview question that was asked.
            transcript_text: AnalysisResult.transcript.text for the answer.
            domain: Job domain, e.g. "Data Science".
            experience_level: e.g. "Mid Level (2-5 years)".

        Returns:
            The parsed ContentAnalysis.
        """
        if self._client is None:
            raise RuntimeError("ContentScorer must be used as an async context manager")

        body: dict[str, Any] = {
            "prompt": SCORING_PROMPT.format(
                domain=domain,
                experience_level=experience_level,
                question=question,
            ),
            "input_text": transcript_text,
            "final_model": self._model,
        }
        try:
            resp = await self._client.post("/generate/task", json=body)
        except httpx.HTTPError as exc:
            raise ContentScoringFailed("Scoring request failed: {}".format(exc)) from exc

        if resp.status_code != 200:
            raise ContentScoringFailed(
                "Scoring request returned HTTP {}: {}".format(resp.status_code, resp.text)
            )

        try:
            answer = resp.json()["response"]
        except (ValueError, KeyError, TypeError) as exc:
            raise ContentScoringFailed("Unexpected scoring response: {}".format(exc)) from exc

        analysis = parse_model_answer(answer)
        logger.info("Scored answer: overall %d", analysis.overall_score)
        return analysis
