"""Core analysis modules: IR, metrics, feedback rules, and the pipeline.

WHY: The core package holds the algorithmic heart of the coach: the IR
dataclasses, the deterministic metrics analyzer and the feedback rule
table. Everything here except pipeline.py is pure and free of I/O.

HOW: ir.py defines the data structures, metrics.py derives SpeechMetrics
from a WordTranscript, feedback.py decides which coaching rules fire,
messages.py renders them, pipeline.py wires transcription to analysis,
and session.py aggregates answers across an interview. The session types
are re-exported here for callers driving a mock interview.

RULES:
- IR dataclasses are the contract; other packages depend on their fields
- metrics.py and feedback.py never perform I/O
- Wording lives only in messages.py
"""

from speech_coach.core.session import InterviewSession, QuestionResponse

__all__ = ["InterviewSession", "QuestionResponse"]
