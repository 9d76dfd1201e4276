"""Speech Coach: speaking-performance analysis for recorded answers.

WHY: A raw speech-to-text transcript says what was said, not how well.
This package turns word-level transcripts into pace, filler, pause and
articulation metrics, and those metrics into coaching feedback.

HOW: Three-stage pipeline. Ingest (async transcription job client),
analyze (pure metrics over the transcript IR), advise (rule table plus
message catalog). Each stage is independently testable.

RULES:
- The metrics analyzer and feedback rules are pure and deterministic
- An analysis either returns a complete result or raises a typed failure
- Presentation (formatters, CLI, HTTP) consumes the IR, never raw JSON
"""

__version__ = "0.1.0"
