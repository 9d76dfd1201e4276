"""Configuration constants, analysis thresholds, and .env loading.

WHY: Every tunable number in the analysis (pause length, confidence
cut-offs, pace bounds, filler-rate bands) and every API default lives
here, so a front end can override them without touching the analysis
code. Vocabularies are plain data structures, not buried in logic.

HOW: python-dotenv loads the .env file on import. API defaults are
module-level strings/ints read from the environment. Thresholds are
grouped in the frozen AnalysisThresholds dataclass; callers pass a
customised instance to analyze()/generate_feedback() to override them.

RULES:
- API key is loaded from .env via python-dotenv, never hardcoded
- All defaults can be overridden via environment variables
- AnalysisThresholds() with no arguments reproduces the reference behaviour
- Vocabularies are lower-case, single tokens
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Supported audio file extensions
# ---------------------------------------------------------------------------

SUPPORTED_AUDIO_FORMATS: set[str] = {
    ".aac", ".aiff", ".amr", ".flac", ".m4a", ".mp3",
    ".mp4", ".ogg", ".opus", ".wav", ".webm", ".3gp",
}
"""Audio extensions accepted by the CLI and HTTP API (lowercase, with dot)."""

# ---------------------------------------------------------------------------
# Filler vocabularies
# ---------------------------------------------------------------------------

FILLER_VOCABULARY: tuple[str, ...] = (
    "um", "uh", "like", "so", "actually", "basically", "literally", "right",
)
"""Common filler terms counted across ALL words, tagged or not."""

DISFLUENCY_TOKENS: frozenset[str] = frozenset({
    "um", "umm", "uh", "uhh", "uhm", "hmm", "mm", "mhm", "er", "erm", "ah",
})
"""Tokens the transcription service emits for disfluencies.

AssemblyAI keeps fillers in the word list when ``disfluencies`` is on but
does not tag them, so these tokens mark a word as a disfluency.
"""

# ---------------------------------------------------------------------------
# API configuration defaults
# ---------------------------------------------------------------------------

ASSEMBLYAI_BASE_URL = os.getenv("ASSEMBLYAI_BASE_URL", "https://api.assemblyai.com/v2")
LEMUR_BASE_URL = os.getenv("LEMUR_BASE_URL", "https://api.assemblyai.com/lemur/v3")
LEMUR_MODEL = os.getenv("LEMUR_MODEL", "anthropic/claude-3-5-sonnet")

POLL_INTERVAL_S = float(os.getenv("ASSEMBLYAI_POLL_INTERVAL", "3.0"))
MAX_POLLS = int(os.getenv("ASSEMBLYAI_MAX_POLLS", "300"))  # 300 x 3s = 15 minutes
MAX_RETRIES = int(os.getenv("ASSEMBLYAI_MAX_RETRIES", "3"))
RETRY_BACKOFF_S = 1.0


def load_api_key() -> str:
    """Load the AssemblyAI API key from the environment.

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("ASSEMBLYAI_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "AssemblyAI API key not configured. "
            "Add ASSEMBLYAI_API_KEY to the .env file in the app folder."
        )
    return key


# ---------------------------------------------------------------------------
# Analysis thresholds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisThresholds:
    """Named, overridable thresholds for metrics and feedback rules.

    WHY: The pause length, confidence cut-offs, pace bounds and filler-rate
    bands used to be literals scattered through the rules. Grouping them
    lets a caller tune one value without forking the analysis.

    RULES:
    - pause_seconds: a gap strictly longer than this is a long pause
    - low_confidence: spoken words below this are pronunciation flags,
      and a mean below it triggers the confidence warning
    - high_confidence: a mean above this earns praise
    - slow_pace_wpm / fast_pace_wpm: exclusive bounds of the good pace band
    - low_filler_rate / high_filler_rate: per-minute filler bands
    - top_fillers: size of the filler frequency table
    """

    pause_seconds: float = 2.5
    low_confidence: float = 0.6
    high_confidence: float = 0.8
    slow_pace_wpm: int = 120
    fast_pace_wpm: int = 200
    low_filler_rate: float = 2.0
    high_filler_rate: float = 5.0
    top_fillers: int = 10

    @classmethod
    def from_env(cls) -> AnalysisThresholds:
        """Build thresholds from SPEECH_* environment variables, else defaults."""
        defaults = cls()
        return cls(
            pause_seconds=float(os.getenv("SPEECH_PAUSE_SECONDS", defaults.pause_seconds)),
            low_confidence=float(os.getenv("SPEECH_LOW_CONFIDENCE", defaults.low_confidence)),
            high_confidence=float(os.getenv("SPEECH_HIGH_CONFIDENCE", defaults.high_confidence)),
            slow_pace_wpm=int(os.getenv("SPEECH_SLOW_PACE_WPM", defaults.slow_pace_wpm)),
            fast_pace_wpm=int(os.getenv("SPEECH_FAST_PACE_WPM", defaults.fast_pace_wpm)),
            low_filler_rate=float(os.getenv("SPEECH_LOW_FILLER_RATE", defaults.low_filler_rate)),
            high_filler_rate=float(os.getenv("SPEECH_HIGH_FILLER_RATE", defaults.high_filler_rate)),
            top_fillers=int(os.getenv("SPEECH_TOP_FILLERS", defaults.top_fillers)),
        )


DEFAULT_THRESHOLDS = AnalysisThresholds()
