"""Speech metrics analyzer: WordTranscript → SpeechMetrics.

WHY: Filler usage, pace, pauses, articulation and repetition are the
quantitative backbone of the coaching feedback. They must be derived the
same way every time, from the transcript alone.

HOW: A single pure function, analyze(), runs nine steps in order:
  1. partition words into fillers and spoken words
  2. filler rate per minute
  3. top-N filler frequency table
  4. fixed-vocabulary filler counts over all words
  5. pronunciation flags (low-confidence spoken words)
  6. long pauses between adjacent words
  7. speaking pace
  8. mean spoken-word confidence
  9. repeated spoken words

RULES:
- No I/O, no randomness, no mutation of the input
- A transcript with no words yields zero rates and empty tables
- Tokens are compared after lower-casing and stripping punctuation
- Ties in frequency tables keep first-seen order
- Safe to call from any number of threads concurrently
"""

from __future__ import annotations

import string
from collections import Counter
from collections.abc import Iterable, Sequence

from speech_coach.config import DEFAULT_THRESHOLDS, FILLER_VOCABULARY, AnalysisThresholds
from speech_coach.core.ir import (
    FillerCount,
    Pause,
    PronunciationFlag,
    RepeatedWord,
    SpeechMetrics,
    Word,
    WordTranscript,
)

_STRIP_CHARS = string.punctuation + string.whitespace


def normalize_token(text: str) -> str:
    """Lower-case a word and strip surrounding whitespace and punctuation.

    >>> normalize_token(" Like, ")
    'like'
    """
    return text.strip(_STRIP_CHARS).lower()


def _round_half_up(value: float) -> int:
    return int(value + 0.5) if value > 0 else 0


def _per_minute(count: int, duration_seconds: float) -> float:
    if duration_seconds <= 0:
        return 0.0
    return count / (duration_seconds / 60.0)


def _ranked(counter: Counter) -> list[tuple[str, int]]:
    # sorted() is stable, so equal counts stay in insertion (first-seen) order
    return sorted(counter.items(), key=lambda item: item[1], reverse=True)


def analyze(
    transcript: WordTranscript,
    thresholds: AnalysisThresholds | None = None,
) -> SpeechMetrics:
    """Derive speaking-performance metrics from a word-level transcript.

    Args:
        transcript: The completed, normalized transcription.
        thresholds: Overrides for the pause/confidence/top-N thresholds.

    Returns:
        SpeechMetrics fully determined by the transcript and thresholds.
    """
    limits = thresholds or DEFAULT_THRESHOLDS
    words = transcript.words
    duration = transcript.duration_seconds

    # Step 1: partition
    fillers = [w for w in words if w.is_filler]
    spoken = [w for w in words if not w.is_filler]

    # Step 2: filler rate
    filler_rate = round(_per_minute(len(fillers), duration), 1)

    # Step 8: mean confidence, unrounded for the feedback bands
    mean_confidence = _mean_confidence(spoken)

    return SpeechMetrics(
        duration_seconds=duration,
        total_words=len(words),
        spoken_word_count=len(spoken),
        filler_count=len(fillers),
        filler_rate=filler_rate,
        speaking_pace=_round_half_up(_per_minute(len(spoken), duration)),
        confidence_score=_round_half_up(mean_confidence * 100),
        top_fillers=top_fillers(fillers, limits.top_fillers),
        vocabulary_fillers=vocabulary_fillers(words),
        pronunciation_flags=pronunciation_flags(spoken, limits.low_confidence),
        long_pauses=long_pauses(words, limits.pause_seconds),
        repeated_words=repeated_words(spoken),
        highlights=transcript.highlights,
        confidence_mean=mean_confidence,
    )


def top_fillers(fillers: Iterable[Word], limit: int = 10) -> tuple[FillerCount, ...]:
    """Most frequent filler texts, descending by count, at most ``limit``."""
    counts: Counter = Counter()
    for word in fillers:
        token = normalize_token(word.text)
        if token:
            counts[token] += 1
    return tuple(FillerCount(word=w, count=c) for w, c in _ranked(counts)[:limit])


def vocabulary_fillers(
    words: Iterable[Word],
    vocabulary: Sequence[str] = FILLER_VOCABULARY,
) -> tuple[FillerCount, ...]:
    """Count each vocabulary term across all words, tagged as filler or not.

    WHY: The service's disfluency tagging misses habitual fillers such as
    "like" or "basically" that are also real words.

    RULES:
    - One entry per vocabulary term, in vocabulary order, zeros included
    - Exact match against the normalized token (case-insensitive)
    """
    counts = dict.fromkeys(vocabulary, 0)
    for word in words:
        token = normalize_token(word.text)
        if token in counts:
            counts[token] += 1
    return tuple(FillerCount(word=term, count=count) for term, count in counts.items())


def pronunciation_flags(
    spoken: Iterable[Word],
    threshold: float = 0.6,
) -> tuple[PronunciationFlag, ...]:
    return tuple(
        PronunciationFlag(word=w.text, confidence=w.confidence)
        for w in spoken
        if w.confidence < threshold
    )


def long_pauses(words: Sequence[Word], threshold: float = 2.5) -> tuple[Pause, ...]:
    """Gaps between adjacent words strictly longer than ``threshold`` seconds.

    Fillers take part: an "um" in the middle of a silence breaks it in two.
    """
    pauses: list[Pause] = []
    for previous, current in zip(words, words[1:]):
        gap = current.start - previous.end
        if gap > threshold:
            pauses.append(Pause(
                start=previous.end,
                end=current.start,
                duration=round(gap, 3),
            ))
    return tuple(pauses)


def _mean_confidence(spoken: Sequence[Word]) -> float:
    if not spoken:
        return 0.0
    return sum(w.confidence for w in spoken) / len(spoken)


def repeated_words(spoken: Iterable[Word]) -> tuple[RepeatedWord, ...]:
    """Spoken words longer than one character that occur more than once."""
    counts: Counter = Counter()
    for word in spoken:
        token = normalize_token(word.text)
        if len(token) > 1:
            counts[token] += 1
    return tuple(
        RepeatedWord(word=w, count=c) for w, c in _ranked(counts) if c > 1
    )
