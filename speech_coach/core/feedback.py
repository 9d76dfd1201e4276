"""Rule-based feedback decisions over SpeechMetrics.

WHY: Coaching feedback is a fixed rule table, not a generative model:
identical metrics must always yield identical advice. Front ends also
need to restyle or localize the wording, so deciding WHICH rule fired is
kept apart from HOW its message reads (see core.messages).

HOW: evaluate() walks the rules in a fixed order and appends one
FeedbackItem per statement or recommendation. Each item carries a message
key plus the numbers the message needs. generate_feedback() renders the
items through a message catalog into a FeedbackReport.

RULES:
- Rules are independent; each appends its own items
- Order: fillers, top filler, vocabulary fillers, pace, pauses,
  confidence, pronunciation, general
- The two general recommendations are always last
- Filler-rate and pace bands are inclusive in the middle
  (2.0 and 5.0 per minute are "moderate"; 120 and 200 wpm are "good")
"""

from __future__ import annotations

from typing import Any

from speech_coach.config import DEFAULT_THRESHOLDS, AnalysisThresholds
from speech_coach.core.ir import (
    Category,
    FeedbackItem,
    FeedbackReport,
    ItemKind,
    SpeechMetrics,
)
from speech_coach.core.messages import MessageCatalog, render


def _say(category: Category, key: str, **params: Any) -> FeedbackItem:
    return FeedbackItem(category, key, ItemKind.FEEDBACK, params)


def _advise(category: Category, key: str, **params: Any) -> FeedbackItem:
    return FeedbackItem(category, key, ItemKind.RECOMMENDATION, params)


def evaluate(
    metrics: SpeechMetrics,
    thresholds: AnalysisThresholds | None = None,
) -> list[FeedbackItem]:
    """Apply the feedback rule table to a set of metrics.

    Args:
        metrics: Output of core.metrics.analyze().
        thresholds: Overrides for the pace/filler/confidence bands.

    Returns:
        Fired rules in presentation order.
    """
    limits = thresholds or DEFAULT_THRESHOLDS
    items: list[FeedbackItem] = []
    items.extend(_filler_rate_rules(metrics, limits))
    items.extend(_top_filler_rules(metrics))
    items.extend(_vocabulary_rules(metrics))
    items.extend(_pace_rules(metrics, limits))
    items.extend(_pause_rules(metrics))
    items.extend(_confidence_rules(metrics, limits))
    items.extend(_pronunciation_rules(metrics))
    items.append(_advise(Category.GENERAL, "record_regularly"))
    items.append(_advise(Category.GENERAL, "practice_with_audience"))
    return items


def generate_feedback(
    metrics: SpeechMetrics,
    thresholds: AnalysisThresholds | None = None,
    catalog: MessageCatalog | None = None,
) -> FeedbackReport:
    """Evaluate the rules and render them into ordered text lists."""
    return render(evaluate(metrics, thresholds), catalog)


# ---------------------------------------------------------------------------
# Individual rules
# ---------------------------------------------------------------------------


def _filler_rate_rules(metrics: SpeechMetrics, limits: AnalysisThresholds) -> list[FeedbackItem]:
    rate = metrics.filler_rate
    if rate < limits.low_filler_rate:
        return [_say(Category.FILLERS, "filler_rate_low", rate=rate)]
    if rate <= limits.high_filler_rate:
        return [
            _say(Category.FILLERS, "filler_rate_moderate", rate=rate),
            _advise(Category.FILLERS, "pause_instead_of_filler"),
        ]
    return [
        _say(Category.FILLERS, "filler_rate_high", rate=rate),
        _advise(Category.FILLERS, "slow_down_for_fillers"),
        _advise(Category.FILLERS, "review_recordings_for_fillers"),
    ]


def _top_filler_rules(metrics: SpeechMetrics) -> list[FeedbackItem]:
    if not metrics.top_fillers:
        return []
    top = metrics.top_fillers[0]
    return [
        _say(Category.FILLERS, "top_filler", word=top.word, count=top.count),
        _advise(Category.FILLERS, "replace_top_filler", word=top.word),
    ]


def _vocabulary_rules(metrics: SpeechMetrics) -> list[FeedbackItem]:
    used = [(f.word, f.count) for f in metrics.vocabulary_fillers if f.count > 0]
    if not used:
        return []
    return [
        _say(Category.FILLERS, "vocabulary_fillers", terms=used),
        _advise(Category.FILLERS, "vocabulary_fillers_awareness"),
    ]


def _pace_rules(metrics: SpeechMetrics, limits: AnalysisThresholds) -> list[FeedbackItem]:
    wpm = metrics.speaking_pace
    if wpm < limits.slow_pace_wpm:
        return [
            _say(Category.PACE, "pace_slow", wpm=wpm),
            _advise(Category.PACE, "speed_up", target=limits.slow_pace_wpm),
        ]
    if wpm > limits.fast_pace_wpm:
        return [
            _say(Category.PACE, "pace_fast", wpm=wpm),
            _advise(Category.PACE, "slow_down", target=limits.fast_pace_wpm),
        ]
    return [_say(Category.PACE, "pace_good", wpm=wpm)]


def _pause_rules(metrics: SpeechMetrics) -> list[FeedbackItem]:
    count = metrics.pause_count
    if count == 0:
        return [_say(Category.PAUSES, "pauses_none")]
    items = [_say(Category.PAUSES, "pauses_found", count=count)]
    if count > 2 * metrics.duration_minutes:
        items.append(_advise(Category.PAUSES, "outline_key_points"))
        items.append(_advise(Category.PAUSES, "rehearse_transitions"))
    return items


def _confidence_rules(metrics: SpeechMetrics, limits: AnalysisThresholds) -> list[FeedbackItem]:
    mean = metrics.mean_confidence
    score = metrics.confidence_score
    if mean > limits.high_confidence:
        return [_say(Category.CONFIDENCE, "confidence_high", score=score)]
    if mean >= limits.low_confidence:
        return [
            _say(Category.CONFIDENCE, "confidence_moderate", score=score),
            _advise(Category.CONFIDENCE, "enunciate"),
        ]
    return [
        _say(Category.CONFIDENCE, "confidence_low", score=score),
        _advise(Category.CONFIDENCE, "articulation_drills"),
    ]


def _pronunciation_rules(metrics: SpeechMetrics) -> list[FeedbackItem]:
    if not metrics.pronunciation_flags:
        return []
    seen: set[str] = set()
    unique: list[str] = []
    for flag in metrics.pronunciation_flags:
        key = flag.word.strip().lower()
        if key not in seen:
            seen.add(key)
            unique.append(flag.word.strip())
    return [
        _say(Category.PRONUNCIATION, "pronunciation_flags", words=unique),
        _advise(Category.PRONUNCIATION, "practice_flagged_words"),
        _advise(Category.PRONUNCIATION, "slow_down_on_hard_words"),
    ]
