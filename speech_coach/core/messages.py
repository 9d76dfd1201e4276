"""Message catalogs that turn fired feedback rules into text.

WHY: The rule table decides what to say; this module decides how it
reads. Swapping the catalog restyles or localizes every message without
touching the analysis.

HOW: A catalog maps a message key to either a str.format template or a
callable taking the item's params. render() looks up every item, formats
it, and sorts it into the feedback or recommendation list.
PLAIN_MESSAGES is the undecorated English text; DEFAULT_MESSAGES adds the
emoji markers the mobile app shows.

RULES:
- Every key emitted by core.feedback.evaluate() must exist in a catalog
- An unknown key raises KeyError (no silent skipping)
- Rendering never reorders items
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any, Union

from speech_coach.core.ir import FeedbackItem, FeedbackReport, ItemKind

Template = Union[str, Callable[..., str]]
MessageCatalog = Mapping[str, Template]


def _term_list(terms: Iterable[tuple[str, int]]) -> str:
    return ", ".join('"{}" ({})'.format(word, count) for word, count in terms)


def _quoted(words: Iterable[str]) -> str:
    return ", ".join('"{}"'.format(w) for w in words)


PLAIN_MESSAGES: dict[str, Template] = {
    # Fillers
    "filler_rate_low": "Great job keeping filler words to a minimum ({rate:.1f} per minute).",
    "filler_rate_moderate": "You used some filler words ({rate:.1f} per minute). Try to be more mindful of them.",
    "filler_rate_high": "High use of filler words ({rate:.1f} per minute). This can distract your listeners.",
    "pause_instead_of_filler": "Replace filler words with a short, silent pause.",
    "slow_down_for_fillers": "Slow down and take a breath when you feel a filler word coming.",
    "review_recordings_for_fillers": "Listen back to your recordings and note where the fillers cluster.",
    "top_filler": 'Your most frequent filler word was "{word}" ({count} times).',
    "replace_top_filler": 'Catch yourself before saying "{word}" and pause instead.',
    "vocabulary_fillers": lambda terms: "Common filler terms detected: {}.".format(_term_list(terms)),
    "vocabulary_fillers_awareness": "Watch out for habitual words like these that add little meaning.",
    # Pace
    "pace_slow": "Your pace is too slow ({wpm} words per minute).",
    "pace_fast": "Your pace is too fast ({wpm} words per minute).",
    "pace_good": "Good pace ({wpm} words per minute). Easy to follow.",
    "speed_up": "Aim for at least {target} words per minute to keep listeners engaged.",
    "slow_down": "Aim for under {target} words per minute so listeners can keep up.",
    # Pauses
    "pauses_none": "Smooth delivery with no long pauses.",
    "pauses_found": "{count} long pause(s) detected.",
    "outline_key_points": "Outline your key points before answering to reduce long pauses.",
    "rehearse_transitions": "Rehearse transitions between ideas so the next point comes naturally.",
    # Confidence
    "confidence_high": "Clear articulation ({score}% transcription confidence).",
    "confidence_moderate": "Articulation was mostly clear ({score}% transcription confidence).",
    "confidence_low": "Some of your speech was hard to understand ({score}% transcription confidence).",
    "enunciate": "Enunciate word endings and keep your volume steady.",
    "articulation_drills": "Practice articulation drills and speak a little louder and slower.",
    # Pronunciation
    "pronunciation_flags": lambda words: "Words that may need clearer pronunciation: {}.".format(_quoted(words)),
    "practice_flagged_words": "Practice the flagged words out loud a few times.",
    "slow_down_on_hard_words": "Slow down slightly on longer or unfamiliar words.",
    # General
    "record_regularly": "Record yourself regularly to track your progress.",
    "practice_with_audience": "Practice with an audience, even a friend, to build confidence.",
}

_ICONS: dict[str, str] = {
    "filler_rate_low": "✅",
    "filler_rate_moderate": "⚠️",
    "filler_rate_high": "❌",
    "top_filler": "🔁",
    "vocabulary_fillers": "🗣️",
    "pace_slow": "🐢",
    "pace_fast": "⚡",
    "pace_good": "✅",
    "pauses_none": "✅",
    "pauses_found": "⏸️",
    "confidence_high": "✅",
    "confidence_moderate": "⚠️",
    "confidence_low": "❌",
    "pronunciation_flags": "🔤",
}


def with_icons(catalog: MessageCatalog, icons: Mapping[str, str]) -> dict[str, Template]:
    """Return a copy of ``catalog`` whose messages are prefixed with icons."""
    decorated: dict[str, Template] = {}
    for key, template in catalog.items():
        icon = icons.get(key)
        if icon is None:
            decorated[key] = template
        elif callable(template):
            decorated[key] = _prefixed(icon, template)
        else:
            decorated[key] = "{} {}".format(icon, template)
    return decorated


def _prefixed(icon: str, template: Callable[..., str]) -> Callable[..., str]:
    def _render(**params: Any) -> str:
        return "{} {}".format(icon, template(**params))
    return _render


DEFAULT_MESSAGES: dict[str, Template] = with_icons(PLAIN_MESSAGES, _ICONS)


def render_item(item: FeedbackItem, catalog: MessageCatalog) -> str:
    template = catalog[item.key]
    if callable(template):
        return template(**item.params)
    return template.format(**item.params)


def render(
    items: Iterable[FeedbackItem],
    catalog: MessageCatalog | None = None,
) -> FeedbackReport:
    """Render fired rules into a FeedbackReport, preserving rule order."""
    messages = DEFAULT_MESSAGES if catalog is None else catalog
    feedback: list[str] = []
    recommendations: list[str] = []
    for item in items:
        text = render_item(item, messages)
        if item.kind == ItemKind.RECOMMENDATION:
            recommendations.append(text)
        else:
            feedback.append(text)
    return FeedbackReport(feedback=tuple(feedback), recommendations=tuple(recommendations))
