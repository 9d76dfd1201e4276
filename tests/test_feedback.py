"""Tests for the feedback rule table and message catalogs.

WHY: Coaching advice must be deterministic and must fire at exactly the
documented band edges. These tests pin the rule order, the band
boundaries, and the separation between rule decisions and wording.

RULES:
- Rule decisions are asserted on FeedbackItem keys
- Wording is asserted through the plain catalog
"""

from __future__ import annotations

import pytest

from conftest import make_transcript, make_word
from speech_coach.core.feedback import evaluate, generate_feedback
from speech_coach.core.ir import (
    Category,
    FeedbackItem,
    FillerCount,
    ItemKind,
    Pause,
    PronunciationFlag,
    SpeechMetrics,
)
from speech_coach.core.messages import DEFAULT_MESSAGES, PLAIN_MESSAGES, render, with_icons
from speech_coach.core.pipeline import analyze_transcript
from speech_coach.config import FILLER_VOCABULARY


def metrics_with(**overrides) -> SpeechMetrics:
    """Metrics for a clean one-minute answer, with selected fields replaced."""
    values = dict(
        duration_seconds=60.0,
        total_words=150,
        spoken_word_count=150,
        filler_count=0,
        filler_rate=0.0,
        speaking_pace=150,
        confidence_score=92,
        vocabulary_fillers=tuple(FillerCount(word=t, count=0) for t in FILLER_VOCABULARY),
    )
    values.update(overrides)
    return SpeechMetrics(**values)


def keys(metrics: SpeechMetrics, **kwargs) -> list:
    return [item.key for item in evaluate(metrics, **kwargs)]


class TestEndToEnd:

    def test_clean_minute_answer(self, sample_transcript):
        result = analyze_transcript(sample_transcript, catalog=PLAIN_MESSAGES)

        assert result.metrics.speaking_pace == 120
        assert result.metrics.filler_rate == 0.0
        assert any(text.startswith("Good pace") for text in result.feedback)
        assert any(text.startswith("Clear articulation") for text in result.feedback)
        assert not any("High use of filler words" in text for text in result.feedback)

    def test_identical_metrics_identical_report(self, filler_transcript):
        first = analyze_transcript(filler_transcript)
        second = analyze_transcript(filler_transcript)
        assert first.feedback == second.feedback
        assert first.recommendations == second.recommendations

    def test_default_catalog_uses_icons(self, sample_transcript):
        result = analyze_transcript(sample_transcript)
        assert "✅ Good pace (120 words per minute). Easy to follow." in result.feedback


class TestFillerRules:

    @pytest.mark.parametrize("rate,expected", [
        (0.0, "filler_rate_low"),
        (1.9, "filler_rate_low"),
        (2.0, "filler_rate_moderate"),
        (5.0, "filler_rate_moderate"),
        (5.1, "filler_rate_high"),
    ])
    def test_rate_bands(self, rate, expected):
        assert keys(metrics_with(filler_rate=rate))[0] == expected

    def test_high_rate_adds_two_recommendations(self):
        items = evaluate(metrics_with(filler_rate=8.0))
        filler_recs = [
            i.key for i in items
            if i.category == Category.FILLERS and i.kind == ItemKind.RECOMMENDATION
        ]
        assert filler_recs == ["slow_down_for_fillers", "review_recordings_for_fillers"]

    def test_top_filler_named(self):
        metrics = metrics_with(top_fillers=(FillerCount("um", 4), FillerCount("uh", 2)))
        report = generate_feedback(metrics, catalog=PLAIN_MESSAGES)
        assert 'Your most frequent filler word was "um" (4 times).' in report.feedback
        assert 'Catch yourself before saying "um" and pause instead.' in report.recommendations

    def test_vocabulary_lists_only_used_terms(self):
        vocab = tuple(
            FillerCount(word=t, count={"like": 3, "so": 1}.get(t, 0)) for t in FILLER_VOCABULARY
        )
        report = generate_feedback(metrics_with(vocabulary_fillers=vocab), catalog=PLAIN_MESSAGES)
        assert 'Common filler terms detected: "like" (3), "so" (1).' in report.feedback

    def test_no_vocabulary_statement_when_unused(self):
        assert "vocabulary_fillers" not in keys(metrics_with())


class TestPaceRules:

    @pytest.mark.parametrize("wpm,expected", [
        (119, "pace_slow"),
        (120, "pace_good"),
        (200, "pace_good"),
        (201, "pace_fast"),
    ])
    def test_pace_bands(self, wpm, expected):
        assert expected in keys(metrics_with(speaking_pace=wpm))

    def test_slow_pace_recommends_target(self):
        report = generate_feedback(metrics_with(speaking_pace=90), catalog=PLAIN_MESSAGES)
        assert "Your pace is too slow (90 words per minute)." in report.feedback
        assert "Aim for at least 120 words per minute to keep listeners engaged." in report.recommendations


class TestPauseRules:

    def test_no_pauses(self):
        assert "pauses_none" in keys(metrics_with())

    def test_few_pauses_no_recommendation(self):
        pauses = (Pause(1.0, 4.0, 3.0), Pause(10.0, 13.0, 3.0))
        found = keys(metrics_with(long_pauses=pauses))
        assert "pauses_found" in found
        assert "outline_key_points" not in found

    def test_many_pauses_recommend_outline(self):
        pauses = tuple(Pause(i * 10.0, i * 10.0 + 3.0, 3.0) for i in range(3))
        found = keys(metrics_with(long_pauses=pauses))
        assert "outline_key_points" in found
        assert "rehearse_transitions" in found


class TestConfidenceRules:

    @pytest.mark.parametrize("score,expected", [
        (81, "confidence_high"),
        (80, "confidence_moderate"),
        (60, "confidence_moderate"),
        (59, "confidence_low"),
    ])
    def test_confidence_bands(self, score, expected):
        assert expected in keys(metrics_with(confidence_score=score))

    def test_band_uses_unrounded_mean(self):
        words = [make_word("w{}".format(i), float(i), confidence=0.8049) for i in range(4)]
        result = analyze_transcript(make_transcript(words, duration=10.0), catalog=PLAIN_MESSAGES)
        assert result.metrics.confidence_score == 80
        assert "confidence_high" in keys(result.metrics)
        assert "confidence_moderate" not in keys(result.metrics)

    def test_pronunciation_words_deduplicated(self):
        flags = (
            PronunciationFlag("Kubernetes", 0.4),
            PronunciationFlag("kubernetes", 0.5),
            PronunciationFlag("Postgres", 0.3),
        )
        report = generate_feedback(metrics_with(pronunciation_flags=flags), catalog=PLAIN_MESSAGES)
        assert (
            'Words that may need clearer pronunciation: "Kubernetes", "Postgres".'
            in report.feedback
        )


class TestOrderingAndRendering:

    def test_general_recommendations_last(self):
        items = evaluate(metrics_with(filler_rate=9.0, speaking_pace=230, confidence_score=50))
        assert [i.key for i in items[-2:]] == ["record_regularly", "practice_with_audience"]

    def test_category_order(self):
        items = evaluate(metrics_with(
            filler_rate=3.0,
            speaking_pace=100,
            long_pauses=(Pause(1.0, 4.0, 3.0),),
            confidence_score=70,
            pronunciation_flags=(PronunciationFlag("word", 0.3),),
        ))
        seen = []
        for item in items:
            if item.category not in seen:
                seen.append(item.category)
        assert seen == [
            Category.FILLERS, Category.PACE, Category.PAUSES,
            Category.CONFIDENCE, Category.PRONUNCIATION, Category.GENERAL,
        ]

    def test_every_rule_has_a_message(self):
        items = evaluate(metrics_with(
            filler_rate=9.0,
            top_fillers=(FillerCount("um", 9),),
            vocabulary_fillers=(FillerCount("um", 9),),
            long_pauses=tuple(Pause(i, i + 3.0, 3.0) for i in range(5)),
            pronunciation_flags=(PronunciationFlag("word", 0.3),),
        ))
        for item in items:
            assert item.key in PLAIN_MESSAGES
            assert item.key in DEFAULT_MESSAGES

    def test_unknown_key_raises(self):
        item = FeedbackItem(Category.GENERAL, "no_such_message", ItemKind.FEEDBACK)
        with pytest.raises(KeyError):
            render([item], PLAIN_MESSAGES)

    def test_custom_catalog(self):
        catalog = dict(PLAIN_MESSAGES, pace_good="Tempo ok: {wpm}")
        report = generate_feedback(metrics_with(), catalog=catalog)
        assert "Tempo ok: 150" in report.feedback

    def test_with_icons_wraps_callables(self):
        catalog = with_icons(PLAIN_MESSAGES, {"pronunciation_flags": "!"})
        item = FeedbackItem(
            Category.PRONUNCIATION, "pronunciation_flags", ItemKind.FEEDBACK,
            {"words": ["a"]},
        )
        report = render([item], catalog)
        assert report.feedback == ('! Words that may need clearer pronunciation: "a".',)

    def test_empty_transcript_still_gets_feedback(self):
        result = analyze_transcript(make_transcript([], duration=30.0), catalog=PLAIN_MESSAGES)
        assert result.feedback
        assert result.recommendations[-1].startswith("Practice with an audience")
