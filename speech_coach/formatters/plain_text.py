"""Plain text coaching report.

WHY: Someone practicing an interview answer wants to read their results,
not parse them. The text report lays out the headline numbers, the
feedback, and the recommendations as a short checklist.

HOW: A header block with pace, filler rate, confidence and pauses, then
one bulleted section each for feedback, recommendations, the most
frequent fillers, repeated words and highlights. Empty tables are
skipped.

RULES:
- Sections appear in a fixed order
- Double newline between sections
- No trailing whitespace on any line
- Output suffix: "-analysis.txt"
- Media type: "text/plain"
"""

from __future__ import annotations

from typing import List

from speech_coach.core.ir import AnalysisResult
from speech_coach.formatters.base import BaseFormatter, FormatterOutput


def _section(title: str, lines: List[str]) -> str:
    body = "\n".join("  - {}".format(line) for line in lines)
    return "{}:\n{}".format(title, body)


def _clock(seconds: float) -> str:
    minutes, secs = divmod(seconds, 60)
    return "{:d}:{:04.1f}".format(int(minutes), secs)


class PlainTextFormatter(BaseFormatter):
    """Formatter that produces a human-readable coaching report."""

    @property
    def name(self) -> str:
        return "Plain Text Report"

    def format(self, result: AnalysisResult) -> FormatterOutput:
        metrics = result.metrics
        summary = "\n".join([
            "Speech Analysis",
            "Duration:        {}".format(_clock(metrics.duration_seconds)),
            "Speaking pace:   {} words/min".format(metrics.speaking_pace),
            "Filler rate:     {:.1f}/min ({} total)".format(
                metrics.filler_rate, metrics.filler_count,
            ),
            "Confidence:      {}%".format(metrics.confidence_score),
            "Long pauses:     {}".format(metrics.pause_count),
        ])

        sections: List[str] = [summary]
        if result.feedback:
            sections.append(_section("Feedback", list(result.feedback)))
        if result.recommendations:
            sections.append(_section("Recommendations", list(result.recommendations)))
        if metrics.top_fillers:
            sections.append(_section(
                "Most frequent fillers",
                ["{} ({})".format(f.word, f.count) for f in metrics.top_fillers],
            ))
        if metrics.long_pauses:
            sections.append(_section(
                "Long pauses",
                [
                    "{} - {} ({:.1f}s)".format(_clock(p.start), _clock(p.end), p.duration)
                    for p in metrics.long_pauses
                ],
            ))
        if metrics.repeated_words:
            sections.append(_section(
                "Repeated words",
                ["{} ({})".format(r.word, r.count) for r in metrics.repeated_words],
            ))
        if metrics.highlights:
            sections.append(_section(
                "Highlights",
                ["{} ({})".format(h.text, h.count) for h in metrics.highlights],
            ))
        if result.transcript.text:
            sections.append("Transcript:\n{}".format(result.transcript.text.strip()))

        return FormatterOutput(
            suffix="-analysis.txt",
            content="\n\n".join(sections) + "\n",
            media_type="text/plain",
        )
