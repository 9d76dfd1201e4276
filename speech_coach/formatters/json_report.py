"""Machine-readable JSON analysis report.

WHY: Front ends and scripts want the raw numbers, not prose. The JSON
report carries the transcript text, every metric and the rendered
feedback lists in one document.

RULES:
- Word-level timings are omitted unless include_words=True
- Keys are snake_case, floats as produced by the analyzer
- Output suffix: "-analysis.json"
"""

from __future__ import annotations

import json

from speech_coach.core.ir import AnalysisResult
from speech_coach.formatters.base import BaseFormatter, FormatterOutput


class JSONReportFormatter(BaseFormatter):

    def __init__(self, include_words: bool = False) -> None:
        self._include_words = include_words

    @property
    def name(self) -> str:
        return "JSON Report"

    def format(self, result: AnalysisResult) -> FormatterOutput:
        data = result.to_dict()
        if not self._include_words:
            data["transcript"].pop("words", None)
        return FormatterOutput(
            suffix="-analysis.json",
            content=json.dumps(data, indent=2, ensure_ascii=False) + "\n",
            media_type="application/json",
        )
