"""Report formatter registry — pluggable output formats.

WHY: The CLI and the HTTP API need a single lookup to find the right
report formatter by name. A central dict makes adding a format trivial:
create the formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["json"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and query params)
- Values are BaseFormatter subclasses (not instances)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from speech_coach.formatters.json_report import JSONReportFormatter
from speech_coach.formatters.plain_text import PlainTextFormatter

if TYPE_CHECKING:
    from speech_coach.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "text": PlainTextFormatter,
    "json": JSONReportFormatter,
}
