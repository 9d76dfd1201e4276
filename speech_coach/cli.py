"""Command-line interface for the speech coach.

WHY: Users need a simple way to analyze a recorded answer from the
terminal. The CLI wires together file validation, the transcription job,
the metrics analyzer, the feedback rules and a report formatter behind a
single command.

HOW: Uses argparse to accept an input file, report format, output
directory and message style. Runs the async pipeline via asyncio.run().
Status messages go to stderr; the report goes to stdout, or to a file
next to the source (or in --output-dir) when --save is given.

RULES:
- Positional argument: input audio file path
- Validates file extension against SUPPORTED_AUDIO_FORMATS before any API call
- --format: a FORMATTERS key (default: text)
- --plain: render feedback without emoji markers
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-analysis-2.txt)
- Exit codes: 0 success, 1 failure or bad input, 130 interrupted
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from speech_coach.api.client import AnalysisFailure
from speech_coach.config import SUPPORTED_AUDIO_FORMATS, AnalysisThresholds
from speech_coach.core.messages import DEFAULT_MESSAGES, PLAIN_MESSAGES
from speech_coach.core.pipeline import AnalysisPipeline
from speech_coach.formatters import FORMATTERS
from speech_coach.formatters.base import FormatterOutput
from speech_coach.formatters.json_report import JSONReportFormatter


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the report can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(stem: str, suffix: str, output_dir: Path) -> Path:
    """Resolve the output file path, adding a numeric suffix on conflict.

    RULES:
    - First attempt: {stem}{suffix} (e.g. answer1-analysis.txt)
    - Conflict: insert counter before the extension (answer1-analysis-2.txt)
    - Counter starts at 2 and increments
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


async def _run_pipeline(args: argparse.Namespace) -> None:
    """Execute the full analysis for one recording.

    RULES:
    - Validate file and output options before any API call
    - Status messages to stderr at each step
    - Typed analysis failures and config errors exit with code 1
    """
    input_path = Path(args.input_file).resolve()

    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    ext = input_path.suffix.lower()
    if ext not in SUPPORTED_AUDIO_FORMATS:
        _fail("Unsupported file type '{}'. Supported formats: {}".format(
            ext, ", ".join(sorted(SUPPORTED_AUDIO_FORMATS)),
        ))

    output_dir: Optional[Path] = None
    if args.save:
        output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
        if not output_dir.is_dir():
            _fail("Output directory does not exist: {}".format(output_dir))

    if args.format == "json":
        formatter = JSONReportFormatter(include_words=args.include_words)
    else:
        formatter = FORMATTERS[args.format]()

    pipeline = AnalysisPipeline(
        thresholds=AnalysisThresholds.from_env(),
        catalog=PLAIN_MESSAGES if args.plain else DEFAULT_MESSAGES,
    )

    try:
        result = await pipeline.run(input_path, on_status=_status)
    except AnalysisFailure as exc:
        _fail(str(exc))
    except ValueError as exc:
        # Config errors (missing API key, bad threshold override, etc.)
        _fail(str(exc))

    output = formatter.format(result)
    if output_dir is None:
        sys.stdout.write(output.content)
        return

    saved = _save_output(output, input_path.stem, output_dir)
    _status("Saved: {}".format(saved))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    RULES:
    - Positional: input_file (required)
    - Optional: --format, --save, --output-dir, --plain, --include-words, --verbose
    """
    parser = argparse.ArgumentParser(
        prog="speech_coach",
        description="Analyze a recorded answer: speaking pace, filler words, "
                    "pauses, articulation, and coaching feedback.",
    )

    parser.add_argument(
        "input_file",
        help="Path to the audio file to analyze.",
    )

    parser.add_argument(
        "--format",
        default="text",
        choices=sorted(FORMATTERS.keys()),
        help="Report format (default: %(default)s).",
    )

    parser.add_argument(
        "--save",
        action="store_true",
        help="Save the report to a file instead of printing it.",
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save the report in (default: same as input file). Implies --save.",
    )

    parser.add_argument(
        "--plain",
        action="store_true",
        help="Render feedback without emoji markers.",
    )

    parser.add_argument(
        "--include-words",
        action="store_true",
        help="Include word-level timings in the JSON report.",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log HTTP and job details to stderr.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.output_dir:
        args.save = True

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(_run_pipeline(args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)


if __name__ == "__main__":
    main()
