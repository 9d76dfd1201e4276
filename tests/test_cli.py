"""Tests for the command-line interface.

HOW: speech_coach.cli.AnalysisPipeline is patched with a stub whose run()
returns a fixed AnalysisResult or raises a typed failure, so the CLI is
exercised end to end without any HTTP.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from speech_coach.api.client import TranscriptionFailed
from speech_coach.cli import _resolve_output_path, build_parser, main
from speech_coach.core.messages import PLAIN_MESSAGES
from speech_coach.core.pipeline import analyze_transcript


class StubPipeline:
    """Stands in for AnalysisPipeline; records how it was built."""

    instances = []

    def __init__(self, result=None, error=None, **kwargs):
        self.kwargs = kwargs
        self._result = result
        self._error = error
        StubPipeline.instances.append(self)

    async def run(self, audio_path, cancel_event=None, on_status=None):
        if on_status:
            on_status("Uploading audio...")
        if self._error is not None:
            raise self._error
        return self._result


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "answer1.webm"
    path.write_bytes(b"fake audio")
    return path


@pytest.fixture
def patched_pipeline(filler_transcript):
    StubPipeline.instances = []
    result = analyze_transcript(filler_transcript, catalog=PLAIN_MESSAGES)

    def factory(**kwargs):
        return StubPipeline(result=result, **kwargs)

    with patch("speech_coach.cli.AnalysisPipeline", side_effect=factory):
        yield result


class TestMain:

    def test_prints_text_report(self, audio_file, patched_pipeline, capsys):
        main([str(audio_file)])
        captured = capsys.readouterr()
        assert captured.out.startswith("Speech Analysis")
        assert "Uploading audio..." in captured.err

    def test_json_report(self, audio_file, patched_pipeline, capsys):
        main([str(audio_file), "--format", "json"])
        data = json.loads(capsys.readouterr().out)
        assert data["metrics"]["filler_count"] == 3

    def test_save_next_to_input(self, audio_file, patched_pipeline, capsys):
        main([str(audio_file), "--save"])
        saved = audio_file.parent / "answer1-analysis.txt"
        assert saved.is_file()
        assert capsys.readouterr().out == ""

    def test_output_dir_implies_save(self, audio_file, patched_pipeline, tmp_path):
        out = tmp_path / "reports"
        out.mkdir()
        main([str(audio_file), "--output-dir", str(out), "--format", "json"])
        assert (out / "answer1-analysis.json").is_file()

    def test_plain_selects_plain_catalog(self, audio_file, patched_pipeline):
        main([str(audio_file), "--plain"])
        assert StubPipeline.instances[0].kwargs["catalog"] is PLAIN_MESSAGES

    def test_missing_file_exits_1(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "nope.webm")])
        assert exc_info.value.code == 1
        assert "File not found" in capsys.readouterr().err

    def test_unsupported_extension_exits_1(self, tmp_path, capsys):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(SystemExit) as exc_info:
            main([str(path)])
        assert exc_info.value.code == 1
        assert "Unsupported file type '.txt'" in capsys.readouterr().err

    def test_analysis_failure_exits_1(self, audio_file, capsys):
        def factory(**kwargs):
            return StubPipeline(error=TranscriptionFailed("Audio file is empty"), **kwargs)

        with patch("speech_coach.cli.AnalysisPipeline", side_effect=factory):
            with pytest.raises(SystemExit) as exc_info:
                main([str(audio_file)])

        assert exc_info.value.code == 1
        assert "Audio file is empty" in capsys.readouterr().err


class TestOutputPath:

    def test_no_conflict(self, tmp_path):
        assert _resolve_output_path("answer1", "-analysis.txt", tmp_path) == tmp_path / "answer1-analysis.txt"

    def test_numbered_on_conflict(self, tmp_path):
        (tmp_path / "answer1-analysis.txt").write_text("x")
        (tmp_path / "answer1-analysis-2.txt").write_text("x")
        assert _resolve_output_path("answer1", "-analysis.txt", tmp_path) == tmp_path / "answer1-analysis-3.txt"


class TestParser:

    def test_defaults(self):
        args = build_parser().parse_args(["answer1.webm"])
        assert args.format == "text"
        assert args.save is False
        assert args.plain is False

    def test_rejects_unknown_format(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["answer1.webm", "--format", "srt"])
