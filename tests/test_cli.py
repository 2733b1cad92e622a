"""Tests for the command-line interface.

WHY: The CLI is what operators script against. Exit codes and the
stdout/stderr split must stay stable so shell pipelines can rely on them.

HOW: generate_captions is patched with a coroutine that records its
arguments and returns a canned CaptionOutput (or raises), so no ffmpeg or
network is involved.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from caption_pipeline import cli
from caption_pipeline.core.ir import CaptionOutput
from caption_pipeline.core.pipeline import PipelineStage, derive_output_paths
from caption_pipeline.errors import ExtractionError, TransientError


@pytest.fixture
def canned_output(tmp_path) -> CaptionOutput:
    return CaptionOutput(
        srt_path=tmp_path / "lecture.srt",
        vtt_path=tmp_path / "lecture.vtt",
        transcript_text="Hello world",
        confidence=0.875,
        word_count=2,
    )


@pytest.fixture
def patched_pipeline(monkeypatch, canned_output):
    """Replace generate_captions; returns the dict of recorded arguments."""
    recorded = {}

    async def fake_generate(video_path, config, *, path_resolver, on_status):
        recorded["video_path"] = video_path
        recorded["config"] = config
        recorded["path_resolver"] = path_resolver
        if "error" in recorded:
            raise recorded["error"]
        return canned_output

    monkeypatch.setattr(cli, "generate_captions", fake_generate)
    monkeypatch.setenv("ASSEMBLYAI_API_KEY", "env-key")
    monkeypatch.delenv("TRANSCRIPTION_TIMEOUT_S", raising=False)
    return recorded


class TestParser:

    def test_defaults(self):
        args = cli.build_parser().parse_args(["talk.mp4"])
        assert args.input_file == "talk.mp4"
        assert args.output_dir is None
        assert args.timeout is None
        assert args.json is False
        assert args.verbose is False

    def test_all_options(self):
        args = cli.build_parser().parse_args([
            "talk.mkv", "--language", "de", "--output-dir", "out",
            "--timeout", "90", "--json", "--verbose",
        ])
        assert args.language == "de"
        assert args.output_dir == "out"
        assert args.timeout == 90.0
        assert args.json is True

    @pytest.mark.parametrize("value", ["0", "-30", "soon"])
    def test_timeout_must_be_positive(self, value, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.build_parser().parse_args(["talk.mp4", "--timeout", value])

        assert exc_info.value.code == 2
        assert "--timeout" in capsys.readouterr().err

    def test_missing_input_exits(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestMain:

    def test_success_prints_summary_to_stderr(self, patched_pipeline, capsys):
        cli.main(["lecture.mp4", "--language", "pt"])

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Done! Confidence 87.50%, 2 words" in captured.err
        config = patched_pipeline["config"]
        assert config.language_code == "pt"
        assert config.api_key == "env-key"
        assert config.transcription_timeout_s is None
        assert patched_pipeline["video_path"] == Path("lecture.mp4").resolve()
        assert patched_pipeline["path_resolver"] is derive_output_paths

    def test_json_output(self, patched_pipeline, canned_output, capsys):
        cli.main(["lecture.mp4", "--json"])

        payload = json.loads(capsys.readouterr().out)
        assert payload == {
            "success": True,
            "srt_path": str(canned_output.srt_path),
            "vtt_path": str(canned_output.vtt_path),
            "transcript": "Hello world",
            "confidence": 0.875,
            "word_count": 2,
        }

    def test_timeout_is_forwarded(self, patched_pipeline):
        cli.main(["lecture.mp4", "--timeout", "120"])
        assert patched_pipeline["config"].transcription_timeout_s == 120.0

    def test_output_dir(self, patched_pipeline, tmp_path):
        cli.main(["lecture.mp4", "--output-dir", str(tmp_path)])

        resolve = patched_pipeline["path_resolver"]
        assert resolve(Path("/videos/lecture.mp4")).srt_path == tmp_path.resolve() / "lecture.srt"

    def test_missing_output_dir_exits_1(self, patched_pipeline, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["lecture.mp4", "--output-dir", str(tmp_path / "nope")])

        assert exc_info.value.code == 1
        assert "Output directory does not exist" in capsys.readouterr().err
        assert "video_path" not in patched_pipeline

    def test_pipeline_error_exits_1(self, patched_pipeline, capsys):
        patched_pipeline["error"] = ExtractionError(
            "ffmpeg exited with status 1: bad input", stage=PipelineStage.EXTRACTING
        )
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["lecture.mp4"])

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "Error: [extracting] ffmpeg exited with status 1: bad input" in err

    def test_transient_error_exits_1(self, patched_pipeline):
        patched_pipeline["error"] = TransientError("Could not reach the transcription service")
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["lecture.mp4"])
        assert exc_info.value.code == 1

    def test_missing_api_key_exits_1(self, patched_pipeline, capsys):
        patched_pipeline["error"] = ValueError("Transcription API key not configured.")
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["lecture.mp4"])

        assert exc_info.value.code == 1
        assert "API key not configured" in capsys.readouterr().err

    def test_keyboard_interrupt_exits_130(self, patched_pipeline, capsys):
        patched_pipeline["error"] = KeyboardInterrupt()
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["lecture.mp4"])

        assert exc_info.value.code == 130
        assert "Cancelled by user." in capsys.readouterr().err
