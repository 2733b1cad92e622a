"""Tests for configuration loading."""

from __future__ import annotations

import pytest

from caption_pipeline.config import (
    ASSEMBLYAI_BASE_URL,
    DEFAULT_AUDIO_CODEC,
    DEFAULT_LANGUAGE_CODE,
    SUPPORTED_VIDEO_FORMATS,
    PipelineConfig,
    _parse_timeout,
    load_api_key,
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "ASSEMBLYAI_API_KEY",
        "ASSEMBLYAI_BASE_URL",
        "CAPTION_LANGUAGE_CODE",
        "FFMPEG_BINARY",
        "TRANSCRIPTION_TIMEOUT_S",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_supported_formats():
    assert SUPPORTED_VIDEO_FORMATS == {".mp4", ".mov", ".avi", ".mkv"}


class TestParseTimeout:

    @pytest.mark.parametrize("raw", [None, "", "   ", "0", "-5"])
    def test_disabled(self, raw):
        assert _parse_timeout(raw) is None

    def test_seconds(self):
        assert _parse_timeout("1800") == 1800.0
        assert _parse_timeout("2.5") == 2.5

    def test_garbage(self):
        with pytest.raises(ValueError, match="TRANSCRIPTION_TIMEOUT_S"):
            _parse_timeout("half an hour")


class TestLoadApiKey:

    def test_present(self, clean_env):
        clean_env.setenv("ASSEMBLYAI_API_KEY", "  abc123 \n")
        assert load_api_key() == "abc123"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing(self, clean_env, value):
        if value is not None:
            clean_env.setenv("ASSEMBLYAI_API_KEY", value)
        with pytest.raises(ValueError, match="ASSEMBLYAI_API_KEY"):
            load_api_key()


class TestPipelineConfig:

    def test_from_env_reads_at_call_time(self, clean_env):
        clean_env.setenv("ASSEMBLYAI_API_KEY", "env-key")
        clean_env.setenv("CAPTION_LANGUAGE_CODE", "sv")
        clean_env.setenv("FFMPEG_BINARY", "/usr/local/bin/ffmpeg")
        clean_env.setenv("TRANSCRIPTION_TIMEOUT_S", "600")

        config = PipelineConfig.from_env()

        assert config.api_key == "env-key"
        assert config.language_code == "sv"
        assert config.ffmpeg_binary == "/usr/local/bin/ffmpeg"
        assert config.transcription_timeout_s == 600.0
        assert config.audio_codec == DEFAULT_AUDIO_CODEC

    def test_from_env_defaults(self, clean_env):
        config = PipelineConfig.from_env()

        assert config.api_key is None
        assert config.language_code == DEFAULT_LANGUAGE_CODE
        assert config.base_url == ASSEMBLYAI_BASE_URL
        assert config.transcription_timeout_s is None

    def test_overrides_win_and_none_is_ignored(self, clean_env):
        clean_env.setenv("CAPTION_LANGUAGE_CODE", "sv")
        clean_env.setenv("TRANSCRIPTION_TIMEOUT_S", "600")

        config = PipelineConfig.from_env(language_code="fi", transcription_timeout_s=None)

        assert config.language_code == "fi"
        assert config.transcription_timeout_s == 600.0
