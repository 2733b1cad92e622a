"""Configuration constants, .env loading, and the explicit pipeline config.

WHY: Centralizes every configurable value so it is easy to find, update,
and override. Credentials and language defaults must not be read from
global state deep inside the pipeline; they are gathered once into a
PipelineConfig value that callers pass in explicitly.

HOW: python-dotenv loads the .env file on import. Module-level constants
hold the environment-derived defaults. PipelineConfig.from_env() snapshots
them into a dataclass; tests build PipelineConfig directly.

RULES:
- API key is loaded from .env via python-dotenv, never hardcoded
- All defaults can be overridden via environment variables
- SUPPORTED_VIDEO_FORMATS lists accepted video extensions (lowercase, with dot)
- An unset TRANSCRIPTION_TIMEOUT_S means "no deadline"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Supported source video extensions
# ---------------------------------------------------------------------------

SUPPORTED_VIDEO_FORMATS: set[str] = {".mp4", ".mov", ".avi", ".mkv"}
"""Video file extensions the audio extractor accepts (lowercase, with dot)."""

AUDIO_EXTENSION = ".mp3"
SRT_EXTENSION = ".srt"
VTT_EXTENSION = ".vtt"

# ---------------------------------------------------------------------------
# Service and tool defaults
# ---------------------------------------------------------------------------

ASSEMBLYAI_BASE_URL = os.getenv("ASSEMBLYAI_BASE_URL", "https://api.assemblyai.com/v2")
DEFAULT_LANGUAGE_CODE = os.getenv("CAPTION_LANGUAGE_CODE", "en")
FFMPEG_BINARY = os.getenv("FFMPEG_BINARY", "ffmpeg")
DEFAULT_AUDIO_CODEC = "libmp3lame"


def _parse_timeout(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(
            "TRANSCRIPTION_TIMEOUT_S must be a number of seconds, got {!r}".format(raw)
        ) from None
    return value if value > 0 else None


TRANSCRIPTION_TIMEOUT_S = _parse_timeout(os.getenv("TRANSCRIPTION_TIMEOUT_S"))


def load_api_key() -> str:
    """Load the AssemblyAI API key from the environment.

    WHY: The key is required for every transcription request. Loading it
    from the environment (via .env) keeps it out of source code.

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("ASSEMBLYAI_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "Transcription API key not configured. "
            "Add ASSEMBLYAI_API_KEY to the .env file or the environment."
        )
    return key


@dataclass
class PipelineConfig:
    """Explicit configuration for one or more caption pipeline runs.

    WHY: The pipeline must not reach into process-wide state for its
    credentials or language. Passing one value at construction makes runs
    reproducible and lets tests supply their own settings.

    RULES:
    - language_code: ISO 639-1 code sent to the transcription service
    - api_key: None means "resolve with load_api_key() when a client is built"
    - transcription_timeout_s: None disables the deadline
    - The config is never mutated by the pipeline
    """

    language_code: str = DEFAULT_LANGUAGE_CODE
    api_key: str | None = None
    base_url: str = ASSEMBLYAI_BASE_URL
    ffmpeg_binary: str = FFMPEG_BINARY
    audio_codec: str = DEFAULT_AUDIO_CODEC
    transcription_timeout_s: float | None = TRANSCRIPTION_TIMEOUT_S

    @classmethod
    def from_env(cls, **overrides: Any) -> PipelineConfig:
        """Build a config from the current environment, applying overrides.

        Reads the environment at call time (not import time) so values set
        after import are honoured.
        """
        values = {
            "language_code": os.getenv("CAPTION_LANGUAGE_CODE", DEFAULT_LANGUAGE_CODE),
            "api_key": os.getenv("ASSEMBLYAI_API_KEY", "").strip() or None,
            "base_url": os.getenv("ASSEMBLYAI_BASE_URL", ASSEMBLYAI_BASE_URL),
            "ffmpeg_binary": os.getenv("FFMPEG_BINARY", FFMPEG_BINARY),
            "transcription_timeout_s": _parse_timeout(os.getenv("TRANSCRIPTION_TIMEOUT_S")),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
