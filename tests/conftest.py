"""Shared test fixtures for the caption_pipeline test suite.

WHY: The chunker, formatter, client and pipeline tests all need the same
small transcript and the same fakes for the two external collaborators
(ffmpeg and the transcription service). Centralizing them here keeps the
fixtures consistent across modules.

HOW: Plain pytest fixtures return word tokens, a completed service
payload, a FakeTranscriptionClient, an in-process fake extractor, and a
factory that writes small executable shell scripts standing in for
ffmpeg.

RULES:
- No test talks to the network or needs a real ffmpeg binary
- Fake ffmpeg scripts are POSIX shell; tests using them skip on Windows
- The fake client records every call for later assertions
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from caption_pipeline.core.ir import TranscriptResult, WordToken


# ---------------------------------------------------------------------------
# Sample transcript
# ---------------------------------------------------------------------------

SAMPLE_WORDS: List[Dict[str, Any]] = [
    {"text": "Hello", "start": 0,    "end": 1000, "confidence": 0.98},
    {"text": "world", "start": 1000, "end": 2000, "confidence": 0.97},
    {"text": "this",  "start": 2000, "end": 3000, "confidence": 0.95},
    {"text": "is",    "start": 3000, "end": 4000, "confidence": 0.99},
    {"text": "a",     "start": 4000, "end": 5000, "confidence": 0.96},
    {"text": "test",  "start": 5000, "end": 6000, "confidence": 0.94},
    {"text": "today", "start": 6000, "end": 7000, "confidence": 0.93},
]

SAMPLE_TEXT = "Hello world this is a test today"


def make_tokens(words: List[Dict[str, Any]]) -> List[WordToken]:
    return [
        WordToken(text=w["text"], start_ms=w["start"], end_ms=w["end"], confidence=w.get("confidence"))
        for w in words
    ]


@pytest.fixture
def sample_tokens() -> List[WordToken]:
    """The seven-word sample as WordToken objects (0–7000 ms)."""
    return make_tokens(SAMPLE_WORDS)


@pytest.fixture
def sample_result(sample_tokens) -> TranscriptResult:
    return TranscriptResult(full_text=SAMPLE_TEXT, confidence=0.9612, words=sample_tokens)


@pytest.fixture
def completed_payload() -> Dict[str, Any]:
    """A completed transcript job as the service returns it."""
    return {
        "id": "tx-123",
        "status": "completed",
        "text": SAMPLE_TEXT,
        "confidence": 0.9612,
        "words": [dict(w) for w in SAMPLE_WORDS],
        "error": None,
    }


@pytest.fixture
def video_file(tmp_path) -> Path:
    """A placeholder source video; the fakes never decode it."""
    path = tmp_path / "lecture.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    return path


# ---------------------------------------------------------------------------
# Fake transcription client
# ---------------------------------------------------------------------------


class FakeTranscriptionClient:
    """Stands in for TranscriptionClient inside the pipeline.

    Records (audio_path, language_code, audio_existed) per call. Either
    returns ``result``, raises ``error``, or sleeps until cancelled when
    ``block`` is set. Build it inside the running event loop when
    ``block`` is used, since ``started`` is an asyncio.Event.
    """

    def __init__(
        self,
        result: Optional[TranscriptResult] = None,
        error: Optional[BaseException] = None,
        block: bool = False,
    ) -> None:
        self.result = result
        self.error = error
        self.block = block
        self.calls: List[tuple] = []
        self.started = asyncio.Event() if block else None

    async def transcribe(self, audio_path, language_code="en", on_status=None):
        audio_path = Path(audio_path)
        self.calls.append((audio_path, language_code, audio_path.exists()))
        if self.block:
            self.started.set()
            await asyncio.sleep(3600)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def fake_client_factory():
    """The FakeTranscriptionClient class, for tests to instantiate."""
    return FakeTranscriptionClient


@pytest.fixture
def fake_extractor():
    """An extractor coroutine that writes a placeholder audio file."""

    async def _extract(video_path, audio_path, **kwargs):
        Path(audio_path).write_bytes(b"ID3fake-mp3")
        return Path(audio_path)

    return _extract


# ---------------------------------------------------------------------------
# Fake ffmpeg executables
# ---------------------------------------------------------------------------

FFMPEG_SCRIPTS: Dict[str, str] = {
    # Reports progress, writes the output (last argument), exits 0
    "success": """#!/bin/sh
for out; do :; done
printf 'out_time=00:00:01.500000\\nprogress=continue\\n'
printf 'out_time=00:00:03.000000\\nprogress=end\\n'
printf 'ID3fake-mp3' > "$out"
exit 0
""",
    # Writes a partial output, complains on stderr, exits 1
    "failure": """#!/bin/sh
for out; do :; done
printf 'partial' > "$out"
echo "Input #0, mov,mp4,m4a,3gp,3g2,mj2" >&2
echo "lecture.mp4: Invalid data found when processing input" >&2
exit 1
""",
    # Complains on stderr and exits 1 without touching the output
    "rejects_input": """#!/bin/sh
echo "lecture.mp4: Invalid data found when processing input" >&2
exit 1
""",
    "no_output": """#!/bin/sh
exit 0
""",
    # Writes a partial output, then blocks until killed
    "hang": """#!/bin/sh
for out; do :; done
printf 'partial' > "$out"
exec sleep 30
""",
}


@pytest.fixture
def fake_ffmpeg(tmp_path):
    """Factory: write an executable fake ffmpeg and return its path.

    Accepts a key of FFMPEG_SCRIPTS or a full script body.
    """

    def _make(kind: str) -> str:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        script = bin_dir / "ffmpeg"
        script.write_text(FFMPEG_SCRIPTS.get(kind, kind))
        script.chmod(0o755)
        return str(script)

    return _make
