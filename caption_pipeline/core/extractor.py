"""Audio extraction from source videos with ffmpeg.

WHY: The transcription service wants audio, not video, and uploading a
compressed audio track is much smaller than uploading the full video.
Extraction is the first pipeline stage and the first place where an
external process can fail, so it must never leave a half-written audio
file behind.

HOW: validate_video_path() rejects unsupported or missing sources before
any process is spawned. extract_audio() starts ffmpeg as an asyncio
subprocess with ``-progress pipe:1``, reads progress lines from stdout
while stderr is collected concurrently, and suspends on the single
completion await. On any failure (non-zero exit, missing binary,
cancellation) the partial output is removed before the error propagates.

RULES:
- Accepted source extensions: .mp4 .mov .avi .mkv (case-insensitive)
- Output codec defaults to libmp3lame; the output path is chosen by the caller
- Failures raise ExtractionError carrying the tail of ffmpeg's stderr
- A cancelled extraction kills ffmpeg and removes the partial output
- A pre-existing output file that ffmpeg never touched is left in place on failure
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path

from caption_pipeline.config import DEFAULT_AUDIO_CODEC, FFMPEG_BINARY, SUPPORTED_VIDEO_FORMATS
from caption_pipeline.errors import ExtractionError

logger = logging.getLogger(__name__)

_STDERR_TAIL_LINES = 5


def validate_video_path(video_path: Path) -> None:
    """Check that a source video exists, is readable and has a known extension.

    Raises:
        ExtractionError: if any check fails.
    """
    ext = video_path.suffix.lower()
    if ext not in SUPPORTED_VIDEO_FORMATS:
        raise ExtractionError(
            "Unsupported video type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted(SUPPORTED_VIDEO_FORMATS))
            )
        )
    if not video_path.is_file():
        raise ExtractionError("Source video not found: {}".format(video_path))
    if not os.access(video_path, os.R_OK):
        raise ExtractionError("Source video is not readable: {}".format(video_path))


def build_ffmpeg_command(
    video_path: Path,
    audio_path: Path,
    ffmpeg_binary: str = FFMPEG_BINARY,
    audio_codec: str = DEFAULT_AUDIO_CODEC,
) -> list[str]:
    return [
        ffmpeg_binary,
        "-hide_banner",
        "-nostdin",
        "-y",
        "-i", str(video_path),
        "-vn",
        "-acodec", audio_codec,
        "-progress", "pipe:1",
        "-nostats",
        str(audio_path),
    ]


async def _watch_progress(
    stream: asyncio.StreamReader,
    on_status: Callable[[str], None] | None,
) -> None:
    """Consume ffmpeg ``-progress`` key=value lines until EOF."""
    while True:
        raw = await stream.readline()
        if not raw:
            return
        key, _, value = raw.decode("utf-8", errors="replace").strip().partition("=")
        if key == "out_time" and value:
            logger.debug("ffmpeg progress: %s", value)
            if on_status:
                on_status("  Extracted {}".format(value.split(".")[0]))


def _stderr_tail(stderr: bytes) -> str:
    lines = [
        line.strip()
        for line in stderr.decode("utf-8", errors="replace").splitlines()
        if line.strip()
    ]
    return "\n".join(lines[-_STDERR_TAIL_LINES:]) or "no error output"


def _file_signature(path: Path) -> tuple[int, int] | None:
    try:
        st = path.stat()
    except FileNotFoundError:
        return None
    return st.st_size, st.st_mtime_ns


def _discard_partial(audio_path: Path, before: tuple[int, int] | None) -> None:
    # A file that was already there and never touched belongs to the caller
    if before is not None and _file_signature(audio_path) == before:
        return
    try:
        audio_path.unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning("Could not remove partial audio file %s: %s", audio_path, exc)
        return
    logger.info("Removed partial audio file %s", audio_path)


async def extract_audio(
    video_path: Path,
    audio_path: Path,
    *,
    ffmpeg_binary: str = FFMPEG_BINARY,
    audio_codec: str = DEFAULT_AUDIO_CODEC,
    on_status: Callable[[str], None] | None = None,
) -> Path:
    """Extract the audio track of ``video_path`` into ``audio_path``.

    Args:
        video_path: Source video (.mp4, .mov, .avi or .mkv).
        audio_path: Destination audio file; overwritten if present.
        ffmpeg_binary: ffmpeg executable name or path.
        audio_codec: Value passed to ``-acodec``.
        on_status: Optional callback for progress updates.

    Returns:
        ``audio_path``, which now exists on disk.

    Raises:
        ExtractionError: invalid source, missing ffmpeg, or ffmpeg failure.
    """
    video_path = Path(video_path)
    audio_path = Path(audio_path)
    validate_video_path(video_path)

    cmd = build_ffmpeg_command(video_path, audio_path, ffmpeg_binary, audio_codec)
    existing = _file_signature(audio_path)
    logger.info("Extracting audio from %s -> %s", video_path.name, audio_path.name)
    logger.debug("ffmpeg command: %s", " ".join(cmd))
    if on_status:
        on_status("Extracting audio from {}...".format(video_path.name))

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise ExtractionError(
            "Could not start ffmpeg ({}): {}".format(ffmpeg_binary, exc)
        ) from exc

    succeeded = False
    try:
        _, stderr = await asyncio.gather(
            _watch_progress(proc.stdout, on_status),
            proc.stderr.read(),
        )
        returncode = await proc.wait()

        if returncode != 0:
            raise ExtractionError(
                "ffmpeg exited with status {}: {}".format(returncode, _stderr_tail(stderr))
            )
        if not audio_path.is_file():
            raise ExtractionError(
                "ffmpeg reported success but wrote no audio to {}".format(audio_path)
            )
        succeeded = True
    finally:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()
        if not succeeded:
            _discard_partial(audio_path, existing)

    logger.info("Audio extracted: %s", audio_path)
    return audio_path
