"""Caption pipeline orchestrator: video in, SRT + VTT out.

WHY: Extraction, transcription, chunking and emitting are each simple on
their own. The hard part is sequencing them so that a failure anywhere
leaves no temporary audio and no half-written caption files behind, and
so that the caller gets exactly one error naming the stage that broke.

HOW: CaptionPipeline.run() walks a small state machine
(idle → extracting → transcribing → chunking → emitting → cleanup → done)
and jumps to ``failed`` from any state. The transcription client, the
extractor and the path resolver are injected, so tests can substitute
fakes and redirect output. generate_captions() is the convenience entry
point that builds a TranscriptionClient from a PipelineConfig.

RULES:
- One CaptionPipeline instance runs once; create a new one per video
- The source video is never modified or deleted
- The audio artifact is deleted before run() returns or raises
- Both caption files are rendered in memory before anything is written;
  a failed write removes every caption file this run wrote
- Errors are stage-tagged CaptionError subclasses; unexpected exceptions
  are wrapped in CaptionError with the failing stage
- Cleanup failures are logged and recorded, never raised
- Cancellation propagates unchanged after cleanup has run
- Confidence stays a 0–1 fraction; it is shown as a percentage only in logs
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from caption_pipeline.api.client import TranscriptionClient
from caption_pipeline.config import AUDIO_EXTENSION, SRT_EXTENSION, VTT_EXTENSION, PipelineConfig
from caption_pipeline.core.chunker import MAX_CHARS_PER_CUE, MAX_WORDS_PER_CUE, chunk_words
from caption_pipeline.core.extractor import extract_audio
from caption_pipeline.core.ir import CaptionOutput, Cue, OutputPaths, TranscriptResult
from caption_pipeline.errors import CaptionError, CaptionIOError, TransientError
from caption_pipeline.formatters import FORMATTERS

logger = logging.getLogger(__name__)

Extractor = Callable[..., Awaitable[Path]]
PathResolver = Callable[[Path], OutputPaths]


class PipelineStage(str, enum.Enum):
    """States of a single pipeline run.

    HOW: Inherits from str so values serialize cleanly to JSON and logs.

    RULES:
    - done and failed are terminal
    - failed is reachable from every other state
    """

    IDLE = "idle"
    EXTRACTING = "extracting"
    TRANSCRIBING = "transcribing"
    CHUNKING = "chunking"
    EMITTING = "emitting"
    CLEANUP = "cleanup"
    DONE = "done"
    FAILED = "failed"


def derive_output_paths(video_path: Path) -> OutputPaths:
    """Swap the video extension for .mp3, .srt and .vtt next to the source."""
    video_path = Path(video_path)
    return OutputPaths(
        audio_path=video_path.with_suffix(AUDIO_EXTENSION),
        srt_path=video_path.with_suffix(SRT_EXTENSION),
        vtt_path=video_path.with_suffix(VTT_EXTENSION),
    )


def output_dir_resolver(output_dir: Path) -> PathResolver:
    """Return a path resolver that places every derived file in ``output_dir``."""
    output_dir = Path(output_dir)

    def resolve(video_path: Path) -> OutputPaths:
        derived = derive_output_paths(video_path)
        return OutputPaths(
            audio_path=output_dir / derived.audio_path.name,
            srt_path=output_dir / derived.srt_path.name,
            vtt_path=output_dir / derived.vtt_path.name,
        )

    return resolve


class CaptionPipeline:
    """Runs the caption stages for one video and owns its temporary audio.

    Args:
        client: Anything with an async ``transcribe(audio_path, language_code,
            on_status=None)`` returning a TranscriptResult; normally an entered
            TranscriptionClient.
        config: Language, transcoder and deadline settings.
        extractor: Coroutine function with extract_audio's signature.
        path_resolver: Maps the video path to its audio/SRT/VTT paths.
        on_status: Optional callback for human-readable progress.
    """

    def __init__(
        self,
        client: TranscriptionClient,
        config: PipelineConfig | None = None,
        *,
        extractor: Extractor = extract_audio,
        path_resolver: PathResolver = derive_output_paths,
        on_status: Callable[[str], None] | None = None,
        max_words: int = MAX_WORDS_PER_CUE,
        max_chars: int = MAX_CHARS_PER_CUE,
    ) -> None:
        self._client = client
        self._config = config or PipelineConfig()
        self._extractor = extractor
        self._path_resolver = path_resolver
        self._on_status = on_status
        self._max_words = max_words
        self._max_chars = max_chars
        self._audio_created = False
        self.stage = PipelineStage.IDLE
        self.cleanup_error: OSError | None = None

    def _status(self, msg: str) -> None:
        if self._on_status:
            self._on_status(msg)

    def _enter(self, stage: PipelineStage) -> None:
        logger.debug("Pipeline stage: %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    async def run(self, video_path: Path) -> CaptionOutput:
        """Generate SRT and VTT captions for ``video_path``.

        Returns:
            CaptionOutput with both caption paths and transcript metadata.

        Raises:
            CaptionError: a stage-tagged subclass describing the failure.
            RuntimeError: if this pipeline instance has already run.
        """
        if self.stage is not PipelineStage.IDLE:
            raise RuntimeError(
                "CaptionPipeline instances are single-use; create a new one per video"
            )

        video_path = Path(video_path)
        paths: OutputPaths | None = None
        audio_preexisting = False
        logger.info("Starting caption generation for %s", video_path)

        try:
            # Resolver failures count as extraction failures
            self._enter(PipelineStage.EXTRACTING)
            paths = self._path_resolver(video_path)
            audio_preexisting = paths.audio_path.exists()
            output = await self._run_stages(video_path, paths)
        except BaseException as exc:
            failed_stage = self.stage
            self.stage = PipelineStage.FAILED
            if paths is not None and (
                self._audio_created or (paths.audio_path.exists() and not audio_preexisting)
            ):
                self._remove_audio(paths.audio_path)

            if not isinstance(exc, Exception):
                logger.warning(
                    "Caption generation for %s interrupted during %s",
                    video_path.name,
                    failed_stage.value,
                )
                raise

            error = exc if isinstance(exc, CaptionError) else CaptionError(
                "{}: {}".format(type(exc).__name__, exc)
            )
            if error.stage is None:
                error.stage = failed_stage
            error.cleanup_error = self.cleanup_error
            logger.error("Caption generation failed for %s: %s", video_path.name, error)
            if error is exc:
                raise
            raise error from exc

        logger.info("Caption generation completed for %s", video_path.name)
        return output

    async def _run_stages(self, video_path: Path, paths: OutputPaths) -> CaptionOutput:
        await self._extractor(
            video_path,
            paths.audio_path,
            ffmpeg_binary=self._config.ffmpeg_binary,
            audio_codec=self._config.audio_codec,
            on_status=self._on_status,
        )
        self._audio_created = True

        self._enter(PipelineStage.TRANSCRIBING)
        transcript = await self._transcribe(paths.audio_path)
        logger.info(
            "Transcript received: confidence %.2f%%, %d words",
            transcript.confidence * 100,
            transcript.word_count,
        )
        self._status(
            "Transcription completed (confidence {:.2f}%, {} words)".format(
                transcript.confidence * 100, transcript.word_count
            )
        )

        self._enter(PipelineStage.CHUNKING)
        cues = chunk_words(transcript.words, self._max_words, self._max_chars)
        self._status("Chunked into {} cues".format(len(cues)))

        self._enter(PipelineStage.EMITTING)
        self._write_captions(cues, paths)

        self._enter(PipelineStage.CLEANUP)
        self._remove_audio(paths.audio_path)

        self._enter(PipelineStage.DONE)
        return CaptionOutput(
            srt_path=paths.srt_path,
            vtt_path=paths.vtt_path,
            transcript_text=transcript.full_text,
            confidence=transcript.confidence,
            word_count=transcript.word_count,
        )

    async def _transcribe(self, audio_path: Path) -> TranscriptResult:
        pending = self._client.transcribe(
            audio_path,
            self._config.language_code,
            on_status=self._on_status,
        )
        timeout = self._config.transcription_timeout_s
        if timeout is None:
            return await pending
        try:
            return await asyncio.wait_for(pending, timeout)
        except asyncio.TimeoutError as exc:
            raise TransientError(
                "Transcription did not finish within {:g}s".format(timeout)
            ) from exc

    def _write_captions(self, cues: list[Cue], paths: OutputPaths) -> None:
        """Render both formats, then write them; undo every write on failure."""
        targets = {SRT_EXTENSION: paths.srt_path, VTT_EXTENSION: paths.vtt_path}
        rendered = []
        for key in ("srt", "vtt"):
            formatter = FORMATTERS[key]()
            output = formatter.format(cues)
            rendered.append((formatter.name, output.content, targets[output.suffix]))

        touched: list[Path] = []
        for format_name, content, path in rendered:
            touched.append(path)
            try:
                path.write_text(content, encoding="utf-8")
            except OSError as exc:
                for written in touched:
                    _unlink_quietly(written)
                raise CaptionIOError(
                    "Could not write captions to {}: {}".format(path, exc)
                ) from exc
            logger.info("%s captions saved: %s", format_name, path)
            self._status("  Saved {}: {}".format(format_name, path.name))

    def _remove_audio(self, audio_path: Path) -> None:
        try:
            audio_path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            self.cleanup_error = exc
            logger.warning("Could not delete temporary audio %s: %s", audio_path, exc)
            return
        logger.info("Temporary audio deleted: %s", audio_path)


def _unlink_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not remove partial caption file %s: %s", path, exc)


async def generate_captions(
    video_path: Path,
    config: PipelineConfig | None = None,
    *,
    client: Any = None,
    extractor: Extractor = extract_audio,
    path_resolver: PathResolver = derive_output_paths,
    on_status: Callable[[str], None] | None = None,
) -> CaptionOutput:
    """Generate SRT and VTT captions for one video.

    WHY: Upload handlers want a single awaitable that turns a stored video
    into caption files and transcript metadata.

    HOW: Uses ``client`` when given; otherwise opens a TranscriptionClient
    from ``config`` for the duration of the run.

    RULES:
    - config defaults to PipelineConfig.from_env()
    - A missing API key raises ValueError before any stage starts
    - Each call runs its own CaptionPipeline; concurrent calls for
      different videos are independent

    Args:
        video_path: Source video path.
        config: Pipeline configuration (language_code, api_key, ...).
        client: Optional pre-built transcription client.
        extractor: Audio extractor coroutine function.
        path_resolver: Maps the video path to output paths.
        on_status: Optional callback for status updates.

    Returns:
        CaptionOutput; ``to_dict()`` gives the JSON-friendly result mapping.
    """
    config = config or PipelineConfig.from_env()

    def _pipeline(active_client: Any) -> CaptionPipeline:
        return CaptionPipeline(
            active_client,
            config,
            extractor=extractor,
            path_resolver=path_resolver,
            on_status=on_status,
        )

    if client is not None:
        return await _pipeline(client).run(video_path)

    async with TranscriptionClient(api_key=config.api_key, base_url=config.base_url) as owned:
        return await _pipeline(owned).run(video_path)
