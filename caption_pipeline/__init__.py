"""Caption Pipeline — video to synchronized SRT and WebVTT subtitles.

WHY: Tutorial videos uploaded to the portal need captions for HTML5
playback and download. Producing them means coordinating ffmpeg, a remote
speech-to-text service and a deterministic cue layout, without leaking
temporary files when any of those steps fails.

HOW: Five-stage pipeline — extract (ffmpeg), transcribe (API client),
chunk (greedy cue builder), emit (SRT/VTT formatters), clean up. Each
stage is independently testable; the orchestrator wires them together.

RULES:
- generate_captions() is the public entry point
- Every failure surfaces as a stage-tagged CaptionError subclass
- Adding a new subtitle format = one new formatter module
"""

from caption_pipeline.config import PipelineConfig
from caption_pipeline.core.ir import CaptionOutput
from caption_pipeline.core.pipeline import CaptionPipeline, PipelineStage, generate_captions
from caption_pipeline.errors import (
    CaptionError,
    CaptionIOError,
    ExtractionError,
    TranscriptionError,
    TransientError,
)

__version__ = "0.1.0"

__all__ = [
    "CaptionError",
    "CaptionIOError",
    "CaptionOutput",
    "CaptionPipeline",
    "ExtractionError",
    "PipelineConfig",
    "PipelineStage",
    "TranscriptionError",
    "TransientError",
    "generate_captions",
]
