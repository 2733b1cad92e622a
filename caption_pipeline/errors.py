"""Stage-tagged error taxonomy for the caption pipeline.

WHY: Callers need to tell a broken source video apart from a rejected
transcription or a flaky network, and they need to know which pipeline
stage failed. One small hierarchy makes both questions answerable with a
single ``except CaptionError`` plus an ``isinstance`` check.

HOW: CaptionError carries an optional ``stage`` (a PipelineStage value,
filled in by the orchestrator) and an optional ``cleanup_error`` recorded
when artifact cleanup also failed. Each concrete subclass names one
failure family.

RULES:
- ExtractionError: transcoder failure or missing/corrupt source
- TranscriptionError: the service reported a failure
- TransientError: network or timeout failure; safe for the caller to retry
- CaptionIOError: local write/delete failure
- The pipeline never retries; retry is the caller's decision
"""

from __future__ import annotations

from typing import Any


class CaptionError(Exception):
    """Base class for all caption pipeline failures."""

    def __init__(self, message: str, *, stage: Any = None) -> None:
        self.message = message
        self.stage = stage
        self.cleanup_error: BaseException | None = None
        super().__init__(message)

    def __str__(self) -> str:
        if self.stage is None:
            return self.message
        return "[{}] {}".format(getattr(self.stage, "value", self.stage), self.message)


class ExtractionError(CaptionError):
    """Raised when the audio track cannot be extracted from the source video."""


class TranscriptionError(CaptionError):
    """Raised when the transcription service reports a failed transcript."""


class TranscriptionAPIError(TranscriptionError):
    """Raised when the transcription service answers with a non-2xx response.

    Wraps the HTTP status code and response body.
    """

    def __init__(self, status_code: int, message: str, *, stage: Any = None) -> None:
        self.status_code = status_code
        super().__init__(
            "Transcription API error {}: {}".format(status_code, message),
            stage=stage,
        )


class TransientError(CaptionError):
    """Raised on network failures and timeouts."""


class CaptionIOError(CaptionError):
    """Raised when a local file cannot be written or deleted."""
