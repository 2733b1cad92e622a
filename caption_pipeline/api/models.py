"""Transcription service response dataclasses.

WHY: The AssemblyAI-style REST API returns flat JSON objects for the
transcript job and its words. Typed dataclasses make these structures
explicit and catch field mismatches at the parsing boundary instead of
deep inside the chunker.

HOW: Each dataclass maps 1:1 to a JSON object. Factory methods
(from_dict) handle parsing from raw API responses; to_result() converts a
completed job into the pipeline's TranscriptResult.

RULES:
- Word start/end are integer milliseconds in the service payload
- status is one of: "queued", "processing", "completed", "error"
- text/confidence/words are only meaningful when status is "completed"
- error is only present when status is "error"
"""

from __future__ import annotations

from dataclasses import dataclass, field

from caption_pipeline.core.ir import TranscriptResult, WordToken

TERMINAL_STATUSES = frozenset({"completed", "error"})


@dataclass
class ServiceWord:
    """A single word object from the transcript response."""

    text: str
    start: int
    end: int
    confidence: float | None = None

    @classmethod
    def from_dict(cls, data: dict) -> ServiceWord:
        """Parse a word dict; text, start and end are required."""
        confidence = data.get("confidence")
        return cls(
            text=data["text"],
            start=int(data["start"]),
            end=int(data["end"]),
            confidence=float(confidence) if confidence is not None else None,
        )

    def to_token(self) -> WordToken:
        return WordToken(
            text=self.text,
            start_ms=self.start,
            end_ms=self.end,
            confidence=self.confidence,
        )


@dataclass
class TranscriptJob:
    """Response from POST /transcript and GET /transcript/{id}.

    RULES:
    - id and status are always required
    - words defaults to [] (absent while the job is queued/processing)
    - confidence defaults to 0.0 when the service returns null
    """

    id: str
    status: str
    text: str | None = None
    confidence: float | None = None
    words: list[ServiceWord] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> TranscriptJob:
        confidence = data.get("confidence")
        return cls(
            id=data["id"],
            status=data["status"],
            text=data.get("text"),
            confidence=float(confidence) if confidence is not None else None,
            words=[ServiceWord.from_dict(w) for w in data.get("words") or []],
            error=data.get("error"),
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_result(self) -> TranscriptResult:
        """Convert a completed job into a TranscriptResult.

        Raises ValueError when a word violates start <= end.
        """
        return TranscriptResult(
            full_text=self.text or "",
            confidence=self.confidence if self.confidence is not None else 0.0,
            words=[w.to_token() for w in self.words],
        )
