"""Intermediate representation dataclasses for one caption run.

WHY: The transcription service returns a flat, time-aligned word list.
The chunker, the format emitters and the orchestrator each need a
slightly different view of it. A small set of typed dataclasses is the
stable contract between those stages.

HOW: Five dataclasses, leaf-first:
  WordToken        — one transcribed word with millisecond boundaries
  TranscriptResult — full text, overall confidence and ordered words
  Cue              — one timed subtitle entry
  OutputPaths      — the derived audio/SRT/VTT locations for a video
  CaptionOutput    — the pipeline's terminal success value

RULES:
- All times are integer milliseconds
- WordToken and Cue enforce start_ms <= end_ms at construction
- Confidence is the raw 0.0–1.0 fraction, never a percentage
- None of these objects is persisted; only the caption files are
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class WordToken:
    """A single transcribed word with its time span.

    RULES:
    - text: the word as returned by the service, punctuation attached
    - start_ms / end_ms: integer milliseconds, start_ms <= end_ms
    - confidence: 0.0–1.0, or None when the service omits it
    """

    text: str
    start_ms: int
    end_ms: int
    confidence: float | None = None

    def __post_init__(self) -> None:
        if self.start_ms > self.end_ms:
            raise ValueError(
                "Word {!r} ends before it starts ({} > {})".format(
                    self.text, self.start_ms, self.end_ms
                )
            )


@dataclass
class TranscriptResult:
    """A completed transcript as returned by the transcription client."""

    full_text: str
    confidence: float
    words: list[WordToken] = field(default_factory=list)

    @property
    def word_count(self) -> int:
        return len(self.words)


@dataclass
class Cue:
    """One timed subtitle entry.

    RULES:
    - index: 1-based, contiguous within a cue sequence
    - start_ms <= end_ms
    - text: the space-joined words of the cue, single line
    """

    index: int
    start_ms: int
    end_ms: int
    text: str

    def __post_init__(self) -> None:
        if self.index < 1:
            raise ValueError("Cue index must be >= 1, got {}".format(self.index))
        if self.start_ms > self.end_ms:
            raise ValueError(
                "Cue {} ends before it starts ({} > {})".format(
                    self.index, self.start_ms, self.end_ms
                )
            )


@dataclass
class OutputPaths:
    """Locations derived from a source video for one run."""

    audio_path: Path
    srt_path: Path
    vtt_path: Path


@dataclass
class CaptionOutput:
    """Successful result of one caption pipeline run.

    WHY: Callers (upload handlers, CLI) need the caption file locations
    plus the transcript metadata to store alongside the video.

    RULES:
    - srt_path / vtt_path: written caption files, always as a pair
    - transcript_text: the service's full transcript text
    - confidence: raw 0.0–1.0 fraction (multiply by 100 only for display)
    - word_count: number of word tokens the service returned
    """

    srt_path: Path
    vtt_path: Path
    transcript_text: str
    confidence: float
    word_count: int

    def to_dict(self) -> dict[str, Any]:
        """Return the caller-facing result mapping (JSON serializable)."""
        return {
            "success": True,
            "srt_path": str(self.srt_path),
            "vtt_path": str(self.vtt_path),
            "transcript": self.transcript_text,
            "confidence": self.confidence,
            "word_count": self.word_count,
        }
