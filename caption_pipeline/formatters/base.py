"""Abstract base formatter, output container, and timestamp helper.

WHY: Every subtitle format consumes the same cue sequence but produces
different text. This base class enforces a consistent interface so the
pipeline and the CLI can work with any formatter generically.

HOW: Subclasses provide a display ``name`` and turn a cue list into
a FormatterOutput, which pairs the rendered text with its file suffix.
format_timestamp() renders integer milliseconds as ``HH:MM:SS<sep>mmm``
for both SRT and VTT.

RULES:
- ``format()`` returns exactly one FormatterOutput
- ``suffix`` is the file extension including the dot, e.g. ``".srt"``
- The caller decides where the content is written
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from caption_pipeline.core.ir import Cue


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File extension for the output, e.g. ``".vtt"``.
        content: The complete file content.
    """

    suffix: str
    content: str


def format_timestamp(milliseconds: int, separator: str) -> str:
    """Format integer milliseconds as ``HH:MM:SS<separator>mmm``.

    RULES:
    - Hours are not capped at 24 and grow past two digits when needed
    - Hours, minutes and seconds are zero-padded to 2 digits, ms to 3
    - Negative input raises ValueError
    """
    if milliseconds < 0:
        raise ValueError("Timestamp must be non-negative, got {}".format(milliseconds))

    total_seconds = milliseconds // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    millis = milliseconds % 1000
    return "{:02d}:{:02d}:{:02d}{}{:03d}".format(hours, minutes, seconds, separator, millis)


class BaseFormatter(ABC):
    """Abstract base for all subtitle formatters.

    New caption formats subclass this and are registered under a short
    key in ``FORMATTERS`` (formatters/__init__.py); the pipeline looks
    them up there by key.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'SubRip'."""

    @abstractmethod
    def format(self, cues: Sequence[Cue]) -> FormatterOutput:
        """Render the cue sequence into one subtitle file.

        Args:
            cues: Ordered cues from the chunker, indexed from 1.

        Returns:
            A FormatterOutput with the file suffix and content.
        """
