"""WebVTT formatter for HTML5 video players.

WHY: Browsers only load ``<track>`` captions in WebVTT, so the portal's
video player needs this format next to the SRT file.

HOW: Writes the literal ``WEBVTT`` header and a blank line, then one
block per cue: the ``start --> end`` timing line with dot millisecond
separators, the cue text and a blank line. Cue indices are not written.

RULES:
- Timestamps use ``HH:MM:SS.mmm``
- An empty cue sequence yields just the header: "WEBVTT\\n\\n"
"""

from __future__ import annotations

from collections.abc import Sequence

from caption_pipeline.config import VTT_EXTENSION
from caption_pipeline.core.ir import Cue
from caption_pipeline.formatters.base import BaseFormatter, FormatterOutput, format_timestamp

VTT_HEADER = "WEBVTT\n\n"


def format_vtt_time(milliseconds: int) -> str:
    """Convert milliseconds to a WebVTT timestamp: HH:MM:SS.mmm"""
    return format_timestamp(milliseconds, ".")


def render_vtt(cues: Sequence[Cue]) -> str:
    parts = [VTT_HEADER]
    for cue in cues:
        parts.append(
            "{} --> {}\n{}\n\n".format(
                format_vtt_time(cue.start_ms),
                format_vtt_time(cue.end_ms),
                cue.text,
            )
        )
    return "".join(parts)


class VTTFormatter(BaseFormatter):
    """Formatter that produces a WebVTT caption file."""

    @property
    def name(self) -> str:
        return "WebVTT"

    def format(self, cues: Sequence[Cue]) -> FormatterOutput:
        return FormatterOutput(
            suffix=VTT_EXTENSION,
            content=render_vtt(cues),
        )
