"""SubRip (SRT) formatter.

WHY: SRT is the most widely supported subtitle format; editors and most
desktop players read it.

HOW: Each cue becomes four lines: its decimal index, the
``start --> end`` timing line with comma millisecond separators, the
cue text and a blank line.

RULES:
- Timestamps use ``HH:MM:SS,mmm``
- No header; an empty cue sequence yields an empty string
"""

from __future__ import annotations

from collections.abc import Sequence

from caption_pipeline.config import SRT_EXTENSION
from caption_pipeline.core.ir import Cue
from caption_pipeline.formatters.base import BaseFormatter, FormatterOutput, format_timestamp


def format_srt_time(milliseconds: int) -> str:
    """Convert milliseconds to an SRT timestamp: HH:MM:SS,mmm"""
    return format_timestamp(milliseconds, ",")


def render_srt(cues: Sequence[Cue]) -> str:
    blocks = []
    for cue in cues:
        blocks.append(
            "{}\n{} --> {}\n{}\n\n".format(
                cue.index,
                format_srt_time(cue.start_ms),
                format_srt_time(cue.end_ms),
                cue.text,
            )
        )
    return "".join(blocks)


class SRTFormatter(BaseFormatter):
    """Formatter that produces a SubRip caption file."""

    @property
    def name(self) -> str:
        return "SubRip (SRT)"

    def format(self, cues: Sequence[Cue]) -> FormatterOutput:
        return FormatterOutput(
            suffix=SRT_EXTENSION,
            content=render_srt(cues),
        )
