"""Subtitle formatter registry.

WHY: The pipeline and the CLI need a single lookup to find a formatter by
key. A central dict makes it trivial to add new formats: create the
formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["srt"]()``.

RULES:
- Keys are short lowercase identifiers
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from caption_pipeline.formatters.srt import SRTFormatter
from caption_pipeline.formatters.vtt import VTTFormatter

if TYPE_CHECKING:
    from caption_pipeline.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "srt": SRTFormatter,
    "vtt": VTTFormatter,
}
