"""Greedy chunking of timed word tokens into subtitle cues.

WHY: Word-level timestamps are far too granular to display; a viewer needs
short phrases that stay on screen for a few seconds. This module groups
consecutive words into cues small enough to read at a glance while
keeping the original timing intact.

HOW: A single left-to-right pass with a word buffer. The first word of a
cue fixes the cue's start; every appended word moves the cue's end. After
each append the buffer is flushed into a Cue when it holds max_words
words, when its space-joined text reaches max_chars characters, or when
the word is the last one.

RULES:
- Limits default to 8 words and 42 characters (one broadcast-width line)
- The character count is measured on the space-joined buffer text
- A single word at or over max_chars still becomes its own cue; words are
  never split
- Cue indices start at 1 and are contiguous
- Empty input produces an empty list
- Pure function: identical input always yields identical cues
"""

from __future__ import annotations

from collections.abc import Sequence

from caption_pipeline.core.ir import Cue, WordToken

MAX_WORDS_PER_CUE = 8
MAX_CHARS_PER_CUE = 42


def chunk_words(
    words: Sequence[WordToken],
    max_words: int = MAX_WORDS_PER_CUE,
    max_chars: int = MAX_CHARS_PER_CUE,
) -> list[Cue]:
    """Group an ordered word sequence into display-ready cues.

    Args:
        words: Ordered word tokens from the transcription client.
        max_words: Flush once the buffer holds this many words.
        max_chars: Flush once the joined buffer text is this long.

    Returns:
        Cues in time order, indexed from 1.
    """
    if max_words < 1:
        raise ValueError("max_words must be at least 1, got {}".format(max_words))
    if max_chars < 1:
        raise ValueError("max_chars must be at least 1, got {}".format(max_chars))

    cues: list[Cue] = []
    buffer: list[str] = []
    start_ms = 0
    end_ms = 0
    last = len(words) - 1

    for position, word in enumerate(words):
        if not buffer:
            start_ms = word.start_ms

        buffer.append(word.text)
        end_ms = word.end_ms
        text = " ".join(buffer)

        if len(buffer) >= max_words or len(text) >= max_chars or position == last:
            cues.append(
                Cue(
                    index=len(cues) + 1,
                    start_ms=start_ms,
                    end_ms=end_ms,
                    text=text,
                )
            )
            buffer = []

    return cues
