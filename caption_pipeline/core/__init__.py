"""Core caption pipeline modules.

WHY: The core package holds the stable heart of the pipeline — the IR
dataclasses, the audio extractor, the cue chunker and the orchestrator
that sequences them.

HOW: ir.py defines the data structures, extractor.py wraps ffmpeg,
chunker.py groups words into cues, pipeline.py runs the stages and owns
the temporary audio file.

RULES:
- IR dataclasses are the contract — change with care
- The chunker is format-agnostic — no SRT/VTT logic here
"""
