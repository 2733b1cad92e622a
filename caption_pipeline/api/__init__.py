"""Transcription API client package — async HTTP interface to the speech-to-text service.

WHY: The pipeline needs to upload audio, create a transcription job and
wait for word-level results. This package encapsulates all service
communication behind one async client class.

RULES:
- All HTTP calls go through TranscriptionClient (no direct httpx usage elsewhere)
- Response data is parsed into the dataclasses in models.py
"""

from caption_pipeline.api.client import TranscriptionClient
from caption_pipeline.api.models import ServiceWord, TranscriptJob

__all__ = ["ServiceWord", "TranscriptJob", "TranscriptionClient"]
