"""Async HTTP client for an AssemblyAI-compatible speech-to-text API.

WHY: The pipeline needs to upload an audio file, create a transcription
job, and wait for the word-level result. This module encapsulates that
workflow behind a single client class so the orchestrator (and its tests)
never deal with HTTP details, and so a fake client can stand in for it.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. TranscriptionClient is
an async context manager — enter it to get an authenticated client, exit
to close the connection pool. transcribe() runs one attempt:
upload_file → create_transcript → poll_until_complete.

RULES:
- Always use the async context manager (async with TranscriptionClient(...) as client:)
- Credentials come from the constructor, falling back to load_api_key()
- Exactly one attempt per transcribe() call; there is no retry
- Service-reported failures raise TranscriptionError
- Network failures and polling timeouts raise TransientError
- Polling uses exponential backoff: 2s initial, 1.5x factor, 15s max, 60min timeout
- Status callback (on_status) is optional; when provided, called with status strings
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any, BinaryIO

import httpx

from caption_pipeline.api.models import TranscriptJob
from caption_pipeline.config import ASSEMBLYAI_BASE_URL, DEFAULT_LANGUAGE_CODE, load_api_key
from caption_pipeline.core.ir import TranscriptResult
from caption_pipeline.errors import (
    CaptionIOError,
    TranscriptionAPIError,
    TranscriptionError,
    TransientError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_POLL_INITIAL_INTERVAL_S = 2.0
_POLL_BACKOFF_FACTOR = 1.5
_POLL_MAX_INTERVAL_S = 15.0
_POLL_TIMEOUT_S = 60 * 60  # 60 minutes
_UPLOAD_CHUNK_SIZE = 1024 * 1024


class TranscriptionClient:
    """Async client for the transcription REST API.

    WHY: Provides a clean, typed interface for the transcription workflow
    and maps every failure onto the pipeline's error taxonomy.

    HOW: Wraps httpx.AsyncClient with the API key in the ``authorization``
    header. ``transport`` lets tests plug in httpx.MockTransport.

    RULES:
    - Use as: async with TranscriptionClient(api_key=...) as client: ...
    - api_key defaults to load_api_key() from .env
    - base_url defaults to ASSEMBLYAI_BASE_URL from config
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        *,
        poll_interval_s: float = _POLL_INITIAL_INTERVAL_S,
        poll_timeout_s: float = _POLL_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or ASSEMBLYAI_BASE_URL).rstrip("/")
        self._poll_interval_s = poll_interval_s
        self._poll_timeout_s = poll_timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> TranscriptionClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"authorization": self._api_key},
            timeout=httpx.Timeout(300.0, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "TranscriptionClient must be used as an async context manager: "
                "async with TranscriptionClient() as client: ..."
            )
        return self._client

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict:
        """Send one request and return the decoded JSON body.

        RULES:
        - httpx.TransportError (connect, read, timeout) → TransientError
        - Non-2xx → TranscriptionAPIError with status code and body
        - Undecodable body → TranscriptionError
        """
        client = self._ensure_client()
        try:
            resp = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransientError(
                "Transcription service timed out on {} {}: {}".format(method, url, exc)
            ) from exc
        except httpx.TransportError as exc:
            raise TransientError(
                "Could not reach transcription service ({} {}): {}".format(method, url, exc)
            ) from exc

        if resp.status_code not in (200, 201):
            raise TranscriptionAPIError(resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            raise TranscriptionError(
                "Transcription service returned invalid JSON for {} {}".format(method, url)
            ) from exc
        if not isinstance(data, dict):
            raise TranscriptionError(
                "Transcription service returned unexpected payload for {} {}".format(method, url)
            )
        return data

    # ------------------------------------------------------------------
    # Step 1: Upload file
    # ------------------------------------------------------------------

    async def upload_file(
        self,
        file_path: Path,
        on_status: Callable[[str], None] | None = None,
    ) -> str:
        """Upload an audio file and return the service-side URL for it.

        RULES:
        - file_path must point to an existing, readable file
        - The file is streamed in chunks, never read into memory whole
        - Raises CaptionIOError if the local file cannot be read
        - Raises TranscriptionError if the response has no upload_url
        """
        if on_status:
            on_status("Uploading audio...")

        file_path = Path(file_path)
        try:
            with open(file_path, "rb") as f:
                data = await self._request(
                    "POST",
                    "/upload",
                    content=_iter_file(f),
                    headers={"content-type": "application/octet-stream"},
                )
        except OSError as exc:
            raise CaptionIOError(
                "Could not read audio file {}: {}".format(file_path, exc)
            ) from exc

        try:
            return data["upload_url"]
        except KeyError:
            raise TranscriptionError("Upload response is missing 'upload_url'") from None

    # ------------------------------------------------------------------
    # Step 2: Create transcript job
    # ------------------------------------------------------------------

    async def create_transcript(
        self,
        audio_url: str,
        language_code: str = DEFAULT_LANGUAGE_CODE,
        on_status: Callable[[str], None] | None = None,
    ) -> TranscriptJob:
        """Create a transcription job for an uploaded file.

        RULES:
        - Speaker labels are always disabled (no diarization)
        - language_code is sent as-is (no auto-detection)
        """
        if on_status:
            on_status("Creating transcript ({})...".format(language_code))

        body = {
            "audio_url": audio_url,
            "language_code": language_code,
            "speaker_labels": False,
        }
        data = await self._request("POST", "/transcript", json=body)
        return _parse_job(data)

    # ------------------------------------------------------------------
    # Step 3: Poll until complete
    # ------------------------------------------------------------------

    async def poll_until_complete(
        self,
        transcript_id: str,
        on_status: Callable[[str], None] | None = None,
    ) -> TranscriptJob:
        """Poll a transcript job until it reaches a terminal status.

        HOW: Exponential backoff polling — starts at poll_interval_s,
        grows by 1.5x per poll, capped at 15s.

        RULES:
        - Returns the TranscriptJob when status is "completed"
        - Raises TranscriptionError when status is "error"
        - Raises TransientError after poll_timeout_s
        """
        interval = self._poll_interval_s
        start_time = time.monotonic()

        while True:
            elapsed = time.monotonic() - start_time
            if elapsed > self._poll_timeout_s:
                raise TransientError(
                    "Transcript {} did not finish within {:.0f}s".format(
                        transcript_id, self._poll_timeout_s
                    )
                )

            job = _parse_job(await self._request("GET", "/transcript/{}".format(transcript_id)))

            if on_status:
                if job.status == "queued":
                    on_status("Transcript queued...")
                elif job.status == "processing":
                    on_status(
                        "Transcribing... (elapsed: {}m {:02d}s)".format(
                            int(elapsed) // 60, int(elapsed) % 60
                        )
                    )
                elif job.status == "completed":
                    on_status("Transcription complete.")

            if _finished(job):
                return job

            await asyncio.sleep(interval)
            interval = min(interval * _POLL_BACKOFF_FACTOR, _POLL_MAX_INTERVAL_S)

    # ------------------------------------------------------------------
    # Full attempt
    # ------------------------------------------------------------------

    async def transcribe(
        self,
        audio_path: Path,
        language_code: str = DEFAULT_LANGUAGE_CODE,
        on_status: Callable[[str], None] | None = None,
    ) -> TranscriptResult:
        """Run one transcription attempt and return the word-level result.

        Args:
            audio_path: Local audio file to transcribe.
            language_code: ISO 639-1 code of the spoken language.
            on_status: Optional callback for status updates.

        Returns:
            TranscriptResult with full text, confidence and ordered words.
        """
        audio_url = await self.upload_file(audio_path, on_status=on_status)
        job = await self.create_transcript(audio_url, language_code, on_status=on_status)
        logger.info("Created transcript %s for %s", job.id, Path(audio_path).name)

        if not _finished(job):
            job = await self.poll_until_complete(job.id, on_status=on_status)

        try:
            return job.to_result()
        except ValueError as exc:
            raise TranscriptionError(
                "Transcript {} contains invalid word timing: {}".format(job.id, exc)
            ) from exc


def _parse_job(data: dict) -> TranscriptJob:
    try:
        return TranscriptJob.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise TranscriptionError(
            "Malformed transcript response: {!r}".format(exc)
        ) from exc


def _finished(job: TranscriptJob) -> bool:
    """True once the job completed; raises if the service reported an error."""
    if job.status == "error":
        raise TranscriptionError("Transcription failed: {}".format(job.error))
    return job.is_terminal


async def _iter_file(f: BinaryIO) -> AsyncIterator[bytes]:
    while True:
        chunk = f.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            return
        yield chunk
