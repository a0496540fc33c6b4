"""Async HTTP client for the ElevenLabs Scribe speech-to-text API.

WHY: The compliance pipeline needs one call: send an audio file, get back
a transcript with timestamped, speaker-tagged words. This module hides
the HTTP details behind a single client class so callers (CLI, HTTP API,
tests) don't need to know them.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. ScribeClient is an
async context manager. Enter it to get an authenticated client, exit to
close the connection pool. transcribe() posts multipart form data and
parses the response into a ScribeResponse.

RULES:
- Always use the async context manager (async with ScribeClient(...) as client:)
- Credentials are passed in explicitly; an absent key raises
  MissingCredentialError on entry, before any connection is opened
- One request per file: no polling, no streaming, no retries
- Non-2xx → ScribeAPIError; transport failure → ScribeConnectionError
- Keyterms are sent as repeated "keyterms[]" fields to bias recognition
- Status callback (on_status) is optional; when provided, called with status strings
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, Dict, Sequence

import httpx

from scribe_compliance.api.models import ScribeResponse
from scribe_compliance.config import (
    SCRIBE_BASE_URL,
    SCRIBE_DIARIZE,
    SCRIBE_MODEL,
    SCRIBE_TAG_AUDIO_EVENTS,
    Credentials,
)


class ScribeAPIError(Exception):
    """Raised when the Scribe API returns a non-success response.

    RULES:
    - Always include status_code and message
    - message is the response body text
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Scribe analysis failed: {status_code} {message}")


class ScribeConnectionError(Exception):
    """Raised when the request never got a response (DNS, TLS, timeout, ...)."""


class ScribeClient:
    """Async client for the Scribe speech-to-text endpoint.

    RULES:
    - Use as: async with ScribeClient(credentials) as client: ...
    - base_url defaults to SCRIBE_BASE_URL from config
    - model defaults to SCRIBE_MODEL from config
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        credentials: Credentials,
        base_url: str | None = None,
        model: str | None = None,
        diarize: bool = SCRIBE_DIARIZE,
        tag_audio_events: bool = SCRIBE_TAG_AUDIO_EVENTS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credentials = credentials
        self._base_url = (base_url or SCRIBE_BASE_URL).rstrip("/")
        self._model = model or SCRIBE_MODEL
        self._diarize = diarize
        self._tag_audio_events = tag_audio_events
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ScribeClient:
        api_key = self._credentials.require()
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"xi-api-key": api_key},
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
                "ScribeClient must be used as an async context manager: "
                "async with ScribeClient(credentials) as client: ..."
            )
        return self._client

    def build_form(self, keyterms: Sequence[str] | None = None) -> Dict[str, Any]:
        """Build the non-file form fields for a transcription request.

        List values are sent as one multipart field per element; the API
        expects array parameters repeated under the same key.
        """
        fields: Dict[str, Any] = {
            "model_id": self._model,
            "tag_audio_events": "true" if self._tag_audio_events else "false",
            "diarize": "true" if self._diarize else "false",
            "entity_detection[]": ["pii"],
        }
        terms = [t.strip() for t in keyterms or [] if t and t.strip()]
        if terms:
            fields["keyterms[]"] = terms
        return fields

    async def transcribe(
        self,
        file_path: Path,
        keyterms: Sequence[str] | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> ScribeResponse:
        """Upload an audio file and return the parsed transcription.

        Args:
            file_path: Path to the audio/video file.
            keyterms: Optional checklist phrases sent as recognition hints.
            on_status: Optional callback for status updates.

        Returns:
            ScribeResponse with text and word tokens.

        Raises:
            ScribeAPIError: On non-2xx responses.
            ScribeConnectionError: When no response was received.
            MalformedPayloadError: When the response body has the wrong shape.
        """
        file_path = Path(file_path)
        with open(file_path, "rb") as f:
            return await self.transcribe_bytes(
                file_path.name, f.read(), keyterms=keyterms, on_status=on_status,
            )

    async def transcribe_bytes(
        self,
        filename: str,
        content: bytes,
        keyterms: Sequence[str] | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> ScribeResponse:
        """Same as transcribe(), for audio already held in memory."""
        client = self._ensure_client()
        if on_status:
            on_status("Uploading {} for transcription...".format(filename))

        try:
            resp = await client.post(
                "/speech-to-text",
                data=self.build_form(keyterms),
                files={"file": (filename, content)},
            )
        except httpx.HTTPError as exc:
            raise ScribeConnectionError(
                "Could not reach the transcription service: {}".format(exc)
            ) from exc

        if not resp.is_success:
            raise ScribeAPIError(resp.status_code, resp.text)

        if on_status:
            on_status("Transcription complete.")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise ScribeAPIError(resp.status_code, "Response is not JSON") from exc
        return ScribeResponse.from_dict(payload)
