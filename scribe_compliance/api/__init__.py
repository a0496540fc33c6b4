"""Scribe API client package: async HTTP interface to the speech-to-text service.

WHY: The pipeline needs to send an audio file and receive timestamped,
speaker-tagged words. This package encapsulates that call behind an
async client class.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. Response data is
parsed into typed dataclasses defined in models.py.

RULES:
- All HTTP calls to the transcription service go through ScribeClient
- Authentication is via the xi-api-key header from explicit Credentials
"""

from scribe_compliance.api.client import ScribeAPIError, ScribeClient, ScribeConnectionError
from scribe_compliance.api.models import MalformedPayloadError, ScribeResponse, ScribeWord

__all__ = [
    "MalformedPayloadError",
    "ScribeAPIError",
    "ScribeClient",
    "ScribeConnectionError",
    "ScribeResponse",
    "ScribeWord",
]
