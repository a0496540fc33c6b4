"""Configuration constants, named defaults, and credential loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. Speaker sentinels, sentence terminals, supported
audio formats, and API defaults are plain data, not buried in the
normalizer or the client.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level values. The API key is wrapped in an explicit
Credentials value that callers pass around instead of reading a global.

RULES:
- All defaults can be overridden via environment variables
- load_credentials() never raises; Credentials.require() does
- An absent key must block the transcription call before any network I/O
- The API key is loaded from .env via python-dotenv, never hardcoded
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Transcript normalization defaults
# ---------------------------------------------------------------------------

DEFAULT_SPEAKER_LABEL = "speaker_0"
"""Label assumed for tokens that arrive without a speaker_id."""

SENTENCE_TERMINALS = (".", "!", "?")
"""A token whose trimmed text ends with one of these closes a sentence."""

# ---------------------------------------------------------------------------
# Supported audio file extensions
# ---------------------------------------------------------------------------

SUPPORTED_AUDIO_FORMATS: set[str] = {
    ".aac", ".aiff", ".flac", ".m4a", ".mp3", ".mp4",
    ".ogg", ".opus", ".wav", ".webm",
}
"""Audio/video file extensions accepted for upload (lowercase, with dot)."""

# ---------------------------------------------------------------------------
# Demo scenario
# ---------------------------------------------------------------------------

DEMO_SCENARIO = {
    "title": "Mortgage Disclosure Call",
    "description": "Standard compliance checklist for outbound mortgage calls.",
    "keyterms": [
        "Recorded line",
        "Annual percentage rate",
        "NMLS ID",
        "Privacy policy",
        "Closing disclosure",
    ],
}

# ---------------------------------------------------------------------------
# API configuration defaults
# ---------------------------------------------------------------------------

SCRIBE_BASE_URL = os.getenv("SCRIBE_BASE_URL", "https://api.elevenlabs.io/v1")
SCRIBE_MODEL = os.getenv("SCRIBE_MODEL", "scribe_v2")
SCRIBE_DIARIZE = os.getenv("SCRIBE_DIARIZE", "true").lower() == "true"
SCRIBE_TAG_AUDIO_EVENTS = os.getenv("SCRIBE_TAG_AUDIO_EVENTS", "true").lower() == "true"


class MissingCredentialError(ValueError):
    """Raised when a transcription call is attempted without an API key.

    RULES:
    - Raised before any network attempt
    - The message is safe to show to the user as-is
    """


@dataclass(frozen=True)
class Credentials:
    """API credentials for the transcription service.

    WHY: The key used to be ambient process-wide state. Passing an
    explicit value makes every call site show where its key comes from
    and lets tests and the HTTP layer supply per-request keys.

    RULES:
    - api_key may be None or blank; is_configured reports whether it is usable
    - require() returns the stripped key or raises MissingCredentialError
    """

    api_key: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def require(self) -> str:
        if not self.is_configured:
            raise MissingCredentialError(
                "Please enter your ElevenLabs API key. "
                "Add ELEVENLABS_API_KEY to the .env file or send it with the request."
            )
        return self.api_key.strip()


def load_credentials(api_key: Optional[str] = None) -> Credentials:
    """Build Credentials from an explicit key or the environment.

    An explicit non-blank key wins; otherwise ELEVENLABS_API_KEY is read.
    The result may be unconfigured; callers decide when to require it.
    """
    if api_key and api_key.strip():
        return Credentials(api_key=api_key.strip())
    env_key = os.getenv("ELEVENLABS_API_KEY", "").strip()
    return Credentials(api_key=env_key or None)
