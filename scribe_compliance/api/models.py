"""Scribe speech-to-text response dataclasses.

WHY: The Scribe API returns a JSON object with a plaintext transcript
and a flat list of word entries. Typed dataclasses make that structure
explicit and catch shape mismatches at the boundary instead of deep in
the normalizer.

HOW: Each dataclass maps 1:1 to a Scribe JSON object. Factory methods
(from_dict) parse raw API responses and raise MalformedPayloadError for
payloads that break the contract.

RULES:
- Payload must be a JSON object; anything else is malformed
- An absent "words" list is treated as empty (graceful degradation)
- A "words" value that is not a list is malformed
- Each word needs text, start, end; speaker_id falls back to DEFAULT_SPEAKER_LABEL
- Wrong types are rejected, never coerced: text, speaker_id and type
  must be strings (speaker_id and type may be absent), start/end numeric
- An absent "text" is treated as ""
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from scribe_compliance.config import DEFAULT_SPEAKER_LABEL
from scribe_compliance.core.ir import WordToken


class MalformedPayloadError(ValueError):
    """Raised when a transcription payload does not have the expected shape."""


@dataclass
class ScribeWord:
    """A single entry from the Scribe "words" array.

    RULES:
    - text: raw token text; spacing entries are " "
    - start/end: float seconds
    - speaker_id: "speaker_0", "speaker_1", ... or None when diarization is off
    - type: "word", "spacing", or "audio_event"
    """

    text: str
    start: float
    end: float
    speaker_id: Optional[str] = None
    type: str = "word"

    @classmethod
    def from_dict(cls, data: Any) -> ScribeWord:
        if not isinstance(data, dict):
            raise MalformedPayloadError(
                "Expected a word object, got {}".format(type(data).__name__)
            )
        missing = [key for key in ("text", "start", "end") if key not in data]
        if missing:
            raise MalformedPayloadError(
                "Word entry is missing field(s): {}".format(", ".join(missing))
            )
        for key in ("start", "end"):
            # bool is an int subclass
            if isinstance(data[key], bool) or not isinstance(data[key], (int, float)):
                raise MalformedPayloadError(
                    "Word timing is not numeric: {!r}".format(data)
                )
        start = float(data["start"])
        end = float(data["end"])
        if not isinstance(data["text"], str):
            raise MalformedPayloadError(
                "Word text must be a string: {!r}".format(data)
            )
        for key in ("speaker_id", "type"):
            if data.get(key) is not None and not isinstance(data[key], str):
                raise MalformedPayloadError(
                    "Word {} must be a string: {!r}".format(key, data)
                )
        return cls(
            text=data["text"],
            start=start,
            end=end,
            speaker_id=data.get("speaker_id"),
            type=data.get("type") or "word",
        )

    def to_token(self) -> WordToken:
        return WordToken(
            text=self.text,
            start=self.start,
            end=self.end,
            speaker_label=self.speaker_id or DEFAULT_SPEAKER_LABEL,
            kind=self.type,
        )


@dataclass
class ScribeResponse:
    """Full response from POST /v1/speech-to-text.

    WHY: Holds the plaintext transcript, the word array, and optional
    language detection fields for downstream normalization.

    RULES:
    - text is the service transcript, used verbatim as full_text
    - words preserves the service order (chronological by start)
    """

    text: str
    words: List[ScribeWord] = field(default_factory=list)
    language_code: Optional[str] = None
    language_probability: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Any) -> ScribeResponse:
        if not isinstance(data, dict):
            raise MalformedPayloadError(
                "Expected a transcription object, got {}".format(type(data).__name__)
            )
        raw_words = data.get("words")
        if raw_words is None:
            raw_words = []
        if not isinstance(raw_words, list):
            raise MalformedPayloadError(
                "'words' must be a list, got {}".format(type(raw_words).__name__)
            )
        text = data.get("text")
        if text is not None and not isinstance(text, str):
            raise MalformedPayloadError(
                "'text' must be a string, got {}".format(type(text).__name__)
            )
        return cls(
            text=text or "",
            words=[ScribeWord.from_dict(w) for w in raw_words],
            language_code=data.get("language_code"),
            language_probability=data.get("language_probability"),
        )

    def to_tokens(self) -> List[WordToken]:
        return [w.to_token() for w in self.words]
