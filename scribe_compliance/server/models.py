"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation.

HOW: Each endpoint pair (request + response) has its own model. The
transcript models mirror the core IR dataclasses field for field so
they can be built with model_validate(ir.to_dict()).

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Response models never expose internal implementation details
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Transcript models
# ---------------------------------------------------------------------------


class WordModel(BaseModel):
    text: str = Field(description="Token text, including its own spacing.")
    start: float = Field(description="Start time in seconds.")
    end: float = Field(description="End time in seconds.")
    speaker_label: str = Field(default="speaker_0", description="Raw speaker label from the service.")
    speaker_index: int = Field(default=0, description="Resolved speaker index (0 = agent).")
    kind: str = Field(default="word", description="Token type: word, spacing, or audio_event.")


class SentenceModel(BaseModel):
    text: str = Field(description="Sentence text.")
    start: float = Field(description="Start of the first word (seconds).")
    end: float = Field(description="End of the last word (seconds).")


class ParagraphModel(BaseModel):
    speaker_index: int = Field(description="Speaker index for this turn.")
    sentences: List[SentenceModel] = Field(description="Sentences in spoken order.")
    start: float = Field(description="Start of the first sentence (seconds).")
    end: float = Field(description="End of the last sentence (seconds).")
    word_count: int = Field(description="Whitespace-delimited words across all sentences.")


class TranscriptModel(BaseModel):
    """Structured transcript: speakers → paragraphs → sentences → words."""

    full_text: str = Field(description="Service-provided transcript text.")
    language_code: Optional[str] = Field(default=None, description="Detected language, if reported.")
    duration_s: float = Field(description="End of the last word (seconds).")
    paragraphs: List[ParagraphModel] = Field(description="Speaker turns in order.")
    words: List[WordModel] = Field(description="One entry per service token.")


# ---------------------------------------------------------------------------
# Compliance models
# ---------------------------------------------------------------------------


class MatchResultModel(BaseModel):
    term: str = Field(description="Keyterm as given in the checklist.")
    matched: bool = Field(description="True when the keyterm occurs at least once.")
    count: int = Field(description="Non-overlapping, case-insensitive occurrences.")


class CheckRequest(BaseModel):
    """Keyterm check input.

    RULES:
    - Either transcript text, or words plus playback_s
    - With words + playback_s, only words started by playback_s are checked
    """

    keyterms: List[str] = Field(description="Ordered checklist phrases.")
    transcript: Optional[str] = Field(default=None, description="Transcript text to check.")
    words: Optional[List[WordModel]] = Field(
        default=None,
        description="Structured transcript words, used with playback_s.",
    )
    playback_s: Optional[float] = Field(
        default=None,
        ge=0,
        description="Current playback position in seconds.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "transcript": "This call is on a recorded line.",
                "keyterms": ["Recorded line", "NMLS ID"],
            }
        ]
    }}


class CheckResponse(BaseModel):
    results: List[MatchResultModel] = Field(description="One result per keyterm, in order.")
    matched: int = Field(description="Number of keyterms matched.")
    total_keyterms: int = Field(description="Number of keyterms checked.")
    score: int = Field(description="Percentage of keyterms matched (0–100).")


class AnalysisResponse(BaseModel):
    """Result of transcribing and normalizing an uploaded recording."""

    filename: str = Field(description="Uploaded filename.")
    scenario_id: Optional[str] = Field(default=None, description="Scenario whose keyterms were sent as hints.")
    keyterms: List[str] = Field(description="Keyterms used for recognition hints and checking.")
    transcript: TranscriptModel = Field(description="Normalized transcript.")


# ---------------------------------------------------------------------------
# Scenario models
# ---------------------------------------------------------------------------


class ScenarioCreate(BaseModel):
    title: str = Field(min_length=1, description="Scenario title.")
    description: str = Field(default="", description="Free-text description.")
    keyterms: List[str] = Field(default_factory=list, description="Ordered checklist phrases.")


class ScenarioResponse(BaseModel):
    id: str = Field(description="Scenario identifier.")
    title: str = Field(description="Scenario title.")
    description: str = Field(description="Free-text description.")
    keyterms: List[str] = Field(description="Ordered checklist phrases.")
    created_at: float = Field(description="Creation timestamp (Unix epoch seconds).")


# ---------------------------------------------------------------------------
# Session models
# ---------------------------------------------------------------------------


class SessionCreate(BaseModel):
    """Final session snapshot sent when the reviewer ends a session."""

    scenario_id: str = Field(description="Scenario the session was scored against.")
    transcript: str = Field(default="", description="Full transcript text.")
    score: int = Field(ge=0, le=100, description="Final score (0–100).")
    total_keyterms: int = Field(ge=0, description="Checklist length at save time.")
    duration_seconds: int = Field(ge=0, description="Wall-clock review duration.")
    ended_at: Optional[float] = Field(default=None, description="End timestamp (defaults to now).")


class SessionResponse(BaseModel):
    id: str = Field(description="Session identifier.")
    scenario_id: str = Field(description="Scenario the session was scored against.")
    transcript: str = Field(description="Full transcript text.")
    score: int = Field(description="Final score (0–100).")
    total_keyterms: int = Field(description="Checklist length at save time.")
    duration_seconds: int = Field(description="Wall-clock review duration.")
    created_at: float = Field(description="Insert timestamp (Unix epoch seconds).")
    ended_at: float = Field(description="End timestamp (Unix epoch seconds).")


class SessionDetailResponse(SessionResponse):
    """A saved session with its checklist re-evaluated against the saved transcript."""

    scenario_title: Optional[str] = Field(default=None, description="Title of the referenced scenario.")
    keyterms: List[str] = Field(description="Current keyterms of the referenced scenario.")
    results: List[MatchResultModel] = Field(description="Checklist results for the saved transcript.")
    matched: int = Field(description="Number of keyterms found in the saved transcript.")


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
    credentials_configured: bool = Field(description="Whether a server-side API key is configured.")
