"""Intermediate representation dataclasses for structured transcripts.

WHY: Scribe returns a flat list of timestamped word tokens with speaker
tags. Playback highlighting, the compliance checklist, and the export
formatters all need the same data grouped as speakers → paragraphs →
sentences → words. The IR is that single, well-typed grouping.

HOW: Five frozen dataclasses form a hierarchy:
  WordToken            — one service token (input unit)
  Word                 — a WordToken plus its resolved speaker index
  Sentence             — consecutive same-speaker tokens up to a terminal mark
  Paragraph            — a maximal run of sentences from one speaker
  StructuredTranscript — the complete normalized transcript

RULES:
- All times are float seconds as returned by the service
- Instances are immutable; a new audio clip means a new transcript
- Sentence: start is its first word's start, end is its last word's end
- Paragraph: start/end bound all contained sentences
- word_count is derived from sentence text, never hard-coded
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class WordToken:
    """A single timestamped token from the transcription service.

    RULES:
    - text keeps its own spacing (Scribe tokens may be " " spacers)
    - speaker_label is the raw service label, e.g. "speaker_1"
    - kind is the service token type ("word", "spacing", "audio_event")
    """

    text: str
    start: float
    end: float
    speaker_label: str
    kind: str = "word"


@dataclass(frozen=True)
class Word:
    """A WordToken with its speaker label resolved to a small integer."""

    text: str
    start: float
    end: float
    speaker_label: str
    speaker_index: int
    kind: str = "word"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "start": self.start,
            "end": self.end,
            "speaker_label": self.speaker_label,
            "speaker_index": self.speaker_index,
            "kind": self.kind,
        }


@dataclass(frozen=True)
class Sentence:
    """Consecutive same-speaker tokens ending at a terminal mark or end of input."""

    text: str
    start: float
    end: float

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "start": self.start, "end": self.end}


@dataclass(frozen=True)
class Paragraph:
    """A maximal run of sentences spoken by one speaker.

    WHY: The transcript view renders one bubble per speaker turn and
    highlights the bubble whose [start, end] contains the playback time.

    RULES:
    - speaker_index comes from the same mapping used for words
    - sentences is never empty
    - start = first sentence start, end = last sentence end
    - word_count = sum of whitespace-delimited words across sentences
    """

    speaker_index: int
    sentences: Tuple[Sentence, ...]
    start: float
    end: float
    word_count: int

    @property
    def text(self) -> str:
        return " ".join(s.text.strip() for s in self.sentences)

    def contains(self, playback_s: float) -> bool:
        """Return True if playback_s falls inside this paragraph."""
        return self.start <= playback_s <= self.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "speaker_index": self.speaker_index,
            "sentences": [s.to_dict() for s in self.sentences],
            "start": self.start,
            "end": self.end,
            "word_count": self.word_count,
        }


@dataclass(frozen=True)
class StructuredTranscript:
    """The canonical normalized transcript consumed by playback and display.

    RULES:
    - full_text is the service-provided transcript ("" when absent)
    - paragraphs are in original order
    - words has one entry per input token, in input order
    """

    full_text: str = ""
    paragraphs: Tuple[Paragraph, ...] = field(default_factory=tuple)
    words: Tuple[Word, ...] = field(default_factory=tuple)
    language_code: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.words

    @property
    def duration_s(self) -> float:
        """End of the last word, 0.0 for an empty transcript."""
        if not self.words:
            return 0.0
        return max(w.end for w in self.words)

    @property
    def speaker_indices(self) -> Tuple[int, ...]:
        """Distinct speaker indices in order of first appearance."""
        seen = []
        for para in self.paragraphs:
            if para.speaker_index not in seen:
                seen.append(para.speaker_index)
        return tuple(seen)

    def active_paragraph(self, playback_s: float) -> Optional[Paragraph]:
        for para in self.paragraphs:
            if para.contains(playback_s):
                return para
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "full_text": self.full_text,
            "language_code": self.language_code,
            "duration_s": self.duration_s,
            "paragraphs": [p.to_dict() for p in self.paragraphs],
            "words": [w.to_dict() for w in self.words],
        }
