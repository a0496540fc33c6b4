"""Transcript normalization: flat word tokens → speakers, paragraphs, sentences.

WHY: Scribe returns a flat, chronological list of word tokens tagged
with speaker labels. The transcript view needs paragraphs (one per
speaker turn) made of sentences with their own time ranges, so that the
active paragraph and sentence can be highlighted as playback advances.

HOW: A single left-to-right pass driven by a small state machine.
ParagraphSegmenter is either IN_PARAGRAPH (no sentence in progress) or
IN_SENTENCE (fragments accumulated). Three triggers move it:
  SPEAKER_CHANGED        — close the open sentence, emit the paragraph
  SENTENCE_TERMINAL_SEEN — close the open sentence at this token's end
  END_OF_INPUT           — close the open sentence, emit the paragraph

RULES:
- Sentence text is the fragments joined with no separator (tokens carry spacing)
- A token closes a sentence when its trimmed text ends in ".", "!" or "?"
- A sentence closed by a speaker change ends at the previous token's end
- The next sentence starts at the next token's start (or this token's end)
- A paragraph carries the speaker index of the speaker who said it
- Any accumulated sentences are emitted at end of input
- Whitespace-only sentences (trailing spacing tokens) are dropped
- Zero tokens → empty transcript, no error
"""

from __future__ import annotations

import enum
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from scribe_compliance.api.models import ScribeResponse
from scribe_compliance.config import DEFAULT_SPEAKER_LABEL, SENTENCE_TERMINALS
from scribe_compliance.core.ir import (
    Paragraph,
    Sentence,
    StructuredTranscript,
    Word,
    WordToken,
)

# Labels with a fixed index regardless of their digits.
_KNOWN_SPEAKERS: Dict[str, int] = {
    "speaker_0": 0,
    "A": 0,
    "speaker_1": 1,
    "B": 1,
}

_DIGITS_RE = re.compile(r"[0-9]+")


def speaker_index(label: Optional[str]) -> int:
    """Map a speaker label to a small integer index.

    RULES:
    - "speaker_0" / "A" → 0, "speaker_1" / "B" → 1
    - Otherwise the first run of decimal digits ("speaker_7" → 7)
    - No digits, empty, or None → 0
    """
    if not label:
        return 0
    if label in _KNOWN_SPEAKERS:
        return _KNOWN_SPEAKERS[label]
    match = _DIGITS_RE.search(label)
    return int(match.group(0)) if match else 0


def is_sentence_terminal(text: str) -> bool:
    return text.strip().endswith(SENTENCE_TERMINALS)


class SegmenterState(str, enum.Enum):
    IN_PARAGRAPH = "in_paragraph"
    IN_SENTENCE = "in_sentence"


class Trigger(str, enum.Enum):
    SPEAKER_CHANGED = "speaker_changed"
    SENTENCE_TERMINAL_SEEN = "sentence_terminal_seen"
    END_OF_INPUT = "end_of_input"


class ParagraphSegmenter:
    """State machine that groups word tokens into paragraphs of sentences.

    WHY: The flush-on-speaker-change logic is easy to get subtly wrong
    inside one imperative loop. Keeping the state and transitions on an
    object lets each trigger be tested on its own.

    HOW: Seed with the first token (or nothing). Call feed() for every
    token with its successor, then finish(). Emitted paragraphs are
    collected in ``paragraphs``.

    RULES:
    - feed() after finish() raises RuntimeError
    - state is IN_SENTENCE exactly when fragments are pending
    """

    def __init__(self, first_token: Optional[WordToken] = None) -> None:
        self.state = SegmenterState.IN_PARAGRAPH
        self.paragraphs: List[Paragraph] = []
        self._speaker = first_token.speaker_label if first_token else DEFAULT_SPEAKER_LABEL
        self._sentence_start = first_token.start if first_token else 0.0
        self._sentences: List[Sentence] = []
        self._fragments: List[str] = []
        self._previous: Optional[WordToken] = None
        self._finished = False
        self._handlers: Dict[Trigger, Callable[[WordToken, Optional[WordToken]], None]] = {
            Trigger.SPEAKER_CHANGED: self._on_speaker_changed,
            Trigger.SENTENCE_TERMINAL_SEEN: self._on_sentence_terminal,
            Trigger.END_OF_INPUT: self._on_end_of_input,
        }

    @property
    def current_speaker(self) -> str:
        return self._speaker

    @property
    def pending_sentences(self) -> Sequence[Sentence]:
        return tuple(self._sentences)

    def fire(
        self,
        trigger: Trigger,
        token: Optional[WordToken] = None,
        next_token: Optional[WordToken] = None,
    ) -> None:
        """Apply one transition."""
        self._handlers[trigger](token, next_token)

    def feed(self, token: WordToken, next_token: Optional[WordToken] = None) -> None:
        if self._finished:
            raise RuntimeError("ParagraphSegmenter already finished")

        if token.speaker_label != self._speaker:
            self.fire(Trigger.SPEAKER_CHANGED, token)

        self._fragments.append(token.text)
        self.state = SegmenterState.IN_SENTENCE

        if is_sentence_terminal(token.text):
            self.fire(Trigger.SENTENCE_TERMINAL_SEEN, token, next_token)

        self._previous = token

    def finish(self) -> List[Paragraph]:
        if not self._finished:
            self.fire(Trigger.END_OF_INPUT, self._previous)
            self._finished = True
        return self.paragraphs

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _on_speaker_changed(self, token: WordToken, _next: Optional[WordToken]) -> None:
        if self._fragments:
            end = self._previous.end if self._previous is not None else token.end
            self._close_sentence(end)
        self._emit_paragraph()
        self._speaker = token.speaker_label
        self._sentence_start = token.start

    def _on_sentence_terminal(self, token: WordToken, next_token: Optional[WordToken]) -> None:
        self._close_sentence(token.end)
        self._sentence_start = next_token.start if next_token is not None else token.end

    def _on_end_of_input(self, last: Optional[WordToken], _next: Optional[WordToken]) -> None:
        if self._fragments and last is not None:
            self._close_sentence(last.end)
        self._emit_paragraph()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _close_sentence(self, end: float) -> None:
        text = "".join(self._fragments)
        # Spacing tokens left between turns do not make a sentence.
        if text.strip():
            self._sentences.append(Sentence(
                text=text,
                start=self._sentence_start,
                end=end,
            ))
        self._fragments = []
        self.state = SegmenterState.IN_PARAGRAPH

    def _emit_paragraph(self) -> None:
        if not self._sentences:
            return
        sentences = tuple(self._sentences)
        self.paragraphs.append(Paragraph(
            speaker_index=speaker_index(self._speaker),
            sentences=sentences,
            start=sentences[0].start,
            end=sentences[-1].end,
            word_count=sum(s.word_count for s in sentences),
        ))
        self._sentences = []


def segment_paragraphs(tokens: Sequence[WordToken]) -> List[Paragraph]:
    """Run the segmenter over an ordered token sequence."""
    segmenter = ParagraphSegmenter(tokens[0] if tokens else None)
    for i, token in enumerate(tokens):
        next_token = tokens[i + 1] if i + 1 < len(tokens) else None
        segmenter.feed(token, next_token)
    return segmenter.finish()


def normalize(
    tokens: Iterable[WordToken],
    full_text: str = "",
    language_code: Optional[str] = None,
) -> StructuredTranscript:
    """Convert word tokens into a StructuredTranscript.

    Pure function of its input: no network or storage access.

    Args:
        tokens: Word tokens in chronological order.
        full_text: Service-provided transcript text, used verbatim.
        language_code: Detected language, if the service reported one.

    Returns:
        StructuredTranscript with paragraphs and one Word per token.
    """
    token_list = list(tokens)
    if not token_list:
        return StructuredTranscript(full_text=full_text or "", language_code=language_code)

    words = tuple(
        Word(
            text=t.text,
            start=t.start,
            end=t.end,
            speaker_label=t.speaker_label,
            speaker_index=speaker_index(t.speaker_label),
            kind=t.kind,
        )
        for t in token_list
    )

    return StructuredTranscript(
        full_text=full_text or "",
        paragraphs=tuple(segment_paragraphs(token_list)),
        words=words,
        language_code=language_code,
    )


def normalize_payload(payload: Any) -> StructuredTranscript:
    """Parse a raw Scribe payload and normalize it.

    Raises:
        MalformedPayloadError: If the payload does not match the Scribe shape.
    """
    response = ScribeResponse.from_dict(payload)
    return normalize(
        response.to_tokens(),
        full_text=response.text,
        language_code=response.language_code,
    )
