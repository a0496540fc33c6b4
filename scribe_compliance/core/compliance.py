"""Keyterm compliance matching and scoring.

WHY: A compliance checklist is a list of phrases an agent must say on a
call ("Recorded line", "NMLS ID", ...). As the recording plays, the
checklist ticks off each phrase once it has been spoken, and the share
of ticked phrases is the session score.

HOW: Case-insensitive literal substring counting. Each keyterm is
escaped so it is matched as text, never as a pattern, and the number of
non-overlapping occurrences is counted. The spoken-so-far text is the
words whose start time has been reached, joined by single spaces.

RULES:
- One MatchResult per keyterm, same order, duplicates evaluated independently
- Empty transcript or empty keyterm list → [] ("nothing to check yet")
- Substring, not whole-word: "recorded line" matches inside "unrecorded lines"
- A blank keyterm (empty or whitespace-only) counts 0 and never matches,
  even though whitespace occurs literally in any multi-word transcript
- checklist_results() always reports every keyterm, unmatched when
  nothing has been spoken; reports and saved sessions use it
- matched == (count > 0)
- Score = round-half-up(100 * matched / total), 0 when there are no keyterms
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from scribe_compliance.core.ir import Word


@dataclass(frozen=True)
class MatchResult:
    """Outcome of checking one keyterm against a transcript."""

    term: str
    matched: bool
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"term": self.term, "matched": self.matched, "count": self.count}


def count_occurrences(text: str, term: str) -> int:
    """Count non-overlapping, case-insensitive literal occurrences of term in text."""
    if not text or not term or not term.strip():
        return 0
    return len(re.findall(re.escape(term), text, flags=re.IGNORECASE))


def check_transcript(
    transcript: Optional[str],
    keyterms: Optional[Sequence[str]],
) -> List[MatchResult]:
    """Check every keyterm against the transcript text.

    Linear in transcript length per keyterm, so it is cheap enough to
    re-run on every playback tick.

    Args:
        transcript: Text spoken so far (or the whole transcript).
        keyterms: Ordered checklist phrases.

    Returns:
        One MatchResult per keyterm in input order, or [] when either
        input is empty.
    """
    if not transcript or not keyterms:
        return []

    results = []
    for term in keyterms:
        count = count_occurrences(transcript, term)
        results.append(MatchResult(term=term, matched=count > 0, count=count))
    return results


def unmatched_results(keyterms: Sequence[str]) -> List[MatchResult]:
    return [MatchResult(term=t, matched=False, count=0) for t in keyterms]


def checklist_results(
    transcript: Optional[str],
    keyterms: Optional[Sequence[str]],
) -> List[MatchResult]:
    """Like check_transcript(), but an empty transcript still yields one
    unmatched result per keyterm, so the checklist keeps its length.
    """
    keyterms = list(keyterms or [])
    return check_transcript(transcript, keyterms) or unmatched_results(keyterms)


def matched_count(results: Iterable[MatchResult]) -> int:
    return sum(1 for r in results if r.matched)


def compliance_score(
    results: Sequence[MatchResult],
    total_keyterms: Optional[int] = None,
) -> int:
    """Percentage of keyterms matched, rounded half up.

    total_keyterms defaults to len(results). It is passed explicitly by
    callers whose results may be empty while keyterms are not (nothing
    spoken yet), so the score is 0 rather than undefined.
    """
    total = len(results) if total_keyterms is None else total_keyterms
    if total <= 0:
        return 0
    return int(math.floor(100.0 * matched_count(results) / total + 0.5))


def spoken_text(words: Iterable[Word], playback_s: float) -> str:
    """Text of all words whose start is at or before playback_s.

    Spacing-only tokens are skipped; the remaining word texts are
    stripped and joined by single spaces in word order.
    """
    parts = []
    for word in words:
        if word.start > playback_s:
            continue
        text = word.text.strip()
        if text:
            parts.append(text)
    return " ".join(parts)
