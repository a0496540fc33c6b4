"""Playback-driven compliance session.

WHY: During review, the checklist is re-evaluated every time playback
advances, and the final state is saved once when the reviewer ends the
session. ComplianceSession keeps that bookkeeping out of the HTTP and
CLI layers.

HOW: tick(playback_s) derives the spoken-so-far text from the structured
transcript and re-runs check_transcript. finish() freezes the last
results into a SessionSnapshot with the score and wall-clock duration.

RULES:
- Results are ephemeral: each tick replaces the previous results
- Before any tick, every keyterm is reported unmatched with count 0
- duration_seconds is measured from start() (0 if never started)
- The snapshot transcript is the full service transcript
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from scribe_compliance.core.compliance import (
    MatchResult,
    checklist_results,
    compliance_score,
    spoken_text,
    unmatched_results,
)
from scribe_compliance.core.ir import StructuredTranscript


@dataclass(frozen=True)
class SessionSnapshot:
    """Final state of a session, ready to be persisted."""

    transcript: str
    score: int
    total_keyterms: int
    duration_seconds: int
    results: List[MatchResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transcript": self.transcript,
            "score": self.score,
            "total_keyterms": self.total_keyterms,
            "duration_seconds": self.duration_seconds,
            "results": [r.to_dict() for r in self.results],
        }


class ComplianceSession:
    """Tracks checklist progress for one transcript as playback advances."""

    def __init__(
        self,
        transcript: StructuredTranscript,
        keyterms: Sequence[str],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transcript = transcript
        self.keyterms = list(keyterms)
        self._clock = clock
        self._started_at: Optional[float] = None
        self.playback_s = 0.0
        self.results = unmatched_results(self.keyterms)

    @property
    def started(self) -> bool:
        return self._started_at is not None

    @property
    def score(self) -> int:
        return compliance_score(self.results, len(self.keyterms))

    def start(self) -> None:
        """Mark the first play. Later calls keep the original start time."""
        if self._started_at is None:
            self._started_at = self._clock()

    def tick(self, playback_s: float) -> List[MatchResult]:
        self.playback_s = playback_s
        text = spoken_text(self.transcript.words, playback_s)
        self.results = checklist_results(text, self.keyterms)
        return self.results

    def finish(self) -> SessionSnapshot:
        duration = 0
        if self._started_at is not None:
            duration = int(round(self._clock() - self._started_at))
        return SessionSnapshot(
            transcript=self.transcript.full_text,
            score=self.score,
            total_keyterms=len(self.keyterms),
            duration_seconds=duration,
            results=list(self.results),
        )
