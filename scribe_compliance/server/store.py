"""In-memory record store for scenarios and saved sessions.

WHY: The HTTP API needs somewhere to keep compliance scenarios (a title
and a keyterm checklist) and the final snapshot of each reviewed
session. An in-memory store is sufficient for a single-team tool; a
hosted database can replace it behind the same methods.

HOW: Three components work together:
  Scenario      — dataclass holding a checklist definition
  SessionRecord — dataclass holding one saved session snapshot
  RecordStore   — thread-safe dict-based store with insert/select/delete

RULES:
- All store mutations are protected by threading.Lock for thread safety
- Ids are UUID4 hex strings generated at insert time
- A session must reference an existing scenario
- Listings are newest first
- Inserts past max_records raise RecordStoreFull (no eviction, no retry)
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from scribe_compliance.config import DEMO_SCENARIO

logger = logging.getLogger(__name__)

DEFAULT_MAX_RECORDS = 1000


class UnknownScenarioError(KeyError):
    """Raised when a session references a scenario that does not exist."""


class RecordStoreFull(RuntimeError):
    """Raised when an insert would exceed the store's record limit."""


@dataclass
class Scenario:
    """A named keyterm checklist.

    RULES:
    - keyterms keep their order; duplicates are allowed
    - created_at: epoch timestamp when the scenario was created
    """

    id: str
    title: str
    description: str
    created_at: float
    keyterms: List[str] = field(default_factory=list)


@dataclass
class SessionRecord:
    """Final snapshot of one reviewed session.

    RULES:
    - scenario_id references the checklist the session was scored against
    - transcript is the full service transcript
    - score is 0–100; total_keyterms is the checklist length at save time
    - ended_at: epoch timestamp when the reviewer ended the session
    """

    id: str
    scenario_id: str
    transcript: str
    score: int
    total_keyterms: int
    duration_seconds: int
    created_at: float
    ended_at: float


class RecordStore:
    """Thread-safe in-memory store for scenarios and session records."""

    def __init__(self, max_records: int = DEFAULT_MAX_RECORDS) -> None:
        self._scenarios: Dict[str, Scenario] = {}
        self._sessions: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()
        self.max_records = max_records

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------

    def create_scenario(
        self,
        title: str,
        keyterms: Sequence[str],
        description: str = "",
    ) -> Scenario:
        with self._lock:
            self._check_capacity()
            scenario = Scenario(
                id=uuid.uuid4().hex,
                title=title,
                description=description,
                created_at=time.time(),
                keyterms=[str(k) for k in keyterms],
            )
            self._scenarios[scenario.id] = scenario

        logger.info("Created scenario %s (%d keyterms)", scenario.id, len(scenario.keyterms))
        return scenario

    def ensure_demo_scenario(self) -> Scenario:
        """Return the demo scenario, creating it on first use."""
        with self._lock:
            for scenario in self._scenarios.values():
                if scenario.title == DEMO_SCENARIO["title"]:
                    return scenario
        return self.create_scenario(
            title=DEMO_SCENARIO["title"],
            description=DEMO_SCENARIO["description"],
            keyterms=DEMO_SCENARIO["keyterms"],
        )

    def get_scenario(self, scenario_id: str) -> Optional[Scenario]:
        with self._lock:
            return self._scenarios.get(scenario_id)

    def list_scenarios(self) -> List[Scenario]:
        with self._lock:
            # dicts keep insertion order
            return list(reversed(list(self._scenarios.values())))

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def insert_session(
        self,
        scenario_id: str,
        transcript: str,
        score: int,
        total_keyterms: int,
        duration_seconds: int,
        ended_at: Optional[float] = None,
    ) -> SessionRecord:
        """Insert the final snapshot of a session.

        RULES:
        - Raises UnknownScenarioError if scenario_id is not stored
        - Raises RecordStoreFull when the store is at capacity
        - ended_at defaults to now
        """
        with self._lock:
            if scenario_id not in self._scenarios:
                raise UnknownScenarioError(scenario_id)
            self._check_capacity()

            now = time.time()
            record = SessionRecord(
                id=uuid.uuid4().hex,
                scenario_id=scenario_id,
                transcript=transcript,
                score=score,
                total_keyterms=total_keyterms,
                duration_seconds=duration_seconds,
                created_at=now,
                ended_at=ended_at if ended_at is not None else now,
            )
            self._sessions[record.id] = record

        logger.info(
            "Saved session %s for scenario %s (score %d%%)",
            record.id, scenario_id, score,
        )
        return record

    def get_session(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            return self._sessions.get(session_id)

    def list_sessions(self, scenario_id: Optional[str] = None) -> List[SessionRecord]:
        with self._lock:
            records = [
                r for r in self._sessions.values()
                if scenario_id is None or r.scenario_id == scenario_id
            ]
        return list(reversed(records))

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            record = self._sessions.pop(session_id, None)
        if record is None:
            return False
        logger.info("Deleted session %s", session_id)
        return True

    def clear(self) -> None:
        with self._lock:
            self._scenarios.clear()
            self._sessions.clear()

    def _check_capacity(self) -> None:
        # caller holds self._lock
        if len(self._scenarios) + len(self._sessions) >= self.max_records:
            raise RecordStoreFull(
                "Maximum number of records ({}) reached".format(self.max_records)
            )
