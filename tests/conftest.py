"""Shared test fixtures for the scribe_compliance test suite.

WHY: Several test modules need the same realistic Scribe payload: a
short mortgage call with an agent, a customer, and the spacing tokens
Scribe puts between words. Centralizing it here keeps every test on the
same data.

HOW: SCRIBE_PAYLOAD is the raw JSON the service returns. Fixtures hand
out fresh copies of it, the parsed tokens, and the normalized transcript.

RULES:
- speaker_0 is the agent, speaker_1 the customer
- Spacing tokens carry the speaker of the word before them
- Expected paragraphs: agent (1 sentence), customer (1), agent (1)
"""

import copy
from typing import Any, Dict, List

import pytest

from scribe_compliance.api.models import ScribeResponse
from scribe_compliance.core.normalizer import normalize


def _w(text: str, start: float, end: float, speaker: str = "speaker_0") -> Dict[str, Any]:
    return {"text": text, "start": start, "end": end, "type": "word", "speaker_id": speaker}


def _s(start: float, end: float, speaker: str = "speaker_0") -> Dict[str, Any]:
    return {"text": " ", "start": start, "end": end, "type": "spacing", "speaker_id": speaker}


SCRIBE_PAYLOAD: Dict[str, Any] = {
    "language_code": "eng",
    "language_probability": 0.98,
    "text": "This call is on a recorded line. Okay. Our NMLS ID is 12345.",
    "words": [
        _w("This", 0.00, 0.20), _s(0.20, 0.25),
        _w("call", 0.25, 0.50), _s(0.50, 0.55),
        _w("is", 0.55, 0.65), _s(0.65, 0.70),
        _w("on", 0.70, 0.80), _s(0.80, 0.85),
        _w("a", 0.85, 0.90), _s(0.90, 0.95),
        _w("recorded", 0.95, 1.40), _s(1.40, 1.45),
        _w("line.", 1.45, 1.90), _s(1.90, 2.10),
        _w("Okay.", 2.10, 2.50, "speaker_1"), _s(2.50, 2.80, "speaker_1"),
        _w("Our", 2.80, 3.00), _s(3.00, 3.05),
        _w("NMLS", 3.05, 3.50), _s(3.50, 3.55),
        _w("ID", 3.55, 3.80), _s(3.80, 3.85),
        _w("is", 3.85, 3.95), _s(3.95, 4.00),
        _w("12345.", 4.00, 4.80),
    ],
}

DEMO_KEYTERMS: List[str] = [
    "Recorded line",
    "Annual percentage rate",
    "NMLS ID",
    "Privacy policy",
    "Closing disclosure",
]


@pytest.fixture
def scribe_payload():
    """A fresh copy of the raw Scribe response dict."""
    return copy.deepcopy(SCRIBE_PAYLOAD)


@pytest.fixture
def scribe_tokens():
    return ScribeResponse.from_dict(copy.deepcopy(SCRIBE_PAYLOAD)).to_tokens()


@pytest.fixture
def structured_transcript(scribe_tokens):
    return normalize(scribe_tokens, full_text=SCRIBE_PAYLOAD["text"], language_code="eng")


@pytest.fixture
def demo_keyterms():
    return list(DEMO_KEYTERMS)
