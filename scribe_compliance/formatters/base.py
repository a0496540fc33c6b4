"""Export formatter interface.

WHY: Reports about a reviewed call (readable transcript, machine-readable
compliance result) are all computed from the same normalized transcript
and checklist results. A shared interface lets the CLI run any selected
exporter without knowing what it writes.

HOW: Exporters subclass BaseFormatter and return FormatterOutput records.
Each record is one file: a suffix, the text content, and its MIME type.

RULES:
- format() never writes to disk; the CLI decides where files go
- A formatter may return more than one output
- ``suffix`` starts with a hyphen and includes the extension,
  e.g. ``"-compliance.json"``; the audio file's stem is prepended
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence

from scribe_compliance.core.compliance import MatchResult
from scribe_compliance.core.ir import StructuredTranscript


@dataclass
class FormatterOutput:
    """A single exported file, not yet written."""

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Base class for exporters registered in FORMATTERS."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name shown in CLI status lines."""

    @abstractmethod
    def format(
        self,
        transcript: StructuredTranscript,
        results: Sequence[MatchResult],
    ) -> List[FormatterOutput]:
        """Render the transcript and checklist results."""
