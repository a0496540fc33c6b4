"""Plain text transcript formatter with speaker-labelled paragraphs.

WHY: Reviewers need a readable transcript for archival and quick
reference. No JSON, no timecodes, just who said what.

HOW: One block per paragraph: a "Agent:" / "Customer:" header line
followed by the paragraph text. Speaker 0 is the agent, every other
speaker is the customer. A blank line separates blocks.

RULES:
- One block per paragraph, in transcript order
- Sentences are stripped and joined with single spaces
- Double newline between blocks, single trailing newline
- Empty transcript → empty content
- Output suffix: "-transcript.txt"
"""

from __future__ import annotations

from typing import List, Sequence

from scribe_compliance.core.compliance import MatchResult
from scribe_compliance.core.ir import StructuredTranscript
from scribe_compliance.formatters.base import BaseFormatter, FormatterOutput


def speaker_role(speaker_index: int) -> str:
    return "Agent" if speaker_index == 0 else "Customer"


class PlainTextFormatter(BaseFormatter):
    """Formatter that produces speaker-labelled plain text paragraphs."""

    @property
    def name(self) -> str:
        return "Plain Text"

    def format(
        self,
        transcript: StructuredTranscript,
        results: Sequence[MatchResult],
    ) -> List[FormatterOutput]:
        blocks = [
            "{}:\n{}".format(speaker_role(p.speaker_index), p.text)
            for p in transcript.paragraphs
        ]
        content = "\n\n".join(blocks)
        if content:
            content += "\n"

        return [
            FormatterOutput(
                suffix="-transcript.txt",
                content=content,
                media_type="text/plain",
            )
        ]
