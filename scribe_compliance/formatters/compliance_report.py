"""JSON compliance report formatter.

WHY: Downstream tools (dashboards, audit archives) need the checklist
outcome and the transcript it was computed from in one machine-readable
file.

HOW: Serializes the score, matched/total counts, per-keyterm results,
and the full StructuredTranscript into a single JSON document.

RULES:
- score uses the same rounding as the live checklist
- results keep checklist order
- Output suffix: "-compliance.json"
"""

from __future__ import annotations

import json
from typing import List, Sequence

from scribe_compliance.core.compliance import MatchResult, compliance_score, matched_count
from scribe_compliance.core.ir import StructuredTranscript
from scribe_compliance.formatters.base import BaseFormatter, FormatterOutput


class ComplianceReportFormatter(BaseFormatter):
    """Formatter that writes the checklist outcome and transcript as one JSON file.

    Expects one result per keyterm (see checklist_results), so
    total_keyterms is the checklist length even when nothing was spoken.
    """

    @property
    def name(self) -> str:
        return "Compliance Report JSON"

    def format(
        self,
        transcript: StructuredTranscript,
        results: Sequence[MatchResult],
    ) -> List[FormatterOutput]:
        report = {
            "score": compliance_score(results),
            "matched": matched_count(results),
            "total_keyterms": len(results),
            "results": [r.to_dict() for r in results],
            "transcript": transcript.to_dict(),
        }
        return [
            FormatterOutput(
                suffix="-compliance.json",
                content=json.dumps(report, indent=2, ensure_ascii=False),
                media_type="application/json",
            )
        ]
