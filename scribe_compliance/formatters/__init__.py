"""Output formatter registry.

WHY: The CLI and API layers need a single lookup to find the right
formatter by name. Adding a format means one new module and one line
here.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["plain_text"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and API fields)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from scribe_compliance.formatters.compliance_report import ComplianceReportFormatter
from scribe_compliance.formatters.plain_text import PlainTextFormatter

if TYPE_CHECKING:
    from scribe_compliance.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "plain_text": PlainTextFormatter,
    "compliance_report": ComplianceReportFormatter,
}
