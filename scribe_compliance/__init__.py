"""Scribe Compliance: call-recording keyterm compliance monitor.

WHY: Compliance reviewers need to know whether an agent said the
required phrases on a recorded call ("Recorded line", "NMLS ID", ...).
This package transcribes the call with a hosted speech-to-text service,
normalizes the result into speaker paragraphs, and scores the call
against a keyterm checklist as playback advances.

HOW: Three-stage pipeline: ingest (API client), normalize (core IR),
check (compliance matcher). Each stage is independently testable; the
HTTP API, CLI, and exporters are thin layers on top.

RULES:
- All consumers read the same StructuredTranscript IR
- Normalization and matching are pure and never touch the network
- Credentials are passed explicitly; only config.load_credentials() reads the environment
"""

__version__ = "0.1.0"
