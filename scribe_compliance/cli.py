"""Command-line interface for Scribe Compliance.

WHY: Reviewers and scripts need to score a recorded call without the
web front end. The CLI wires together the full pipeline (file
validation, Scribe transcription, normalization, keyterm checking, and
report export) behind a single command.

HOW: argparse with three subcommands:
  analyze — transcribe an audio file and score it against keyterms
  check   — score an existing transcript text file (no network)
  serve   — run the HTTP API with uvicorn
The async transcription call runs via asyncio.run(). Status messages go
to stderr; the checklist and score go to stdout.

RULES:
- Validates file existence and extension before any API call
- Keyterms: --keyterm (repeatable), --keyterms-file, else {stem}-keyterms.txt
- A missing API key stops the run before any network call (exit 1)
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-compliance-2.json)
- Transcription failures print one "Error: ..." line and exit 1; no retry
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from scribe_compliance.api.client import ScribeAPIError, ScribeClient, ScribeConnectionError
from scribe_compliance.api.models import MalformedPayloadError
from scribe_compliance.config import SUPPORTED_AUDIO_FORMATS, MissingCredentialError, load_credentials
from scribe_compliance.core.compliance import (
    MatchResult,
    checklist_results,
    compliance_score,
    matched_count,
)
from scribe_compliance.core.normalizer import normalize
from scribe_compliance.core.session import ComplianceSession
from scribe_compliance.formatters import FORMATTERS
from scribe_compliance.formatters.base import FormatterOutput


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr, flush=True)
    sys.exit(1)


def load_keyterms(path: str | Path) -> List[str]:
    """Load checklist keyterms from a text file.

    RULES:
    - One keyterm per line, surrounding whitespace stripped
    - Blank lines and lines starting with '#' are ignored
    - Order is preserved; duplicates are kept
    """
    keyterms: List[str] = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        keyterms.append(stripped)
    return keyterms


def _resolve_keyterms(
    explicit: Optional[Sequence[str]],
    keyterms_file: Optional[str],
    audio_path: Optional[Path] = None,
) -> List[str]:
    """Collect keyterms from flags, a file, or the audio's companion file."""
    keyterms = [t for t in explicit or [] if t.strip()]
    if keyterms_file:
        keyterms.extend(load_keyterms(keyterms_file))
    if not keyterms and audio_path is not None:
        companion = audio_path.parent / "{}-keyterms.txt".format(audio_path.stem)
        if companion.is_file():
            _status("Using keyterms from {}".format(companion.name))
            keyterms = load_keyterms(companion)
    return keyterms


def _resolve_output_path(stem: str, suffix: str, output_dir: Path) -> Path:
    """Return {stem}{suffix} in output_dir, adding -2, -3, ... on conflict."""
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    # "-compliance.json" → ("-compliance", ".json")
    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name, suffix_ext = suffix[:dot_idx], suffix[dot_idx:]
    else:
        suffix_name, suffix_ext = suffix, ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _parse_formats(raw: Optional[str]) -> List[str]:
    if not raw:
        return list(FORMATTERS.keys())
    keys = [f.strip() for f in raw.split(",") if f.strip()]
    unknown = [k for k in keys if k not in FORMATTERS]
    if unknown:
        _fail("Unknown format(s): {}. Available: {}".format(
            ", ".join(unknown), ", ".join(sorted(FORMATTERS.keys())),
        ))
    return keys


def print_checklist(results: Sequence[MatchResult], total_keyterms: int) -> None:
    """Print the checklist and score to stdout."""
    for result in results:
        mark = "x" if result.matched else " "
        detail = " (found {} time{})".format(
            result.count, "" if result.count == 1 else "s",
        ) if result.matched else ""
        print("[{}] {}{}".format(mark, result.term, detail))
    print("Score: {}% ({} / {} keyterms)".format(
        compliance_score(results, total_keyterms),
        matched_count(results),
        total_keyterms,
    ))


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


async def _run_analyze(args: argparse.Namespace) -> None:
    """Transcribe, normalize, check, and export one recording.

    RULES:
    - Validate file and extension before any API call
    - Credentials are checked before the client is created
    - Each selected formatter's outputs are saved with conflict avoidance
    """
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    ext = input_path.suffix.lower()
    if ext not in SUPPORTED_AUDIO_FORMATS:
        _fail("Unsupported file type '{}'. Supported formats: {}".format(
            ext, ", ".join(sorted(SUPPORTED_AUDIO_FORMATS)),
        ))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    format_keys = _parse_formats(args.formats)
    keyterms = _resolve_keyterms(args.keyterm, args.keyterms_file, input_path)

    credentials = load_credentials(args.api_key)
    if not credentials.is_configured:
        _fail("Please enter your ElevenLabs API key (--api-key or ELEVENLABS_API_KEY).")

    _status("Input: {}".format(input_path.name))
    _status("Keyterms: {}".format(len(keyterms)))

    try:
        async with ScribeClient(credentials) as client:
            response = await client.transcribe(input_path, keyterms=keyterms, on_status=_status)
    except (ScribeAPIError, ScribeConnectionError, MalformedPayloadError, MissingCredentialError) as e:
        _fail(str(e))

    transcript = normalize(
        response.to_tokens(),
        full_text=response.text,
        language_code=response.language_code,
    )
    _status("Normalized: {} words, {} paragraphs, {} speaker(s)".format(
        len(transcript.words),
        len(transcript.paragraphs),
        len(transcript.speaker_indices),
    ))

    # Score the whole recording: play it through to its last word.
    session = ComplianceSession(transcript, keyterms)
    session.tick(transcript.duration_s)
    snapshot = session.finish()
    print_checklist(snapshot.results, snapshot.total_keyterms)

    stem = input_path.stem
    saved_files: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        _status("  Running {} formatter...".format(formatter.name))
        for output in formatter.format(transcript, snapshot.results):
            saved_path = _save_output(output, stem, output_dir)
            saved_files.append(saved_path)
            _status("  Saved: {}".format(saved_path.name))

    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))


def _run_check(args: argparse.Namespace) -> None:
    path = Path(args.transcript_file)
    if not path.is_file():
        _fail("File not found: {}".format(path))
    keyterms = _resolve_keyterms(args.keyterm, args.keyterms_file)
    if not keyterms:
        _fail("No keyterms given (use --keyterm or --keyterms-file).")

    text = path.read_text(encoding="utf-8")
    print_checklist(checklist_results(text, keyterms), len(keyterms))


def _run_serve(args: argparse.Namespace) -> None:
    from scribe_compliance.server.app import run_api
    run_api(host=args.host, port=args.port)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="scribe-compliance",
        description="Transcribe recorded calls with Scribe and score keyterm compliance.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Transcribe an audio file and score it.")
    analyze.add_argument("input_file", help="Path to the recorded call.")
    analyze.add_argument(
        "--keyterm",
        action="append",
        default=None,
        help="Checklist phrase. Can be specified multiple times.",
    )
    analyze.add_argument("--keyterms-file", default=None, help="File with one keyterm per line.")
    analyze.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )
    analyze.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )
    analyze.add_argument(
        "--api-key",
        default=None,
        help="ElevenLabs API key (default: ELEVENLABS_API_KEY from the environment).",
    )

    check = subparsers.add_parser("check", help="Score an existing transcript text file.")
    check.add_argument("transcript_file", help="UTF-8 text file with the transcript.")
    check.add_argument("--keyterm", action="append", default=None, help="Checklist phrase (repeatable).")
    check.add_argument("--keyterms-file", default=None, help="File with one keyterm per line.")

    serve = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: %(default)s).")
    serve.add_argument("--port", type=int, default=8000, help="Port (default: %(default)s).")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "analyze":
        asyncio.run(_run_analyze(args))
    elif args.command == "check":
        _run_check(args)
    elif args.command == "serve":
        _run_serve(args)


if __name__ == "__main__":
    main()
