"""FastAPI application with analysis, compliance, and session routes.

WHY: The review front end (and curl, scripts, dashboards) needs an HTTP
API to manage keyterm scenarios, send a recording for transcription,
re-check the checklist as playback advances, and save the final result.

HOW: A single FastAPI app exposes endpoints grouped by tags. POST
/analyses accepts a multipart upload, calls the transcription service,
and returns the normalized transcript. POST /compliance/check is the
per-tick matcher. Scenarios and sessions live in an in-memory
RecordStore created at import time.

RULES:
- Credentials are resolved per request (X-Scribe-Api-Key header, then env)
- A missing credential is a 400 and no transcription call is made
- Transcription failures are a 502 carrying the service message; no retry
- A failed session save is a 500 "Failed to save session"; no retry
- Error responses use a consistent ErrorResponse schema
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, List, Optional, Sequence

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, UploadFile
from fastapi.responses import Response

from scribe_compliance import __version__
from scribe_compliance.api.client import ScribeAPIError, ScribeClient, ScribeConnectionError
from scribe_compliance.api.models import MalformedPayloadError, ScribeResponse
from scribe_compliance.config import SUPPORTED_AUDIO_FORMATS, Credentials, load_credentials
from scribe_compliance.core.compliance import (
    MatchResult,
    check_transcript,
    checklist_results,
    compliance_score,
    matched_count,
    spoken_text,
)
from scribe_compliance.core.ir import Word
from scribe_compliance.core.normalizer import normalize
from scribe_compliance.server.models import (
    AnalysisResponse,
    CheckRequest,
    CheckResponse,
    ErrorResponse,
    HealthResponse,
    MatchResultModel,
    ScenarioCreate,
    ScenarioResponse,
    SessionCreate,
    SessionDetailResponse,
    SessionResponse,
    TranscriptModel,
)
from scribe_compliance.server.store import (
    RecordStore,
    RecordStoreFull,
    Scenario,
    SessionRecord,
    UnknownScenarioError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

record_store = RecordStore()

app = FastAPI(
    title="Scribe Compliance API",
    description=(
        "Transcribe recorded calls with Scribe speech-to-text, normalize the "
        "result into speaker paragraphs, and score keyterm compliance "
        "checklists as playback advances."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


def get_credentials(
    x_scribe_api_key: Annotated[
        Optional[str],
        Header(description="Per-request API key; overrides the server's ELEVENLABS_API_KEY."),
    ] = None,
) -> Credentials:
    return load_credentials(x_scribe_api_key)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _scenario_to_response(scenario: Scenario) -> ScenarioResponse:
    return ScenarioResponse(
        id=scenario.id,
        title=scenario.title,
        description=scenario.description,
        keyterms=list(scenario.keyterms),
        created_at=scenario.created_at,
    )


def _session_to_response(record: SessionRecord) -> SessionResponse:
    return SessionResponse(
        id=record.id,
        scenario_id=record.scenario_id,
        transcript=record.transcript,
        score=record.score,
        total_keyterms=record.total_keyterms,
        duration_seconds=record.duration_seconds,
        created_at=record.created_at,
        ended_at=record.ended_at,
    )


def _results_to_models(results: Sequence[MatchResult]) -> List[MatchResultModel]:
    return [MatchResultModel(**r.to_dict()) for r in results]


def _validate_file_extension(filename: str) -> None:
    """Raise HTTPException if the file extension is not supported."""
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_AUDIO_FORMATS:
        raise HTTPException(
            status_code=400,
            detail="Unsupported file type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted(SUPPORTED_AUDIO_FORMATS))
            ),
        )


def _split_keyterms(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [t.strip() for t in raw.split(",") if t.strip()]


async def _transcribe_upload(
    credentials: Credentials,
    filename: str,
    content: bytes,
    keyterms: Sequence[str],
) -> ScribeResponse:
    """Send one uploaded recording to the transcription service."""
    async with ScribeClient(credentials) as client:
        return await client.transcribe_bytes(filename, content, keyterms=keyterms)


# ---------------------------------------------------------------------------
# Endpoints: Scenarios
# ---------------------------------------------------------------------------


@app.get(
    "/scenarios",
    response_model=List[ScenarioResponse],
    tags=["scenarios"],
    summary="List scenarios",
    description="Returns all keyterm scenarios, newest first.",
)
async def list_scenarios() -> List[ScenarioResponse]:
    return [_scenario_to_response(s) for s in record_store.list_scenarios()]


@app.post(
    "/scenarios",
    response_model=ScenarioResponse,
    status_code=201,
    tags=["scenarios"],
    summary="Create a scenario",
    description="Create a named keyterm checklist.",
    responses={507: {"model": ErrorResponse, "description": "Record store is full"}},
)
async def create_scenario(body: ScenarioCreate) -> ScenarioResponse:
    try:
        scenario = record_store.create_scenario(
            title=body.title,
            description=body.description,
            keyterms=body.keyterms,
        )
    except RecordStoreFull as exc:
        raise HTTPException(status_code=507, detail=str(exc))
    return _scenario_to_response(scenario)


@app.post(
    "/scenarios/demo",
    response_model=ScenarioResponse,
    tags=["scenarios"],
    summary="Create or return the demo scenario",
    description="Seeds the mortgage-call demo checklist on first use.",
)
async def create_demo_scenario() -> ScenarioResponse:
    return _scenario_to_response(record_store.ensure_demo_scenario())


@app.get(
    "/scenarios/{scenario_id}",
    response_model=ScenarioResponse,
    tags=["scenarios"],
    summary="Get a scenario",
    responses={404: {"model": ErrorResponse, "description": "Scenario not found"}},
)
async def get_scenario(scenario_id: str) -> ScenarioResponse:
    scenario = record_store.get_scenario(scenario_id)
    if scenario is None:
        raise HTTPException(status_code=404, detail="Scenario not found: {}".format(scenario_id))
    return _scenario_to_response(scenario)


# ---------------------------------------------------------------------------
# Endpoints: Analyses
# ---------------------------------------------------------------------------


@app.post(
    "/analyses",
    response_model=AnalysisResponse,
    tags=["analyses"],
    summary="Transcribe and normalize a recording",
    description=(
        "Upload a recorded call. The file is sent to Scribe with the "
        "scenario keyterms as recognition hints, and the response is "
        "normalized into speaker paragraphs, sentences, and words."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Missing API key or unsupported file type"},
        404: {"model": ErrorResponse, "description": "Scenario not found"},
        502: {"model": ErrorResponse, "description": "Transcription service failed"},
    },
)
async def create_analysis(
    file: Annotated[UploadFile, File(description="Recorded call audio")],
    credentials: Annotated[Credentials, Depends(get_credentials)],
    scenario_id: Annotated[
        Optional[str],
        Form(description="Scenario whose keyterms are used as hints."),
    ] = None,
    keyterms: Annotated[
        Optional[str],
        Form(description="Comma-separated keyterms, used when no scenario_id is given."),
    ] = None,
) -> AnalysisResponse:
    # Sanitize filename to prevent path traversal
    filename = Path(file.filename or "upload").name
    _validate_file_extension(filename)

    if scenario_id:
        scenario = record_store.get_scenario(scenario_id)
        if scenario is None:
            raise HTTPException(status_code=404, detail="Scenario not found: {}".format(scenario_id))
        terms = list(scenario.keyterms)
    else:
        terms = _split_keyterms(keyterms)

    if not credentials.is_configured:
        raise HTTPException(
            status_code=400,
            detail="Please enter your ElevenLabs API key (X-Scribe-Api-Key header or ELEVENLABS_API_KEY).",
        )

    content = await file.read()
    try:
        response = await _transcribe_upload(credentials, filename, content, terms)
    except (ScribeAPIError, ScribeConnectionError) as exc:
        logger.warning("Transcription failed for %s: %s", filename, exc)
        raise HTTPException(status_code=502, detail=str(exc))
    except MalformedPayloadError as exc:
        logger.warning("Malformed transcription payload for %s: %s", filename, exc)
        raise HTTPException(status_code=502, detail="Malformed transcription payload: {}".format(exc))

    transcript = normalize(
        response.to_tokens(),
        full_text=response.text,
        language_code=response.language_code,
    )
    logger.info(
        "Analyzed %s: %d words, %d paragraphs",
        filename, len(transcript.words), len(transcript.paragraphs),
    )

    return AnalysisResponse(
        filename=filename,
        scenario_id=scenario_id,
        keyterms=terms,
        transcript=TranscriptModel.model_validate(transcript.to_dict()),
    )


# ---------------------------------------------------------------------------
# Endpoints: Compliance
# ---------------------------------------------------------------------------


@app.post(
    "/compliance/check",
    response_model=CheckResponse,
    tags=["compliance"],
    summary="Check keyterms against a transcript",
    description=(
        "Returns one match result per keyterm. Send the transcript text, or "
        "the structured words plus the current playback position to check "
        "only what has been spoken so far."
    ),
)
async def check_compliance(body: CheckRequest) -> CheckResponse:
    if body.words is not None and body.playback_s is not None:
        words = [Word(**w.model_dump()) for w in body.words]
        text = spoken_text(words, body.playback_s)
    else:
        text = body.transcript or ""

    results = check_transcript(text, body.keyterms)
    return CheckResponse(
        results=_results_to_models(results),
        matched=matched_count(results),
        total_keyterms=len(body.keyterms),
        score=compliance_score(results, len(body.keyterms)),
    )


# ---------------------------------------------------------------------------
# Endpoints: Sessions
# ---------------------------------------------------------------------------


@app.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=201,
    tags=["sessions"],
    summary="Save a finished session",
    description="Stores the final transcript, score, and duration of a reviewed session.",
    responses={
        404: {"model": ErrorResponse, "description": "Scenario not found"},
        500: {"model": ErrorResponse, "description": "Session could not be saved"},
    },
)
async def create_session(body: SessionCreate) -> SessionResponse:
    try:
        record = record_store.insert_session(
            scenario_id=body.scenario_id,
            transcript=body.transcript,
            score=body.score,
            total_keyterms=body.total_keyterms,
            duration_seconds=body.duration_seconds,
            ended_at=body.ended_at,
        )
    except UnknownScenarioError:
        raise HTTPException(status_code=404, detail="Scenario not found: {}".format(body.scenario_id))
    except RecordStoreFull as exc:
        logger.error("Failed to save session for scenario %s: %s", body.scenario_id, exc)
        raise HTTPException(status_code=500, detail="Failed to save session: {}".format(exc))
    return _session_to_response(record)


@app.get(
    "/sessions",
    response_model=List[SessionResponse],
    tags=["sessions"],
    summary="List saved sessions",
    description="Session history, newest first. Optionally filtered by scenario.",
)
async def list_sessions(scenario_id: Optional[str] = None) -> List[SessionResponse]:
    return [_session_to_response(r) for r in record_store.list_sessions(scenario_id)]


@app.get(
    "/sessions/{session_id}",
    response_model=SessionDetailResponse,
    tags=["sessions"],
    summary="Get a saved session with checklist results",
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def get_session(session_id: str) -> SessionDetailResponse:
    record = record_store.get_session(session_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))

    scenario = record_store.get_scenario(record.scenario_id)
    keyterms = list(scenario.keyterms) if scenario else []
    results = checklist_results(record.transcript, keyterms)

    base = _session_to_response(record)
    return SessionDetailResponse(
        **base.model_dump(),
        scenario_title=scenario.title if scenario else None,
        keyterms=keyterms,
        results=_results_to_models(results),
        matched=matched_count(results),
    )


@app.delete(
    "/sessions/{session_id}",
    status_code=204,
    tags=["sessions"],
    summary="Delete a saved session",
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def delete_session(session_id: str) -> Response:
    if not record_store.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        credentials_configured=load_credentials().is_configured,
    )


def run_api(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Entry point for the scribe-compliance-api console script."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    logger.info("Starting Scribe Compliance API on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port)
