"""
FastAPI Endpoints for the Lead Qualification Engine
===================================================
RESTful API for answer scoring, transcript extraction and qualification
sessions.

Base URL: http://localhost:8000

Endpoints:
- GET    /                                        - API info
- GET    /api/health                              - Health check
- GET    /api/config                              - Active configuration
- POST   /api/qualify/score                       - Score answers
- POST   /api/qualify/extract                     - Extract answers from a transcript
- POST   /api/sessions                            - Open a session
- GET    /api/sessions/{id}                       - Session state
- PUT    /api/sessions/{id}/answers/{question_id} - Set an answer
- POST   /api/sessions/{id}/next                  - Next step
- POST   /api/sessions/{id}/prev                  - Previous step
- POST   /api/sessions/{id}/transcript            - Attach transcript and pre-fill answers
- POST   /api/sessions/{id}/save                  - Save from the summary step
- DELETE /api/sessions/{id}                       - Abandon a session
- GET    /api/records                             - Saved call records
- GET    /api/stats                               - Engine statistics
- POST   /api/test                                - Test with sample data
"""

import logging
import time
from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from ..config.settings import API_CONFIG
from ..exceptions import (
    QualificationError,
    SessionNotFoundError,
    TranscriptTooLargeError,
)
from ..models.schemas import (
    AnswerUpdateRequest,
    ExtractRequest,
    Question,
    ScoreRequest,
    SessionCreateRequest,
    TranscriptRequest,
    QuestionSet,
    ScoreResult,
)
from ..models.qualification_config import create_default_qualification_config
from ..engine import QualificationEngine
from ..session import QualificationSession
from ..stages.extraction import merge_extracted_answers
from ..writers import InMemoryCallRecordWriter

logger = logging.getLogger(__name__)


# =============================================================================
# FastAPI App Initialization
# =============================================================================

app = FastAPI(
    title="Lead Qualification Engine API",
    description="""
## Call Qualification Scoring

Score scripted qualification answers and pre-fill them from call transcripts.

### Features:
- **Weighted Scoring**: answer length and keyword signals → 0-100 score
- **Hot / Warm / Cold**: configurable threshold tables with next actions
- **Transcript Extraction**: budget, timeline, authority and pain heuristics
- **Sessions**: step-by-step qualification with save to a call record

### Quick Start:
1. Use `/api/qualify/score` to score a set of answers
2. Use `/api/qualify/extract` to pre-fill answers from a transcript
3. Use `/api/sessions` to run the full step-by-step workflow
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware - Allow all origins for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Storage & Engine Initialization
# =============================================================================

# In-memory storage (replace with database in production)
record_writer = InMemoryCallRecordWriter()
sessions: Dict[str, QualificationSession] = {}
session_last_seen: Dict[str, float] = {}


def get_default_engine() -> QualificationEngine:
    return QualificationEngine(
        config=create_default_qualification_config(),
        writer=record_writer,
    )


default_engine = get_default_engine()

SAMPLE_QUESTIONS = [
    Question(id="budget", text="What budget have you set aside for this?", order_index=0, scoring_weight=3),
    Question(id="timeline", text="When do you need a solution in place?", order_index=1, scoring_weight=2),
    Question(id="authority", text="Who has decision authority on this purchase?", order_index=2, scoring_weight=2),
    Question(id="pain", text="What problem are you trying to solve?", order_index=3, scoring_weight=1),
]

SAMPLE_TRANSCRIPT = (
    "Thanks for taking the call. Our budget is $50k for this project. "
    "We need it live within 3 months. Our VP of Sales has final approval. "
    "The main problem is that our reps lose track of follow-ups."
)


# =============================================================================
# Response Models for Frontend
# =============================================================================

class ScoreResponse(BaseModel):
    """Simplified score response for frontend"""
    score: int
    status: str
    next_action: str
    is_hot_deal: bool
    follow_up_required: bool
    answered_questions: int
    breakdown: List[Dict[str, Any]]
    threshold_table: str
    processing_time_ms: float


def _score_response(result: ScoreResult) -> ScoreResponse:
    return ScoreResponse(
        score=result.score,
        status=result.status.value,
        next_action=result.next_action,
        is_hot_deal=result.is_hot_deal,
        follow_up_required=result.follow_up_required,
        answered_questions=result.answered_questions,
        breakdown=[
            {
                "question_id": b.question_id,
                "answer_score": round(b.answer_score, 2),
                "weight": b.weight,
                "positive": b.positive_matches,
                "negative": b.negative_matches,
            }
            for b in result.breakdown
        ],
        threshold_table=result.threshold_table,
        processing_time_ms=result.processing_time_ms,
    )


# =============================================================================
# Health & Info Endpoints
# =============================================================================

@app.get("/", tags=["Info"])
async def root():
    """API information and available endpoints"""
    return {
        "service": "Lead Qualification Engine",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
        "endpoints": {
            "Score": "POST /api/qualify/score",
            "Extract": "POST /api/qualify/extract",
            "Sessions": "POST /api/sessions",
            "Test": "POST /api/test",
            "Health": "GET /api/health",
        }
    }


@app.get("/api/health", tags=["Info"])
async def health_check():
    """Health check endpoint for monitoring"""
    return {
        "status": "healthy",
        "service": "Lead Qualification Engine",
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "threshold_table": default_engine.config.thresholds.name,
        "active_sessions": len(sessions),
    }


@app.get("/api/config", tags=["Info"])
async def get_config():
    """Active scoring and extraction configuration"""
    return default_engine.config.model_dump(mode="json")


# =============================================================================
# Scoring & Extraction Endpoints
# =============================================================================

@app.post("/api/qualify/score", response_model=ScoreResponse, tags=["Scoring"])
async def score_answers(request: ScoreRequest):
    """
    Score a set of answers against the given questions

    Pass `threshold_table` ("standard" or "enhanced") to override the default
    hot/warm/cold cutoffs for this request.
    """
    question_set = QuestionSet(questions=request.questions)

    engine = default_engine
    if request.threshold_table and request.threshold_table != engine.config.thresholds.name:
        engine = QualificationEngine(
            config=create_default_qualification_config(threshold_table=request.threshold_table)
        )

    result = engine.score_answers(question_set, request.answers)
    return _score_response(result)


@app.post("/api/qualify/extract", tags=["Extraction"])
async def extract_answers(request: ExtractRequest):
    """
    Pre-fill answers from a transcript

    Questions with no match are left out of `extracted`. When
    `existing_answers` is given, `answers` holds the merge under
    `merge_policy`.
    """
    _check_transcript_size(request.transcript)
    question_set = QuestionSet(questions=request.questions)

    result = default_engine.extract_answers(question_set, request.transcript)
    merged = merge_extracted_answers(request.existing_answers, result.answers, request.merge_policy)

    return {
        "extracted": result.answers,
        "answers": merged,
        "matches": [m.model_dump(mode="json") for m in result.matches],
        "processing_time_ms": result.processing_time_ms,
    }


# =============================================================================
# Session Endpoints
# =============================================================================

@app.post("/api/sessions", tags=["Sessions"])
async def create_session(request: SessionCreateRequest):
    """Open a qualification session for a lead"""
    question_set = QuestionSet(questions=request.questions)
    existing = None
    if request.client_id:
        existing = record_writer.get(request.client_id, request.rep_id)

    session = default_engine.start_session(
        question_set,
        client_id=request.client_id,
        rep_id=request.rep_id,
        existing_record=existing,
        answers=request.answers,
        merge_policy=request.merge_policy,
    )
    if request.transcript:
        _check_transcript_size(request.transcript)
        session.apply_extraction(request.transcript)

    _evict_expired_sessions()
    sessions[session.session_id] = session
    session_last_seen[session.session_id] = time.monotonic()
    return session.to_dict()


@app.get("/api/sessions/{session_id}", tags=["Sessions"])
async def get_session(session_id: str):
    """Current session state with a score preview"""
    session = _get_session(session_id)
    response = session.to_dict()
    response["preview"] = _score_response(session.preview_score()).model_dump()
    return response


@app.put("/api/sessions/{session_id}/answers/{question_id}", tags=["Sessions"])
async def set_answer(session_id: str, question_id: str, request: AnswerUpdateRequest):
    """Set the answer to one question"""
    session = _get_session(session_id)
    session.set_answer(question_id, request.answer)
    return session.to_dict()


@app.post("/api/sessions/{session_id}/next", tags=["Sessions"])
async def next_step(session_id: str):
    """Advance one step (stops at the summary)"""
    session = _get_session(session_id)
    session.next()
    return session.to_dict()


@app.post("/api/sessions/{session_id}/prev", tags=["Sessions"])
async def prev_step(session_id: str):
    """Go back one step (stops at the first question)"""
    session = _get_session(session_id)
    session.prev()
    return session.to_dict()


@app.post("/api/sessions/{session_id}/transcript", tags=["Sessions"])
async def attach_transcript(session_id: str, request: TranscriptRequest):
    """Attach a transcript and pre-fill answers from it"""
    _check_transcript_size(request.transcript)
    session = _get_session(session_id)
    result = session.apply_extraction(request.transcript, request.merge_policy)

    response = session.to_dict()
    response["extracted"] = result.answers
    return response


@app.post("/api/sessions/{session_id}/save", tags=["Sessions"])
async def save_session(session_id: str):
    """
    Score the session and save the call record

    Only allowed from the summary step. The session stays open after saving
    so a failed or repeated save can be retried, until it has been idle for
    SESSION_TTL_SECONDS.
    """
    session = _get_session(session_id)
    record = session.save()
    return record.model_dump(mode="json")


@app.delete("/api/sessions/{session_id}", tags=["Sessions"])
async def abandon_session(session_id: str):
    """Abandon a session without saving"""
    _get_session(session_id)
    sessions.pop(session_id)
    session_last_seen.pop(session_id, None)
    return {"status": "abandoned", "session_id": session_id}


# =============================================================================
# Records, Statistics & Testing
# =============================================================================

@app.get("/api/records", tags=["Records"])
async def list_records():
    """List saved call records and lead statuses"""
    return {
        "count": len(record_writer.records),
        "records": [r.model_dump(mode="json") for r in record_writer.list_records()],
        "lead_statuses": record_writer.lead_statuses,
    }


@app.get("/api/stats", tags=["Info"])
async def get_stats():
    """Get engine statistics"""
    return {
        "default_engine": default_engine.get_stats(),
        "active_sessions": len(sessions),
        "saved_records": len(record_writer.records),
    }


@app.post("/api/test", tags=["Testing"])
async def test_api(threshold_table: Optional[str] = Query(None, description="standard or enhanced")):
    """
    Test the API with sample data

    Extracts answers from a sample transcript and scores them.
    """
    engine = default_engine
    if threshold_table:
        engine = QualificationEngine(
            config=create_default_qualification_config(threshold_table=threshold_table)
        )

    extraction = engine.extract_answers(SAMPLE_QUESTIONS, SAMPLE_TRANSCRIPT)
    result = engine.score_answers(SAMPLE_QUESTIONS, extraction.answers)

    return {
        "test": "success",
        "extracted": extraction.answers,
        "score": result.score,
        "status": result.status.value,
        "next_action": result.next_action,
        "processing_time_ms": round(extraction.processing_time_ms + result.processing_time_ms, 2),
    }


# =============================================================================
# Helper Functions
# =============================================================================

def _get_session(session_id: str) -> QualificationSession:
    """Get a session by id or raise, refreshing its idle timer"""
    _evict_expired_sessions()
    if session_id not in sessions:
        raise SessionNotFoundError(session_id)
    session_last_seen[session_id] = time.monotonic()
    return sessions[session_id]


def _evict_expired_sessions():
    """Drop sessions idle for at least the configured TTL"""
    ttl = API_CONFIG["session_ttl_seconds"]
    now = time.monotonic()
    expired = [sid for sid, seen in session_last_seen.items() if now - seen >= ttl]
    for session_id in expired:
        sessions.pop(session_id, None)
        session_last_seen.pop(session_id, None)
    if expired:
        logger.info(f"Evicted {len(expired)} idle sessions")


def _check_transcript_size(transcript: Optional[str]):
    limit = API_CONFIG["max_transcript_chars"]
    if transcript and len(transcript) > limit:
        raise TranscriptTooLargeError(len(transcript), limit)


# =============================================================================
# Error Handlers
# =============================================================================

@app.exception_handler(QualificationError)
async def qualification_exception_handler(request, exc: QualificationError):
    logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "detail": exc.details,
            "type": type(exc).__name__,
        }
    )


@app.exception_handler(ValueError)
async def validation_exception_handler(request, exc: ValueError):
    # Question configuration rejected at QuestionSet construction
    return JSONResponse(
        status_code=422,
        content={
            "error": "Invalid configuration",
            "detail": str(exc),
            "type": type(exc).__name__,
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc),
            "type": type(exc).__name__,
        }
    )
