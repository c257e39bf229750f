"""
REST API for the badminton club backend.
Thin wrappers around rally tracking, shot analytics and the BPSI diagnostic.
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Generator

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from badminton.analytics import compute_match_stats, compute_player_stats
from badminton.diagnostic.analysis import assess_growth_level
from badminton.diagnostic.engine import IncompleteDiagnosticError
from badminton.diagnostic.profiles import (
    UnknownTypeError,
    list_profiles,
    partner_compatibility,
    resolve_profile,
)
from badminton.diagnostic.questions import QUESTION_BANK
from badminton.diagnostic.schemas import MBTIAnswer, MBTIResult
from badminton.models import ShotDraft, parse_area, parse_result, parse_shot_type
from badminton.persistence import (
    get_connection,
    init_db,
    MatchRepository,
    PlayerRepository,
    RallyRepository,
    ShotRepository,
)
from badminton.persistence.db import get_db_path
from badminton.rally_analysis import analyze_rallies
from badminton.rally_tracker import InvalidStateError
from badminton.services import DiagnosticService, TrackingSession

logger = logging.getLogger(__name__)

CORS_ORIGINS_ENV = "BADMINTON_CORS_ORIGINS"
_DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def _cors_origins() -> list[str]:
    env = os.environ.get(CORS_ORIGINS_ENV)
    if not env:
        return list(_DEFAULT_CORS_ORIGINS)
    return [o.strip() for o in env.split(",") if o.strip()]


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


# Open recording sessions, keyed by match id. One operator per match.
_sessions: dict[str, TrackingSession] = {}


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    init_db(db_path=get_db_path())
    yield
    _sessions.clear()


# ---------- FastAPI app ----------
app = FastAPI(
    title="Badminton Club API",
    description="Rally tracking, shot analytics and play-style diagnostics",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Request/Response models ----------


class CreatePlayerRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    affiliation: str | None = Field(None, max_length=200)


class CreateMatchRequest(BaseModel):
    side_a: list[str] = Field(..., min_length=1, max_length=2, description="1 (singles) or 2 (doubles) player ids")
    side_b: list[str] = Field(..., min_length=1, max_length=2)


class AddShotRequest(BaseModel):
    hit_player: str
    receive_player: str
    hit_area: str = Field(..., description="LF, CF, RF, LM, CM, RM, LR, CR or RR")
    receive_area: str
    shot_type: str = Field(..., description="e.g. short_serve, clear, smash, drop")
    result: str = Field("continue", description="continue | point | miss")
    is_cross: bool = False


class AnswerRequest(BaseModel):
    question_id: str
    selected_value: str = Field(..., min_length=1, max_length=1)


class AnswerBatchRequest(BaseModel):
    answers: list[AnswerRequest]


# ---------- Helpers ----------


def _session_for(match_id: str) -> TrackingSession:
    session = _sessions.get(match_id)
    if session is not None:
        return session
    with db_conn() as conn:
        try:
            session = TrackingSession.open(conn, match_id)
        except ValueError:
            raise HTTPException(status_code=404, detail="Match not found")
    _sessions[match_id] = session
    return session


def _result_payload(result: MBTIResult) -> dict[str, Any]:
    data = result.to_dict()
    data["growth_level"] = assess_growth_level(result.analysis.consistency).to_dict()
    return data


# ---------- Players ----------


@app.get("/players")
def list_players() -> dict[str, Any]:
    with db_conn() as conn:
        players = PlayerRepository().list_all(conn)
        return {"players": [p.to_dict() for p in players]}


@app.post("/players")
def create_player(req: CreatePlayerRequest) -> dict[str, Any]:
    with db_conn() as conn:
        player = PlayerRepository().create(conn, req.name, affiliation=req.affiliation)
        return player.to_dict()


@app.get("/players/{player_id}")
def get_player(player_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        player = PlayerRepository().get(conn, player_id)
        if player is None:
            raise HTTPException(status_code=404, detail="Player not found")
        return player.to_dict()


@app.get("/players/{player_id}/stats")
def player_stats(player_id: str) -> dict[str, Any]:
    """Zone performance across every match the player has hit shots in."""
    with db_conn() as conn:
        if PlayerRepository().get(conn, player_id) is None:
            raise HTTPException(status_code=404, detail="Player not found")
        shots = ShotRepository().list_by_player(conn, player_id)
    stats = compute_player_stats(shots, player_id)
    return {"player_id": player_id, **stats.to_dict()}


# ---------- Matches ----------


@app.post("/matches")
def create_match(req: CreateMatchRequest) -> dict[str, Any]:
    with db_conn() as conn:
        player_repo = PlayerRepository()
        for pid in req.side_a + req.side_b:
            if player_repo.get(conn, pid) is None:
                raise HTTPException(status_code=400, detail=f"Player not found: {pid}")
        if set(req.side_a) & set(req.side_b):
            raise HTTPException(status_code=400, detail="A player cannot be on both sides")
        match = MatchRepository().create(conn, req.side_a, req.side_b)
        return match.to_dict()


@app.get("/matches/{match_id}")
def get_match(match_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        match = MatchRepository().get(conn, match_id)
        if match is None:
            raise HTTPException(status_code=404, detail="Match not found")
        return match.to_dict()


@app.delete("/matches/{match_id}")
def delete_match(match_id: str) -> dict[str, Any]:
    """Delete a match with its rallies and shots. Drops any open recording session."""
    with db_conn() as conn:
        repo = MatchRepository()
        if repo.get(conn, match_id) is None:
            raise HTTPException(status_code=404, detail="Match not found")
        repo.delete(conn, match_id)
    if _sessions.pop(match_id, None) is not None:
        logger.info("Dropped recording session for deleted match %s", match_id)
    return {"match_id": match_id, "deleted": True}


@app.get("/matches/{match_id}/shots")
def list_match_shots(match_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        if MatchRepository().get(conn, match_id) is None:
            raise HTTPException(status_code=404, detail="Match not found")
        shots = ShotRepository().list_by_match(conn, match_id)
        return {"match_id": match_id, "shots": [s.to_dict() for s in shots]}


@app.get("/matches/{match_id}/rallies")
def list_match_rallies(match_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        if MatchRepository().get(conn, match_id) is None:
            raise HTTPException(status_code=404, detail="Match not found")
        rallies = RallyRepository().list_by_match(conn, match_id)
        return {"match_id": match_id, "rallies": [r.to_dict() for r in rallies]}


@app.get("/matches/{match_id}/stats")
def match_stats(match_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        if MatchRepository().get(conn, match_id) is None:
            raise HTTPException(status_code=404, detail="Match not found")
        shots = ShotRepository().list_by_match(conn, match_id)
    return compute_match_stats(match_id, shots).to_dict()


@app.get("/analysis/rallies")
def rally_analysis(
    match_id: str | None = Query(None, description="Restrict to one match"),
    player_id: str | None = Query(None, description="Win rates are relative to this player"),
) -> dict[str, Any]:
    """Rally-length analysis rebuilt from the ledger."""
    with db_conn() as conn:
        repo = ShotRepository()
        if match_id is not None:
            if MatchRepository().get(conn, match_id) is None:
                raise HTTPException(status_code=404, detail="Match not found")
            shots = repo.list_by_match(conn, match_id)
        elif player_id is not None:
            # Rallies need both sides' shots: widen to every match the player hit in.
            match_ids = {s.match_id for s in repo.list_by_player(conn, player_id)}
            shots = [s for mid in sorted(match_ids) for s in repo.list_by_match(conn, mid)]
        else:
            raise HTTPException(status_code=400, detail="match_id or player_id required")
    return analyze_rallies(shots, match_id=match_id, player_id=player_id).to_dict()


# ---------- Rally recording ----------


@app.get("/matches/{match_id}/session")
def get_session(match_id: str) -> dict[str, Any]:
    return _session_for(match_id).to_dict()


@app.post("/matches/{match_id}/rallies/start")
def start_rally(match_id: str) -> dict[str, Any]:
    session = _session_for(match_id)
    try:
        rally = session.start_rally()
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"match_id": match_id, "rally": rally.to_dict(), "state": session.state.value}


@app.post("/matches/{match_id}/rallies/shots")
def add_shot(match_id: str, req: AddShotRequest) -> dict[str, Any]:
    session = _session_for(match_id)
    try:
        draft = ShotDraft(
            match_id=match_id,
            hit_player=req.hit_player,
            receive_player=req.receive_player,
            hit_area=parse_area(req.hit_area),
            receive_area=parse_area(req.receive_area),
            shot_type=parse_shot_type(req.shot_type),
            result=parse_result(req.result),
            is_cross=req.is_cross,
        )
        shot = session.add_shot(draft)
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"match_id": match_id, "shot": shot.to_dict()}


@app.post("/matches/{match_id}/rallies/end")
def end_rally(match_id: str) -> dict[str, Any]:
    """Close the open rally and write it to the ledger. Idle: returns rally=None."""
    session = _session_for(match_id)
    with db_conn() as conn:
        completed = session.end_rally(conn)
    return {
        "match_id": match_id,
        "rally": completed.to_dict() if completed else None,
        "recorded": bool(completed and completed.shots),
        "state": session.state.value,
    }


@app.post("/matches/{match_id}/rallies/discard")
def discard_rally(match_id: str) -> dict[str, Any]:
    session = _session_for(match_id)
    rally = session.discard_rally()
    return {"match_id": match_id, "discarded": rally is not None, "state": session.state.value}


# ---------- BPSI diagnostic ----------


@app.get("/mbti/questions")
def list_questions() -> dict[str, Any]:
    return {"questions": [q.to_dict() for q in QUESTION_BANK], "total": len(QUESTION_BANK)}


@app.get("/mbti/diagnostics/{user_id}")
def get_diagnostic(user_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        diag = DiagnosticService().get(conn, user_id)
        if diag is None:
            raise HTTPException(status_code=404, detail="Diagnostic not found")
        return {**diag.to_dict(), "answered": len(diag.answers), "total": len(QUESTION_BANK)}


@app.post("/mbti/diagnostics/{user_id}/answers")
def save_answers(user_id: str, req: AnswerBatchRequest) -> dict[str, Any]:
    """Partial save: record one or more answers. Rejected batches save nothing."""
    answers = [MBTIAnswer(a.question_id, a.selected_value) for a in req.answers]
    with db_conn() as conn:
        try:
            diag = DiagnosticService().answer_many(conn, user_id, answers)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {**diag.to_dict(), "answered": len(diag.answers), "total": len(QUESTION_BANK)}


@app.post("/mbti/diagnostics/{user_id}/restart")
def restart_diagnostic(user_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        diag = DiagnosticService().restart(conn, user_id)
        return diag.to_dict()


@app.post("/mbti/diagnostics/{user_id}/finalize")
def finalize_diagnostic(user_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        svc = DiagnosticService()
        if svc.get(conn, user_id) is None:
            raise HTTPException(status_code=404, detail="Diagnostic not found")
        try:
            result = svc.finalize(conn, user_id)
        except IncompleteDiagnosticError as e:
            raise HTTPException(
                status_code=400,
                detail={"message": str(e), "answered": e.answered, "total": e.total},
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return _result_payload(result)


@app.get("/mbti/results/{user_id}")
def list_results(user_id: str) -> dict[str, Any]:
    """Newest first."""
    with db_conn() as conn:
        results = DiagnosticService().list_results(conn, user_id)
    return {"user_id": user_id, "results": [_result_payload(r) for r in results]}


@app.get("/mbti/profiles")
def get_profiles() -> dict[str, Any]:
    return {"profiles": [p.to_dict() for p in list_profiles()]}


@app.get("/mbti/profiles/{type_code}")
def get_profile(type_code: str) -> dict[str, Any]:
    try:
        return resolve_profile(type_code).to_dict()
    except UnknownTypeError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/mbti/compatibility")
def compatibility(
    type_a: str = Query(..., description="Your type code"),
    type_b: str = Query(..., description="Partner's type code"),
) -> dict[str, Any]:
    try:
        return partner_compatibility(type_a, type_b).to_dict()
    except UnknownTypeError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ---------- Run with: uvicorn badminton.api:app --reload ----------
