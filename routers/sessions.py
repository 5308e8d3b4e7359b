# routers/sessions.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from deps.services import get_score_store, get_sessions
from game import GameConfig, medal_tier
from schemas.sessions import (
    AnswerRequest,
    AnswerResponse,
    GameStateOut,
    QuestionOut,
    SessionOut,
    StartRequest,
    SummaryOut,
)
from sessions import GameSession, SessionRegistry, finish_session
from store import ScoreStore

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _session_out(s: GameSession) -> SessionOut:
    return SessionOut(
        id=s.id,
        username=s.username,
        operation=s.config.operation,
        mode=s.config.mode,
        allow_negatives=s.config.allow_negatives,
        finished=s.finished,
        accuracy=s.accuracy,
        medal_tier=medal_tier(s.state.medal_level),
        state=GameStateOut.model_validate(s.state),
        question=None if s.finished else QuestionOut.model_validate(s.question),
    )


def _load(session_id: str, sessions: SessionRegistry, store: ScoreStore) -> GameSession:
    s = sessions.get(session_id)
    if s is None:
        raise HTTPException(status_code=404, detail="session not found")
    # Bring the countdown up to date before acting on the session
    s.catch_up()
    if s.finished:
        finish_session(s, store)
    return s


@router.post("", response_model=SessionOut, status_code=201)
def start_session(req: StartRequest, sessions: SessionRegistry = Depends(get_sessions)):
    config = GameConfig(req.operation, req.mode, req.allow_negatives)
    s = sessions.add(GameSession(req.username, config))
    return _session_out(s)


@router.get("/{session_id}", response_model=SessionOut)
def get_session(
    session_id: str,
    sessions: SessionRegistry = Depends(get_sessions),
    store: ScoreStore = Depends(get_score_store),
):
    return _session_out(_load(session_id, sessions, store))


@router.post("/{session_id}/answer", response_model=AnswerResponse)
def answer_question(
    session_id: str,
    req: AnswerRequest,
    sessions: SessionRegistry = Depends(get_sessions),
    store: ScoreStore = Depends(get_score_store),
):
    s = _load(session_id, sessions, store)
    elapsed = req.elapsed_ms / 1000 if req.elapsed_ms is not None else None
    outcome = s.answer(req.answer, elapsed)
    return AnswerResponse(
        ok=outcome.ok,
        correct=outcome.correct,
        points=outcome.points,
        feedback=outcome.feedback,
        expected=outcome.expected,
        elapsed_s=outcome.elapsed_s,
        session=_session_out(s),
    )


@router.post("/{session_id}/give-up", response_model=SummaryOut)
def give_up(
    session_id: str,
    sessions: SessionRegistry = Depends(get_sessions),
    store: ScoreStore = Depends(get_score_store),
):
    s = _load(session_id, sessions, store)
    s.give_up()
    return SummaryOut.model_validate(finish_session(s, store))


@router.get("/{session_id}/summary", response_model=SummaryOut)
def get_summary(
    session_id: str,
    sessions: SessionRegistry = Depends(get_sessions),
    store: ScoreStore = Depends(get_score_store),
):
    s = _load(session_id, sessions, store)
    if not s.finished:
        raise HTTPException(status_code=409, detail="game still running")
    return SummaryOut.model_validate(s.summary)
