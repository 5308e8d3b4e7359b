# schemas/sessions.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from game import Mode, Operation
from schemas.scores import LeaderboardEntryOut

# ---------- Start ----------


class StartRequest(BaseModel):
    username: str = Field(max_length=64)
    operation: Operation = Operation.MULTIPLICATION
    mode: Mode = Mode.MINI
    allow_negatives: bool = False

    @field_validator("username")
    @classmethod
    def _strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


# ---------- State ----------


class QuestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    operand1: int
    operand2: int
    operator: str
    text: str


class GameStateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    score: int
    level: int
    correct_streak: int
    medal_streak: int
    medal_level: int
    total_questions: int
    correct_answers: int
    time_left: int


class SessionOut(BaseModel):
    id: str
    username: str
    operation: Operation
    mode: Mode
    allow_negatives: bool
    finished: bool
    accuracy: int
    medal_tier: str
    state: GameStateOut
    # null once the game has ended
    question: Optional[QuestionOut] = None


# ---------- Answer ----------


class AnswerRequest(BaseModel):
    answer: str
    # Client may send its own stopwatch reading; otherwise the server measures.
    elapsed_ms: Optional[int] = Field(default=None, ge=0)


class AnswerResponse(BaseModel):
    ok: bool
    correct: bool
    points: int
    feedback: str = ""
    expected: Optional[int] = None
    elapsed_s: Optional[float] = None
    session: SessionOut


# ---------- Game over ----------


class SummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    final_score: int
    accuracy: int
    total_questions: int
    correct_answers: int
    level: int
    medal_level: int
    medal_tier: str
    best_score: int
    is_new_best: bool
    saved: bool
    leaderboard: List[LeaderboardEntryOut]
