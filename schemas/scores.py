# schemas/scores.py
from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict

from game import Mode, Operation


class LeaderboardEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    username: str
    score: int


class LeaderboardOut(BaseModel):
    ok: bool
    operation: Operation
    mode: Mode
    entries: List[LeaderboardEntryOut]


class BestScoreOut(BaseModel):
    ok: bool
    username: str
    operation: Operation
    mode: Mode
    best_score: int
