from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from deps.services import get_score_store
from game import Mode, Operation
from schemas.scores import BestScoreOut, LeaderboardEntryOut, LeaderboardOut
from store import ScoreStore, ScoreStoreError

logger = logging.getLogger("quickfire-maths.scores")

router = APIRouter(tags=["scores"])


@router.get("/scores/{username}/{operation}/{mode}", response_model=BestScoreOut)
def best_score(
    username: str,
    operation: Operation,
    mode: Mode,
    store: ScoreStore = Depends(get_score_store),
):
    try:
        best = store.get_best_score(username, operation, mode)
        ok = True
    except ScoreStoreError:
        # Unknown best score is shown as 0
        logger.exception("Best score lookup failed for %s", username)
        best, ok = 0, False
    return BestScoreOut(ok=ok, username=username, operation=operation, mode=mode, best_score=best)


@router.get("/leaderboard/{operation}/{mode}", response_model=LeaderboardOut)
def leaderboard(
    operation: Operation,
    mode: Mode,
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    store: ScoreStore = Depends(get_score_store),
):
    try:
        rows = store.get_leaderboard(operation, mode, limit)
        ok = True
    except ScoreStoreError:
        logger.exception("Leaderboard lookup failed for %s/%s", operation.value, mode.value)
        rows, ok = [], False
    entries = [LeaderboardEntryOut.model_validate(r) for r in rows]
    return LeaderboardOut(ok=ok, operation=operation, mode=mode, entries=entries)
