from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from db import SessionLocal
from game import Mode, Operation, coerce_enum
from models import Player, Score

logger = logging.getLogger("quickfire-maths.store")

LIVE_LEADERBOARD_LIMIT = 50


class ScoreStoreError(RuntimeError):
    """The backing store could not be read or written."""


@dataclass(frozen=True)
class LeaderboardEntry:
    username: str
    score: int


LeaderboardListener = Callable[[List[LeaderboardEntry]], None]
Unsubscribe = Callable[[], None]


def _game_key(operation, mode) -> Tuple[str, str]:
    return (
        coerce_enum(Operation, operation, "operation").value,
        coerce_enum(Mode, mode, "mode").value,
    )


def _clean_username(username: Optional[str]) -> Optional[str]:
    if not isinstance(username, str) or not username.strip():
        return None
    return username.strip()


class ScoreStore(ABC):
    """Best-score and leaderboard collaborator used at the end of every game.

    Subclasses implement the raw reads/writes; validation, logging and
    leaderboard notifications live here so every backend behaves the same.
    """

    def __init__(self) -> None:
        self._listeners: Dict[Tuple[str, str], List[LeaderboardListener]] = {}

    # --- backend hooks ---------------------------------------------------------------

    @abstractmethod
    def _best(self, username: str, operation: str, mode: str) -> Optional[int]: ...

    @abstractmethod
    def _save_if_higher(self, username: str, operation: str, mode: str, score: int) -> bool: ...

    @abstractmethod
    def _leaderboard(self, operation: str, mode: str, limit: Optional[int]) -> List[LeaderboardEntry]: ...

    @abstractmethod
    def ensure_player(self, username: str) -> bool: ...

    # --- public API ------------------------------------------------------------------

    def get_best_score(self, username: str, operation, mode) -> int:
        name = _clean_username(username)
        if name is None:
            return 0
        best = self._best(name, *_game_key(operation, mode))
        return best or 0

    def save_best_score_if_higher(self, username: str, operation, mode, score: int) -> bool:
        name = _clean_username(username)
        if name is None:
            logger.warning("Refusing to save score %s for blank username", score)
            return False
        op, md = _game_key(operation, mode)
        saved = self._save_if_higher(name, op, md, int(score))
        if saved:
            logger.info("Saved best score %s for %s (%s/%s)", score, name, op, md)
            self._publish(op, md)
        else:
            logger.info("Score %s for %s (%s/%s) is not a new best", score, name, op, md)
        return saved

    def get_leaderboard(self, operation, mode, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        op, md = _game_key(operation, mode)
        return self._leaderboard(op, md, limit)

    def subscribe_to_leaderboard(self, operation, mode, on_update: LeaderboardListener) -> Unsubscribe:
        key = _game_key(operation, mode)
        self._listeners.setdefault(key, []).append(on_update)
        self._notify(key, on_update)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if on_update in listeners:
                listeners.remove(on_update)

        return unsubscribe

    # --- notifications ---------------------------------------------------------------

    def _publish(self, operation: str, mode: str) -> None:
        key = (operation, mode)
        for listener in list(self._listeners.get(key, [])):
            self._notify(key, listener)

    def _notify(self, key: Tuple[str, str], listener: LeaderboardListener) -> None:
        try:
            board = self._leaderboard(key[0], key[1], LIVE_LEADERBOARD_LIMIT)
        except ScoreStoreError:
            logger.exception("Leaderboard fetch failed for %s/%s", *key)
            board = []
        try:
            listener(board)
        except Exception:
            logger.exception("Leaderboard listener failed for %s/%s", *key)


class MemoryScoreStore(ScoreStore):
    """Process-local store; scores vanish on restart."""

    def __init__(self) -> None:
        super().__init__()
        self._scores: Dict[Tuple[str, str, str], int] = {}
        self._players: Dict[str, Dict[str, datetime]] = {}

    def _best(self, username, operation, mode):
        return self._scores.get((username, operation, mode))

    def _save_if_higher(self, username, operation, mode, score):
        key = (username, operation, mode)
        current = self._scores.get(key)
        if current is not None and score <= current:
            return False
        self._scores[key] = score
        return True

    def _leaderboard(self, operation, mode, limit):
        rows = [
            LeaderboardEntry(username=u, score=s)
            for (u, op, md), s in self._scores.items()
            if op == operation and md == mode
        ]
        rows.sort(key=lambda e: (-e.score, e.username))
        return rows[:limit] if limit is not None else rows

    def ensure_player(self, username):
        name = _clean_username(username)
        if name is None:
            return False
        now = datetime.now(UTC)
        record = self._players.setdefault(name, {"created_at": now})
        record["last_login_at"] = now
        return True


class SqlScoreStore(ScoreStore):
    """SQLAlchemy-backed store: one ``scores`` row per player/operation/mode."""

    def __init__(self, session_factory: Optional[sessionmaker] = None) -> None:
        super().__init__()
        self._session_factory = session_factory or SessionLocal

    @staticmethod
    def _row(db: Session, username: str, operation: str, mode: str) -> Optional[Score]:
        stmt = select(Score).where(
            Score.username == username, Score.operation == operation, Score.mode == mode
        )
        return db.execute(stmt).scalar_one_or_none()

    def _best(self, username, operation, mode):
        try:
            with self._session_factory() as db:
                row = self._row(db, username, operation, mode)
                return row.score if row else None
        except SQLAlchemyError as e:
            raise ScoreStoreError(f"best score lookup failed: {e}") from e

    def _save_if_higher(self, username, operation, mode, score):
        try:
            with self._session_factory() as db:
                row = self._row(db, username, operation, mode)
                if row is None:
                    db.add(Score(username=username, operation=operation, mode=mode, score=score))
                elif score > row.score:
                    row.score = score
                else:
                    return False
                db.commit()
                return True
        except SQLAlchemyError as e:
            raise ScoreStoreError(f"score save failed: {e}") from e

    def _leaderboard(self, operation, mode, limit):
        best = func.max(Score.score).label("best")
        stmt = (
            select(Score.username, best)
            .where(Score.operation == operation, Score.mode == mode)
            .group_by(Score.username)
            .order_by(best.desc(), Score.username)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            with self._session_factory() as db:
                rows = db.execute(stmt).all()
        except SQLAlchemyError as e:
            raise ScoreStoreError(f"leaderboard query failed: {e}") from e
        return [LeaderboardEntry(username=u, score=s) for u, s in rows]

    def ensure_player(self, username):
        name = _clean_username(username)
        if name is None:
            return False
        try:
            with self._session_factory() as db:
                player = db.get(Player, name)
                if player is None:
                    db.add(Player(username=name))
                    logger.info("Created player %s", name)
                else:
                    player.last_login_at = datetime.now(UTC)
                db.commit()
        except SQLAlchemyError as e:
            raise ScoreStoreError(f"player upsert failed: {e}") from e
        return True


def build_score_store(kind: Optional[str] = None) -> ScoreStore:
    """Pick the store backend from ``SCORE_STORE`` (``sql`` or ``memory``)."""
    kind = (kind or os.getenv("SCORE_STORE", "sql")).strip().lower()
    if kind == "memory":
        return MemoryScoreStore()
    if kind == "sql":
        return SqlScoreStore()
    raise ValueError(f"unknown SCORE_STORE: {kind!r}")
