from __future__ import annotations

import logging
import os
import random
import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional

from game import GameConfig, GameState, Mode, Question, medal_tier, new_game_state
from generator import generate
from scoring import (
    Submission,
    accuracy,
    is_expired,
    parse_answer,
    submit,
    tick,
    validate_answer_text,
)
from store import LeaderboardEntry, ScoreStore, ScoreStoreError

logger = logging.getLogger("quickfire-maths.sessions")

MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "1000"))
SWEEP_INTERVAL_SECONDS = float(os.getenv("SWEEP_INTERVAL_SECONDS", "5"))

Clock = Callable[[], float]


@dataclass
class AnswerOutcome:
    ok: bool
    correct: bool = False
    points: int = 0
    expected: Optional[int] = None
    elapsed_s: Optional[float] = None
    feedback: str = ""


@dataclass
class GameSummary:
    final_score: int
    accuracy: int
    total_questions: int
    correct_answers: int
    level: int
    medal_level: int
    medal_tier: str
    best_score: int = 0
    is_new_best: bool = False
    saved: bool = False
    leaderboard: List[LeaderboardEntry] = field(default_factory=list)


class GameSession:
    """One player's game, from start to the end of the countdown.

    The session owns its config, state, active question, random source and
    clock; nothing here is shared between sessions. Request handlers run in a
    threadpool, so every mutation happens under the session lock.
    """

    def __init__(
        self,
        username: str,
        config: GameConfig,
        rng: Optional[random.Random] = None,
        clock: Clock = time.monotonic,
        session_id: Optional[str] = None,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex
        self.username = username
        self.config = config
        self.rng = rng if rng is not None else random.Random()
        self.clock = clock
        self.finished = False
        self.summary: Optional[GameSummary] = None
        self.last_points = 0
        self.lock = threading.RLock()

        self._started_at = clock()
        self._ticks_applied = 0
        self.state = new_game_state(config, now=self._started_at)
        self.question = self._next_question()
        logger.info(
            "Session %s started for %s (%s/%s, negatives=%s)",
            self.id,
            username,
            config.operation.value,
            config.mode.value,
            config.allow_negatives,
        )

    # --- questions ------------------------------------------------------------------

    def _next_question(self) -> Question:
        level = self.state.level if self.config.mode is Mode.LEVEL else 1
        question = generate(self.config, level, self.rng)
        self.state = replace(self.state, question_started_at=self.clock())
        return question

    # --- countdown ------------------------------------------------------------------

    def tick(self) -> None:
        with self.lock:
            if self.finished:
                return
            self.state = tick(self.state)
            self._ticks_applied += 1
            if is_expired(self.state):
                self.end("time")

    def catch_up(self) -> None:
        """Apply one tick for every whole second elapsed since the game started."""
        with self.lock:
            due = int(self.clock() - self._started_at)
            while not self.finished and self._ticks_applied < due:
                self.tick()

    def give_up(self) -> None:
        self.end("gave up")

    def end(self, reason: str) -> None:
        with self.lock:
            if self.finished:
                return
            self.finished = True
        logger.info(
            "Session %s ended (%s): score=%s accuracy=%s%%",
            self.id,
            reason,
            self.state.score,
            accuracy(self.state),
        )

    # --- answers --------------------------------------------------------------------

    def answer(self, text: str, elapsed_seconds: Optional[float] = None) -> AnswerOutcome:
        msg = validate_answer_text(text)

        with self.lock:
            if self.finished:
                return AnswerOutcome(ok=False, feedback="Game is over.")
            if msg:
                return AnswerOutcome(ok=False, feedback=msg)

            if elapsed_seconds is None:
                elapsed_seconds = self.clock() - self.state.question_started_at
            asked = self.question
            result: Submission = submit(
                self.state, self.config, asked, parse_answer(text), elapsed_seconds
            )
            self.state = result.state
            self.last_points = result.points
            self.question = self._next_question()

        return AnswerOutcome(
            ok=True,
            correct=result.correct,
            points=result.points,
            expected=asked.expected_answer,
            elapsed_s=round(elapsed_seconds, 3),
        )

    @property
    def accuracy(self) -> int:
        return accuracy(self.state)


def finish_session(session: GameSession, store: ScoreStore) -> GameSummary:
    """Finalise a game and record the score; safe to call more than once.

    Gameplay state is frozen before the store is touched, and store failures
    only degrade the summary (best score 0, empty leaderboard). The session
    lock is held until the summary is stored, so a concurrent caller waits and
    gets the same summary back instead of saving a second time.
    """
    with session.lock:
        if session.summary is not None:
            return session.summary
        session.end("finished")
        session.summary = _summarise(session, store)
        return session.summary


def _summarise(session: GameSession, store: ScoreStore) -> GameSummary:
    state: GameState = session.state
    config = session.config
    summary = GameSummary(
        final_score=state.score,
        accuracy=accuracy(state),
        total_questions=state.total_questions,
        correct_answers=state.correct_answers,
        level=state.level,
        medal_level=state.medal_level,
        medal_tier=medal_tier(state.medal_level),
    )

    try:
        summary.saved = store.save_best_score_if_higher(
            session.username, config.operation, config.mode, state.score
        )
    except ScoreStoreError:
        logger.exception("Could not save score for session %s", session.id)

    try:
        summary.best_score = store.get_best_score(session.username, config.operation, config.mode)
    except ScoreStoreError:
        logger.exception("Could not read best score for session %s", session.id)
        summary.best_score = 0

    try:
        summary.leaderboard = store.get_leaderboard(config.operation, config.mode)
    except ScoreStoreError:
        logger.exception("Could not load leaderboard for session %s", session.id)
        summary.leaderboard = []

    summary.is_new_best = summary.saved
    return summary


class SessionRegistry:
    """In-memory index of live and recently finished sessions.

    With a ``store`` attached, sessions whose countdown ran out are finalised
    (score saved) by :meth:`sweep`, and evicted sessions are finalised on the
    way out, so a player who stops polling still gets a recorded score.
    """

    def __init__(self, max_sessions: int = MAX_SESSIONS, store: Optional[ScoreStore] = None) -> None:
        self.max_sessions = max_sessions
        self.store = store
        self._sessions: "OrderedDict[str, GameSession]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def add(self, session: GameSession) -> GameSession:
        with self._lock:
            self._sessions[session.id] = session
            evicted = self._evict()
        for victim in evicted:
            self._finalise(victim)
        return session

    def get(self, session_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def sweep(self) -> int:
        """Finalise every session whose countdown has run out; returns how many."""
        with self._lock:
            pending = [s for s in self._sessions.values() if s.summary is None]
        done = 0
        for session in pending:
            session.catch_up()
            if session.finished and self._finalise(session):
                done += 1
        return done

    def _finalise(self, session: GameSession) -> bool:
        session.catch_up()
        if self.store is None:
            return False
        finish_session(session, self.store)
        return True

    def _evict(self) -> List[GameSession]:
        # caller holds self._lock
        if len(self._sessions) <= self.max_sessions:
            return []
        for s in self._sessions.values():
            s.catch_up()
        evicted: List[GameSession] = []
        # finished sessions go first, oldest first; then the oldest live ones
        while len(self._sessions) > self.max_sessions:
            victim = next((sid for sid, s in self._sessions.items() if s.finished), None)
            if victim is None:
                victim = next(iter(self._sessions))
            evicted.append(self._sessions.pop(victim))
        return evicted


def start_sweeper(
    registry: SessionRegistry, interval: float = SWEEP_INTERVAL_SECONDS
) -> threading.Event:
    """Run ``registry.sweep()`` every ``interval`` seconds on a daemon thread.

    Returns the event that stops the loop once set.
    """
    stop = threading.Event()

    def _loop() -> None:
        while not stop.wait(interval):
            try:
                registry.sweep()
            except Exception:
                logger.exception("Session sweep failed")

    threading.Thread(target=_loop, name="session-sweeper", daemon=True).start()
    return stop
