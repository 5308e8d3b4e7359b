from __future__ import annotations

import math
import re
from dataclasses import replace
from typing import NamedTuple, Optional

from game import BEST_MEDAL, MAX_LEVEL, MIN_LEVEL, GameConfig, GameState, Mode, Question

# --- Scoring policy ------------------------------------------------------------------
BUCKET_SECONDS = 3
MINI_BASE_POINTS = 6  # bucket 1 -> 5 points
# bucket 1 -> 5 + level points (8 at level 3, 13 at level 8). The old browser
# game used 5 here, i.e. 4 + level at bucket 1.
LEVEL_BASE_POINTS = 6
MIN_POINTS = 1
WRONG_ANSWER_PENALTY = 5

LEVEL_UP_STREAK = 5
SLOW_LEVELS = (6, 7)
SLOW_LEVEL_UP_STREAK = 10
MEDAL_STREAK = {Mode.MINI: 4, Mode.LEVEL: 5}

# --- Answer validation ---------------------------------------------------------------
LEN_LIMIT = 12
_EMPTY_MSG = "Answer required."
_TOO_LONG_MSG = f"Answer too long (> {LEN_LIMIT})."
_NOT_INTEGER_MSG = "Only whole numbers (optionally negative) are allowed."
_INTEGER_RE = re.compile(r"^[+-]?\d+$")


class Submission(NamedTuple):
    state: GameState
    points: int
    correct: bool


def validate_answer_text(s: Optional[str]) -> Optional[str]:
    if s is None or not isinstance(s, str) or not s.strip():
        return _EMPTY_MSG
    s = s.strip()
    if len(s) > LEN_LIMIT:
        return _TOO_LONG_MSG
    if _INTEGER_RE.fullmatch(s) is None:
        return _NOT_INTEGER_MSG
    return None


def parse_answer(s: Optional[str]) -> Optional[int]:
    """Return the integer typed by the player, or None if the input is rejected."""
    if validate_answer_text(s):
        return None
    return int(s.strip())


def time_bucket(elapsed_seconds: float) -> int:
    # 0-3s -> 1, (3-6] -> 2, (6-9] -> 3 ...
    return max(1, math.ceil(max(0.0, elapsed_seconds) / BUCKET_SECONDS))


def points_for(config: GameConfig, level: int, elapsed_seconds: float) -> int:
    bucket = time_bucket(elapsed_seconds)
    if config.mode is Mode.MINI:
        return max(MIN_POINTS, MINI_BASE_POINTS - bucket)
    return max(MIN_POINTS, LEVEL_BASE_POINTS + level - bucket)


def _level_up_threshold(level: int) -> int:
    return SLOW_LEVEL_UP_STREAK if level in SLOW_LEVELS else LEVEL_UP_STREAK


def _on_correct(state: GameState, config: GameConfig) -> GameState:
    level, streak = state.level, state.correct_streak
    if config.mode is Mode.LEVEL:
        streak += 1
        if streak >= _level_up_threshold(level) and level < MAX_LEVEL:
            level += 1
            streak = 0

    medal_level, medal_streak = state.medal_level, state.medal_streak + 1
    if medal_streak >= MEDAL_STREAK[config.mode] and medal_level > BEST_MEDAL:
        medal_level -= 1
        medal_streak = 0

    return replace(
        state,
        level=level,
        correct_streak=streak,
        medal_level=medal_level,
        medal_streak=medal_streak,
        correct_answers=state.correct_answers + 1,
    )


def _on_wrong(state: GameState, config: GameConfig) -> GameState:
    if config.mode is not Mode.LEVEL:
        return state
    return replace(state, correct_streak=0, level=max(MIN_LEVEL, state.level - 1))


def submit(
    state: GameState,
    config: GameConfig,
    question: Question,
    user_answer: int,
    elapsed_seconds: float,
) -> Submission:
    """Score one parsed answer and advance level/medal progression.

    Returns ``(new_state, points_delta, correct)``. The caller is expected to
    generate the next question right away, whatever the outcome.
    """
    correct = user_answer == question.expected_answer
    counted = replace(state, total_questions=state.total_questions + 1)

    if correct:
        points = points_for(config, state.level, elapsed_seconds)
        new_state = _on_correct(counted, config)
    else:
        points = -WRONG_ANSWER_PENALTY
        new_state = _on_wrong(counted, config)

    return Submission(replace(new_state, score=state.score + points), points, correct)


def tick(state: GameState, seconds: int = 1) -> GameState:
    return replace(state, time_left=max(0, state.time_left - seconds))


def is_expired(state: GameState) -> bool:
    return state.time_left <= 0


def accuracy(state: GameState) -> int:
    if state.total_questions == 0:
        return 0
    # round half up
    return math.floor(state.correct_answers * 100 / state.total_questions + 0.5)
