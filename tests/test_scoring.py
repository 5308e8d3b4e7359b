from dataclasses import replace

import pytest

from game import GameConfig, GameState, Question, medal_tier, new_game_state
from scoring import (
    accuracy,
    is_expired,
    parse_answer,
    points_for,
    submit,
    tick,
    time_bucket,
    validate_answer_text,
)

MINI = GameConfig("addition", "mini")
LEVEL = GameConfig("addition", "level")
Q = Question(3, 4, "+", 7)


def _run(state, config, answers, elapsed=1.0):
    for value in answers:
        state = submit(state, config, Q, value, elapsed).state
    return state


# ---------- Points ----------


@pytest.mark.parametrize(
    "elapsed, bucket", [(0, 1), (0.5, 1), (3, 1), (3.01, 2), (6, 2), (9.5, 4), (10, 4), (15, 5)]
)
def test_time_bucket(elapsed, bucket):
    assert time_bucket(elapsed) == bucket


def test_mini_points_fast_and_slow():
    state = new_game_state(MINI)
    assert submit(state, MINI, Q, 7, 1).points == 5
    assert submit(state, MINI, Q, 7, 10).points == 2
    assert submit(state, MINI, Q, 7, 60).points == 1


def test_level_points_scale_with_level():
    state = replace(new_game_state(LEVEL), level=3)
    assert submit(state, LEVEL, Q, 7, 1).points == 8
    top = replace(new_game_state(LEVEL), level=8)
    assert submit(top, LEVEL, Q, 7, 1).points == 13
    assert submit(top, LEVEL, Q, 7, 4).points == 12
    assert points_for(LEVEL, 8, 300) == 1


def test_wrong_answer_costs_five_and_score_can_go_negative():
    state = new_game_state(MINI)
    new_state, points, correct = submit(state, MINI, Q, 8, 1)
    assert (points, correct) == (-5, False)
    assert new_state.score == -5
    assert new_state.total_questions == 1 and new_state.correct_answers == 0


def test_correct_answer_counts():
    new_state, points, correct = submit(new_game_state(MINI), MINI, Q, 7, 1)
    assert correct is True
    assert new_state.score == points == 5
    assert new_state.total_questions == 1 and new_state.correct_answers == 1


# ---------- Level progression ----------


def test_five_correct_promotes_then_one_wrong_demotes():
    state = _run(new_game_state(LEVEL), LEVEL, [7] * 5)
    assert state.level == 2 and state.correct_streak == 0
    state = _run(state, LEVEL, [0])
    assert state.level == 1 and state.correct_streak == 0


def test_levels_six_and_seven_need_ten():
    state = replace(new_game_state(LEVEL), level=6)
    state = _run(state, LEVEL, [7] * 9)
    assert state.level == 6 and state.correct_streak == 9
    state = _run(state, LEVEL, [7])
    assert state.level == 7 and state.correct_streak == 0


def test_level_capped_at_eight_and_floored_at_one():
    state = _run(replace(new_game_state(LEVEL), level=8), LEVEL, [7] * 5)
    assert state.level == 8
    state = _run(new_game_state(LEVEL), LEVEL, [0, 0])
    assert state.level == 1


def test_mini_mode_has_no_level_progression():
    state = _run(new_game_state(MINI), MINI, [7] * 12 + [0])
    assert state.level == 1 and state.correct_streak == 0


# ---------- Medals ----------


def test_medal_starting_values():
    assert new_game_state(MINI).medal_level == 5
    assert new_game_state(LEVEL).medal_level == 10
    assert new_game_state(MINI).time_left == 60
    assert new_game_state(LEVEL).time_left == 180


@pytest.mark.parametrize("config, threshold", [(MINI, 4), (LEVEL, 5)])
def test_medal_improves_after_threshold(config, threshold):
    start = new_game_state(config)
    state = _run(start, config, [7] * (threshold - 1))
    assert state.medal_level == start.medal_level
    state = _run(state, config, [7])
    assert state.medal_level == start.medal_level - 1 and state.medal_streak == 0


def test_medal_never_below_one():
    state = _run(new_game_state(MINI), MINI, [7] * 100)
    assert state.medal_level == 1


def test_wrong_answer_leaves_medal_streak():
    state = _run(new_game_state(MINI), MINI, [7, 7, 7, 0])
    assert state.medal_streak == 3
    state = _run(state, MINI, [7])
    assert state.medal_level == 4


@pytest.mark.parametrize("level, tier", [(1, "gold"), (2, "silver"), (3, "bronze"), (4, "gray"), (10, "gray")])
def test_medal_tier(level, tier):
    assert medal_tier(level) == tier


# ---------- Accuracy / timer ----------


@pytest.mark.parametrize(
    "total, correct, expected", [(0, 0, 0), (3, 2, 67), (8, 1, 13), (4, 4, 100), (3, 1, 33)]
)
def test_accuracy(total, correct, expected):
    assert accuracy(GameState(total_questions=total, correct_answers=correct)) == expected


def test_tick_counts_down_to_zero():
    state = GameState(time_left=2)
    state = tick(state)
    assert state.time_left == 1 and not is_expired(state)
    state = tick(tick(state))
    assert state.time_left == 0 and is_expired(state)


# ---------- Answer parsing ----------


@pytest.mark.parametrize("raw, value", [("42", 42), (" -7 ", -7), ("+3", 3), ("0", 0)])
def test_parse_answer_accepts_integers(raw, value):
    assert parse_answer(raw) == value
    assert validate_answer_text(raw) is None


@pytest.mark.parametrize("raw", ["", "   ", None, "abc", "12abc", "1.5", "-", "1" * 13])
def test_parse_answer_rejects_junk(raw):
    assert parse_answer(raw) is None
    assert validate_answer_text(raw)
