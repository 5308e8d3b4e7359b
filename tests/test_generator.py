import random

import pytest

from game import ConfigurationError, GameConfig, InvalidLevelError, Question
from generator import ADDITION_TIERS, SUBTRACTION_TIERS, generate

N = 1000


def _questions(operation, mode, level=1, negatives=False, seed=1234, n=N):
    rng = random.Random(seed)
    cfg = GameConfig(operation, mode, negatives)
    return [generate(cfg, level, rng) for _ in range(n)]


def _evaluate(q: Question) -> int:
    a, b = q.operand1, q.operand2
    if q.operator == "+":
        return a + b
    if q.operator == "−":
        return a - b
    if q.operator == "×":
        return a * b
    assert q.operator == "÷"
    assert a % b == 0
    return a // b


@pytest.mark.parametrize("level", range(1, 9))
def test_level_addition_respects_tier(level):
    sum_min, sum_max, floor = ADDITION_TIERS[level]
    for q in _questions("addition", "level", level):
        assert q.operator == "+"
        assert sum_min <= q.expected_answer <= sum_max
        assert q.operand1 >= floor and q.operand2 >= floor
        assert q.operand1 + q.operand2 == q.expected_answer


def test_level_one_addition_first_operand_is_never_zero():
    questions = _questions("addition", "level", 1)
    assert all(q.operand1 >= 1 for q in questions)
    # the second addend may still be 0 (e.g. 4 + 0)
    assert any(q.operand2 == 0 for q in questions)


def test_mini_addition_ranges():
    for q in _questions("addition", "mini"):
        assert 1 <= q.operand1 <= 50 and 1 <= q.operand2 <= 50
        assert 2 <= q.expected_answer <= 100


@pytest.mark.parametrize("level", range(1, 9))
def test_level_subtraction_respects_tier(level):
    res_min, res_max, sub_min, sub_max = SUBTRACTION_TIERS[level]
    for q in _questions("subtraction", "level", level):
        assert res_min <= q.expected_answer <= res_max
        assert sub_min <= q.operand2 <= sub_max
        assert q.operand1 > q.operand2
        assert q.operand1 - q.operand2 == q.expected_answer


def test_mini_subtraction_orders_operands_without_negatives():
    for q in _questions("subtraction", "mini"):
        assert 1 <= q.operand2 <= q.operand1 <= 100
        assert q.expected_answer >= 0


def test_mini_subtraction_keeps_magnitude_order_with_negatives():
    qs = _questions("subtraction", "mini", negatives=True)
    for q in qs:
        assert abs(q.operand1) >= abs(q.operand2)
        assert q.expected_answer == q.operand1 - q.operand2
    # sign flips can leave operand1 below operand2
    assert any(q.operand1 < q.operand2 for q in qs)


@pytest.mark.parametrize("mode", ["mini", "level"])
@pytest.mark.parametrize("level", range(1, 9))
def test_division_is_always_exact(mode, level):
    for q in _questions("division", mode, level, negatives=True):
        assert q.operator == "÷"
        assert q.operand2 != 0
        assert q.operand1 % q.operand2 == 0
        assert q.operand1 // q.operand2 == q.expected_answer


def test_level_one_division_sometimes_has_zero_answer():
    qs = _questions("division", "level", 1)
    zeros = [q for q in qs if q.expected_answer == 0]
    assert zeros and all(q.operand1 == 0 for q in zeros)
    assert all(0 <= q.expected_answer <= 10 and 1 <= q.operand2 <= 10 for q in qs)


def test_level_one_multiplication_products_and_zero_branch():
    qs = _questions("multiplication", "level", 1)
    assert any(q.operand1 == 0 for q in qs)
    for q in qs:
        assert 0 <= q.expected_answer <= 10
        assert q.operand1 * q.operand2 == q.expected_answer


@pytest.mark.parametrize(
    "level, check",
    [
        (2, lambda a, b: a <= 10 and b <= 10 and 10 < a * b <= 50),
        (3, lambda a, b: a <= 10 and b <= 10 and 50 < a * b <= 100),
        (4, lambda a, b: 11 <= a <= 20 and 4 <= b <= 9 and a * b < 100),
        (5, lambda a, b: 10 <= a <= 20 and 10 <= b <= 20),
        (6, lambda a, b: 10 <= min(a, b) and max(a, b) <= 50 and max(a, b) > 20),
        (7, lambda a, b: 21 <= a <= 99 and 21 <= b <= 99),
        (8, lambda a, b: 51 <= a <= 99 and 51 <= b <= 99),
    ],
)
def test_level_multiplication_ranges(level, check):
    for q in _questions("multiplication", "level", level):
        assert check(q.operand1, q.operand2), q
        assert q.expected_answer == q.operand1 * q.operand2


def test_mini_multiplication_ranges():
    for q in _questions("multiplication", "mini"):
        assert 1 <= q.operand1 <= 10 and 1 <= q.operand2 <= 10


def test_negatives_only_when_enabled():
    plain = _questions("addition", "mini")
    signed = _questions("addition", "mini", negatives=True)
    assert all(q.operand1 > 0 and q.operand2 > 0 for q in plain)
    assert any(q.operand1 < 0 or q.operand2 < 0 for q in signed)


def test_level_addition_with_negatives_has_consistent_answer():
    for q in _questions("addition", "level", 4, negatives=True):
        assert q.expected_answer == q.operand1 + q.operand2


def test_level_subtraction_negatives_stop_after_level_three():
    assert any(q.operand1 < 0 or q.operand2 < 0 for q in _questions("subtraction", "level", 3, True))
    assert all(q.operand2 > 0 for q in _questions("subtraction", "level", 4, True))


@pytest.mark.parametrize("mode", ["mini", "level"])
def test_mixed_uses_every_operation(mode):
    qs = _questions("mixed", mode, 3, n=400)
    assert {q.operator for q in qs} == {"+", "−", "×", "÷"}
    for q in qs:
        assert _evaluate(q) == q.expected_answer


def test_same_seed_same_questions():
    assert _questions("mixed", "level", 5, seed=7, n=50) == _questions("mixed", "level", 5, seed=7, n=50)


@pytest.mark.parametrize("level", [0, 9, -1, True, False, 2.0])
def test_invalid_level_fails_fast(level):
    with pytest.raises(InvalidLevelError):
        generate(GameConfig("addition", "level"), level, random.Random(1))


def test_mini_mode_ignores_level():
    q = generate(GameConfig("addition", "mini"), 42, random.Random(1))
    assert 1 <= q.operand1 <= 50


def test_unknown_operation_is_configuration_error():
    with pytest.raises(ConfigurationError):
        GameConfig("exponent", "mini")
    with pytest.raises(ConfigurationError):
        GameConfig("addition", "marathon")


def test_question_text():
    assert Question(6, 3, "÷", 2).text == "6 ÷ 3 = ?"
