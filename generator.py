from __future__ import annotations

import random
from typing import Callable, Dict, List, Optional, Tuple

from game import (
    BASE_OPERATIONS,
    MAX_LEVEL,
    MIN_LEVEL,
    OPERATOR_SYMBOLS,
    ConfigurationError,
    GameConfig,
    InvalidLevelError,
    Mode,
    Operation,
    Question,
)

# --- Generation policy constants ----------------------------------------------------
NEGATIVE_PROBABILITY = 0.3
ZERO_PROBABILITY = 0.1  # level 1 multiplication/division only
MINI_ADDITION_MAX = 50
MINI_SUBTRACTION_MAX = 100
MINI_FACTOR_MAX = 10

# level -> (sum_min, sum_max, operand_min)
ADDITION_TIERS: Dict[int, Tuple[int, int, int]] = {
    1: (1, 10, 0),
    2: (11, 20, 6),
    3: (21, 50, 21),
    4: (51, 100, 11),
    5: (201, 1000, 101),
    6: (2001, 10000, 1001),
    7: (10001, 20000, 1001),
    8: (20001, 100000, 10001),
}

# level -> (result_min, result_max, subtrahend_min, subtrahend_max)
SUBTRACTION_TIERS: Dict[int, Tuple[int, int, int, int]] = {
    1: (1, 10, 1, 10),
    2: (11, 20, 6, 20),
    3: (21, 50, 21, 50),
    4: (51, 100, 11, 60),
    5: (201, 1000, 101, 600),
    6: (2001, 10000, 1001, 6000),
    7: (10001, 20000, 1001, 6000),
    8: (20001, 100000, 10001, 60000),
}
SUBTRACTION_NEGATIVE_MAX_LEVEL = 3

_PAIRS_LEVEL_2 = [(i, j) for i in range(1, 11) for j in range(1, 11) if 10 < i * j <= 50]
_PAIRS_LEVEL_3 = [(i, j) for i in range(1, 11) for j in range(1, 11) if 50 < i * j <= 100]
_PAIRS_LEVEL_4 = [(i, j) for i in range(11, 21) for j in range(4, 10) if i * j < 100]

# level -> ((low, high), (low, high)) for levels that draw operands directly
_DIRECT_RANGES = {
    5: ((10, 20), (10, 20)),
    7: ((21, 99), (21, 99)),
    8: ((51, 99), (51, 99)),
}
_LEVEL_6_RANGES = (((21, 50), (10, 40)), ((10, 40), (21, 50)))

Triple = Tuple[int, int, int]


def _divisors(n: int) -> List[int]:
    return [i for i in range(1, n + 1) if n % i == 0]


def _maybe_negate(n: int, config: GameConfig, rng: random.Random) -> int:
    if config.allow_negatives and rng.random() < NEGATIVE_PROBABILITY:
        return -n
    return n


def _check_level(level: int) -> None:
    if isinstance(level, bool) or not isinstance(level, int) or not MIN_LEVEL <= level <= MAX_LEVEL:
        raise InvalidLevelError(f"level must be between {MIN_LEVEL} and {MAX_LEVEL}, got {level!r}")


def _pick_operation(config: GameConfig, rng: random.Random) -> Operation:
    if config.operation is Operation.MIXED:
        return rng.choice(BASE_OPERATIONS)
    return config.operation


# --- Mini mode ----------------------------------------------------------------------


def _mini(op: Operation, config: GameConfig, rng: random.Random) -> Triple:
    if op is Operation.ADDITION:
        a = _maybe_negate(rng.randint(1, MINI_ADDITION_MAX), config, rng)
        b = _maybe_negate(rng.randint(1, MINI_ADDITION_MAX), config, rng)
        return a, b, a + b

    if op is Operation.SUBTRACTION:
        a = rng.randint(1, MINI_SUBTRACTION_MAX)
        b = rng.randint(1, MINI_SUBTRACTION_MAX)
        a, b = max(a, b), min(a, b)
        # Signs are flipped after ordering, so a negative operand1 may end up
        # smaller than operand2.
        a = _maybe_negate(a, config, rng)
        b = _maybe_negate(b, config, rng)
        return a, b, a - b

    if op is Operation.MULTIPLICATION:
        a = _maybe_negate(rng.randint(1, MINI_FACTOR_MAX), config, rng)
        b = _maybe_negate(rng.randint(1, MINI_FACTOR_MAX), config, rng)
        return a, b, a * b

    if op is Operation.DIVISION:
        quotient = _maybe_negate(rng.randint(1, MINI_FACTOR_MAX), config, rng)
        divisor = _maybe_negate(rng.randint(1, MINI_FACTOR_MAX), config, rng)
        return quotient * divisor, divisor, quotient

    raise ConfigurationError(f"no mini generator for {op!r}")


# --- Level mode ---------------------------------------------------------------------


def _addition_level(level: int, config: GameConfig, rng: random.Random) -> Triple:
    sum_min, sum_max, floor = ADDITION_TIERS[level]
    answer = rng.randint(max(sum_min, 2 * floor), sum_max)
    a = rng.randint(max(floor, 1), answer - floor)  # first addend is never 0
    b = answer - a
    a = _maybe_negate(a, config, rng)
    b = _maybe_negate(b, config, rng)
    return a, b, a + b


def _subtraction_level(level: int, config: GameConfig, rng: random.Random) -> Triple:
    result_min, result_max, sub_min, sub_max = SUBTRACTION_TIERS[level]
    answer = rng.randint(result_min, result_max)
    b = rng.randint(sub_min, sub_max)
    a = answer + b
    if level <= SUBTRACTION_NEGATIVE_MAX_LEVEL:
        a = _maybe_negate(a, config, rng)
        b = _maybe_negate(b, config, rng)
    return a, b, a - b


def _ranged_pair(level: int, rng: random.Random) -> Tuple[int, int]:
    if level == 6:
        first, second = _LEVEL_6_RANGES[0] if rng.random() < 0.5 else _LEVEL_6_RANGES[1]
    else:
        first, second = _DIRECT_RANGES[level]
    return rng.randint(*first), rng.randint(*second)


def _multiplication_level(level: int, config: GameConfig, rng: random.Random) -> Triple:
    if level == 1:
        if rng.random() < ZERO_PROBABILITY:
            a, b = 0, rng.randint(1, 10)
        else:
            product = rng.randint(1, 10)
            a = rng.choice(_divisors(product))
            b = product // a
    elif level == 2:
        a, b = rng.choice(_PAIRS_LEVEL_2)
    elif level == 3:
        a, b = rng.choice(_PAIRS_LEVEL_3)
    elif level == 4:
        a, b = rng.choice(_PAIRS_LEVEL_4)
    else:
        a, b = _ranged_pair(level, rng)
    return a, b, a * b


def _division_level(level: int, config: GameConfig, rng: random.Random) -> Triple:
    if level == 1:
        answer = 0 if rng.random() < ZERO_PROBABILITY else rng.randint(1, 10)
        divisor = rng.randint(1, 10)
    elif level == 2:
        answer, divisor = rng.randint(11, 50), rng.randint(1, 10)
    elif level == 3:
        answer, divisor = rng.randint(51, 100), rng.randint(1, 10)
    elif level == 4:
        answer, divisor = rng.randint(1, 50), rng.randint(4, 9)
    else:
        answer, divisor = _ranged_pair(level, rng)
    return answer * divisor, divisor, answer


_LEVEL_GENERATORS: Dict[Operation, Callable[[int, GameConfig, random.Random], Triple]] = {
    Operation.ADDITION: _addition_level,
    Operation.SUBTRACTION: _subtraction_level,
    Operation.MULTIPLICATION: _multiplication_level,
    Operation.DIVISION: _division_level,
}


# Public API
def generate(config: GameConfig, level: int = MIN_LEVEL, rng: Optional[random.Random] = None) -> Question:
    """Build one question for ``config`` at ``level``.

    ``level`` is only consulted in level mode; mini mode has a single fixed
    tier. Mixed operation re-rolls the base operation on every call.
    """
    rng = rng if rng is not None else random.Random()
    if config.mode is Mode.LEVEL:
        _check_level(level)

    op = _pick_operation(config, rng)
    if config.mode is Mode.MINI:
        a, b, answer = _mini(op, config, rng)
    else:
        a, b, answer = _LEVEL_GENERATORS[op](level, config, rng)

    return Question(operand1=a, operand2=b, operator=OPERATOR_SYMBOLS[op], expected_answer=answer)
