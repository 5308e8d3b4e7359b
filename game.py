from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ConfigurationError(ValueError):
    """Raised for unknown operations, modes or levels."""


class InvalidLevelError(ConfigurationError):
    pass


class Operation(str, Enum):
    ADDITION = "addition"
    SUBTRACTION = "subtraction"
    MULTIPLICATION = "multiplication"
    DIVISION = "division"
    MIXED = "mixed"


class Mode(str, Enum):
    MINI = "mini"
    LEVEL = "level"


BASE_OPERATIONS = (
    Operation.ADDITION,
    Operation.SUBTRACTION,
    Operation.MULTIPLICATION,
    Operation.DIVISION,
)

OPERATOR_SYMBOLS = {
    Operation.ADDITION: "+",
    Operation.SUBTRACTION: "−",
    Operation.MULTIPLICATION: "×",
    Operation.DIVISION: "÷",
}

# --- Game constants ---------------------------------------------------------------
MIN_LEVEL = 1
MAX_LEVEL = 8
DURATION_SECONDS = {Mode.MINI: 60, Mode.LEVEL: 180}
STARTING_MEDAL = {Mode.MINI: 5, Mode.LEVEL: 10}
BEST_MEDAL = 1


def coerce_enum(enum_cls, value, what: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ConfigurationError(f"unknown {what}: {value!r}") from None


@dataclass(frozen=True)
class GameConfig:
    operation: Operation
    mode: Mode
    allow_negatives: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "operation", coerce_enum(Operation, self.operation, "operation"))
        object.__setattr__(self, "mode", coerce_enum(Mode, self.mode, "mode"))
        object.__setattr__(self, "allow_negatives", bool(self.allow_negatives))


@dataclass(frozen=True)
class GameState:
    """Snapshot of one running game.

    Engine functions never modify a state in place; they return a copy built
    with ``dataclasses.replace``.
    """

    score: int = 0
    level: int = MIN_LEVEL
    correct_streak: int = 0
    medal_streak: int = 0
    medal_level: int = STARTING_MEDAL[Mode.LEVEL]
    total_questions: int = 0
    correct_answers: int = 0
    time_left: int = DURATION_SECONDS[Mode.LEVEL]
    question_started_at: float = field(default=0.0, compare=False)


@dataclass(frozen=True)
class Question:
    operand1: int
    operand2: int
    operator: str
    expected_answer: int

    @property
    def text(self) -> str:
        return f"{self.operand1} {self.operator} {self.operand2} = ?"


def new_game_state(config: GameConfig, now: float = 0.0) -> GameState:
    return GameState(
        medal_level=STARTING_MEDAL[config.mode],
        time_left=DURATION_SECONDS[config.mode],
        question_started_at=now,
    )


def medal_tier(medal_level: int) -> str:
    if medal_level <= 1:
        return "gold"
    if medal_level == 2:
        return "silver"
    if medal_level == 3:
        return "bronze"
    return "gray"
