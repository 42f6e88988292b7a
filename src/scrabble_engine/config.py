from dataclasses import dataclass
from enum import Enum
from typing import Optional

RACK_CAPACITY = 7
BINGO_BONUS = 50


class Difficulty(str, Enum):
    """Automated player strength; only the candidate selection rule varies."""

    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"

    @classmethod
    def parse(cls, value: "str | Difficulty") -> "Difficulty":
        if isinstance(value, Difficulty):
            return value
        aliases = {"NOVICE": "EASY", "NORMAL": "MEDIUM", "MASTER": "HARD"}
        key = value.strip().upper()
        return cls(aliases.get(key, key))


@dataclass
class GameConfig:
    rack_capacity: int = RACK_CAPACITY
    bingo_bonus: int = BINGO_BONUS
    bingo_enabled: bool = True
    target_score: int = 200
    ai_difficulty: Difficulty = Difficulty.MEDIUM
    # chance that a stuck automated player exchanges its rack instead of passing
    exchange_probability: float = 0.8
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        self.ai_difficulty = Difficulty.parse(self.ai_difficulty)
        if self.rack_capacity < 1:
            raise ValueError(f"rack_capacity must be positive, got {self.rack_capacity}")
        if self.bingo_bonus < 0:
            raise ValueError(f"bingo_bonus must be >= 0, got {self.bingo_bonus}")
        if self.target_score <= 0:
            raise ValueError(f"target_score must be positive, got {self.target_score}")
        if not 0.0 <= self.exchange_probability <= 1.0:
            raise ValueError("exchange_probability must be within [0, 1]")
