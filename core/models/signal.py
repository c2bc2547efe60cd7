"""Strategy votes and aggregated signals."""

import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Direction(Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class SignalSide(Enum):
    BUY = "BUY"
    SELL = "SELL"
    NONE = "NONE"

    @property
    def direction(self) -> Direction:
        if self is SignalSide.BUY:
            return Direction.BULLISH
        if self is SignalSide.SELL:
            return Direction.BEARISH
        return Direction.NEUTRAL


@dataclass(frozen=True)
class StrategyResult:
    """
    One strategy's vote.

    confidence is in [0, 100] and is zero exactly when the vote is neutral.
    """
    direction: Direction
    confidence: float
    reason: str = ""

    def __post_init__(self):
        if not 0 <= self.confidence <= 100:
            raise ValueError(f"confidence out of range: {self.confidence}")
        if (self.confidence == 0) != (self.direction is Direction.NEUTRAL):
            raise ValueError(
                f"confidence {self.confidence} inconsistent with {self.direction.value}"
            )

    @property
    def is_neutral(self) -> bool:
        return self.direction is Direction.NEUTRAL

    @classmethod
    def neutral(cls, reason: str = "") -> "StrategyResult":
        return cls(Direction.NEUTRAL, 0.0, reason)

    @classmethod
    def bullish(cls, confidence: float, reason: str = "") -> "StrategyResult":
        return cls(Direction.BULLISH, float(confidence), reason)

    @classmethod
    def bearish(cls, confidence: float, reason: str = "") -> "StrategyResult":
        return cls(Direction.BEARISH, float(confidence), reason)


@dataclass(frozen=True)
class Signal:
    """Aggregated BUY/SELL/NONE decision for one evaluation cycle."""
    symbol: str
    direction: SignalSide
    confidence: float
    confirmations: Mapping[str, StrategyResult] = field(default_factory=dict)
    bullish_score: float = 0.0
    bearish_score: float = 0.0
    candle_time: int | None = None
    weights_version: int = 0
    created_at: float = field(default_factory=time.time, compare=False)

    def __post_init__(self):
        if not isinstance(self.confirmations, MappingProxyType):
            object.__setattr__(self, "confirmations", MappingProxyType(dict(self.confirmations)))

    @property
    def is_actionable(self) -> bool:
        return self.direction is not SignalSide.NONE

    def agreeing(self) -> tuple[str, ...]:
        """Strategy ids whose vote matches the signal direction."""
        wanted = self.direction.direction
        return tuple(name for name, r in self.confirmations.items() if r.direction is wanted)

    def __repr__(self) -> str:
        return (
            f"Signal({self.symbol}, {self.direction.value}, conf={self.confidence:.1f}, "
            f"bull={self.bullish_score:g}, bear={self.bearish_score:g})"
        )
