"""
Base strategy interface.

All strategies inherit from BaseStrategy and return a StrategyResult.
Strategies are pure: they read an immutable MarketSnapshot plus a
read-only context and never touch shared state.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from core.candle_store import MarketSnapshot
from core.errors import InsufficientHistory
from core.logging_utils import get_logger
from core.models import StrategyResult, TradeRecord

logger = get_logger(__name__)


@dataclass(frozen=True)
class StrategyContext:
    """Read-only inputs beyond market data."""
    history: tuple[TradeRecord, ...] = ()
    weights: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))

    def weight(self, strategy_id: str, default: float = 1.0) -> float:
        return self.weights.get(strategy_id, default)


class BaseStrategy(ABC):
    """
    Abstract base class for all signal strategies.

    Each strategy:
    - Declares the data it needs (min_candles / min_ticks)
    - Votes bullish, bearish or neutral with a confidence
    - Does NOT aggregate or trade (the aggregator does that)
    """

    strategy_id: str = "base"
    display_name: str = "Base"
    description: str = ""
    default_weight: float = 1.0
    min_candles: int = 0
    min_ticks: int = 0

    def evaluate(self, snapshot: MarketSnapshot, context: StrategyContext | None = None) -> StrategyResult:
        """Check data preconditions, then analyze. Missing history is a neutral vote."""
        context = context or StrategyContext()
        if len(snapshot.historical) < self.min_candles:
            return StrategyResult.neutral(
                f"need {self.min_candles} candles, have {len(snapshot.historical)}"
            )
        if len(snapshot.realtime) < self.min_ticks:
            return StrategyResult.neutral(
                f"need {self.min_ticks} ticks, have {len(snapshot.realtime)}"
            )
        try:
            return self.analyze(snapshot, context)
        except InsufficientHistory as e:
            return StrategyResult.neutral(str(e))

    @abstractmethod
    def analyze(self, snapshot: MarketSnapshot, context: StrategyContext) -> StrategyResult:
        """Return this strategy's vote for the latest candle."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.strategy_id})"
