"""
Signal Aggregator - Runs all strategies and tallies their votes.

For each cycle the aggregator:
1. Evaluates every enabled strategy against one immutable snapshot
2. Discards neutral (zero-confidence) votes
3. Tallies bullish vs bearish (counts, or weight sums in weighted mode)
4. Emits one Signal; ties go to SELL

A strategy that raises is logged and counted as neutral so it can never
block the others.
"""

import asyncio
import threading
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from core.candle_store import MarketSnapshot
from core.logging_utils import get_logger
from core.models import Direction, Signal, SignalSide, StrategyResult, TradeRecord
from core.strategy_registry import StrategyRegistry
from logic.strategy_weights import DEFAULT_WEIGHT, WeightSnapshot

from .base import BaseStrategy, StrategyContext
from .bollinger_breach import BollingerBreachStrategy
from .breakout import BreakoutStrategy
from .ema_cross import EMACrossStrategy
from .fibonacci import FibonacciStrategy
from .historical_success import HistoricalSuccessStrategy
from .macd_cross import MACDCrossStrategy
from .pattern_recognition import PatternRecognitionStrategy
from .price_action import PriceActionStrategy
from .rsi_extremes import RSIExtremesStrategy
from .supply_demand import SupplyDemandStrategy
from .support_resistance import SupportResistanceStrategy
from .tick_pressure import TickPressureStrategy
from .weighted_ensemble import WeightedEnsembleStrategy

logger = get_logger(__name__)

Evaluation = Tuple[str, StrategyResult]


class SignalAggregator:
    """
    Consolidates strategy votes into one Signal per cycle.

    Stateless with respect to market data; only keeps counters for stats.
    """

    def __init__(self, registry: StrategyRegistry, weighted: bool = False):
        self.registry = registry
        self.weighted = weighted

        # Stats tracking
        self._signal_counts: Dict[str, int] = {}
        self._error_counts: Dict[str, int] = {}
        self._error_lock = threading.Lock()  # _evaluate_one runs in worker threads
        self._direction_counts: Dict[str, int] = {s.value: 0 for s in SignalSide}

    @staticmethod
    def _context(weights, history) -> Tuple[StrategyContext, int]:
        if isinstance(weights, WeightSnapshot):
            return StrategyContext(tuple(history or ()), weights.weights), weights.version
        return StrategyContext(tuple(history or ()), dict(weights or {})), 0

    def _evaluate_one(self, strategy: BaseStrategy, snapshot: MarketSnapshot, context: StrategyContext) -> Evaluation:
        try:
            return strategy.strategy_id, strategy.evaluate(snapshot, context)
        except Exception as e:
            with self._error_lock:
                self._error_counts[strategy.strategy_id] = self._error_counts.get(strategy.strategy_id, 0) + 1
            logger.warning("[AGG] Strategy %s error: %s", strategy.strategy_id, e)
            return strategy.strategy_id, StrategyResult.neutral(f"error: {e}")

    def evaluate(self, snapshot: MarketSnapshot, context: StrategyContext) -> List[Evaluation]:
        return [self._evaluate_one(s, snapshot, context) for s in self.registry.get_enabled()]

    def reduce(
        self,
        snapshot: MarketSnapshot,
        results: Iterable[Evaluation],
        weights: Mapping[str, float],
        weights_version: int = 0,
    ) -> Signal:
        """Tally non-neutral votes into a Signal."""
        confirmations: Dict[str, StrategyResult] = {}
        bullish = 0.0
        bearish = 0.0

        for name, result in results:
            if result.confidence == 0:
                continue
            confirmations[name] = result
            self._signal_counts[name] = self._signal_counts.get(name, 0) + 1
            vote = weights.get(name, DEFAULT_WEIGHT) if self.weighted else 1.0
            if result.direction is Direction.BULLISH:
                bullish += vote
            elif result.direction is Direction.BEARISH:
                bearish += vote

        total = bullish + bearish
        if total == 0:
            side, confidence = SignalSide.NONE, 0.0
        else:
            # Ties resolve to SELL
            side = SignalSide.BUY if bullish > bearish else SignalSide.SELL
            confidence = round(min(100.0, 100.0 * max(bullish, bearish) / total), 1)

        self._direction_counts[side.value] += 1
        last = snapshot.last_candle
        signal = Signal(
            symbol=snapshot.symbol,
            direction=side,
            confidence=confidence,
            confirmations=confirmations,
            bullish_score=bullish,
            bearish_score=bearish,
            candle_time=last.time if last else None,
            weights_version=weights_version,
        )
        logger.debug("[AGG] %s", signal)
        return signal

    def generate_signal(
        self,
        snapshot: MarketSnapshot,
        weights: Optional[WeightSnapshot | Mapping[str, float]] = None,
        history: Optional[Iterable[TradeRecord]] = None,
    ) -> Signal:
        context, version = self._context(weights, history)
        return self.reduce(snapshot, self.evaluate(snapshot, context), context.weights, version)

    async def generate_signal_async(
        self,
        snapshot: MarketSnapshot,
        weights: Optional[WeightSnapshot | Mapping[str, float]] = None,
        history: Optional[Iterable[TradeRecord]] = None,
    ) -> Signal:
        """Fan strategies out to worker threads, then reduce once all have returned."""
        context, version = self._context(weights, history)
        results = await asyncio.gather(*(
            asyncio.to_thread(self._evaluate_one, s, snapshot, context)
            for s in self.registry.get_enabled()
        ))
        return self.reduce(snapshot, results, context.weights, version)

    def _error_counts_copy(self) -> Dict[str, int]:
        with self._error_lock:
            return dict(self._error_counts)

    def get_stats(self) -> dict:
        return {
            "strategies": [s.strategy_id for s in self.registry.get_enabled()],
            "signal_counts": dict(self._signal_counts),
            "error_counts": self._error_counts_copy(),
            "direction_counts": dict(self._direction_counts),
            "weighted": self.weighted,
        }


def build_default_registry(disabled: Iterable[str] = ()) -> StrategyRegistry:
    """Registry with every built-in strategy; ids in `disabled` start switched off."""
    disabled = set(disabled)
    registry = StrategyRegistry()
    for strategy in (
        EMACrossStrategy(),
        RSIExtremesStrategy(),
        PriceActionStrategy(),
        MACDCrossStrategy(),
        BollingerBreachStrategy(),
        TickPressureStrategy(),
        SupportResistanceStrategy(),
        SupplyDemandStrategy(),
        BreakoutStrategy(),
        FibonacciStrategy(),
        PatternRecognitionStrategy(),
        HistoricalSuccessStrategy(),
        WeightedEnsembleStrategy(),
    ):
        registry.register(strategy, enabled=strategy.strategy_id not in disabled)
    unknown = disabled - set(registry.names())
    if unknown:
        logger.warning("[STRAT_REG] Unknown strategies in disabled list: %s", sorted(unknown))
    return registry
