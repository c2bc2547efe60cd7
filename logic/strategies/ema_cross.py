"""
EMA Cross Strategy - fast/slow trend flip.

Fires only on the candle where EMA20 crosses EMA50; a trend that is
already established is neutral.
"""

from core.models import StrategyResult
from logic.indicators import ema, tail
from logic.strategies.base import BaseStrategy


class EMACrossStrategy(BaseStrategy):

    strategy_id = "ema_cross"
    display_name = "EMA Cross"
    description = "EMA20 crossing EMA50"
    default_weight = 1.0
    min_candles = 50

    FAST = 20
    SLOW = 50
    CONFIDENCE = 75.0

    def analyze(self, snapshot, context) -> StrategyResult:
        closes = snapshot.closes
        fast_prev, fast_now = tail(ema(closes, self.FAST), 2)
        slow_prev, slow_now = tail(ema(closes, self.SLOW), 2)

        if fast_now > slow_now and fast_prev <= slow_prev:
            return StrategyResult.bullish(
                self.CONFIDENCE, f"EMA{self.FAST} crossed above EMA{self.SLOW}"
            )
        if fast_now < slow_now and fast_prev >= slow_prev:
            return StrategyResult.bearish(
                self.CONFIDENCE, f"EMA{self.FAST} crossed below EMA{self.SLOW}"
            )
        return StrategyResult.neutral("No EMA crossover")
