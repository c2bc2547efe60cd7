"""
Fibonacci Strategy - retracement bounce or rejection.

The prior 49 candles define the swing. If the low came first the swing
is up and a bullish candle bouncing off a retracement level votes
bullish; a down swing is mirrored.
"""

import numpy as np

from core.models import StrategyResult
from logic.strategies.base import BaseStrategy

# Deeper retracements carry more weight
LEVELS = ((0.618, 70.0), (0.5, 65.0), (0.382, 60.0))


class FibonacciStrategy(BaseStrategy):

    strategy_id = "fibonacci"
    display_name = "Fibonacci"
    description = "Bounce/rejection at 38.2/50/61.8% retracements"
    default_weight = 1.0
    min_candles = 50

    LOOKBACK = 50
    TOLERANCE = 0.02  # share of swing span

    def analyze(self, snapshot, context) -> StrategyResult:
        highs = snapshot.highs[-self.LOOKBACK:-1]
        lows = snapshot.lows[-self.LOOKBACK:-1]
        curr = snapshot.historical[-1]

        hi_idx, lo_idx = int(np.argmax(highs)), int(np.argmin(lows))
        swing_high, swing_low = float(highs[hi_idx]), float(lows[lo_idx])
        span = swing_high - swing_low
        if span <= 0:
            return StrategyResult.neutral("No swing")
        tol = span * self.TOLERANCE

        if lo_idx < hi_idx:
            if not curr.is_bullish:
                return StrategyResult.neutral("Up swing, no bounce")
            for ratio, conf in LEVELS:
                level = swing_high - ratio * span
                if curr.low <= level + tol and curr.close > level:
                    return StrategyResult.bullish(conf, f"Bounce off {ratio:.1%} retracement")
        elif hi_idx < lo_idx:
            if not curr.is_bearish:
                return StrategyResult.neutral("Down swing, no rejection")
            for ratio, conf in LEVELS:
                level = swing_low + ratio * span
                if curr.high >= level - tol and curr.close < level:
                    return StrategyResult.bearish(conf, f"Rejected at {ratio:.1%} retracement")

        return StrategyResult.neutral("No Fibonacci reaction")
