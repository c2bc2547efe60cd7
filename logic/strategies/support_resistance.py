"""
Support/Resistance Strategy - reaction at clustered swing levels.

Levels come from confirmed swing lows (support) and swing highs
(resistance). A level touched more than once is stronger.
"""

import numpy as np

from core.models import StrategyResult
from logic.indicators import swing_points
from logic.strategies.base import BaseStrategy


class SupportResistanceStrategy(BaseStrategy):

    strategy_id = "support_resistance"
    display_name = "Support/Resistance"
    description = "Bounce off support or rejection at resistance"
    default_weight = 1.1
    min_candles = 30

    LOOKBACK = 100
    SWING_WINDOW = 2
    TOLERANCE_RANGE_MULT = 0.5   # level tolerance as a share of average candle range

    def analyze(self, snapshot, context) -> StrategyResult:
        candles = snapshot.historical[-self.LOOKBACK:]
        highs = snapshot.highs[-self.LOOKBACK:]
        lows = snapshot.lows[-self.LOOKBACK:]
        curr = candles[-1]

        # Swings need `SWING_WINDOW` bars on the right, so the current bar never qualifies
        swing_high_idx, swing_low_idx = swing_points(highs[:-1], lows[:-1], self.SWING_WINDOW)
        avg_range = float(np.mean(highs[-20:] - lows[-20:]))
        tol = max(avg_range * self.TOLERANCE_RANGE_MULT, 1e-9)

        supports = [float(lows[i]) for i in swing_low_idx]
        resistances = [float(highs[i]) for i in swing_high_idx]

        below = [lvl for lvl in supports if lvl < curr.close]
        if below and curr.is_bullish:
            level = max(below)
            if curr.low <= level + tol:
                touches = sum(1 for lvl in supports if abs(lvl - level) <= tol)
                return StrategyResult.bullish(
                    min(80.0, 55.0 + 5.0 * touches),
                    f"Bounce off support {level:.5f} ({touches} touches)",
                )

        above = [lvl for lvl in resistances if lvl > curr.close]
        if above and curr.is_bearish:
            level = min(above)
            if curr.high >= level - tol:
                touches = sum(1 for lvl in resistances if abs(lvl - level) <= tol)
                return StrategyResult.bearish(
                    min(80.0, 55.0 + 5.0 * touches),
                    f"Rejected at resistance {level:.5f} ({touches} touches)",
                )

        return StrategyResult.neutral("No level reaction")
