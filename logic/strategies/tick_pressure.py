"""
Tick Pressure Strategy - up-tick vs down-tick imbalance.

Volume proxy for synthetic indices that have no traded volume: counts
tick-to-tick moves over the last 100 moves (reference tick 101 back) and
votes with the side that outnumbers the other by at least 1.5x.
"""

import numpy as np

from core.models import StrategyResult
from logic.strategies.base import BaseStrategy


class TickPressureStrategy(BaseStrategy):

    strategy_id = "tick_pressure"
    display_name = "Tick Pressure"
    description = "Up-tick / down-tick imbalance over 100 ticks"
    default_weight = 1.2
    min_ticks = 100

    WINDOW = 100
    RATIO = 1.5
    MAX_CONFIDENCE = 85.0

    def analyze(self, snapshot, context) -> StrategyResult:
        quotes = snapshot.quotes[-(self.WINDOW + 1):]
        moves = np.diff(quotes)
        up = int(np.count_nonzero(moves > 0))
        down = int(np.count_nonzero(moves < 0))

        if up == 0 and down == 0:
            return StrategyResult.neutral("Flat ticks")

        if up >= self.RATIO * down and up > down:
            share = up / (up + down)
            return StrategyResult.bullish(
                round(min(self.MAX_CONFIDENCE, 100.0 * share), 1),
                f"Buying pressure: {up} up vs {down} down ticks",
            )
        if down >= self.RATIO * up and down > up:
            share = down / (up + down)
            return StrategyResult.bearish(
                round(min(self.MAX_CONFIDENCE, 100.0 * share), 1),
                f"Selling pressure: {down} down vs {up} up ticks",
            )
        return StrategyResult.neutral(f"Balanced ticks: {up} up / {down} down")
