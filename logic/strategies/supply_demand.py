"""
Supply/Demand Strategy - price returning to a base before an impulse.

A zone is the range of the base candle right before an impulse candle
whose body is at least twice the average body. Bullish impulses leave
demand zones, bearish impulses leave supply zones.
"""

import numpy as np

from core.models import StrategyResult
from logic.strategies.base import BaseStrategy


class SupplyDemandStrategy(BaseStrategy):

    strategy_id = "supply_demand"
    display_name = "Supply/Demand"
    description = "Close inside the latest supply or demand zone"
    default_weight = 1.0
    min_candles = 20

    LOOKBACK = 50
    IMPULSE_MULT = 2.0
    CONFIDENCE = 65.0

    def analyze(self, snapshot, context) -> StrategyResult:
        candles = snapshot.historical[-self.LOOKBACK:]
        avg_body = float(np.mean([c.body for c in candles]))
        if avg_body <= 0:
            return StrategyResult.neutral("No candle bodies")

        close = candles[-1].close
        # Newest impulse first; the current candle cannot be its own zone's impulse
        for i in range(len(candles) - 2, 0, -1):
            impulse = candles[i]
            if impulse.body < self.IMPULSE_MULT * avg_body:
                continue
            base = candles[i - 1]
            if not base.low <= close <= base.high:
                return StrategyResult.neutral("Outside latest zone")
            if impulse.is_bullish:
                return StrategyResult.bullish(
                    self.CONFIDENCE, f"In demand zone {base.low:.5f}-{base.high:.5f}"
                )
            return StrategyResult.bearish(
                self.CONFIDENCE, f"In supply zone {base.low:.5f}-{base.high:.5f}"
            )

        return StrategyResult.neutral("No impulse found")
