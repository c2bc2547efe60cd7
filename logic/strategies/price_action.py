"""Price Action Strategy - engulfing candles."""

from core.models import StrategyResult
from logic.strategies.base import BaseStrategy


class PriceActionStrategy(BaseStrategy):
    """
    Bullish engulfing: previous candle red, current green, and the current
    body opens below the previous close and closes above the previous open.
    Bearish engulfing is the mirror.
    """

    strategy_id = "price_action"
    display_name = "Price Action"
    description = "Engulfing candle patterns"
    default_weight = 1.2
    min_candles = 3

    CONFIDENCE = 75.0

    def analyze(self, snapshot, context) -> StrategyResult:
        prev, curr = snapshot.historical[-2], snapshot.historical[-1]

        if (
            prev.is_bearish
            and curr.is_bullish
            and curr.open < prev.close
            and curr.close > prev.open
        ):
            return StrategyResult.bullish(self.CONFIDENCE, "Bullish engulfing pattern detected")

        if (
            prev.is_bullish
            and curr.is_bearish
            and curr.open > prev.close
            and curr.close < prev.open
        ):
            return StrategyResult.bearish(self.CONFIDENCE, "Bearish engulfing pattern detected")

        return StrategyResult.neutral("No clear price action pattern")
