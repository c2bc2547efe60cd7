"""
RSI Extremes Strategy - mean reversion at overbought/oversold.

RSI(14) above 70 votes bearish, below 30 votes bullish. Confidence grows
with distance past the threshold.
"""

from core.models import StrategyResult
from logic.indicators import last, rsi
from logic.strategies.base import BaseStrategy


class RSIExtremesStrategy(BaseStrategy):

    strategy_id = "rsi_extremes"
    display_name = "RSI Extremes"
    description = "RSI(14) overbought / oversold"
    default_weight = 0.9
    min_candles = 14  # RSI itself needs period + 1 closes; 14 reads neutral

    PERIOD = 14
    OVERBOUGHT = 70.0
    OVERSOLD = 30.0

    def analyze(self, snapshot, context) -> StrategyResult:
        value = last(rsi(snapshot.closes, self.PERIOD))

        if value > self.OVERBOUGHT:
            conf = min(90.0, 60.0 + (value - self.OVERBOUGHT))
            return StrategyResult.bearish(round(conf, 1), f"RSI overbought ({value:.1f})")
        if value < self.OVERSOLD:
            conf = min(90.0, 60.0 + (self.OVERSOLD - value))
            return StrategyResult.bullish(round(conf, 1), f"RSI oversold ({value:.1f})")
        return StrategyResult.neutral(f"RSI neutral ({value:.1f})")
