"""MACD Cross Strategy - MACD line crossing its signal line."""

from core.models import StrategyResult
from logic.indicators import macd, tail
from logic.strategies.base import BaseStrategy


class MACDCrossStrategy(BaseStrategy):

    strategy_id = "macd_cross"
    display_name = "MACD Cross"
    description = "MACD(12,26,9) signal-line crossover"
    default_weight = 1.0
    min_candles = 26  # neutral until the signal line is defined

    CONFIDENCE = 70.0

    def analyze(self, snapshot, context) -> StrategyResult:
        result = macd(snapshot.closes)
        macd_prev, macd_now = tail(result.macd, 2)
        sig_prev, sig_now = tail(result.signal, 2)

        if macd_now > sig_now and macd_prev <= sig_prev:
            return StrategyResult.bullish(self.CONFIDENCE, "MACD crossed above signal")
        if macd_now < sig_now and macd_prev >= sig_prev:
            return StrategyResult.bearish(self.CONFIDENCE, "MACD crossed below signal")
        return StrategyResult.neutral("No MACD crossover")
