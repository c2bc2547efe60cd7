"""Breakout Strategy - close beyond the prior 20-candle high/low band."""

from core.models import StrategyResult
from logic.strategies.base import BaseStrategy


class BreakoutStrategy(BaseStrategy):

    strategy_id = "breakout"
    display_name = "Breakout"
    description = "Close beyond the rolling 20-candle range"
    default_weight = 1.1
    min_candles = 21

    PERIOD = 20

    def analyze(self, snapshot, context) -> StrategyResult:
        band_high = float(snapshot.highs[-(self.PERIOD + 1):-1].max())
        band_low = float(snapshot.lows[-(self.PERIOD + 1):-1].min())
        close = float(snapshot.closes[-1])
        width = band_high - band_low

        if close > band_high:
            return StrategyResult.bullish(
                self._confidence(close - band_high, width),
                f"Broke above {self.PERIOD}-bar high {band_high:.5f}",
            )
        if close < band_low:
            return StrategyResult.bearish(
                self._confidence(band_low - close, width),
                f"Broke below {self.PERIOD}-bar low {band_low:.5f}",
            )
        return StrategyResult.neutral("Inside range")

    @staticmethod
    def _confidence(distance: float, width: float) -> float:
        if width <= 0:
            return 60.0
        return round(min(80.0, 60.0 + 20.0 * distance / width), 1)
