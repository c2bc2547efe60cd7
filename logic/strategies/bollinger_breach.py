"""
Bollinger Breach Strategy - close outside the bands.

Close above the upper band votes bearish (stretched), close below the
lower band votes bullish. Confidence scales with the overshoot relative to
band width, capped at 85.
"""

from core.models import StrategyResult
from logic.indicators import bollinger_bands, last
from logic.strategies.base import BaseStrategy


class BollingerBreachStrategy(BaseStrategy):

    strategy_id = "bollinger_breach"
    display_name = "Bollinger Breach"
    description = "Close outside Bollinger(20, 2)"
    default_weight = 0.9
    min_candles = 20

    BASE_CONFIDENCE = 65.0
    MAX_CONFIDENCE = 85.0

    def analyze(self, snapshot, context) -> StrategyResult:
        bands = bollinger_bands(snapshot.closes, 20, 2.0)
        upper, middle, lower = last(bands.upper), last(bands.middle), last(bands.lower)
        close = float(snapshot.closes[-1])
        half_width = upper - middle

        if close > upper:
            return StrategyResult.bearish(
                self._confidence(close - upper, half_width),
                f"Close {close:.5f} above upper band {upper:.5f}",
            )
        if close < lower:
            return StrategyResult.bullish(
                self._confidence(lower - close, half_width),
                f"Close {close:.5f} below lower band {lower:.5f}",
            )
        return StrategyResult.neutral("Inside Bollinger bands")

    def _confidence(self, overshoot: float, half_width: float) -> float:
        if half_width <= 0:
            return self.BASE_CONFIDENCE
        scaled = self.BASE_CONFIDENCE + 20.0 * overshoot / half_width
        return round(min(self.MAX_CONFIDENCE, scaled), 1)
