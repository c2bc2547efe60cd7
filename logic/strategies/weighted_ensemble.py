"""
Weighted Ensemble Strategy - self-adjusting blend of indicator states.

Unlike the crossover strategies this votes on indicator *state* every
cycle (trend side, MACD momentum, RSI side, Bollinger side). Each
component is scaled by the current learned weight of the strategy that
owns the indicator, so components that have been winning count more.
"""

from core.models import StrategyResult
from logic.indicators import bollinger_bands, ema, last, macd, rsi
from logic.strategies.base import BaseStrategy


def _sign(x: float) -> int:
    return (x > 0) - (x < 0)


class WeightedEnsembleStrategy(BaseStrategy):

    strategy_id = "self_learning"
    display_name = "Self-Learning Ensemble"
    description = "Learned-weight vote over trend, momentum, RSI and bands"
    default_weight = 1.5
    min_candles = 50

    THRESHOLD = 0.5

    def analyze(self, snapshot, context) -> StrategyResult:
        closes = snapshot.closes
        close = float(closes[-1])
        components = {
            "ema_cross": _sign(last(ema(closes, 20)) - last(ema(closes, 50))),
            "macd_cross": _sign(last(macd(closes).histogram)),
            "rsi_extremes": _sign(last(rsi(closes, 14)) - 50.0),
            "bollinger_breach": _sign(close - last(bollinger_bands(closes).middle)),
        }

        total_weight = 0.0
        score = 0.0
        for name, vote in components.items():
            w = context.weight(name)
            total_weight += w
            score += w * vote
        if total_weight <= 0:
            return StrategyResult.neutral("No component weight")
        score /= total_weight

        reason = ", ".join(f"{k}={v:+d}" for k, v in components.items())
        if score >= self.THRESHOLD:
            return StrategyResult.bullish(round(min(90.0, 50.0 + 40.0 * score), 1), reason)
        if score <= -self.THRESHOLD:
            return StrategyResult.bearish(round(min(90.0, 50.0 - 40.0 * score), 1), reason)
        return StrategyResult.neutral(f"Mixed components ({score:+.2f})")
