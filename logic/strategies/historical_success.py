"""
Historical Success Strategy - lean toward what has been working.

Looks at the most recent resolved trades on this instrument and votes
for the direction whose win rate is at least 60% over at least 5 trades.
"""

from core.models import SignalSide, StrategyResult
from logic.strategies.base import BaseStrategy


class HistoricalSuccessStrategy(BaseStrategy):

    strategy_id = "historical_success"
    display_name = "Historical Success"
    description = "Direction with the best recent win rate"
    default_weight = 1.3

    WINDOW = 20
    MIN_TRADES = 5
    MIN_WIN_RATE = 0.6

    def analyze(self, snapshot, context) -> StrategyResult:
        resolved = [
            t for t in context.history
            if t.outcome_known and t.instrument == snapshot.symbol
        ][-self.WINDOW:]

        rates = {}
        for side in (SignalSide.BUY, SignalSide.SELL):
            trades = [t for t in resolved if t.direction is side]
            if len(trades) >= self.MIN_TRADES:
                rates[side] = sum(1 for t in trades if t.is_win) / len(trades)

        qualified = {side: r for side, r in rates.items() if r >= self.MIN_WIN_RATE}
        if not qualified:
            return StrategyResult.neutral(f"{len(resolved)} resolved trades, no edge")

        buy = qualified.get(SignalSide.BUY, -1.0)
        sell = qualified.get(SignalSide.SELL, -1.0)
        if buy == sell:
            return StrategyResult.neutral("BUY and SELL equally successful")

        conf = round(min(90.0, 100.0 * max(buy, sell)), 1)
        if buy > sell:
            return StrategyResult.bullish(conf, f"BUY win rate {buy:.0%}")
        return StrategyResult.bearish(conf, f"SELL win rate {sell:.0%}")
