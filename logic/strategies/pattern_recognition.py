"""
Pattern Recognition Strategy - classic chart patterns on swing points.

Checked in order of reliability:
1. Head and shoulders / inverse (neckline break)
2. Double top / double bottom (neckline break)
3. Converging triangle breakout
"""

from typing import Optional

import numpy as np

from core.models import StrategyResult
from logic.indicators import swing_points
from logic.strategies.base import BaseStrategy


class PatternRecognitionStrategy(BaseStrategy):

    strategy_id = "pattern_recognition"
    display_name = "Pattern Recognition"
    description = "Head & shoulders, double tops/bottoms, triangles"
    default_weight = 1.3
    min_candles = 30

    LOOKBACK = 100
    SWING_WINDOW = 2

    def analyze(self, snapshot, context) -> StrategyResult:
        highs = snapshot.highs[-self.LOOKBACK:]
        lows = snapshot.lows[-self.LOOKBACK:]
        close = float(snapshot.closes[-1])
        sh, sl = swing_points(highs[:-1], lows[:-1], self.SWING_WINDOW)
        tol = max(float(np.mean(highs[-20:] - lows[-20:])) * 0.5, 1e-9)

        for check in (self._head_and_shoulders, self._double_top_bottom):
            result = check(highs, lows, sh, sl, close, tol)
            if result is not None:
                return result

        result = self._triangle(highs, lows, sh, sl, close)
        if result is not None:
            return result
        return StrategyResult.neutral("No pattern")

    @staticmethod
    def _head_and_shoulders(highs, lows, sh, sl, close, tol) -> Optional[StrategyResult]:
        if len(sh) >= 3:
            a, b, c = sh[-3:]
            if highs[b] > highs[a] and highs[b] > highs[c] and abs(highs[a] - highs[c]) <= 2 * tol:
                neckline = float(lows[a:c + 1].min())
                if close < neckline:
                    return StrategyResult.bearish(75.0, f"Head and shoulders, neckline {neckline:.5f} broken")
        if len(sl) >= 3:
            a, b, c = sl[-3:]
            if lows[b] < lows[a] and lows[b] < lows[c] and abs(lows[a] - lows[c]) <= 2 * tol:
                neckline = float(highs[a:c + 1].max())
                if close > neckline:
                    return StrategyResult.bullish(75.0, f"Inverse head and shoulders, neckline {neckline:.5f} broken")
        return None

    @staticmethod
    def _double_top_bottom(highs, lows, sh, sl, close, tol) -> Optional[StrategyResult]:
        if len(sh) >= 2:
            a, b = sh[-2:]
            if abs(highs[a] - highs[b]) <= tol:
                neckline = float(lows[a:b + 1].min())
                if close < neckline:
                    return StrategyResult.bearish(70.0, f"Double top, neckline {neckline:.5f} broken")
        if len(sl) >= 2:
            a, b = sl[-2:]
            if abs(lows[a] - lows[b]) <= tol:
                neckline = float(highs[a:b + 1].max())
                if close > neckline:
                    return StrategyResult.bullish(70.0, f"Double bottom, neckline {neckline:.5f} broken")
        return None

    @staticmethod
    def _triangle(highs, lows, sh, sl, close) -> Optional[StrategyResult]:
        if len(sh) < 2 or len(sl) < 2:
            return None
        falling_highs = highs[sh[-1]] < highs[sh[-2]]
        rising_lows = lows[sl[-1]] > lows[sl[-2]]
        if not (falling_highs and rising_lows):
            return None
        if close > highs[sh[-1]]:
            return StrategyResult.bullish(65.0, "Triangle breakout up")
        if close < lows[sl[-1]]:
            return StrategyResult.bearish(65.0, "Triangle breakdown")
        return None
