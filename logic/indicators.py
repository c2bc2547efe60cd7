"""
Technical indicators over price arrays.

Every function returns a new float64 array aligned with its input. Warm-up
positions that lack enough data are NaN; use `tail()` / `last()` to read
values so a NaN is never mistaken for a signal.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from core.errors import InsufficientHistory


@dataclass(frozen=True)
class MACDResult:
    macd: np.ndarray
    signal: np.ndarray
    histogram: np.ndarray


@dataclass(frozen=True)
class BollingerBands:
    upper: np.ndarray
    middle: np.ndarray
    lower: np.ndarray


def _as_array(series: Sequence[float] | np.ndarray) -> np.ndarray:
    return np.asarray(series, dtype=np.float64)


def _require(n: int, needed: int, what: str = "values") -> None:
    if n < needed:
        raise InsufficientHistory(needed, n, what)


def sma(series, period: int) -> np.ndarray:
    values = _as_array(series)
    _require(len(values), period)
    out = np.full(len(values), np.nan)
    out[period - 1:] = sliding_window_view(values, period).mean(axis=1)
    return out


def rolling_std(series, period: int) -> np.ndarray:
    """Population standard deviation over a trailing window."""
    values = _as_array(series)
    _require(len(values), period)
    out = np.full(len(values), np.nan)
    out[period - 1:] = sliding_window_view(values, period).std(axis=1)
    return out


def ema(series, period: int) -> np.ndarray:
    """EMA seeded with the simple average of the first `period` values."""
    if period <= 0:
        raise ValueError("period must be positive")
    values = _as_array(series)
    _require(len(values), period)
    out = np.full(len(values), np.nan)
    k = 2.0 / (period + 1)
    prev = values[:period].mean()
    out[period - 1] = prev
    for i in range(period, len(values)):
        prev = (values[i] - prev) * k + prev
        out[i] = prev
    return out


def rsi(series, period: int = 14) -> np.ndarray:
    """
    Wilder RSI.

    The first `period` deltas seed the averages, so the first defined value
    sits at index `period`. A window with no losses reads 100.
    """
    values = _as_array(series)
    _require(len(values), period + 1, "closes")
    deltas = np.diff(values)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    out = np.full(len(values), np.nan)
    avg_gain = gains[:period].mean()
    avg_loss = losses[:period].mean()
    out[period] = _rsi_value(avg_gain, avg_loss)
    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        out[i + 1] = _rsi_value(avg_gain, avg_loss)
    return out


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def macd(series, fast: int = 12, slow: int = 26, signal: int = 9) -> MACDResult:
    """MACD line, signal line (EMA of the defined MACD values) and histogram."""
    if fast >= slow:
        raise ValueError("fast period must be shorter than slow period")
    values = _as_array(series)
    _require(len(values), slow, "closes")
    line = ema(values, fast) - ema(values, slow)

    signal_line = np.full(len(values), np.nan)
    valid = line[slow - 1:]
    if len(valid) >= signal:
        signal_line[slow - 1:] = ema(valid, signal)
    return MACDResult(macd=line, signal=signal_line, histogram=line - signal_line)


def bollinger_bands(series, period: int = 20, k: float = 2.0) -> BollingerBands:
    middle = sma(series, period)
    dev = rolling_std(series, period)
    return BollingerBands(upper=middle + k * dev, middle=middle, lower=middle - k * dev)


def swing_points(highs, lows, window: int = 2) -> tuple[list[int], list[int]]:
    """
    Indices of local swing highs and swing lows.

    A bar is a swing high when its high is the strict maximum of the
    `window` bars on each side (swing lows mirrored).
    """
    h = _as_array(highs)
    l = _as_array(lows)
    swing_highs: list[int] = []
    swing_lows: list[int] = []
    for i in range(window, len(h) - window):
        left_h, right_h = h[i - window:i], h[i + 1:i + window + 1]
        if h[i] > left_h.max() and h[i] > right_h.max():
            swing_highs.append(i)
        left_l, right_l = l[i - window:i], l[i + 1:i + window + 1]
        if l[i] < left_l.min() and l[i] < right_l.min():
            swing_lows.append(i)
    return swing_highs, swing_lows


def tail(values: np.ndarray, n: int = 1) -> np.ndarray:
    """Last `n` values; raises InsufficientHistory if any is still warming up."""
    if len(values) < n:
        raise InsufficientHistory(n, len(values))
    out = values[-n:]
    if np.isnan(out).any():
        defined = int(np.count_nonzero(~np.isnan(values)))
        raise InsufficientHistory(n, defined, "defined values")
    return out


def last(values: np.ndarray) -> float:
    return float(tail(values, 1)[0])
