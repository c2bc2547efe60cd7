"""Tick and candle primitives."""

import math
from dataclasses import dataclass
from typing import Any, Mapping

from core.errors import MalformedTick


@dataclass(frozen=True)
class Tick:
    """Single quote from the broker stream."""
    quote: float
    epoch: int      # seconds
    symbol: str


@dataclass(frozen=True)
class Candle:
    """OHLC candle. `time` is the bucket start in epoch seconds."""
    time: int
    open: float
    high: float
    low: float
    close: float

    @property
    def range(self) -> float:
        return self.high - self.low

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open

    @property
    def upper_wick(self) -> float:
        return self.high - max(self.open, self.close)

    @property
    def lower_wick(self) -> float:
        return min(self.open, self.close) - self.low

    @property
    def is_consistent(self) -> bool:
        return self.high >= max(self.open, self.close) and self.low <= min(self.open, self.close)

    @classmethod
    def from_tick(cls, bucket: int, quote: float) -> "Candle":
        return cls(time=bucket, open=quote, high=quote, low=quote, close=quote)

    def merge(self, quote: float) -> "Candle":
        """Return a copy extended by one more quote in the same bucket."""
        return Candle(
            time=self.time,
            open=self.open,
            high=max(self.high, quote),
            low=min(self.low, quote),
            close=quote,
        )


def _finite(value: Any, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MalformedTick(f"{field_name} is not numeric: {value!r}") from None
    if not math.isfinite(number):
        raise MalformedTick(f"{field_name} is not finite: {value!r}")
    return number


def parse_tick(raw: Tick | Mapping[str, Any], symbol: str | None = None) -> Tick:
    """
    Normalize a tick payload.

    Accepts a Tick or a broker tick mapping ({"quote", "epoch", "symbol"}).
    Raises MalformedTick for missing, non-numeric or non-finite fields.
    """
    if isinstance(raw, Tick):
        _finite(raw.quote, "quote")
        return raw
    if not isinstance(raw, Mapping):
        raise MalformedTick(f"unsupported tick payload: {type(raw).__name__}")
    if "quote" not in raw or "epoch" not in raw:
        raise MalformedTick(f"tick missing quote/epoch: {dict(raw)!r}")

    quote = _finite(raw["quote"], "quote")
    epoch = _finite(raw["epoch"], "epoch")
    tick_symbol = raw.get("symbol") or symbol
    if not tick_symbol:
        raise MalformedTick("tick has no symbol")
    return Tick(quote=quote, epoch=int(epoch), symbol=str(tick_symbol))


def parse_candle(raw: Candle | Mapping[str, Any]) -> Candle:
    """Normalize a candle from a Candle or a broker `ticks_history` row."""
    if isinstance(raw, Candle):
        return raw
    time_value = raw.get("epoch", raw.get("time"))
    if time_value is None:
        raise ValueError(f"candle missing epoch: {dict(raw)!r}")
    return Candle(
        time=int(time_value),
        open=float(raw["open"]),
        high=float(raw["high"]),
        low=float(raw["low"]),
        close=float(raw["close"]),
    )
