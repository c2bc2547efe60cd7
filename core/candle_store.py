"""
Rolling candle store for the active instrument.

Holds two bounded buffers:
- historical: time-ordered OHLC candles, one per bucket, FIFO eviction
- realtime: raw ticks in arrival order

Readers never see the buffers directly; `snapshot()` hands out an
immutable view that stays valid while ingestion continues.
"""

from collections import deque
from dataclasses import dataclass
from functools import cached_property
from typing import Iterable, Optional

import numpy as np

from core.logging_utils import get_logger
from core.models import Candle, Tick, parse_candle

logger = get_logger(__name__)


def _readonly(values) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float64)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class MarketSnapshot:
    """Immutable view of the store at one version."""
    symbol: str
    historical: tuple[Candle, ...] = ()
    realtime: tuple[Tick, ...] = ()
    version: int = 0
    bucket_seconds: int = 60

    @cached_property
    def closes(self) -> np.ndarray:
        return _readonly([c.close for c in self.historical])

    @cached_property
    def opens(self) -> np.ndarray:
        return _readonly([c.open for c in self.historical])

    @cached_property
    def highs(self) -> np.ndarray:
        return _readonly([c.high for c in self.historical])

    @cached_property
    def lows(self) -> np.ndarray:
        return _readonly([c.low for c in self.historical])

    @cached_property
    def quotes(self) -> np.ndarray:
        return _readonly([t.quote for t in self.realtime])

    @property
    def last_candle(self) -> Optional[Candle]:
        return self.historical[-1] if self.historical else None

    def __len__(self) -> int:
        return len(self.historical)


class CandleStore:
    """
    Bounded OHLC series plus raw tick buffer for one instrument.

    Late ticks (bucket older than the newest candle) are rejected: the
    series and tick buffer are left unchanged and `late_ticks` counts them.
    """

    def __init__(
        self,
        symbol: str,
        bucket_seconds: int = 60,
        max_candles: int = 1000,
        max_ticks: int = 10000,
    ):
        if bucket_seconds <= 0:
            raise ValueError("bucket_seconds must be positive")
        if max_candles <= 0 or max_ticks <= 0:
            raise ValueError("buffer sizes must be positive")
        self.symbol = symbol
        self.bucket_seconds = bucket_seconds
        self.max_candles = max_candles
        self.max_ticks = max_ticks
        self._candles: deque[Candle] = deque(maxlen=max_candles)
        self._ticks: deque[Tick] = deque(maxlen=max_ticks)
        self._version = 0
        self.late_ticks = 0

    @property
    def version(self) -> int:
        return self._version

    def bucket_for(self, epoch: int) -> int:
        return (int(epoch) // self.bucket_seconds) * self.bucket_seconds

    def ingest_tick(self, tick: Tick) -> Optional[Candle]:
        """Fold one tick into the series. Returns the touched candle, or None if rejected."""
        bucket = self.bucket_for(tick.epoch)
        last = self._candles[-1] if self._candles else None

        if last is not None and bucket < last.time:
            self.late_ticks += 1
            logger.debug(
                "[STORE] %s late tick rejected (bucket=%s < last=%s)",
                self.symbol, bucket, last.time,
            )
            return None

        if last is not None and bucket == last.time:
            candle = last.merge(tick.quote)
            self._candles[-1] = candle
        else:
            candle = Candle.from_tick(bucket, tick.quote)
            self._candles.append(candle)  # deque maxlen evicts the oldest

        self._ticks.append(tick)
        self._version += 1
        return candle

    def load_history(self, candles: Iterable[Candle | dict]) -> int:
        """
        Replace the series with broker history.

        Input must already be strictly increasing by time with consistent
        OHLC; only the most recent `max_candles` are kept.
        """
        parsed = [parse_candle(c) for c in candles]
        for prev, curr in zip(parsed, parsed[1:]):
            if curr.time <= prev.time:
                raise ValueError(
                    f"history not strictly increasing: {prev.time} then {curr.time}"
                )
        for c in parsed:
            if not c.is_consistent:
                raise ValueError(f"inconsistent OHLC at {c.time}: {c}")

        self._candles.clear()
        self._candles.extend(parsed[-self.max_candles:])
        self._ticks.clear()
        self._version += 1
        logger.info("[STORE] %s loaded %d candles", self.symbol, len(self._candles))
        return len(self._candles)

    def reset(self) -> None:
        self._candles.clear()
        self._ticks.clear()
        self.late_ticks = 0
        self._version += 1

    def snapshot(self) -> MarketSnapshot:
        return MarketSnapshot(
            symbol=self.symbol,
            historical=tuple(self._candles),
            realtime=tuple(self._ticks),
            version=self._version,
            bucket_seconds=self.bucket_seconds,
        )

    @property
    def candle_count(self) -> int:
        return len(self._candles)

    @property
    def tick_count(self) -> int:
        return len(self._ticks)

    def last_candle(self) -> Optional[Candle]:
        return self._candles[-1] if self._candles else None
