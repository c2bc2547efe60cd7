"""Test helpers: fake collaborators and candle builders."""

import asyncio
from typing import List, Optional, Sequence

from core.candle_store import MarketSnapshot
from core.models import Candle, SignalSide, Tick
from core.trading_interfaces import IMarketDataFeed, ITradeExecutor


def candles_from_closes(closes: Sequence[float], start: int = 0, step: int = 60) -> List[Candle]:
    """Candles whose open is the previous close (first open = first close)."""
    out = []
    prev = closes[0]
    for i, close in enumerate(closes):
        o = prev
        out.append(Candle(
            time=start + i * step,
            open=o,
            high=max(o, close),
            low=min(o, close),
            close=close,
        ))
        prev = close
    return out


def make_candle(time: int, open: float, high: float, low: float, close: float) -> Candle:
    return Candle(time=time, open=open, high=high, low=low, close=close)


def snapshot_of(
    candles: Sequence[Candle] = (),
    quotes: Sequence[float] = (),
    symbol: str = "R_100",
) -> MarketSnapshot:
    ticks = tuple(Tick(quote=q, epoch=i, symbol=symbol) for i, q in enumerate(quotes))
    return MarketSnapshot(symbol=symbol, historical=tuple(candles), realtime=ticks)


class FakeFeed(IMarketDataFeed):
    """History from a dict, ticks from per-symbol asyncio queues (None ends a stream)."""

    def __init__(self, history: Optional[dict] = None):
        self.history = history or {}
        self.queues: dict[str, asyncio.Queue] = {}
        self.history_calls: list = []
        self.subscriptions: list = []

    def queue(self, symbol: str) -> asyncio.Queue:
        return self.queues.setdefault(symbol, asyncio.Queue())

    async def fetch_historical_candles(self, symbol, granularity_seconds, count):
        self.history_calls.append((symbol, granularity_seconds, count))
        return list(self.history.get(symbol, []))

    async def subscribe_ticks(self, symbol):
        self.subscriptions.append(symbol)
        queue = self.queue(symbol)
        while True:
            item = await queue.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item


class FakeExecutor(ITradeExecutor):
    """Records buys; can be told to fail."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.fail_with = fail_with
        self.buys: list = []
        self._next_id = 1000

    async def buy(self, direction: SignalSide, amount, symbol, duration_minutes, currency):
        if self.fail_with is not None:
            raise self.fail_with
        self._next_id += 1
        self.buys.append((direction, amount, symbol, duration_minutes, currency))
        return {"contract_id": self._next_id, "buy_price": amount, "payout": amount * 1.95}


async def drain():
    """Let pending tasks run a few loop iterations."""
    for _ in range(5):
        await asyncio.sleep(0)
