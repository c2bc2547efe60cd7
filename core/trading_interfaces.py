"""Collaborator interfaces consumed by the signal session."""

from typing import Any, AsyncIterator, List, Mapping, Protocol, runtime_checkable

from core.models import Candle, SignalSide, Tick


class IMarketDataFeed(Protocol):
    """Market data transport for one instrument at a time."""

    async def fetch_historical_candles(
        self,
        symbol: str,
        granularity_seconds: int,
        count: int,
    ) -> List[Candle]:
        ...

    def subscribe_ticks(self, symbol: str) -> AsyncIterator[Tick | Mapping[str, Any]]:
        ...


class ITradeExecutor(Protocol):
    """Places contracts with the broker."""

    async def buy(
        self,
        direction: SignalSide,
        amount: float,
        symbol: str,
        duration_minutes: int,
        currency: str,
    ) -> Mapping[str, Any]:
        ...


@runtime_checkable
class ISettlementWatcher(Protocol):
    """Optional executor capability: wait for a contract to settle."""

    async def wait_for_settlement(self, contract_id: str) -> float:
        ...
