"""
Deriv WebSocket API v3 client.

Implements both the market-data feed and the trade executor the session
consumes. One connection, requests correlated by `req_id`:
- plain requests resolve a future with the matching response
- subscriptions route every message with their `req_id` to a queue

The client never retries; connection and API errors propagate to the
caller.
"""

import asyncio
import contextlib
import json
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional

import websockets

from core.config import settings
from core.logging_utils import get_logger
from core.models import Candle, SignalSide, parse_candle

logger = get_logger(__name__)

CONTRACT_TYPES = {
    SignalSide.BUY: "CALL",
    SignalSide.SELL: "PUT",
}


class DerivAPIError(Exception):
    """Error payload returned by the Deriv API."""

    def __init__(self, code: str, message: str, msg_type: str = ""):
        self.code = code
        self.message = message
        self.msg_type = msg_type
        super().__init__(f"{msg_type or 'request'} failed [{code}]: {message}")


class DerivClient:
    """Async Deriv API client over a single WebSocket."""

    def __init__(
        self,
        app_id: Optional[int] = None,
        endpoint: Optional[str] = None,
        token: Optional[str] = None,
        connect_func: Optional[Callable[..., Any]] = None,
    ):
        app_id = app_id or settings.deriv_app_id
        endpoint = endpoint or settings.deriv_endpoint
        self.url = f"wss://{endpoint}/websockets/v3?app_id={app_id}"
        self.token = token if token is not None else settings.deriv_token
        self._connect = connect_func or websockets.connect
        self._ws = None
        self._reader_task: Optional[asyncio.Task] = None
        self._req_id = 0
        self._pending: Dict[int, asyncio.Future] = {}
        self._streams: Dict[int, asyncio.Queue] = {}
        self._closed = True
        self.account: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        self._ws = await self._connect(self.url)
        self._closed = False
        self._reader_task = asyncio.create_task(self._read_loop())
        logger.info("[DERIV] Connected to %s", self.url)
        if self.token:
            await self.authorize(self.token)

    async def close(self) -> None:
        self._closed = True
        if self._ws is not None:
            await self._ws.close()
        if self._reader_task is not None:
            self._reader_task.cancel()
            await asyncio.gather(self._reader_task, return_exceptions=True)
        self._fail_all(ConnectionError("client closed"))

    async def __aenter__(self) -> "DerivClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    @property
    def connected(self) -> bool:
        return not self._closed

    async def _read_loop(self) -> None:
        reason: Exception = ConnectionError("connection closed")
        try:
            async for message in self._ws:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError:
                    logger.debug("[DERIV] Non-JSON message dropped")
                    continue
                self._dispatch(data)
        except websockets.ConnectionClosed as e:
            logger.warning("[DERIV] Connection closed (code: %s)", e.code)
            reason = ConnectionError(f"connection closed: {e}")
        finally:
            self._closed = True
            self._fail_all(reason)

    def _dispatch(self, data: dict) -> None:
        req_id = data.get("req_id")
        queue = self._streams.get(req_id)
        if queue is not None:
            queue.put_nowait(data)
            return
        future = self._pending.pop(req_id, None)
        if future is not None and not future.done():
            future.set_result(data)
        else:
            logger.debug("[DERIV] Unrouted %s message (req_id=%s)", data.get("msg_type"), req_id)

    def _fail_all(self, error: Exception) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()
        for queue in self._streams.values():
            queue.put_nowait(error)

    def _next_req_id(self) -> int:
        self._req_id += 1
        return self._req_id

    @staticmethod
    def _raise_for_error(data: dict) -> None:
        error = data.get("error")
        if error:
            raise DerivAPIError(error.get("code", "Unknown"), error.get("message", ""), data.get("msg_type", ""))

    # ------------------------------------------------------------------
    # Request primitives
    # ------------------------------------------------------------------

    async def request(self, payload: dict) -> dict:
        if self._closed or self._ws is None:
            raise ConnectionError("not connected")
        req_id = self._next_req_id()
        future = asyncio.get_running_loop().create_future()
        self._pending[req_id] = future
        try:
            await self._ws.send(json.dumps({**payload, "req_id": req_id}))
            data = await future
        finally:
            self._pending.pop(req_id, None)
        self._raise_for_error(data)
        return data

    async def subscribe(self, payload: dict) -> AsyncIterator[dict]:
        """Yield every message of a subscription; sends `forget` when the consumer stops."""
        if self._closed or self._ws is None:
            raise ConnectionError("not connected")
        req_id = self._next_req_id()
        queue: asyncio.Queue = asyncio.Queue()
        self._streams[req_id] = queue
        subscription_id = None
        try:
            await self._ws.send(json.dumps({**payload, "subscribe": 1, "req_id": req_id}))
            while True:
                item = await queue.get()
                if isinstance(item, Exception):
                    raise item
                self._raise_for_error(item)
                subscription_id = (item.get("subscription") or {}).get("id", subscription_id)
                yield item
        finally:
            self._streams.pop(req_id, None)
            if subscription_id and not self._closed:
                await self._forget(subscription_id)

    async def _forget(self, subscription_id: str) -> None:
        try:
            await self.request({"forget": subscription_id})
        except (DerivAPIError, ConnectionError) as e:
            logger.debug("[DERIV] forget %s failed: %s", subscription_id, e)

    # ------------------------------------------------------------------
    # API calls
    # ------------------------------------------------------------------

    async def authorize(self, token: str) -> dict:
        data = await self.request({"authorize": token})
        self.account = data.get("authorize", {})
        logger.info(
            "[DERIV] Authorized %s (%s %s)",
            self.account.get("loginid"), self.account.get("balance"), self.account.get("currency"),
        )
        return self.account

    async def active_symbols(self, markets: Iterable[str] = ("forex", "synthetic_index")) -> List[dict]:
        data = await self.request({"active_symbols": "brief"})
        wanted = set(markets)
        return [s for s in data.get("active_symbols", []) if s.get("market") in wanted]

    async def fetch_historical_candles(self, symbol: str, granularity_seconds: int, count: int) -> List[Candle]:
        data = await self.request({
            "ticks_history": symbol,
            "adjust_start_time": 1,
            "count": count,
            "end": "latest",
            "start": 1,
            "style": "candles",
            "granularity": granularity_seconds,
        })
        candles = [parse_candle(c) for c in data.get("candles", [])]
        logger.info("[DERIV] %s history: %d candles @ %ss", symbol, len(candles), granularity_seconds)
        return candles

    async def subscribe_ticks(self, symbol: str) -> AsyncIterator[dict]:
        """Raw tick payloads ({quote, epoch, symbol}); parsing is left to the consumer."""
        async with contextlib.aclosing(self.subscribe({"ticks": symbol})) as stream:
            async for message in stream:
                tick = message.get("tick")
                if tick is not None:
                    yield tick

    async def buy(
        self,
        direction: SignalSide,
        amount: float,
        symbol: str,
        duration_minutes: int,
        currency: str,
    ) -> dict:
        contract_type = CONTRACT_TYPES.get(direction)
        if contract_type is None:
            raise ValueError(f"no contract type for {direction}")
        data = await self.request({
            "buy": 1,
            "price": amount,
            "parameters": {
                "amount": amount,
                "basis": "stake",
                "contract_type": contract_type,
                "currency": currency,
                "duration": duration_minutes,
                "duration_unit": "m",
                "symbol": symbol,
            },
        })
        contract = data.get("buy", {})
        logger.info(
            "[DERIV] Bought %s %s: contract %s, payout %s",
            contract_type, symbol, contract.get("contract_id"), contract.get("payout"),
        )
        return contract

    async def wait_for_settlement(self, contract_id: str) -> float:
        """Follow a contract until it is sold; returns its profit."""
        payload = {"proposal_open_contract": 1, "contract_id": int(contract_id)}
        async with contextlib.aclosing(self.subscribe(payload)) as stream:
            async for message in stream:
                contract = message.get("proposal_open_contract") or {}
                if contract.get("is_sold"):
                    return float(contract.get("profit", 0.0))
        raise ConnectionError(f"stream ended before contract {contract_id} settled")
