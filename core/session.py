"""
Signal session - owns all mutable state for the active instrument.

One session drives one instrument at a time:
- a single task consumes ticks in arrival order into the CandleStore
- recompute is throttled to `signal_interval_seconds`; a request that
  arrives while a cycle is in flight is coalesced into one follow-up cycle
- switching instruments cancels the tick task and any in-flight cycle and
  bumps a generation counter so late results are discarded
- learned weights are applied only at the start of a cycle
"""

import asyncio
import time
from typing import Callable, List, Optional

from core.candle_store import CandleStore
from core.config import Settings, settings
from core.errors import MalformedTick, RateLimited, SessionLossLimitExceeded
from core.events import SignalEventBus, TradeEvent
from core.logging_utils import get_logger
from core.models import Candle, Signal, SignalSide, TradeRecord, parse_tick
from core.trading_interfaces import IMarketDataFeed, ISettlementWatcher, ITradeExecutor
from execution.order_router import OrderRouter
from execution.risk import RiskGuard, StakePolicy
from execution.trade_gate import TradeGate
from logic.strategies.aggregator import SignalAggregator
from logic.strategy_weights import SelfLearningWeights, WeightTable

logger = get_logger(__name__)


class SignalSession:

    def __init__(
        self,
        feed: IMarketDataFeed,
        aggregator: SignalAggregator,
        executor: Optional[ITradeExecutor] = None,
        config: Optional[Settings] = None,
        weights: Optional[WeightTable] = None,
        learner: Optional[SelfLearningWeights] = None,
        events: Optional[SignalEventBus] = None,
        clock: Callable[[], float] = time.time,
        watch_settlement: bool = True,
    ):
        self.config = config or settings
        cfg = self.config
        self.feed = feed
        self.aggregator = aggregator
        self.executor = executor
        self.events = events or SignalEventBus()
        self.weights = weights or WeightTable(aggregator.registry.default_weights())
        if learner is None and cfg.self_learning_enabled:
            learner = SelfLearningWeights(window=cfg.self_learning_window)
        self.learner = learner
        self._clock = clock
        self.watch_settlement = watch_settlement

        self.router: Optional[OrderRouter] = None
        if executor is not None:
            self.router = OrderRouter(
                executor,
                TradeGate(cfg.max_trades, cfg.trade_cooldown_ms),
                RiskGuard(cfg.max_consecutive_losses, cfg.max_session_loss),
                StakePolicy(
                    base_amount=cfg.trade_amount,
                    martingale=cfg.martingale_enabled,
                    multiplier=cfg.martingale_multiplier,
                    max_consecutive_losses=cfg.max_consecutive_losses,
                ),
                currency=cfg.currency,
                duration_minutes=cfg.trade_duration_minutes,
                clock=clock,
            )

        self.symbol: Optional[str] = None
        self.store: Optional[CandleStore] = None
        self.history: List[TradeRecord] = []
        self.last_signal: Optional[Signal] = None

        self._generation = 0
        self._tick_task: Optional[asyncio.Task] = None
        self._recompute_task: Optional[asyncio.Task] = None
        self._recompute_pending = False
        self._last_trigger = float("-inf")
        self._weights_dirty = False
        self._settle_tasks: set[asyncio.Task] = set()

        # Counters
        self.malformed_ticks = 0
        self.foreign_ticks = 0
        self.cycles = 0
        self.discarded_cycles = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def halted(self) -> bool:
        return self.router is not None and self.router.risk.halted

    # ------------------------------------------------------------------
    # Instrument lifecycle
    # ------------------------------------------------------------------

    async def switch_instrument(self, symbol: str) -> None:
        """Drop the old instrument, load history for the new one, start streaming."""
        await self._cancel_market_tasks()
        self._generation += 1
        generation = self._generation
        cfg = self.config

        self.symbol = symbol
        self.store = CandleStore(symbol, cfg.granularity_seconds, cfg.max_candles, cfg.max_ticks)
        self.last_signal = None
        self._last_trigger = float("-inf")
        logger.info("[SESSION] Switching to %s (gen %d)", symbol, generation)

        candles = await self.feed.fetch_historical_candles(symbol, cfg.granularity_seconds, cfg.history_count)
        if generation != self._generation:
            logger.info("[SESSION] %s superseded during history fetch", symbol)
            return
        self.store.load_history(candles)
        self._tick_task = asyncio.create_task(self._consume_ticks(symbol, generation))

    async def _consume_ticks(self, symbol: str, generation: int) -> None:
        stream = self.feed.subscribe_ticks(symbol)
        try:
            async for raw in stream:
                if generation != self._generation:
                    break
                self.ingest(raw)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    async def wait(self) -> None:
        """Block until the tick stream ends; transport errors propagate here."""
        if self._tick_task is not None:
            await self._tick_task

    async def _cancel_market_tasks(self) -> None:
        tasks = [t for t in (self._tick_task, self._recompute_task) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tick_task = None
        self._recompute_task = None
        self._recompute_pending = False

    # ------------------------------------------------------------------
    # Tick path
    # ------------------------------------------------------------------

    def ingest(self, raw) -> Optional[Candle]:
        """Parse and store one tick; schedules a recompute when the throttle allows."""
        if self.store is None:
            raise RuntimeError("no active instrument")
        try:
            tick = parse_tick(raw, self.symbol)
        except MalformedTick as e:
            self.malformed_ticks += 1
            logger.warning("[SESSION] Malformed tick dropped: %s", e)
            return None
        if tick.symbol != self.symbol:
            self.foreign_ticks += 1
            logger.debug("[SESSION] Tick for %s ignored (active %s)", tick.symbol, self.symbol)
            return None

        candle = self.store.ingest_tick(tick)
        if candle is not None:
            now = self._clock()
            if now - self._last_trigger >= self.config.signal_interval_seconds:
                self._last_trigger = now
                self.request_recompute()
        return candle

    def request_recompute(self) -> asyncio.Task:
        """Start a cycle, or mark one follow-up if a cycle is already running."""
        if self._recompute_task is not None and not self._recompute_task.done():
            self._recompute_pending = True
            return self._recompute_task
        self._recompute_task = asyncio.get_running_loop().create_task(
            self._recompute_loop(self._generation)
        )
        self._recompute_task.add_done_callback(self._on_recompute_done)
        return self._recompute_task

    def _on_recompute_done(self, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("[SESSION] Signal cycle failed: %r", task.exception())

    async def _recompute_loop(self, generation: int) -> None:
        while True:
            self._recompute_pending = False
            await self.recompute(generation)
            if not self._recompute_pending or generation != self._generation:
                return

    # ------------------------------------------------------------------
    # Signal cycle
    # ------------------------------------------------------------------

    def _apply_learned_weights(self) -> None:
        if self.learner is not None and self._weights_dirty:
            self.learner.apply(self.weights, self.history)
        self._weights_dirty = False

    async def recompute(self, generation: Optional[int] = None) -> Optional[Signal]:
        """Run one gather/reduce cycle. Returns None if the instrument changed meanwhile."""
        if self.store is None:
            return None
        generation = self._generation if generation is None else generation
        if generation != self._generation:
            return None

        self._apply_learned_weights()
        snapshot = self.store.snapshot()
        weights = self.weights.snapshot()
        history = tuple(self.history)

        signal = await self.aggregator.generate_signal_async(snapshot, weights, history)

        if generation != self._generation:
            self.discarded_cycles += 1
            logger.debug("[SESSION] Discarded stale signal for %s", snapshot.symbol)
            return None

        self.cycles += 1
        self.last_signal = signal
        logger.info(
            "[SESSION] %s %s %.1f%% (%d confirmations)",
            signal.symbol, signal.direction.value, signal.confidence, len(signal.confirmations),
        )
        self.events.emit_signal(signal)

        if self.config.auto_trade:
            await self._auto_trade(signal)
        return signal

    async def _auto_trade(self, signal: Signal) -> None:
        if self.router is None or not signal.is_actionable:
            return
        if signal.confidence < self.config.min_signal_confidence:
            return
        try:
            await self.submit_trade(signal.direction, confirmations=signal.agreeing())
        except RateLimited as e:
            logger.info("[SESSION] Auto-trade skipped: %s", e.reason)
        except SessionLossLimitExceeded as e:
            logger.error("[SESSION] Auto-trade blocked, session halted: %s", e.reason)
        except Exception as e:
            logger.error("[SESSION] Auto-trade failed: %r", e)

    # ------------------------------------------------------------------
    # Trade path
    # ------------------------------------------------------------------

    async def submit_trade(
        self,
        direction: SignalSide,
        amount: Optional[float] = None,
        duration_minutes: Optional[int] = None,
        confirmations: Optional[tuple[str, ...]] = None,
    ) -> TradeRecord:
        if self.router is None:
            raise RuntimeError("no trade executor configured")
        if self.symbol is None:
            raise RuntimeError("no active instrument")
        if confirmations is None:
            last = self.last_signal
            confirmations = last.agreeing() if last and last.direction is direction else ()

        try:
            record = await self.router.submit_trade(
                direction, self.symbol, amount, duration_minutes, confirmations
            )
        except (RateLimited, SessionLossLimitExceeded) as e:
            self.events.emit_trade(TradeEvent("denied", reason=e.reason, details=getattr(e, "details", {})))
            raise
        except Exception as e:
            self.events.emit_trade(TradeEvent("failed", reason=str(e) or type(e).__name__))
            raise

        self.history.append(record)
        self.events.emit_trade(TradeEvent("submitted", record))
        if self.watch_settlement and isinstance(self.executor, ISettlementWatcher):
            task = asyncio.create_task(self._watch_settlement(record.id))
            self._settle_tasks.add(task)
            task.add_done_callback(self._on_settle_done)
        return record

    async def _watch_settlement(self, trade_id: str) -> None:
        profit = await self.executor.wait_for_settlement(trade_id)
        self.resolve_trade(trade_id, profit)

    def _on_settle_done(self, task: asyncio.Task) -> None:
        self._settle_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("[SESSION] Settlement watch failed: %s", task.exception())

    def resolve_trade(self, trade_id: str, profit: float) -> TradeRecord:
        """Record a settled outcome; weights pick it up at the next cycle."""
        if self.router is None:
            raise RuntimeError("no trade executor configured")
        resolved = self.router.resolve(trade_id, profit)
        for i, record in enumerate(self.history):
            if record.id == trade_id:
                self.history[i] = resolved
                break
        self._weights_dirty = True
        self.events.emit_trade(TradeEvent("settled", resolved))
        return resolved

    def reset_session(self) -> None:
        """Explicit restart after a halt: clears the gate and risk stats; contracts still open keep settling."""
        if self.router is not None:
            self.router.reset()
        logger.info("[SESSION] Session reset")

    def stats(self) -> dict:
        risk = self.router.risk.stats.summary() if self.router else {}
        return {
            "symbol": self.symbol,
            "generation": self._generation,
            "candles": self.store.candle_count if self.store else 0,
            "ticks": self.store.tick_count if self.store else 0,
            "late_ticks": self.store.late_ticks if self.store else 0,
            "malformed_ticks": self.malformed_ticks,
            "cycles": self.cycles,
            "discarded_cycles": self.discarded_cycles,
            "weights_version": self.weights.version,
            "halted": self.halted,
            "performance": risk,
        }

    async def close(self) -> None:
        await self._cancel_market_tasks()
        pending = [t for t in self._settle_tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._generation += 1
        logger.info("[SESSION] Closed")
