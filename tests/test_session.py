"""Session tests: tick path, throttled recompute, instrument switching, trading."""

import asyncio
import logging

import pytest

from core.errors import SessionLossLimitExceeded
from core.models import SignalSide, StrategyResult
from core.session import SignalSession
from core.strategy_registry import StrategyRegistry
from core.trading_interfaces import ISettlementWatcher
from logic.strategies import SignalAggregator, build_default_registry
from logic.strategies.base import BaseStrategy
from tests.test_helpers import FakeExecutor, FakeFeed, candles_from_closes, drain


HISTORY = candles_from_closes([100.0 + (i % 5) * 0.1 for i in range(60)])  # times 0..3540


class Clock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class AlwaysBullish(BaseStrategy):
    strategy_id = "always_bull"

    def analyze(self, snapshot, context):
        return StrategyResult.bullish(80, "fixed")


class ScriptedAggregator(SignalAggregator):
    """Counts cycles and can hold each one until `gate` is set."""

    def __init__(self, registry, gate=None, weighted=False):
        super().__init__(registry, weighted)
        self.gate = gate
        self.calls = 0
        self.seen = []

    async def generate_signal_async(self, snapshot, weights=None, history=None):
        self.calls += 1
        self.seen.append((snapshot.symbol, weights))
        if self.gate is not None:
            await self.gate.wait()
        return self.generate_signal(snapshot, weights, history)


class SettlingExecutor(FakeExecutor):
    def __init__(self, profit):
        super().__init__()
        self.profit = profit

    async def wait_for_settlement(self, contract_id):
        await asyncio.sleep(0)
        return self.profit


def bullish_registry():
    registry = StrategyRegistry()
    registry.register(AlwaysBullish())
    return registry


def tick(quote, epoch, symbol="R_100"):
    return {"quote": quote, "epoch": epoch, "symbol": symbol}


def make_session(config, aggregator=None, executor=None, clock=None, **kwargs):
    feed = FakeFeed({"R_100": HISTORY, "R_50": HISTORY[:30]})
    session = SignalSession(
        feed,
        aggregator or ScriptedAggregator(bullish_registry()),
        executor=executor,
        config=config,
        clock=clock or Clock(),
        **kwargs,
    )
    return session, feed


@pytest.mark.asyncio
async def test_switch_loads_history_and_streams_ticks(test_settings):
    session, feed = make_session(test_settings, aggregator=SignalAggregator(build_default_registry()))
    await session.switch_instrument("R_100")

    assert feed.history_calls == [("R_100", 60, 100)]
    assert session.store.candle_count == 60

    feed.queue("R_100").put_nowait(tick(101.0, 3605))
    feed.queue("R_100").put_nowait(None)
    await session.wait()
    await session._recompute_task

    assert feed.subscriptions == ["R_100"]
    assert session.store.candle_count == 61
    assert session.cycles == 1
    assert session.last_signal.symbol == "R_100"
    await session.close()


@pytest.mark.asyncio
async def test_bad_ticks_are_counted_not_fatal(test_settings):
    session, feed = make_session(test_settings)
    await session.switch_instrument("R_100")

    q = feed.queue("R_100")
    q.put_nowait("garbage")
    q.put_nowait({"quote": "x", "epoch": 3600})
    q.put_nowait(tick(1.0, 3600, symbol="R_50"))
    q.put_nowait(tick(101.0, 3600))
    q.put_nowait(None)
    await session.wait()

    assert session.malformed_ticks == 2
    assert session.foreign_ticks == 1
    assert session.store.tick_count == 1
    await session.close()


@pytest.mark.asyncio
async def test_stream_error_surfaces_from_wait(test_settings):
    session, feed = make_session(test_settings)
    await session.switch_instrument("R_100")
    feed.queue("R_100").put_nowait(ConnectionError("feed down"))
    with pytest.raises(ConnectionError):
        await session.wait()
    await session.close()


@pytest.mark.asyncio
async def test_ingest_without_instrument(test_settings):
    session, _ = make_session(test_settings)
    with pytest.raises(RuntimeError):
        session.ingest(tick(1.0, 1))


@pytest.mark.asyncio
async def test_recompute_is_throttled(test_settings):
    clock = Clock(0.0)
    agg = ScriptedAggregator(bullish_registry())
    session, _ = make_session(test_settings, aggregator=agg, clock=clock)
    await session.switch_instrument("R_100")

    session.ingest(tick(101.0, 3600))
    await session._recompute_task
    assert agg.calls == 1

    clock.now = 1.0
    session.ingest(tick(101.5, 3601))
    clock.now = 4.9
    session.ingest(tick(101.7, 3602))
    await drain()
    assert agg.calls == 1

    clock.now = 5.0
    session.ingest(tick(102.0, 3603))
    await session._recompute_task
    assert agg.calls == 2
    await session.close()


@pytest.mark.asyncio
async def test_requests_during_cycle_coalesce(test_settings):
    gate = asyncio.Event()
    agg = ScriptedAggregator(bullish_registry(), gate=gate)
    session, _ = make_session(test_settings, aggregator=agg)
    await session.switch_instrument("R_100")

    task = session.request_recompute()
    await drain()
    assert session.request_recompute() is task
    assert session.request_recompute() is task
    gate.set()
    await task

    assert agg.calls == 2
    assert session.cycles == 2
    await session.close()


@pytest.mark.asyncio
async def test_switch_discards_in_flight_result(test_settings):
    gate = asyncio.Event()
    agg = ScriptedAggregator(bullish_registry(), gate=gate)
    session, feed = make_session(test_settings, aggregator=agg)
    await session.switch_instrument("R_100")

    stale = asyncio.create_task(session.recompute())
    await drain()
    assert agg.calls == 1

    await session.switch_instrument("R_50")
    gate.set()
    assert await stale is None
    assert session.discarded_cycles == 1
    assert session.last_signal is None

    signal = await session.recompute()
    assert signal.symbol == "R_50"
    assert session.store.candle_count == 30
    assert feed.history_calls[-1] == ("R_50", 60, 100)
    await session.close()


@pytest.mark.asyncio
async def test_switch_cancels_running_cycle(test_settings):
    gate = asyncio.Event()
    agg = ScriptedAggregator(bullish_registry(), gate=gate)
    session, _ = make_session(test_settings, aggregator=agg)
    await session.switch_instrument("R_100")

    task = session.request_recompute()
    await drain()
    await session.switch_instrument("R_50")

    assert task.cancelled()
    assert session.cycles == 0
    assert session.generation == 2
    await session.close()


@pytest.mark.asyncio
async def test_auto_trade_respects_gate(test_settings):
    config = test_settings.model_copy(update={"auto_trade": True})
    executor = FakeExecutor()
    session, _ = make_session(config, executor=executor, watch_settlement=False)
    events = []
    session.events.on_trade(events.append)
    await session.switch_instrument("R_100")

    await session.recompute()
    await session.recompute()  # same clock: inside cooldown

    assert len(executor.buys) == 1
    assert executor.buys[0][0] is SignalSide.BUY
    assert session.history[0].confirmations == ("always_bull",)
    assert [e.event_type for e in events] == ["submitted", "denied"]
    assert events[1].reason == "cooldown_active"
    await session.close()


@pytest.mark.asyncio
async def test_auto_trade_skips_low_confidence(test_settings):
    config = test_settings.model_copy(update={"auto_trade": True, "min_signal_confidence": 101.0})
    executor = FakeExecutor()
    session, _ = make_session(config, executor=executor)
    await session.switch_instrument("R_100")
    await session.recompute()
    assert executor.buys == []
    await session.close()


@pytest.mark.asyncio
async def test_loss_streak_halts_until_reset(test_settings):
    clock = Clock(0.0)
    session, _ = make_session(test_settings, executor=FakeExecutor(), clock=clock, watch_settlement=False)
    await session.switch_instrument("R_100")

    for _ in range(3):
        record = await session.submit_trade(SignalSide.SELL)
        session.resolve_trade(record.id, -10.0)
        clock.now += 31

    assert session.halted
    with pytest.raises(SessionLossLimitExceeded):
        await session.submit_trade(SignalSide.SELL)

    session.reset_session()
    assert not session.halted
    await session.submit_trade(SignalSide.SELL)
    assert len(session.history) == 4
    assert session.stats()["performance"]["trades"] == 0
    await session.close()


@pytest.mark.asyncio
async def test_learned_weights_apply_at_next_cycle(test_settings):
    config = test_settings.model_copy(update={"trade_cooldown_ms": 0, "max_consecutive_losses": 10})
    agg = ScriptedAggregator(bullish_registry(), weighted=True)
    session, _ = make_session(config, aggregator=agg, executor=FakeExecutor(), watch_settlement=False)
    await session.switch_instrument("R_100")

    first = await session.recompute()
    assert first.weights_version == 0

    for _ in range(5):
        record = await session.submit_trade(SignalSide.BUY)
        assert record.confirmations == ("always_bull",)
        session.resolve_trade(record.id, -10.0)

    # nothing applied until a cycle starts
    assert session.weights.version == 0

    second = await session.recompute()
    assert session.weights.get("always_bull") == 0.5
    assert second.weights_version == 1
    assert second.bullish_score == 0.5
    await session.close()


@pytest.mark.asyncio
async def test_settlement_watch_resolves_trade(test_settings):
    executor = SettlingExecutor(profit=9.5)
    session, _ = make_session(test_settings, executor=executor)
    settled = []
    session.events.on_trade(lambda e: settled.append(e) if e.event_type == "settled" else None)
    await session.switch_instrument("R_100")

    record = await session.submit_trade(SignalSide.BUY, amount=5.0)
    await drain()

    assert session.history[0].id == record.id
    assert session.history[0].outcome_known
    assert session.history[0].profit == 9.5
    assert len(settled) == 1
    await session.close()


@pytest.mark.asyncio
async def test_submit_without_executor(test_settings):
    session, _ = make_session(test_settings)
    await session.switch_instrument("R_100")
    with pytest.raises(RuntimeError):
        await session.submit_trade(SignalSide.BUY)
    await session.close()


class BrokenAggregator(ScriptedAggregator):
    async def generate_signal_async(self, snapshot, weights=None, history=None):
        raise RuntimeError("aggregator bug")


@pytest.mark.asyncio
async def test_auto_trade_transport_failure_is_reported(test_settings, caplog):
    config = test_settings.model_copy(update={"auto_trade": True})
    session, _ = make_session(config, executor=FakeExecutor(fail_with=ConnectionError("down")))
    events = []
    session.events.on_trade(events.append)
    await session.switch_instrument("R_100")

    with caplog.at_level(logging.ERROR, logger="core.session"):
        await session.request_recompute()

    assert session.cycles == 1
    assert [(e.event_type, e.reason) for e in events] == [("failed", "down")]
    assert session.router.gate.session_trade_count == 0
    assert session.history == []
    assert any("Auto-trade failed" in r.getMessage() for r in caplog.records)
    await session.close()


@pytest.mark.asyncio
async def test_manual_submit_failure_emits_event_and_raises(test_settings):
    session, _ = make_session(test_settings, executor=FakeExecutor(fail_with=ConnectionError("socket closed")))
    events = []
    session.events.on_trade(events.append)
    await session.switch_instrument("R_100")

    with pytest.raises(ConnectionError):
        await session.submit_trade(SignalSide.SELL)
    assert [e.event_type for e in events] == ["failed"]
    await session.close()


@pytest.mark.asyncio
async def test_failed_cycle_is_logged(test_settings, caplog):
    session, _ = make_session(test_settings, aggregator=BrokenAggregator(bullish_registry()))
    await session.switch_instrument("R_100")

    with caplog.at_level(logging.ERROR, logger="core.session"):
        task = session.request_recompute()
        with pytest.raises(RuntimeError):
            await task
        await drain()

    assert any("Signal cycle failed" in r.getMessage() for r in caplog.records)
    await session.close()


@pytest.mark.asyncio
async def test_trade_opened_before_reset_still_settles(test_settings):
    session, _ = make_session(test_settings, executor=FakeExecutor(), watch_settlement=False)
    await session.switch_instrument("R_100")

    record = await session.submit_trade(SignalSide.BUY)
    session.reset_session()
    resolved = session.resolve_trade(record.id, 9.5)

    assert resolved.outcome_known
    assert session.history[0].outcome_known
    assert session.history[0].profit == 9.5
    assert session.stats()["performance"]["wins"] == 1
    await session.close()


def test_settlement_capability_detected():
    assert isinstance(SettlingExecutor(profit=1.0), ISettlementWatcher)
    assert not isinstance(FakeExecutor(), ISettlementWatcher)
