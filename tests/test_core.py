"""Config, registry and event bus tests."""

import logging

import pytest

from core.config import Settings
from core.events import SignalEventBus, TradeEvent
from core.logging_utils import get_logger, setup_logging
from core.models import Signal, SignalSide, StrategyResult
from core.strategy_registry import StrategyRegistry
from logic.strategies.base import BaseStrategy


class Dummy(BaseStrategy):
    strategy_id = "dummy"
    display_name = "Dummy"
    default_weight = 1.2

    def analyze(self, snapshot, context):
        return StrategyResult.neutral()


class TestSettings:

    def test_env_aliases(self, monkeypatch):
        monkeypatch.setenv("SYMBOL", "R_50")
        monkeypatch.setenv("TRADE_COOLDOWN_MS", "1500")
        monkeypatch.setenv("MARTINGALE", "true")
        monkeypatch.setenv("DISABLED_STRATEGIES", "fibonacci, tick_pressure,,")
        cfg = Settings()
        assert cfg.symbol == "R_50"
        assert cfg.trade_cooldown_ms == 1500
        assert cfg.martingale_enabled is True
        assert cfg.disabled_strategy_set == {"fibonacci", "tick_pressure"}

    def test_field_names_accepted(self):
        cfg = Settings(max_trades=3, granularity_seconds=300)
        assert cfg.max_trades == 3
        assert cfg.granularity_label == "5m"

    def test_websocket_url(self):
        cfg = Settings(deriv_app_id=1089, deriv_endpoint="ws.derivws.com")
        assert cfg.websocket_url == "wss://ws.derivws.com/websockets/v3?app_id=1089"

    def test_granularity_labels(self):
        assert Settings(granularity_seconds=3600).granularity_label == "1h"
        assert Settings(granularity_seconds=15).granularity_label == "15s"


class TestRegistry:

    def test_register_uses_strategy_defaults(self):
        registry = StrategyRegistry()
        config = registry.register(Dummy())
        assert config.weight == 1.2
        assert config.to_dict()["display_name"] == "Dummy"
        assert registry.default_weights() == {"dummy": 1.2}

    def test_duplicate_rejected(self):
        registry = StrategyRegistry()
        registry.register(Dummy())
        with pytest.raises(ValueError):
            registry.register(Dummy())

    def test_non_positive_weight_rejected(self):
        with pytest.raises(ValueError):
            StrategyRegistry().register(Dummy(), weight=0)

    def test_toggle_and_unregister(self):
        registry = StrategyRegistry()
        registry.register(Dummy())
        assert registry.set_enabled("dummy", False)
        assert registry.get_enabled() == []
        assert not registry.set_enabled("missing", True)
        assert registry.unregister("dummy")
        assert not registry.unregister("dummy")
        assert len(registry) == 0


class TestEventBus:

    def test_failing_handler_does_not_block_others(self):
        bus = SignalEventBus()
        seen = []

        def broken(_):
            raise RuntimeError("handler bug")

        bus.on_signal(broken)
        bus.on_signal(seen.append)
        signal = Signal("R_100", SignalSide.NONE, 0.0)
        bus.emit_signal(signal)
        assert seen == [signal]

    def test_remove_handlers(self):
        bus = SignalEventBus()
        seen = []
        bus.on_trade(seen.append)
        assert bus.remove_trade_handler(seen.append)
        assert not bus.remove_trade_handler(seen.append)
        bus.emit_trade(TradeEvent("denied", reason="trade_limit_reached"))
        assert seen == []


def test_setup_logging_is_idempotent():
    setup_logging("DEBUG")
    setup_logging("INFO")
    root = logging.getLogger()
    ours = [h for h in root.handlers if h.get_name() == "derivsignal-root-handler"]
    assert len(ours) == 1
    assert get_logger("x").name == "x"
