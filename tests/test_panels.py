"""Dashboard rendering tests."""

from rich.console import Console

from core.events import SignalEventBus, TradeEvent
from core.models import Signal, SignalSide, StrategyResult, TradeRecord
from dashboard import Dashboard
from dashboard.panels import render_performance_bar, render_signal_panel, render_strategy_table
from logic.strategy_weights import WeightTable


def render_text(renderable) -> str:
    console = Console(record=True, width=120)
    console.print(renderable)
    return console.export_text()


def make_signal():
    return Signal(
        symbol="R_100",
        direction=SignalSide.BUY,
        confidence=66.7,
        confirmations={
            "ema_cross": StrategyResult.bullish(75, "EMA20 crossed above EMA50"),
            "rsi_extremes": StrategyResult.bearish(80, "RSI overbought"),
        },
        bullish_score=1.0,
        bearish_score=0.5,
        created_at=0.0,
    )


def test_signal_panel_waiting():
    assert "Waiting for first signal" in render_text(render_signal_panel(None))


def test_signal_panel_shows_direction_and_confidence():
    text = render_text(render_signal_panel(make_signal()))
    assert "BUY" in text
    assert "R_100" in text
    assert "66.7%" in text
    assert "2 confirmations" in text


def test_strategy_table_rows_sorted_by_confidence():
    text = render_text(render_strategy_table(make_signal(), {"ema_cross": 1.25}))
    assert text.index("rsi_extremes") < text.index("ema_cross")
    assert "1.25" in text
    assert "RSI overbought" in text


def test_strategy_table_empty():
    assert "No strategy fired" in render_text(render_strategy_table(None))


def test_performance_bar():
    stats = {
        "symbol": "R_50",
        "candles": 321,
        "halted": True,
        "performance": {"pnl": -12.5, "wins": 1, "losses": 3, "win_rate": 25.0, "profit_factor": float("inf")},
    }
    text = render_performance_bar(stats).plain
    assert "R_50" in text
    assert "-12.50" in text
    assert "1/3" in text
    assert "∞" in text
    assert "321" in text
    assert "HALTED" in text


class StubSession:
    def __init__(self):
        self.events = SignalEventBus()
        self.weights = WeightTable({"ema_cross": 1.0})
        self.last_signal = None

    def stats(self):
        return {"symbol": "R_100", "candles": 10, "halted": False, "performance": {}}


def test_dashboard_prints_on_events():
    console = Console(record=True, width=120)
    session = StubSession()
    Dashboard(session, console=console)

    session.events.emit_signal(make_signal())
    record = TradeRecord("42", SignalSide.BUY, 10.0, 0.0, "R_100")
    session.events.emit_trade(TradeEvent("submitted", record))
    session.events.emit_trade(TradeEvent("settled", record.resolve(9.5)))
    session.events.emit_trade(TradeEvent("denied", reason="cooldown_active"))

    out = console.export_text()
    assert "ACTIVE" in out
    assert "Trade 42" in out
    assert "+9.50" in out
    assert "cooldown_active" in out


def test_dashboard_reports_failed_trade():
    console = Console(record=True, width=120)
    session = StubSession()
    Dashboard(session, console=console)

    session.events.emit_trade(TradeEvent("failed", reason="socket closed"))
    assert "Trade failed: socket closed" in console.export_text()
