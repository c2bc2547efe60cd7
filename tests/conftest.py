import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from core.config import Settings  # noqa: E402


@pytest.fixture
def test_settings():
    """Isolated settings: no auto-trade, fast throttle, small buffers."""
    return Settings(
        symbol="R_100",
        granularity_seconds=60,
        history_count=100,
        max_candles=200,
        max_ticks=500,
        signal_interval_seconds=5.0,
        auto_trade=False,
        trade_amount=10.0,
        trade_duration_minutes=5,
        max_trades=10,
        trade_cooldown_ms=30000,
        martingale_enabled=False,
        max_consecutive_losses=3,
        max_session_loss=1000.0,
        self_learning_enabled=True,
        self_learning_window=20,
        min_signal_confidence=60.0,
    )
