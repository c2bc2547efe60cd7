"""
Multi-strategy signal engine.

Every strategy votes bullish/bearish/neutral with a confidence; the
aggregator tallies the votes into one BUY/SELL/NONE signal.

Core: ema_cross, rsi_extremes, price_action, macd_cross, bollinger_breach,
tick_pressure. Extended: support_resistance, supply_demand, breakout,
fibonacci, pattern_recognition, historical_success, self_learning.
"""

from .base import BaseStrategy, StrategyContext
from .aggregator import SignalAggregator, build_default_registry

__all__ = [
    "BaseStrategy",
    "StrategyContext",
    "SignalAggregator",
    "build_default_registry",
]
