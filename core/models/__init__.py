"""Typed data models for the signal engine."""

from core.models.candle import Candle, Tick, parse_candle, parse_tick
from core.models.signal import Direction, Signal, SignalSide, StrategyResult
from core.models.trade import TradeRecord

__all__ = [
    "Candle",
    "Direction",
    "Signal",
    "SignalSide",
    "StrategyResult",
    "Tick",
    "TradeRecord",
    "parse_candle",
    "parse_tick",
]
