"""Lightweight event bus for signal and trade lifecycle.

Handlers are plain callables; a failing handler is logged and never
breaks the tick/signal path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List

from core.models import Signal, TradeRecord

logger = logging.getLogger(__name__)


@dataclass
class TradeEvent:
    """Normalized trade lifecycle event."""

    event_type: str  # "submitted", "settled", "denied", "failed"
    record: TradeRecord | None = None
    reason: str = ""
    details: dict = field(default_factory=dict)


class SignalEventBus:
    """Minimal sync bus; safe to call from the event loop."""

    def __init__(self):
        self._signal_handlers: List[Callable[[Signal], None]] = []
        self._trade_handlers: List[Callable[[TradeEvent], None]] = []

    # Subscription helpers
    def on_signal(self, handler: Callable[[Signal], None]) -> None:
        self._signal_handlers.append(handler)

    def on_trade(self, handler: Callable[[TradeEvent], None]) -> None:
        self._trade_handlers.append(handler)

    # Emitters
    def emit_signal(self, signal: Signal) -> None:
        for handler in list(self._signal_handlers):
            try:
                handler(signal)
            except Exception as e:
                # Non-fatal; log but never break the data path
                logger.warning('[EVENT] Signal handler error: %s', e)
                continue

    def emit_trade(self, event: TradeEvent) -> None:
        for handler in list(self._trade_handlers):
            try:
                handler(event)
            except Exception as e:
                logger.warning('[EVENT] Trade handler error: %s', e)
                continue

    def remove_signal_handler(self, handler: Callable[[Signal], None]) -> bool:
        """Remove a signal handler. Returns True if removed."""
        try:
            self._signal_handlers.remove(handler)
            return True
        except ValueError:
            return False

    def remove_trade_handler(self, handler: Callable[[TradeEvent], None]) -> bool:
        try:
            self._trade_handlers.remove(handler)
            return True
        except ValueError:
            return False
