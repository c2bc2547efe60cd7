"""Trade gate: minimum spacing between executions and a per-session trade cap."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from core.logging_utils import get_logger

logger = get_logger(__name__)


class GateReason(str, Enum):
    OK = "ok"
    COOLDOWN = "cooldown_active"
    TRADE_LIMIT = "trade_limit_reached"


@dataclass
class GateResult:
    """Result of gate check."""
    passed: bool
    reason: str = GateReason.OK.value
    details: dict = field(default_factory=dict)


def can_execute(
    now_ms: int,
    last_execution_ms: Optional[int],
    session_trade_count: int,
    max_trades: int,
    cooldown_ms: int,
) -> GateResult:
    """Pure gate decision. Cooldown is checked before the trade cap."""
    if last_execution_ms is not None and now_ms - last_execution_ms < cooldown_ms:
        remaining = cooldown_ms - (now_ms - last_execution_ms)
        return GateResult(False, GateReason.COOLDOWN.value, {"remaining_ms": remaining})
    if session_trade_count >= max_trades:
        return GateResult(
            False,
            GateReason.TRADE_LIMIT.value,
            {"count": session_trade_count, "max_trades": max_trades},
        )
    return GateResult(True)


class TradeGate:
    """
    Stateful wrapper around `can_execute`.

    `try_acquire` records the execution in the same step as the decision,
    so two submissions in one event-loop turn cannot both pass.
    """

    def __init__(self, max_trades: int, cooldown_ms: int):
        self.max_trades = max_trades
        self.cooldown_ms = cooldown_ms
        self.last_execution_ms: Optional[int] = None
        self.session_trade_count = 0

    def check(self, now_ms: int) -> GateResult:
        return can_execute(
            now_ms, self.last_execution_ms, self.session_trade_count, self.max_trades, self.cooldown_ms
        )

    def try_acquire(self, now_ms: int) -> GateResult:
        result = self.check(now_ms)
        if result.passed:
            self.last_execution_ms = now_ms
            self.session_trade_count += 1
        else:
            logger.info("[GATE] Denied: %s %s", result.reason, result.details)
        return result

    def rollback(self) -> None:
        """Give back the trade slot after a failed submission; cooldown stays."""
        if self.session_trade_count > 0:
            self.session_trade_count -= 1

    def reset(self) -> None:
        self.last_execution_ms = None
        self.session_trade_count = 0

    @property
    def remaining_trades(self) -> int:
        return max(0, self.max_trades - self.session_trade_count)
