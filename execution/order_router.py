"""Order routing coordinator.

Every submission passes, in order:
- Risk guard (session halted -> SessionLossLimitExceeded)
- Stake policy (fixed or martingale, never beyond the loss-streak ceiling)
- Trade gate (cooldown / trade cap -> RateLimited)
- Executor `buy` (transport errors propagate; the gate slot is returned)
"""

import time
import uuid
from typing import Callable, Dict, Iterable, Optional

from core.errors import RateLimited
from core.logging_utils import get_logger
from core.models import SignalSide, TradeRecord
from core.trading_interfaces import ITradeExecutor
from execution.risk import RiskGuard, StakePolicy
from execution.trade_gate import TradeGate

logger = get_logger(__name__)


class OrderRouter:
    """Gates, sizes and places trades; owns nothing but the in-flight records."""

    def __init__(
        self,
        executor: ITradeExecutor,
        gate: TradeGate,
        risk: RiskGuard,
        stake_policy: StakePolicy,
        currency: str = "USD",
        duration_minutes: int = 5,
        clock: Callable[[], float] = time.time,
    ):
        self.executor = executor
        self.gate = gate
        self.risk = risk
        self.stake_policy = stake_policy
        self.currency = currency
        self.duration_minutes = duration_minutes
        self._clock = clock
        self.open_trades: Dict[str, TradeRecord] = {}

    async def submit_trade(
        self,
        direction: SignalSide,
        symbol: str,
        amount: Optional[float] = None,
        duration_minutes: Optional[int] = None,
        confirmations: Iterable[str] = (),
    ) -> TradeRecord:
        if direction is SignalSide.NONE:
            raise ValueError("cannot trade a NONE signal")

        self.risk.ensure_active()
        stake = amount if amount is not None else self.stake_policy.stake_for(
            self.risk.stats.consecutive_losses
        )
        if stake <= 0:
            raise ValueError(f"stake must be positive: {stake}")
        duration = duration_minutes or self.duration_minutes

        now = self._clock()
        result = self.gate.try_acquire(int(now * 1000))
        if not result.passed:
            raise RateLimited(result.reason, result.details)

        try:
            contract = await self.executor.buy(direction, stake, symbol, duration, self.currency)
        except Exception:
            self.gate.rollback()
            raise

        trade_id = str(contract.get("contract_id") or uuid.uuid4().hex[:12])
        record = TradeRecord(
            id=trade_id,
            direction=direction,
            amount=stake,
            timestamp=now,
            instrument=symbol,
            duration_minutes=duration,
            confirmations=tuple(confirmations),
        )
        self.open_trades[trade_id] = record
        logger.info(
            "[ORDER] %s %s stake %.2f %s for %dm (id=%s)",
            direction.value, symbol, stake, self.currency, duration, trade_id,
        )
        return record

    def resolve(self, trade_id: str, profit: float) -> TradeRecord:
        """Settle an open trade and feed the outcome to the risk guard."""
        record = self.open_trades.pop(trade_id, None)
        if record is None:
            raise KeyError(f"unknown or already resolved trade: {trade_id}")
        resolved = record.resolve(profit)
        self.risk.record_outcome(resolved.profit)
        logger.info(
            "[ORDER] %s settled %s: %+.2f (streak=%d)",
            trade_id, "WIN" if resolved.is_win else "LOSS" if resolved.is_loss else "PUSH",
            profit, self.risk.stats.consecutive_losses,
        )
        return resolved

    def reset(self) -> None:
        """Clear the gate and risk stats. Open contracts stay tracked so they can still settle."""
        self.gate.reset()
        self.risk.reset()
