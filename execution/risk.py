"""Risk management components - session stats, stake policy, loss ceilings."""

from dataclasses import dataclass
from typing import Optional

from core.errors import SessionLossLimitExceeded
from core.logging_utils import get_logger

logger = get_logger(__name__)


@dataclass
class SessionStats:
    """Running performance for one trading session."""
    trades: int = 0
    wins: int = 0
    losses: int = 0
    total_pnl: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0      # stored as positive
    consecutive_losses: int = 0
    max_consecutive_losses: int = 0
    biggest_win: float = 0.0
    biggest_loss: float = 0.0

    def record_trade(self, pnl: float):
        self.trades += 1
        if pnl > 0:
            self.wins += 1
            self.gross_profit += pnl
            self.biggest_win = max(self.biggest_win, pnl)
            self.consecutive_losses = 0
        elif pnl < 0:
            self.losses += 1
            self.gross_loss += abs(pnl)
            self.biggest_loss = max(self.biggest_loss, abs(pnl))
            self.consecutive_losses += 1
            self.max_consecutive_losses = max(self.max_consecutive_losses, self.consecutive_losses)
        # pnl == 0 is a push: counted, streak unchanged
        self.total_pnl += pnl

    @property
    def win_rate(self) -> float:
        decided = self.wins + self.losses
        if decided == 0:
            return 0.0
        return self.wins / decided * 100

    @property
    def profit_factor(self) -> float:
        """Profit factor = gross_profit / gross_loss. PF > 1 = profitable."""
        if self.gross_loss <= 0:
            return float('inf') if self.gross_profit > 0 else 0.0
        return self.gross_profit / self.gross_loss

    def summary(self) -> dict:
        return {
            "trades": self.trades,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": round(self.win_rate, 1),
            "pnl": round(self.total_pnl, 2),
            "profit_factor": self.profit_factor,
            "consecutive_losses": self.consecutive_losses,
        }


@dataclass
class StakePolicy:
    """
    Fixed stake, or martingale escalation after losses.

    Martingale never silently caps: asking for a stake at or beyond the
    loss-streak ceiling raises SessionLossLimitExceeded.
    """
    base_amount: float = 10.0
    martingale: bool = False
    multiplier: float = 2.0
    max_consecutive_losses: int = 4

    def __post_init__(self):
        if self.base_amount <= 0:
            raise ValueError("base_amount must be positive")
        if self.martingale and self.multiplier <= 1:
            raise ValueError("martingale multiplier must be > 1")

    def stake_for(self, consecutive_losses: int) -> float:
        if consecutive_losses >= self.max_consecutive_losses:
            raise SessionLossLimitExceeded(
                f"loss streak {consecutive_losses} at ceiling {self.max_consecutive_losses}",
                consecutive_losses=consecutive_losses,
            )
        if not self.martingale:
            return self.base_amount
        return round(self.base_amount * self.multiplier ** consecutive_losses, 2)


class RiskGuard:
    """
    Session-level hard stops.

    Trips on max consecutive losses or max session loss. Once tripped,
    every submission raises until `reset()` is called explicitly.
    """

    def __init__(self, max_consecutive_losses: int = 4, max_session_loss: Optional[float] = None):
        self.max_consecutive_losses = max_consecutive_losses
        self.max_session_loss = max_session_loss
        self.stats = SessionStats()
        self.halted = False
        self.halt_reason = ""

    def record_outcome(self, profit: float) -> None:
        self.stats.record_trade(profit)
        if self.stats.consecutive_losses >= self.max_consecutive_losses:
            self._halt(f"{self.stats.consecutive_losses} consecutive losses")
        elif self.max_session_loss is not None and -self.stats.total_pnl >= self.max_session_loss:
            self._halt(f"session loss {self.stats.total_pnl:.2f} hit limit {self.max_session_loss:.2f}")

    def _halt(self, reason: str) -> None:
        if not self.halted:
            logger.error("[RISK] Session halted: %s", reason)
        self.halted = True
        self.halt_reason = reason

    def ensure_active(self) -> None:
        if self.halted:
            raise SessionLossLimitExceeded(
                self.halt_reason,
                consecutive_losses=self.stats.consecutive_losses,
                session_pnl=self.stats.total_pnl,
            )

    def reset(self) -> None:
        logger.info("[RISK] Session reset (was %s)", self.halt_reason or "active")
        self.stats = SessionStats()
        self.halted = False
        self.halt_reason = ""
