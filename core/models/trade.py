"""Trade records owned by the session."""

from dataclasses import dataclass, replace
from typing import Optional

from core.models.signal import SignalSide


@dataclass(frozen=True)
class TradeRecord:
    """A submitted contract and, once settled, its outcome."""
    id: str
    direction: SignalSide
    amount: float
    timestamp: float
    instrument: str
    outcome_known: bool = False
    profit: Optional[float] = None
    duration_minutes: int = 5
    confirmations: tuple[str, ...] = ()   # strategies that agreed with the trade

    @property
    def is_win(self) -> bool:
        return self.outcome_known and (self.profit or 0.0) > 0

    @property
    def is_loss(self) -> bool:
        return self.outcome_known and (self.profit or 0.0) < 0

    def resolve(self, profit: float) -> "TradeRecord":
        if self.outcome_known:
            raise ValueError(f"trade {self.id} already resolved")
        return replace(self, outcome_known=True, profit=float(profit))
