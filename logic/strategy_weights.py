"""
Per-strategy vote weights and the self-learning update rule.

The WeightTable is versioned: every change bumps the version, and readers
take an immutable snapshot at the start of an aggregation cycle so a cycle
never sees a half-applied update.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from core.logging_utils import get_logger
from core.models import TradeRecord

logger = get_logger(__name__)

DEFAULT_WEIGHT = 1.0


@dataclass(frozen=True)
class WeightSnapshot:
    version: int
    weights: Mapping[str, float]

    def get(self, name: str, default: float = DEFAULT_WEIGHT) -> float:
        return self.weights.get(name, default)


class WeightTable:
    """Versioned mapping strategy id -> positive multiplier."""

    def __init__(self, initial: Optional[Mapping[str, float]] = None):
        self._weights: Dict[str, float] = {}
        self._version = 0
        if initial:
            for name, weight in initial.items():
                self._check(name, weight)
                self._weights[name] = float(weight)

    @staticmethod
    def _check(name: str, weight: float) -> None:
        if not weight > 0:
            raise ValueError(f"weight must be positive: {name}={weight}")

    @property
    def version(self) -> int:
        return self._version

    def get(self, name: str, default: float = DEFAULT_WEIGHT) -> float:
        return self._weights.get(name, default)

    def set(self, name: str, weight: float) -> None:
        self._check(name, weight)
        self._weights[name] = float(weight)
        self._version += 1

    def update(self, weights: Mapping[str, float]) -> bool:
        """Apply several weights as one version bump. Returns True if anything changed."""
        for name, weight in weights.items():
            self._check(name, weight)
        changed = {n: float(w) for n, w in weights.items() if self._weights.get(n) != float(w)}
        if not changed:
            return False
        self._weights.update(changed)
        self._version += 1
        return True

    def snapshot(self) -> WeightSnapshot:
        return WeightSnapshot(self._version, MappingProxyType(dict(self._weights)))

    def as_dict(self) -> Dict[str, float]:
        return dict(self._weights)


@dataclass
class SelfLearningWeights:
    """
    Weight update from recent outcomes.

    weight = clamp(recent_win_rate * 1.5, 0.5, 1.5), where a strategy's
    trades are those it confirmed (voted the traded direction).
    Strategies with fewer than `min_trades` attributed trades are left out.
    """
    window: int = 20
    min_trades: int = 5
    scale: float = 1.5
    floor: float = 0.5
    ceiling: float = 1.5

    def compute(self, history: Iterable[TradeRecord]) -> Dict[str, float]:
        per_strategy: Dict[str, list] = {}
        for trade in history:
            if not trade.outcome_known:
                continue
            for name in trade.confirmations:
                per_strategy.setdefault(name, []).append(trade.is_win)

        weights = {}
        for name, outcomes in per_strategy.items():
            recent = outcomes[-self.window:]
            if len(recent) < self.min_trades:
                continue
            win_rate = sum(recent) / len(recent)
            weights[name] = round(min(self.ceiling, max(self.floor, win_rate * self.scale)), 4)
        return weights

    def apply(self, table: WeightTable, history: Iterable[TradeRecord]) -> bool:
        weights = self.compute(history)
        changed = table.update(weights) if weights else False
        if changed:
            logger.info("[LEARN] weights v%d: %s", table.version, weights)
        return changed
