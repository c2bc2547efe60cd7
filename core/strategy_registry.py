"""
Strategy Registry - Track and control enabled/disabled strategies.

Maps strategy id to the strategy object plus static metadata (weight,
display name, enabled flag), so the aggregator can iterate uniformly and
strategies can be added, removed or toggled without touching aggregation.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional

from core.logging_utils import get_logger

if TYPE_CHECKING:
    from logic.strategies.base import BaseStrategy

logger = get_logger(__name__)


@dataclass
class StrategyConfig:
    """Configuration for a single strategy."""
    name: str
    enabled: bool = True
    weight: float = 1.0
    display_name: str = ""
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "enabled": self.enabled,
            "weight": self.weight,
            "display_name": self.display_name or self.name,
            "description": self.description,
        }


class StrategyRegistry:
    """Ordered, in-memory registry of strategies for one session."""

    def __init__(self):
        self._strategies: Dict[str, "BaseStrategy"] = {}
        self._configs: Dict[str, StrategyConfig] = {}

    def register(self, strategy: "BaseStrategy", enabled: bool = True, weight: Optional[float] = None) -> StrategyConfig:
        sid = strategy.strategy_id
        if sid in self._strategies:
            raise ValueError(f"strategy already registered: {sid}")
        config = StrategyConfig(
            name=sid,
            enabled=enabled,
            weight=strategy.default_weight if weight is None else weight,
            display_name=strategy.display_name,
            description=strategy.description,
        )
        if config.weight <= 0:
            raise ValueError(f"weight must be positive: {sid}={config.weight}")
        self._strategies[sid] = strategy
        self._configs[sid] = config
        return config

    def unregister(self, name: str) -> bool:
        if name not in self._strategies:
            return False
        del self._strategies[name]
        del self._configs[name]
        return True

    def set_enabled(self, name: str, enabled: bool) -> bool:
        """Toggle a strategy. Returns False for unknown ids."""
        config = self._configs.get(name)
        if config is None:
            logger.warning("[STRAT_REG] Unknown strategy: %s", name)
            return False
        config.enabled = enabled
        logger.info("[STRAT_REG] %s %s", name, "enabled" if enabled else "disabled")
        return True

    def is_enabled(self, name: str) -> bool:
        config = self._configs.get(name)
        return config.enabled if config else False

    def get(self, name: str) -> Optional["BaseStrategy"]:
        return self._strategies.get(name)

    def get_config(self, name: str) -> Optional[StrategyConfig]:
        return self._configs.get(name)

    def get_enabled(self) -> List["BaseStrategy"]:
        return [s for sid, s in self._strategies.items() if self._configs[sid].enabled]

    def names(self) -> List[str]:
        return list(self._strategies)

    def default_weights(self) -> Dict[str, float]:
        return {sid: c.weight for sid, c in self._configs.items()}

    def get_all_configs(self) -> List[dict]:
        return [c.to_dict() for c in self._configs.values()]

    def __len__(self) -> int:
        return len(self._strategies)

    def __contains__(self, name: str) -> bool:
        return name in self._strategies
