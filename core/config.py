"""Assistant configuration."""

import logging

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)
load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # Broker
    deriv_app_id: int = Field(default=69958, alias="DERIV_APP_ID")
    deriv_endpoint: str = Field(default="frontend.binary.com", alias="DERIV_ENDPOINT")
    deriv_token: str = Field(default="", alias="DERIV_TOKEN")
    currency: str = Field(default="USD", alias="CURRENCY")

    # Market data
    symbol: str = Field(default="R_100", alias="SYMBOL")
    granularity_seconds: int = Field(default=60, alias="GRANULARITY_SECONDS")
    history_count: int = Field(default=1000, alias="HISTORY_COUNT")
    max_candles: int = 1000                    # Rolling candle window
    max_ticks: int = 10000                     # Raw tick buffer

    # Signal
    signal_interval_seconds: float = Field(default=5.0, alias="SIGNAL_INTERVAL_SECONDS")
    weighted_voting: bool = Field(default=False, alias="WEIGHTED_VOTING")
    self_learning_enabled: bool = Field(default=True, alias="SELF_LEARNING")
    self_learning_window: int = 20             # Resolved trades considered per strategy
    disabled_strategies: str = Field(default="", alias="DISABLED_STRATEGIES")

    # Trading
    auto_trade: bool = Field(default=False, alias="AUTO_TRADE")
    trade_amount: float = Field(default=10.0, alias="TRADE_AMOUNT")
    trade_duration_minutes: int = Field(default=5, alias="TRADE_DURATION_MINUTES")
    max_trades: int = Field(default=50, alias="MAX_TRADES")
    trade_cooldown_ms: int = Field(default=30000, alias="TRADE_COOLDOWN_MS")
    min_signal_confidence: float = Field(default=60.0, alias="MIN_SIGNAL_CONFIDENCE")

    # Risk
    martingale_enabled: bool = Field(default=False, alias="MARTINGALE")
    martingale_multiplier: float = 2.0
    max_consecutive_losses: int = Field(default=4, alias="MAX_CONSECUTIVE_LOSSES")
    max_session_loss: float = Field(default=100.0, alias="MAX_SESSION_LOSS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @model_validator(mode="after")
    def _check_trading(self) -> "Settings":
        if self.auto_trade and not self.deriv_token:
            logger.warning("[CONFIG] AUTO_TRADE set without DERIV_TOKEN; running signals only")
        return self

    @property
    def disabled_strategy_set(self) -> set[str]:
        return {s.strip() for s in self.disabled_strategies.split(",") if s.strip()}

    @property
    def granularity_label(self) -> str:
        if self.granularity_seconds % 3600 == 0:
            return f"{self.granularity_seconds // 3600}h"
        if self.granularity_seconds % 60 == 0:
            return f"{self.granularity_seconds // 60}m"
        return f"{self.granularity_seconds}s"

    @property
    def websocket_url(self) -> str:
        return f"wss://{self.deriv_endpoint}/websockets/v3?app_id={self.deriv_app_id}"


settings = Settings()
