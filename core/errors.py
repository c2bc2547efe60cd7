"""Error taxonomy shared by the signal engine and the trade path."""


class InsufficientHistory(Exception):
    """Not enough candles or ticks to compute an indicator value."""

    def __init__(self, needed: int, available: int, what: str = "values"):
        self.needed = needed
        self.available = available
        super().__init__(f"need {needed} {what}, have {available}")


class MalformedTick(ValueError):
    """Incoming tick payload could not be parsed into a finite quote."""


class RateLimited(Exception):
    """Trade submission denied by the trade gate."""

    def __init__(self, reason: str, details: dict | None = None):
        self.reason = reason
        self.details = details or {}
        super().__init__(reason)


class SessionLossLimitExceeded(Exception):
    """Session risk ceiling hit; trading stays halted until the session is reset."""

    def __init__(self, reason: str, consecutive_losses: int = 0, session_pnl: float = 0.0):
        self.reason = reason
        self.consecutive_losses = consecutive_losses
        self.session_pnl = session_pnl
        super().__init__(reason)
