"""
Signal Dashboard - terminal view of the running session.

Subscribes to the session's event bus and reprints the signal card,
the confirmation table and the performance bar after every cycle.
"""

from typing import Optional

from rich.console import Console, Group

from core.events import TradeEvent
from core.models import Signal
from core.session import SignalSession
from dashboard.panels import (
    render_performance_bar,
    render_signal_panel,
    render_strategy_table,
)


class Dashboard:
    """Prints one dashboard frame per completed signal cycle."""

    def __init__(self, session: SignalSession, console: Optional[Console] = None):
        self.session = session
        self.console = console or Console()
        session.events.on_signal(self.on_signal)
        session.events.on_trade(self.on_trade)

    def render(self, signal: Optional[Signal] = None) -> Group:
        signal = signal if signal is not None else self.session.last_signal
        return Group(
            render_performance_bar(self.session.stats()),
            render_signal_panel(signal),
            render_strategy_table(signal, self.session.weights.as_dict()),
        )

    def on_signal(self, signal: Signal) -> None:
        self.console.print(self.render(signal))

    def on_trade(self, event: TradeEvent) -> None:
        if event.event_type == "denied":
            self.console.print(f"[yellow]Trade denied:[/yellow] {event.reason}")
            return
        if event.event_type == "failed":
            self.console.print(f"[red]Trade failed:[/red] {event.reason}")
            return
        record = event.record
        if event.event_type == "submitted":
            self.console.print(
                f"[cyan]Trade {record.id}[/cyan] {record.direction.value} "
                f"{record.instrument} stake {record.amount:.2f} for {record.duration_minutes}m"
            )
        elif event.event_type == "settled":
            style = "green" if record.is_win else "red"
            self.console.print(f"[{style}]Trade {record.id} settled {record.profit:+.2f}[/{style}]")
