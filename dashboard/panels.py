"""
Dashboard Panels - Individual terminal UI components.

Each function renders one panel from plain session data, so panels can be
printed once per signal or composed into a live layout.
"""

from datetime import datetime, timezone
from typing import Mapping, Optional

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.models import Direction, Signal, SignalSide

SIDE_STYLES = {
    SignalSide.BUY: "bold green",
    SignalSide.SELL: "bold red",
    SignalSide.NONE: "dim",
}

DIRECTION_STYLES = {
    Direction.BULLISH: "green",
    Direction.BEARISH: "red",
    Direction.NEUTRAL: "dim",
}


def _confidence_bar(confidence: float, width: int = 20) -> str:
    filled = int(round(width * max(0.0, min(100.0, confidence)) / 100))
    return "█" * filled + "░" * (width - filled)


def render_signal_panel(signal: Optional[Signal]) -> Panel:
    """Big current-signal card."""
    if signal is None:
        return Panel(Text("Waiting for first signal...", style="dim"), title="Signal")

    style = SIDE_STYLES[signal.direction]
    body = Text()
    body.append(f"{signal.direction.value}", style=style)
    body.append(f"  {signal.symbol}\n", style="bold")
    body.append(_confidence_bar(signal.confidence), style=style)
    body.append(f" {signal.confidence:.1f}%\n")
    body.append(
        f"bull {signal.bullish_score:g} / bear {signal.bearish_score:g}"
        f"  •  {len(signal.confirmations)} confirmations",
        style="dim",
    )
    ts = datetime.fromtimestamp(signal.created_at, tz=timezone.utc).strftime("%H:%M:%S")
    return Panel(body, title="Signal", subtitle=f"{ts} UTC", border_style=style)


def render_strategy_table(signal: Optional[Signal], weights: Optional[Mapping[str, float]] = None) -> Table:
    """Per-strategy votes for the latest cycle."""
    weights = weights or {}
    table = Table(title="Confirmations", expand=True, show_lines=False)
    table.add_column("Strategy", style="cyan", no_wrap=True)
    table.add_column("Vote", justify="center")
    table.add_column("Conf", justify="right")
    table.add_column("Weight", justify="right", style="dim")
    table.add_column("Reason", overflow="fold")

    if signal is None or not signal.confirmations:
        table.add_row("-", Text("neutral", style="dim"), "0", "", "No strategy fired")
        return table

    ranked = sorted(signal.confirmations.items(), key=lambda kv: kv[1].confidence, reverse=True)
    for name, result in ranked:
        table.add_row(
            name,
            Text(result.direction.value, style=DIRECTION_STYLES[result.direction]),
            f"{result.confidence:.0f}",
            f"{weights.get(name, 1.0):.2f}",
            result.reason,
        )
    return table


def render_performance_bar(stats: Mapping) -> Text:
    """One-line session performance summary."""
    perf = stats.get("performance") or {}
    bar = Text()
    bar.append("SYMBOL: ", style="dim")
    bar.append(f"{stats.get('symbol') or '-'}", style="bold")
    bar.append(" │ ")

    pnl = perf.get("pnl", 0.0)
    bar.append("P&L: ", style="dim")
    bar.append(f"{pnl:+.2f}", style="green" if pnl >= 0 else "red")
    bar.append(" │ ")

    bar.append("W/L: ", style="dim")
    bar.append(f"{perf.get('wins', 0)}/{perf.get('losses', 0)}")
    bar.append(f" ({perf.get('win_rate', 0.0):.0f}%)", style="dim")
    bar.append(" │ ")

    pf = perf.get("profit_factor", 0.0)
    bar.append("PF: ", style="dim")
    bar.append("∞" if pf == float("inf") else f"{pf:.2f}")
    bar.append(" │ ")

    bar.append("Candles: ", style="dim")
    bar.append(f"{stats.get('candles', 0)}")
    bar.append(" │ ")

    if stats.get("halted"):
        bar.append("HALTED", style="bold red")
    else:
        bar.append("ACTIVE", style="green")
    return bar
