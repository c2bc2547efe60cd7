#!/usr/bin/env python3
"""
Deriv Signal - tick-stream signal assistant

Usage:
    python run.py                    # Stream R_100 and print signals
    python run.py -s frxEURUSD       # Another instrument
    python run.py --auto-trade       # Place trades on confident signals (needs DERIV_TOKEN)
    python run.py --list-symbols     # Show tradable forex/synthetic symbols
    python run.py --help             # Show all options
"""

import argparse
import asyncio

from core.config import settings
from core.logging_utils import get_logger, setup_logging

logger = get_logger(__name__)


async def _list_symbols() -> None:
    from datafeeds.deriv_client import DerivClient

    async with DerivClient() as client:
        for sym in await client.active_symbols():
            print(f"{sym['symbol']:<14} {sym.get('display_name', '')}")


async def _run(symbol: str, weighted: bool) -> None:
    from core.session import SignalSession
    from dashboard import Dashboard
    from datafeeds.deriv_client import DerivClient
    from logic.strategies.aggregator import SignalAggregator, build_default_registry

    registry = build_default_registry(settings.disabled_strategy_set)
    aggregator = SignalAggregator(registry, weighted=weighted)

    async with DerivClient() as client:
        executor = client if settings.deriv_token else None
        session = SignalSession(client, aggregator, executor=executor)
        Dashboard(session)
        try:
            await session.switch_instrument(symbol)
            await session.wait()
        finally:
            await session.close()


def main():
    parser = argparse.ArgumentParser(
        prog='derivsignal',
        description='Deriv Signal - tick-stream signal assistant',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py                  Stream the default symbol and print signals
  python run.py -s R_50 -w       Weighted voting on Volatility 50
""",
    )
    parser.add_argument('-s', '--symbol', type=str, default=settings.symbol,
                        help=f'Instrument to analyze (default: {settings.symbol})')
    parser.add_argument('-w', '--weighted', action='store_true', default=settings.weighted_voting,
                        help='Weight votes by per-strategy multipliers')
    parser.add_argument('--auto-trade', action='store_true',
                        help='Submit trades for signals above MIN_SIGNAL_CONFIDENCE')
    parser.add_argument('--list-symbols', action='store_true',
                        help='List tradable symbols and exit')
    parser.add_argument('--log-level', type=str, default=settings.log_level)

    args = parser.parse_args()
    setup_logging(args.log_level)
    if args.auto_trade:
        settings.auto_trade = True
        if not settings.deriv_token:
            logger.warning("[RUN] --auto-trade needs DERIV_TOKEN; running signals only")

    try:
        if args.list_symbols:
            asyncio.run(_list_symbols())
        else:
            asyncio.run(_run(args.symbol, args.weighted))
    except KeyboardInterrupt:
        print("\nStopped.")


if __name__ == "__main__":
    main()
