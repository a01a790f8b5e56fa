"""
Tail a v20 stream from the command line, one JSON record per line.

Credentials come from the environment (V20_API_TOKEN, V20_ACCOUNT_ID) or a
.env file in the working directory.

Usage:
    python -m v20client prices EUR_USD GBP_USD
    python -m v20client transactions
    python -m v20client changes --live
    python -m v20client candles EUR_USD M1 --log-level DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any

from .config import Settings, get_settings
from .connection import Connection
from .errors import V20Error
from .logging_setup import configure_logging


logger = logging.getLogger("v20client")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="python -m v20client",
        description="Stream OANDA v20 records to stdout as JSON lines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m v20client prices EUR_USD GBP_USD
  python -m v20client candles EUR_USD M1
  python -m v20client transactions --live
        """
    )
    parser.add_argument(
        "--live",
        action="store_true",
        help="Use the live (fxtrade) environment instead of practice"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: V20_LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--log-http",
        action="store_true",
        help="Log every HTTP request and response at DEBUG"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    prices = commands.add_parser("prices", help="Price ticks for one or more instruments")
    prices.add_argument("instruments", nargs="+", help="Instruments, e.g. EUR_USD")

    commands.add_parser("transactions", help="Transaction events for the account")
    commands.add_parser("changes", help="Account change sets")

    candles = commands.add_parser("candles", help="Candle updates for one instrument")
    candles.add_argument("instrument", help="Instrument, e.g. EUR_USD")
    candles.add_argument("granularity", help="Granularity code, e.g. M1, H1, D")

    return parser.parse_args(argv)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    update: dict[str, Any] = {}
    if args.live:
        update["environment"] = "live"
    if args.log_level:
        update["log_level"] = args.log_level
    if args.log_http:
        update["log_http"] = True
    return settings.model_copy(update=update) if update else settings


def print_record(record: Any) -> None:
    sys.stdout.write(record.model_dump_json(by_alias=True) + "\n")
    sys.stdout.flush()


async def run(args: argparse.Namespace, settings: Settings) -> None:
    async with Connection.from_settings(settings) as conn:
        streaming = conn.streaming()

        if args.command == "prices":
            await streaming.stream_prices(args.instruments, print_record)
        elif args.command == "transactions":
            await streaming.stream_transactions(print_record)
        elif args.command == "changes":
            await streaming.stream_account_changes(print_record)
        elif args.command == "candles":
            await streaming.stream_candles(args.instrument, args.granularity, print_record)

    logger.info("Stream ended by server.")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = apply_overrides(get_settings(), args)
    configure_logging(settings.log_level)

    try:
        asyncio.run(run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    except ValueError as e:
        logger.error(f"Invalid arguments or configuration: {e}")
        return 2
    except V20Error as e:
        logger.error(f"Stream failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
