"""signalscan command line entry point.

    python -m signalscan.main scan BTC ETH SOL --interval 4h
    python -m signalscan.main strategy momentum --limit 10
    python -m signalscan.main rsi --source gainers

Results are printed to stdout as JSON. Exit codes: 0 success, 1 invalid
request, 2 upstream unavailable.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Sequence

from loguru import logger
from pydantic import ValidationError

from signalscan.config.settings import VALID_INTERVALS, Settings, get_settings
from signalscan.core.engine import ScanEngine
from signalscan.exchange.base_client import MarketDataError
from signalscan.models.strategy import StrategyFilterConfig
from signalscan.scanner.orchestrator import (
    RSI_SOURCES,
    SORT_KEYS,
    InvalidScanRequestError,
    ScanRequestError,
)
from signalscan.strategies.strategy_selector import STRATEGIES, UnknownStrategyError
from signalscan.utils.logger import setup_logger

EXIT_OK = 0
EXIT_INVALID_REQUEST = 1
EXIT_UPSTREAM = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signalscan", description="Technical-indicator scanner for crypto pairs"
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument(
        "--log-file", default=None, help="Override LOG_FILE ('' logs to stderr only)"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Score symbols on the full indicator set")
    scan.add_argument("symbols", nargs="*", help="Symbols (BTC or BTCUSDT); empty = discover")
    scan.add_argument("--interval", choices=VALID_INTERVALS, default=None)
    scan.add_argument("--limit", type=int, default=None, help="Candles per symbol (1-1000)")
    scan.add_argument("--sort-by", choices=SORT_KEYS, default="score")
    scan.add_argument("--min-volume", type=float, default=None, help="Discovery quote-volume floor")
    scan.add_argument("--top", type=int, default=None, help="Number of symbols to discover")

    strategy = sub.add_parser("strategy", help="Run a strategy view")
    strategy.add_argument("name", help=f"One of: {', '.join(STRATEGIES)}")
    strategy.add_argument("--limit", type=int, default=None)
    strategy.add_argument("--min-volume", type=float, default=None)
    strategy.add_argument("--mode", choices=("bounce", "breakout"), default=None)
    strategy.add_argument(
        "--interval", default=None, help="Kline interval; high_potential only (1h, 4h or 1d)"
    )

    rsi = sub.add_parser("rsi", help="RSI heatmap for the most active pairs")
    rsi.add_argument("--source", choices=RSI_SOURCES, default="volume")
    rsi.add_argument("--interval", choices=VALID_INTERVALS, default="4h")
    rsi.add_argument("--limit", type=int, default=50)
    return parser


def _scan_filters(args: argparse.Namespace, settings: Settings) -> StrategyFilterConfig | None:
    if args.min_volume is None and args.top is None:
        return None
    return StrategyFilterConfig(
        min_quote_volume=(
            args.min_volume if args.min_volume is not None else settings.SCAN_MIN_QUOTE_VOLUME
        ),
        limit=args.top if args.top is not None else settings.SCAN_TOP_N,
        exclude_leveraged=settings.EXCLUDE_LEVERAGED,
        quote_asset=settings.QUOTE_ASSET,
    )


def _check_interval_applies(name: str) -> None:
    if name.strip().lower() != "high_potential":
        raise InvalidScanRequestError(
            f"--interval only applies to high_potential, not '{name}'"
        )


async def execute(args: argparse.Namespace, engine: ScanEngine) -> Any:
    """Run the parsed command and return a JSON-serialisable payload."""
    if args.command == "scan":
        results = await engine.scan(
            args.symbols or None,
            interval=args.interval,
            limit=args.limit,
            filters=_scan_filters(args, engine.settings),
            sort_by=args.sort_by,
        )
        return [r.to_dict() for r in results]
    if args.command == "strategy":
        overrides = {
            "limit": args.limit,
            "min_quote_volume": args.min_volume,
            "mode": args.mode,
            "interval": args.interval,
        }
        rows = await engine.run_strategy(
            args.name, {k: v for k, v in overrides.items() if v is not None}
        )
        return [row.to_dict() for row in rows]
    readings = await engine.rsi_snapshot(args.source, args.interval, args.limit)
    return [r.to_dict() for r in readings]


def _emit(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, default=str) + "\n")


async def main(argv: Sequence[str] | None = None) -> int:
    """Parse *argv*, run the command and return the process exit code."""
    args = build_parser().parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as exc:
        _emit({"error": "InvalidSettings", "detail": str(exc)})
        return EXIT_INVALID_REQUEST

    log_file = settings.LOG_FILE if args.log_file is None else args.log_file
    setup_logger(
        args.log_level or settings.LOG_LEVEL, log_file or None, json_logs=settings.LOG_JSON
    )

    try:
        if args.command == "strategy" and args.name.strip().lower() not in STRATEGIES:
            raise UnknownStrategyError(args.name)
        if args.command == "strategy" and args.interval is not None:
            _check_interval_applies(args.name)
        async with ScanEngine(settings) as engine:
            payload = await execute(args, engine)
    except (ScanRequestError, ValidationError) as exc:
        logger.warning("Rejected request: {}", exc)
        _emit({"error": type(exc).__name__, "detail": str(exc)})
        return EXIT_INVALID_REQUEST
    except MarketDataError as exc:
        logger.error("Market data unavailable: {}", exc)
        _emit(exc.to_dict())
        return EXIT_UPSTREAM

    _emit(payload)
    return EXIT_OK


def run() -> None:
    """Synchronous wrapper suitable for ``python -m`` or console_scripts."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nsignalscan interrupted - shutting down.")
        sys.exit(130)


if __name__ == "__main__":
    run()
