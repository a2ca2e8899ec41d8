"""Concurrent indicator scan over many symbols.

Each symbol is fetched and scored in its own task. Tasks are bounded by a
semaphore and a per-task timeout, and every task resolves to a tagged
outcome: ``ScanOk`` with the scored result, or ``ScanSkipped`` with the
reason the symbol was dropped. One symbol failing never fails the scan;
only a total upstream outage does.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Literal, Sequence, TypeVar

from loguru import logger

from signalscan.config.settings import VALID_INTERVALS, Settings
from signalscan.data import indicators
from signalscan.data.indicators import candles_to_frame
from signalscan.data.market_data import MarketDataProvider, filter_universe
from signalscan.exchange.base_client import UpstreamUnavailableError
from signalscan.models.market import Candle, Ticker24h
from signalscan.models.scan import (
    RsiReading,
    ScanOk,
    ScanOutcome,
    ScanResult,
    ScanSkipped,
    SkipReason,
)
from signalscan.models.strategy import StrategyFilterConfig
from signalscan.signals.aggregator import build_scan_result
from signalscan.signals.normalizer import SignalNormalizer
from signalscan.utils.helpers import base_asset, normalize_symbol

T = TypeVar("T")

SortKey = Literal["score", "symbol", "none"]
SORT_KEYS: tuple[str, ...] = ("score", "symbol", "none")
MAX_CANDLE_LIMIT = 1000

# RSI heatmap
RSI_SOURCES: tuple[str, ...] = ("volume", "gainers")
RSI_CANDLES = 30
RSI_MIN_CANDLES = 20
RSI_MAX_ROWS = 100
RSI_VOLUME_FLOOR = 10_000_000.0
RSI_GAINERS_FLOOR = 1_000_000.0


class ScanRequestError(ValueError):
    """Base class for requests rejected before any I/O happens."""


class InvalidScanRequestError(ScanRequestError):
    """Bad symbol, interval, limit or sort key."""


class ScanOrchestrator:
    """Fan a scan out over symbols and fan the results back in.

    Args:
        provider: Candle and ticker source.
        settings: Concurrency, timeout and universe defaults.
        normalizer: Indicator rule set; a fresh one is built if omitted.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        settings: Settings,
        normalizer: SignalNormalizer | None = None,
    ) -> None:
        self.provider = provider
        self.settings = settings
        self.normalizer = normalizer or SignalNormalizer()

    # ── Public API ────────────────────────────────────────────────────────

    async def scan(
        self,
        symbols: Sequence[str] | None = None,
        interval: str | None = None,
        limit: int | None = None,
        filters: StrategyFilterConfig | None = None,
        sort_by: SortKey = "score",
        generated_at: datetime | None = None,
    ) -> list[ScanResult]:
        """Scan *symbols* (or the discovered top-N) and return the scored results.

        Args:
            symbols: Symbols to scan. ``None`` discovers the top pairs by
                quote volume from the ticker snapshot.
            interval: Kline interval, defaults to ``SCAN_INTERVAL``.
            limit: Candles per symbol (1..1000), defaults to ``SCAN_CANDLE_LIMIT``.
            filters: Discovery overrides (volume floor, top-N, quote asset).
            sort_by: ``"score"`` (descending), ``"symbol"`` or ``"none"``
                (input order).
            generated_at: Timestamp stamped on every result.

        Returns:
            One ScanResult per symbol that could be scored. Skipped symbols
            are simply absent.

        Raises:
            InvalidScanRequestError: Malformed request, raised before any fetch.
            UpstreamUnavailableError: The data source is down for every symbol.
        """
        outcomes = await self.scan_outcomes(
            symbols, interval, limit, filters, sort_by, generated_at
        )
        results = [o.result for o in outcomes if isinstance(o, ScanOk)]
        if sort_by == "score":
            results.sort(key=lambda r: r.total_score, reverse=True)
        elif sort_by == "symbol":
            results.sort(key=lambda r: r.symbol)
        return results

    async def scan_outcomes(
        self,
        symbols: Sequence[str] | None = None,
        interval: str | None = None,
        limit: int | None = None,
        filters: StrategyFilterConfig | None = None,
        sort_by: SortKey = "score",
        generated_at: datetime | None = None,
        keep_candles: bool = False,
    ) -> list[ScanOutcome]:
        """Like :meth:`scan` but return every tagged outcome, in input order.

        With *keep_candles* each ``ScanOk`` also carries the candle series it
        was scored on.
        """
        interval = interval or self.settings.SCAN_INTERVAL
        limit = self.settings.SCAN_CANDLE_LIMIT if limit is None else limit
        requested = self._validate_request(symbols, interval, limit, sort_by, filters)

        if requested is None:
            requested = await self.discover_symbols(filters)
        if not requested:
            logger.info("Scan requested with no symbols")
            return []

        stamp = generated_at or datetime.now(timezone.utc)
        logger.info(
            "Scan starting | {} symbols | interval={} limit={}", len(requested), interval, limit
        )
        outcomes = await self._fan_out(
            requested,
            lambda symbol: self._scan_symbol(symbol, interval, limit, stamp, keep_candles),
        )
        self._raise_if_all_unavailable(outcomes)

        ok = sum(1 for o in outcomes if isinstance(o, ScanOk))
        logger.info("Scan complete | {} scored, {} skipped", ok, len(outcomes) - ok)
        return outcomes

    async def discover_symbols(self, filters: StrategyFilterConfig | None = None) -> list[str]:
        """Top pairs of the ticker snapshot by quote volume."""
        quote = filters.quote_asset if filters else self.settings.QUOTE_ASSET
        floor = filters.min_quote_volume if filters else self.settings.SCAN_MIN_QUOTE_VOLUME
        top_n = filters.limit if filters else self.settings.SCAN_TOP_N
        exclude_leveraged = filters.exclude_leveraged if filters else self.settings.EXCLUDE_LEVERAGED

        tickers = await self.provider.get_tickers()
        universe = filter_universe(
            tickers,
            quote_asset=quote,
            min_quote_volume=floor,
            exclude_leveraged=exclude_leveraged,
            exclude_stablecoins=self.settings.EXCLUDE_STABLECOINS,
        )
        universe.sort(key=lambda t: t.quote_volume, reverse=True)
        symbols = [t.symbol for t in universe[:top_n]]
        logger.debug("Discovered {} symbols (floor={:,.0f}, top={})", len(symbols), floor, top_n)
        return symbols

    async def rsi_snapshot(
        self,
        source: str = "volume",
        interval: str = "4h",
        limit: int = 50,
    ) -> list[RsiReading]:
        """Latest RSI for the most traded (or best performing) pairs.

        Args:
            source: ``"volume"`` ranks pairs above 10M quote volume by volume;
                ``"gainers"`` ranks pairs above 1M by 24h change.
            interval: Kline interval for the RSI.
            limit: Number of pairs (1..100).

        Returns:
            Rows in discovery order; pairs whose candles could not be
            fetched, or that have fewer than 20 candles, are left out.
        """
        if source not in RSI_SOURCES:
            raise InvalidScanRequestError(f"source must be one of {RSI_SOURCES}, got '{source}'")
        self._validate_interval(interval)
        if not 1 <= limit <= RSI_MAX_ROWS:
            raise InvalidScanRequestError(f"limit must be within 1..{RSI_MAX_ROWS}, got {limit}")

        quote = self.settings.QUOTE_ASSET
        tickers = await self.provider.get_tickers()
        universe = filter_universe(tickers, quote_asset=quote, exclude_leveraged=True)
        if source == "gainers":
            pairs = [t for t in universe if t.quote_volume > RSI_GAINERS_FLOOR]
            pairs.sort(key=lambda t: t.price_change_percent, reverse=True)
        else:
            pairs = [t for t in universe if t.quote_volume > RSI_VOLUME_FLOOR]
            pairs.sort(key=lambda t: t.quote_volume, reverse=True)
        pairs = pairs[:limit]

        readings = await self._fan_out(
            pairs, lambda ticker: self._rsi_reading(ticker, interval)
        )
        rows = [r for r in readings if r is not None]
        logger.info("RSI snapshot | source={} interval={} | {} rows", source, interval, len(rows))
        return rows

    # ── Validation ────────────────────────────────────────────────────────

    def _validate_request(
        self,
        symbols: Sequence[str] | None,
        interval: str,
        limit: int,
        sort_by: str,
        filters: StrategyFilterConfig | None,
    ) -> list[str] | None:
        """Check the request and return the normalised, de-duplicated symbols."""
        self._validate_interval(interval)
        if not 1 <= limit <= MAX_CANDLE_LIMIT:
            raise InvalidScanRequestError(f"limit must be within 1..{MAX_CANDLE_LIMIT}, got {limit}")
        min_candles = self.settings.SCAN_MIN_CANDLES
        if limit < min_candles:
            raise InvalidScanRequestError(
                f"limit must be at least SCAN_MIN_CANDLES ({min_candles}), got {limit}"
            )
        if sort_by not in SORT_KEYS:
            raise InvalidScanRequestError(f"sort_by must be one of {SORT_KEYS}, got '{sort_by}'")
        if symbols is None:
            return None
        if isinstance(symbols, str):
            raise InvalidScanRequestError("symbols must be a list of symbols, not a string")

        quote = filters.quote_asset if filters else self.settings.QUOTE_ASSET
        seen: dict[str, None] = {}
        for raw in symbols:
            try:
                seen[normalize_symbol(raw, quote)] = None
            except ValueError as exc:
                raise InvalidScanRequestError(str(exc)) from exc
        return list(seen)

    @staticmethod
    def _validate_interval(interval: str) -> None:
        if interval not in VALID_INTERVALS:
            raise InvalidScanRequestError(
                f"interval must be one of {VALID_INTERVALS}, got '{interval}'"
            )

    # ── Per-symbol tasks ──────────────────────────────────────────────────

    async def _fan_out(
        self,
        items: Sequence[object],
        task: Callable[[object], Awaitable[T]],
    ) -> list[T]:
        """Run *task* for every item, at most SCAN_MAX_CONCURRENCY at a time."""
        semaphore = asyncio.Semaphore(self.settings.SCAN_MAX_CONCURRENCY)

        async def bounded(item: object) -> T:
            async with semaphore:
                return await task(item)

        return list(await asyncio.gather(*(bounded(item) for item in items)))

    async def _fetch(self, symbol: str, interval: str, limit: int) -> list[Candle]:
        return await asyncio.wait_for(
            self.provider.get_candles(symbol, interval, limit),
            timeout=self.settings.SCAN_TASK_TIMEOUT_SECONDS,
        )

    async def _scan_symbol(
        self,
        symbol: str,
        interval: str,
        limit: int,
        generated_at: datetime,
        keep_candles: bool = False,
    ) -> ScanOutcome:
        try:
            candles = await self._fetch(symbol, interval, limit)
        except asyncio.TimeoutError:
            logger.warning("Scan {} timed out after {}s", symbol, self.settings.SCAN_TASK_TIMEOUT_SECONDS)
            return ScanSkipped(symbol=symbol, reason=SkipReason.TIMEOUT)
        except UpstreamUnavailableError as exc:
            logger.warning("Scan {} skipped, upstream unavailable: {}", symbol, exc)
            return ScanSkipped(symbol=symbol, reason=SkipReason.UPSTREAM_UNAVAILABLE, detail=str(exc))
        except Exception as exc:
            logger.warning("Scan {} skipped, fetch failed: {}", symbol, exc)
            return ScanSkipped(symbol=symbol, reason=SkipReason.FETCH_FAILED, detail=str(exc))

        if len(candles) < self.settings.SCAN_MIN_CANDLES:
            logger.debug(
                "Scan {} skipped: {} candles < {}", symbol, len(candles), self.settings.SCAN_MIN_CANDLES
            )
            return ScanSkipped(
                symbol=symbol,
                reason=SkipReason.INSUFFICIENT_HISTORY,
                detail=f"{len(candles)} candles",
            )

        try:
            readings = self.normalizer.normalize(candles_to_frame(candles))
            result = build_scan_result(symbol, candles[-1].close, readings, generated_at)
        except (ValueError, ArithmeticError) as exc:
            logger.warning("Scan {} skipped, invalid data: {}", symbol, exc)
            return ScanSkipped(symbol=symbol, reason=SkipReason.INVALID_DATA, detail=str(exc))
        return ScanOk(result=result, candles=tuple(candles) if keep_candles else None)

    async def _rsi_reading(self, ticker: Ticker24h, interval: str) -> RsiReading | None:
        try:
            candles = await self._fetch(ticker.symbol, interval, RSI_CANDLES)
        except asyncio.TimeoutError:
            logger.debug("RSI fetch for {} timed out", ticker.symbol)
            return None
        except Exception as exc:
            logger.debug("RSI fetch for {} failed: {}", ticker.symbol, exc)
            return None
        if len(candles) < RSI_MIN_CANDLES:
            return None
        series = indicators.rsi_series([c.close for c in candles], 14)
        if series.size == 0:
            return None
        return RsiReading(
            symbol=base_asset(ticker.symbol, self.settings.QUOTE_ASSET),
            rsi=round(float(series[-1]), 2),
            price=ticker.last_price,
            change=ticker.price_change_percent,
        )

    @staticmethod
    def _raise_if_all_unavailable(outcomes: list[ScanOutcome]) -> None:
        """A scan where every symbol hit an upstream outage is a failed scan."""
        if not outcomes:
            return
        if all(
            isinstance(o, ScanSkipped) and o.reason is SkipReason.UPSTREAM_UNAVAILABLE
            for o in outcomes
        ):
            first = outcomes[0]
            raise UpstreamUnavailableError(
                503, f"All {len(outcomes)} symbols failed: {first.detail}"
            )
