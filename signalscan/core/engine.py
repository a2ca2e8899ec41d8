"""Scan engine: wires the client, cache, scanner and strategies together."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from loguru import logger

from signalscan.config.settings import Settings
from signalscan.data.cache import TickerSnapshotCache
from signalscan.data.market_data import MarketDataProvider
from signalscan.exchange.base_client import BaseMarketDataClient
from signalscan.exchange.binance_client import BinanceMarketClient
from signalscan.models.scan import RsiReading, ScanResult
from signalscan.models.strategy import StrategyFilterConfig, StrategyResult
from signalscan.scanner.orchestrator import ScanOrchestrator, SortKey
from signalscan.strategies import strategy_selector


class ScanEngine:
    """Entry point used by the CLI and any API layer on top.

    Usage::

        async with ScanEngine(get_settings()) as engine:
            results = await engine.scan(["BTC", "ETH"], interval="4h")
            picks = await engine.run_strategy("momentum")

    Args:
        settings: Application settings.
        exchange: Market data client; a ``BinanceMarketClient`` is built
            from *settings* when omitted.
        ticker_cache: Shared ticker snapshot cache; one with
            ``TICKER_CACHE_TTL_SECONDS`` is built when omitted.
    """

    def __init__(
        self,
        settings: Settings,
        exchange: BaseMarketDataClient | None = None,
        ticker_cache: TickerSnapshotCache | None = None,
    ) -> None:
        self.settings = settings
        self.exchange = exchange or BinanceMarketClient(settings)
        self.ticker_cache = ticker_cache or TickerSnapshotCache(settings.TICKER_CACHE_TTL_SECONDS)
        self.market_data = MarketDataProvider(self.exchange, self.ticker_cache)
        self.orchestrator = ScanOrchestrator(self.market_data, settings)
        self._connected = False

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Connect the market data client."""
        if self._connected:
            return
        await self.exchange.connect()
        self._connected = True
        logger.info("ScanEngine started")

    async def stop(self) -> None:
        """Disconnect the client and drop the cached ticker snapshot."""
        if not self._connected:
            return
        try:
            await self.exchange.disconnect()
        finally:
            self._connected = False
            self.market_data.invalidate_tickers()
            logger.info("ScanEngine stopped")

    async def __aenter__(self) -> "ScanEngine":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ── Operations ────────────────────────────────────────────────────────────

    async def scan(
        self,
        symbols: Sequence[str] | None = None,
        interval: str | None = None,
        limit: int | None = None,
        filters: StrategyFilterConfig | None = None,
        sort_by: SortKey = "score",
    ) -> list[ScanResult]:
        """Score *symbols*; falls back to ``SCAN_SYMBOLS``, then to discovery."""
        if symbols is None and self.settings.SCAN_SYMBOLS:
            symbols = self.settings.SCAN_SYMBOLS
        return await self.orchestrator.scan(
            symbols, interval=interval, limit=limit, filters=filters, sort_by=sort_by
        )

    async def run_strategy(
        self,
        name: str,
        filters: StrategyFilterConfig | Mapping[str, Any] | None = None,
    ) -> list[StrategyResult]:
        """Run one of the registered strategy views."""
        return await strategy_selector.run_strategy(
            name, self.market_data, self.settings, filters, orchestrator=self.orchestrator
        )

    async def rsi_snapshot(
        self, source: str = "volume", interval: str = "4h", limit: int = 50
    ) -> list[RsiReading]:
        """Latest RSI for the top pairs by volume or by 24h gain."""
        return await self.orchestrator.rsi_snapshot(source, interval, limit)
