"""Market data provider for signalscan."""

from __future__ import annotations

import math
from typing import Iterable

import pandas as pd
from loguru import logger

from signalscan.data.cache import TickerSnapshotCache
from signalscan.data.indicators import candles_to_frame
from signalscan.exchange.base_client import BaseMarketDataClient
from signalscan.models.market import Candle, Ticker24h
from signalscan.utils.helpers import is_leveraged_symbol, is_stablecoin_pair

_TICKER_SNAPSHOT_KEY = ("tickers_24h",)


def _is_well_formed(candle: Candle) -> bool:
    prices = (candle.open, candle.high, candle.low, candle.close)
    if not all(math.isfinite(p) and p > 0 for p in prices):
        return False
    if not math.isfinite(candle.volume) or candle.volume < 0:
        return False
    return candle.high >= candle.low


def clean_candles(candles: list[Candle]) -> list[Candle]:
    """Drop malformed candles, de-duplicate by open time and sort ascending.

    When two candles share an open time the later one in the input wins.
    """
    by_open_time: dict[int, Candle] = {}
    for candle in candles:
        if _is_well_formed(candle):
            by_open_time[candle.open_time] = candle
    return [by_open_time[t] for t in sorted(by_open_time)]


class MarketDataProvider:
    """Fetches candles and ticker snapshots from the exchange client."""

    def __init__(
        self,
        exchange_client: BaseMarketDataClient,
        ticker_cache: TickerSnapshotCache,
    ) -> None:
        self.exchange = exchange_client
        self.ticker_cache = ticker_cache

    async def get_candles(
        self, symbol: str, interval: str = "1h", limit: int = 250
    ) -> list[Candle]:
        """Fetch klines and return a clean, ascending candle series.

        Args:
            symbol: Trading pair symbol (e.g. "BTCUSDT").
            interval: Kline interval (e.g. "1h", "4h", "1d").
            limit: Number of klines to fetch (max 1000).
        """
        raw = await self.exchange.get_klines(symbol=symbol, interval=interval, limit=limit)
        candles = clean_candles(raw)
        if len(candles) != len(raw):
            logger.debug(
                "Dropped {} malformed/duplicate klines for {}", len(raw) - len(candles), symbol
            )
        logger.debug("Fetched {} klines for {} ({})", len(candles), symbol, interval)
        return candles

    async def get_ohlcv(
        self, symbol: str, interval: str = "1h", limit: int = 250
    ) -> pd.DataFrame:
        """Fetch klines and return them as an OHLCV DataFrame."""
        return candles_to_frame(await self.get_candles(symbol, interval, limit))

    async def get_tickers(self) -> tuple[Ticker24h, ...]:
        """Return the 24h ticker snapshot, served from the cache when fresh."""
        return await self.ticker_cache.get_or_fetch(
            _TICKER_SNAPSHOT_KEY, self.exchange.get_tickers_24h
        )

    def invalidate_tickers(self) -> None:
        """Force the next get_tickers() call to hit the exchange."""
        self.ticker_cache.invalidate(_TICKER_SNAPSHOT_KEY)


def _is_live(ticker: Ticker24h) -> bool:
    prices = (ticker.last_price, ticker.high_price, ticker.low_price)
    return all(math.isfinite(p) and p > 0 for p in prices)


def filter_universe(
    tickers: Iterable[Ticker24h],
    quote_asset: str = "USDT",
    min_quote_volume: float = 0.0,
    exclude_leveraged: bool = True,
    exclude_stablecoins: bool = False,
) -> list[Ticker24h]:
    """Keep the tradable pairs of a ticker snapshot.

    A pair survives when it is quoted in *quote_asset*, is not a leveraged
    token (when *exclude_leveraged*), is not a stablecoin base (when
    *exclude_stablecoins*), has a positive last price and 24h range and
    traded at least *min_quote_volume*.
    Snapshot order is preserved.
    """
    quote = quote_asset.upper()
    kept: list[Ticker24h] = []
    for ticker in tickers:
        if not ticker.symbol.endswith(quote) or ticker.symbol == quote:
            continue
        if exclude_leveraged and is_leveraged_symbol(ticker.symbol, quote):
            continue
        if exclude_stablecoins and is_stablecoin_pair(ticker.symbol, quote):
            continue
        if not _is_live(ticker):
            continue
        if ticker.quote_volume < min_quote_volume:
            continue
        kept.append(ticker)
    return kept
