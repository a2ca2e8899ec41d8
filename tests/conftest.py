"""Shared pytest fixtures for signalscan tests."""

from __future__ import annotations

from typing import Callable, Sequence
from unittest.mock import AsyncMock

import pytest

from signalscan.config.settings import Settings
from signalscan.data.cache import TickerSnapshotCache
from signalscan.data.market_data import MarketDataProvider
from signalscan.exchange.base_client import BaseMarketDataClient
from signalscan.models.market import Candle, Ticker24h

HOUR_MS = 3_600_000
START_MS = 1_700_000_000_000


def build_candles(
    closes: Sequence[float],
    volumes: Sequence[float] | None = None,
    spread: float = 0.01,
    start: int = START_MS,
) -> list[Candle]:
    """Candles around the given closes: high/low at +/- *spread*, open at the prior close."""
    candles: list[Candle] = []
    for i, close in enumerate(closes):
        prev = closes[i - 1] if i else close
        candles.append(
            Candle(
                open_time=start + i * HOUR_MS,
                open=prev,
                high=max(prev, close) * (1 + spread),
                low=min(prev, close) * (1 - spread),
                close=close,
                volume=volumes[i] if volumes is not None else 1_000.0,
            )
        )
    return candles


def build_ticker(
    symbol: str,
    change: float = 0.0,
    quote_volume: float = 10_000_000.0,
    price: float = 100.0,
    high: float | None = None,
    low: float | None = None,
) -> Ticker24h:
    return Ticker24h(
        symbol=symbol,
        last_price=price,
        price_change_percent=change,
        high_price=high if high is not None else price * 1.05,
        low_price=low if low is not None else price * 0.95,
        volume=quote_volume / price if price else 0.0,
        quote_volume=quote_volume,
    )


@pytest.fixture
def mock_settings() -> Settings:
    """Return a Settings object with safe test defaults."""
    return Settings(
        _env_file=None,
        BINANCE_API_KEY="",
        BINANCE_API_SECRET="",
        BINANCE_TESTNET=True,
        QUOTE_ASSET="USDT",
        SCAN_INTERVAL="1h",
        SCAN_CANDLE_LIMIT=250,
        SCAN_MIN_CANDLES=50,
        SCAN_TOP_N=20,
        SCAN_MIN_QUOTE_VOLUME=1_000_000.0,
        SCAN_MAX_CONCURRENCY=5,
        SCAN_TASK_TIMEOUT_SECONDS=2.0,
        SCAN_SYMBOLS=[],
        TICKER_CACHE_TTL_SECONDS=30.0,
        LOG_LEVEL="DEBUG",
        LOG_FILE="",
    )


@pytest.fixture
def candle_factory() -> Callable[..., list[Candle]]:
    return build_candles


@pytest.fixture
def ticker_factory() -> Callable[..., Ticker24h]:
    return build_ticker


@pytest.fixture
def uptrend_candles() -> list[Candle]:
    """250 hourly candles rising 0.5% per bar."""
    return build_candles([100.0 * 1.005 ** i for i in range(250)])


@pytest.fixture
def mock_exchange_client(uptrend_candles: list[Candle]) -> AsyncMock:
    """Return an AsyncMock of BaseMarketDataClient."""
    client = AsyncMock(spec=BaseMarketDataClient)
    client.get_klines.return_value = uptrend_candles
    client.get_tickers_24h.return_value = [
        build_ticker("BTCUSDT", change=2.5, quote_volume=900_000_000.0, price=65_000.0),
        build_ticker("ETHUSDT", change=-1.2, quote_volume=400_000_000.0, price=3_200.0),
        build_ticker("SOLUSDT", change=6.0, quote_volume=150_000_000.0, price=150.0),
    ]
    return client


@pytest.fixture
def ticker_cache() -> TickerSnapshotCache:
    return TickerSnapshotCache(ttl_seconds=30.0)


@pytest.fixture
def provider(mock_exchange_client: AsyncMock, ticker_cache: TickerSnapshotCache) -> MarketDataProvider:
    return MarketDataProvider(mock_exchange_client, ticker_cache)
