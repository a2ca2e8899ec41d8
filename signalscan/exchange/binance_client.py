"""Binance market data client for signalscan."""

from __future__ import annotations

import asyncio
from typing import Any

from aiohttp import ClientError
from binance import AsyncClient
from binance.exceptions import BinanceAPIException, BinanceRequestException
from loguru import logger

from signalscan.config.settings import Settings
from signalscan.exchange.base_client import (
    BaseMarketDataClient,
    MarketDataError,
    UpstreamUnavailableError,
)
from signalscan.models.market import Candle, Ticker24h
from signalscan.utils.helpers import to_float
from signalscan.utils.retry import retry


def _translate_error(exc: Exception) -> MarketDataError:
    """Map python-binance / transport errors onto the MarketDataError tree."""
    if isinstance(exc, BinanceAPIException):
        status = int(getattr(exc, "status_code", 0) or 0)
        detail = str(getattr(exc, "message", "") or exc)
        if status >= 500 or status == 0:
            return UpstreamUnavailableError(status or 503, detail)
        return MarketDataError(status, detail)
    if isinstance(exc, asyncio.TimeoutError):
        return UpstreamUnavailableError(504, "Binance request timed out")
    # BinanceRequestException, aiohttp connection errors
    return UpstreamUnavailableError(503, str(exc) or type(exc).__name__)


def _parse_kline(raw: list[Any]) -> Candle | None:
    # [open_time, open, high, low, close, volume, close_time, quote_volume, ...]
    try:
        return Candle(
            open_time=int(raw[0]),
            open=float(raw[1]),
            high=float(raw[2]),
            low=float(raw[3]),
            close=float(raw[4]),
            volume=float(raw[5]),
            close_time=int(raw[6]) if len(raw) > 6 else None,
            quote_volume=float(raw[7]) if len(raw) > 7 else None,
        )
    except (IndexError, TypeError, ValueError):
        return None


def _parse_ticker(raw: dict[str, Any]) -> Ticker24h | None:
    symbol = raw.get("symbol")
    if not symbol:
        return None
    return Ticker24h(
        symbol=symbol,
        last_price=to_float(raw.get("lastPrice")),
        price_change_percent=to_float(raw.get("priceChangePercent")),
        high_price=to_float(raw.get("highPrice")),
        low_price=to_float(raw.get("lowPrice")),
        volume=to_float(raw.get("volume")),
        quote_volume=max(to_float(raw.get("quoteVolume")), 0.0),
    )


class BinanceMarketClient(BaseMarketDataClient):
    """Binance adapter using python-binance AsyncClient (public endpoints)."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client: AsyncClient | None = None

    # ── Connection ────────────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Create the AsyncClient session."""
        try:
            self._client = await AsyncClient.create(
                api_key=self._settings.BINANCE_API_KEY or None,
                api_secret=self._settings.BINANCE_API_SECRET or None,
                testnet=self._settings.BINANCE_TESTNET,
            )
        except (BinanceAPIException, BinanceRequestException, ClientError, asyncio.TimeoutError) as exc:
            raise _translate_error(exc) from exc
        logger.info(
            "Connected to Binance {}", "TESTNET" if self._settings.BINANCE_TESTNET else "LIVE"
        )

    async def disconnect(self) -> None:
        """Close the async client session."""
        if self._client:
            await self._client.close_connection()
            self._client = None
            logger.info("Disconnected from Binance")

    def _ensure_connected(self) -> AsyncClient:
        """Return the live client or raise."""
        if self._client is None:
            raise UpstreamUnavailableError(
                503, "BinanceMarketClient is not connected. Call connect() first."
            )
        return self._client

    async def _call(self, coro: Any) -> Any:
        try:
            return await asyncio.wait_for(
                coro, timeout=self._settings.BINANCE_REQUEST_TIMEOUT_SECONDS
            )
        except (BinanceAPIException, BinanceRequestException, ClientError, asyncio.TimeoutError) as exc:
            raise _translate_error(exc) from exc

    # ── Market Data ───────────────────────────────────────────────────────────

    async def get_klines(
        self, symbol: str, interval: str, limit: int = 250
    ) -> list[Candle]:
        """Fetch historical klines. Single attempt; callers drop the symbol on failure."""
        client = self._ensure_connected()
        logger.debug("get_klines({}, {}, limit={})", symbol, interval, limit)
        raw = await self._call(
            client.get_klines(symbol=symbol, interval=interval, limit=limit)
        )
        candles: list[Candle] = []
        for row in raw:
            candle = _parse_kline(row)
            if candle is None:
                logger.debug("Skipping unparseable kline for {}: {}", symbol, row)
                continue
            candles.append(candle)
        return candles

    @retry(max_attempts=3, delay=1.0, exceptions=(UpstreamUnavailableError,))
    async def get_tickers_24h(self) -> list[Ticker24h]:
        """Fetch the 24h ticker snapshot for all symbols."""
        client = self._ensure_connected()
        logger.debug("get_tickers_24h()")
        raw = await self._call(client.get_ticker())
        tickers = [t for t in (_parse_ticker(r) for r in raw) if t is not None]
        logger.debug("Ticker snapshot: {} symbols", len(tickers))
        return tickers
