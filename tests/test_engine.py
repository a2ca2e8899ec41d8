"""Tests for the scan engine."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from signalscan.config.settings import Settings
from signalscan.core.engine import ScanEngine
from signalscan.data.cache import TickerSnapshotCache
from signalscan.exchange.base_client import UpstreamUnavailableError
from signalscan.models.strategy import MomentumPick
from signalscan.strategies.strategy_selector import UnknownStrategyError


def _make_engine(
    settings: Settings, exchange: AsyncMock, cache: TickerSnapshotCache | None = None
) -> ScanEngine:
    return ScanEngine(settings, exchange=exchange, ticker_cache=cache)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_context_manager_connects_and_disconnects(
        self, mock_settings: Settings, mock_exchange_client: AsyncMock
    ) -> None:
        async with _make_engine(mock_settings, mock_exchange_client):
            mock_exchange_client.connect.assert_awaited_once()
        mock_exchange_client.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(
        self, mock_settings: Settings, mock_exchange_client: AsyncMock
    ) -> None:
        engine = _make_engine(mock_settings, mock_exchange_client)
        await engine.start()
        await engine.start()
        mock_exchange_client.connect.assert_awaited_once()
        await engine.stop()
        await engine.stop()
        mock_exchange_client.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stop_drops_ticker_snapshot(
        self, mock_settings: Settings, mock_exchange_client: AsyncMock
    ) -> None:
        cache = TickerSnapshotCache(ttl_seconds=300.0)
        cache.put("other", [])
        async with _make_engine(mock_settings, mock_exchange_client, cache) as engine:
            await engine.run_strategy("top_picks")
            assert len(cache) == 2
        assert len(cache) == 1
        assert cache.get("other") == ()

    @pytest.mark.asyncio
    async def test_connect_failure_propagates(
        self, mock_settings: Settings, mock_exchange_client: AsyncMock
    ) -> None:
        mock_exchange_client.connect.side_effect = UpstreamUnavailableError(503, "down")
        with pytest.raises(UpstreamUnavailableError):
            async with _make_engine(mock_settings, mock_exchange_client):
                pass
        mock_exchange_client.disconnect.assert_not_awaited()


class TestOperations:
    @pytest.mark.asyncio
    async def test_scan_explicit_symbols(
        self, mock_settings: Settings, mock_exchange_client: AsyncMock
    ) -> None:
        async with _make_engine(mock_settings, mock_exchange_client) as engine:
            results = await engine.scan(["btc"], interval="4h")
        assert [r.symbol for r in results] == ["BTCUSDT"]
        mock_exchange_client.get_klines.assert_awaited_once_with(
            symbol="BTCUSDT", interval="4h", limit=250
        )
        mock_exchange_client.get_tickers_24h.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_scan_falls_back_to_configured_symbols(
        self, mock_settings: Settings, mock_exchange_client: AsyncMock
    ) -> None:
        settings = mock_settings.model_copy(update={"SCAN_SYMBOLS": ["ETH", "SOLUSDT"]})
        async with _make_engine(settings, mock_exchange_client) as engine:
            results = await engine.scan(sort_by="symbol")
        assert [r.symbol for r in results] == ["ETHUSDT", "SOLUSDT"]
        mock_exchange_client.get_tickers_24h.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_scan_discovers_without_symbols(
        self, mock_settings: Settings, mock_exchange_client: AsyncMock
    ) -> None:
        async with _make_engine(mock_settings, mock_exchange_client) as engine:
            results = await engine.scan(sort_by="symbol")
        assert [r.symbol for r in results] == ["BTCUSDT", "ETHUSDT", "SOLUSDT"]

    @pytest.mark.asyncio
    async def test_run_strategy(
        self, mock_settings: Settings, mock_exchange_client: AsyncMock
    ) -> None:
        async with _make_engine(mock_settings, mock_exchange_client) as engine:
            rows = await engine.run_strategy("momentum", {"min_change_pct": 2.0})
        assert [r.symbol for r in rows] == ["SOLUSDT", "BTCUSDT"]
        assert all(isinstance(r, MomentumPick) for r in rows)

    @pytest.mark.asyncio
    async def test_unknown_strategy(
        self, mock_settings: Settings, mock_exchange_client: AsyncMock
    ) -> None:
        async with _make_engine(mock_settings, mock_exchange_client) as engine:
            with pytest.raises(UnknownStrategyError):
                await engine.run_strategy("nope")
        mock_exchange_client.get_tickers_24h.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rsi_snapshot(
        self, mock_settings: Settings, mock_exchange_client: AsyncMock
    ) -> None:
        async with _make_engine(mock_settings, mock_exchange_client) as engine:
            readings = await engine.rsi_snapshot("volume", "1h", 2)
        assert [r.symbol for r in readings] == ["BTC", "ETH"]
        assert all(r.rsi == 100.0 for r in readings)
