"""Tests for the command line entry point."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from signalscan import main as cli
from signalscan.config.settings import Settings
from signalscan.core.engine import ScanEngine
from signalscan.exchange.base_client import UpstreamUnavailableError


@pytest.fixture
def patched_cli(mock_settings: Settings, mock_exchange_client: AsyncMock):
    """Run the CLI against the mocked exchange client."""
    engine_factory = MagicMock(
        side_effect=lambda settings: ScanEngine(settings, exchange=mock_exchange_client)
    )
    with (
        patch("signalscan.main.get_settings", return_value=mock_settings),
        patch("signalscan.main.setup_logger") as setup_logger,
        patch("signalscan.main.ScanEngine", engine_factory),
    ):
        yield engine_factory, setup_logger


def _output(capsys: pytest.CaptureFixture[str]):
    return json.loads(capsys.readouterr().out)


class TestParser:
    def test_scan_defaults(self) -> None:
        args = cli.build_parser().parse_args(["scan"])
        assert args.symbols == []
        assert args.sort_by == "score"
        assert args.interval is None

    def test_rejects_unknown_interval(self) -> None:
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["rsi", "--interval", "7m"])


class TestMain:
    @pytest.mark.asyncio
    async def test_scan(self, patched_cli, capsys, mock_exchange_client: AsyncMock) -> None:
        code = await cli.main(["scan", "BTC", "--interval", "4h"])
        payload = _output(capsys)
        assert code == cli.EXIT_OK
        assert [row["symbol"] for row in payload] == ["BTCUSDT"]
        assert {"indicators", "totalScore", "recommendation", "generatedAt"} <= set(payload[0])
        mock_exchange_client.connect.assert_awaited_once()
        mock_exchange_client.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_log_overrides(self, patched_cli, capsys) -> None:
        _, setup_logger = patched_cli
        await cli.main(["--log-level", "WARNING", "--log-file", "", "scan", "BTC"])
        setup_logger.assert_called_once_with("WARNING", None, json_logs=False)

    @pytest.mark.asyncio
    async def test_strategy(self, patched_cli, capsys) -> None:
        code = await cli.main(["strategy", "momentum", "--limit", "1"])
        payload = _output(capsys)
        assert code == cli.EXIT_OK
        assert payload == [
            {
                "symbol": "SOLUSDT",
                "price": 150.0,
                "change_percent": 6.0,
                "quote_volume": 150_000_000.0,
                "momentum": "bullish",
                "strength": 0.6,
            }
        ]

    @pytest.mark.asyncio
    async def test_rsi(self, patched_cli, capsys) -> None:
        code = await cli.main(["rsi", "--source", "gainers", "--limit", "1"])
        payload = _output(capsys)
        assert code == cli.EXIT_OK
        assert [row["symbol"] for row in payload] == ["SOL"]

    @pytest.mark.asyncio
    async def test_unknown_strategy_rejected_without_connecting(self, patched_cli, capsys) -> None:
        engine_factory, _ = patched_cli
        code = await cli.main(["strategy", "moonshot"])
        payload = _output(capsys)
        assert code == cli.EXIT_INVALID_REQUEST
        assert payload["error"] == "UnknownStrategyError"
        engine_factory.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "argv",
        [
            ["scan", "BTC", "--limit", "0"],
            ["scan", "BTC", "--limit", "30"],
            ["strategy", "momentum", "--interval", "4h"],
            ["scan", "BTC-USD"],
            ["strategy", "momentum", "--limit", "0"],
            ["strategy", "high_potential", "--interval", "15m"],
        ],
    )
    async def test_invalid_requests(self, patched_cli, capsys, argv) -> None:
        code = await cli.main(argv)
        payload = _output(capsys)
        assert code == cli.EXIT_INVALID_REQUEST
        assert payload["error"] == "InvalidScanRequestError"

    @pytest.mark.asyncio
    async def test_interval_rejected_before_connecting(self, patched_cli, capsys) -> None:
        engine_factory, _ = patched_cli
        code = await cli.main(["strategy", "gainers", "--interval", "1d"])
        assert code == cli.EXIT_INVALID_REQUEST
        assert "high_potential" in _output(capsys)["detail"]
        engine_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_upstream_outage(self, patched_cli, capsys, mock_exchange_client: AsyncMock) -> None:
        mock_exchange_client.get_tickers_24h.side_effect = UpstreamUnavailableError(503, "maintenance")
        code = await cli.main(["strategy", "top_picks"])
        payload = _output(capsys)
        assert code == cli.EXIT_UPSTREAM
        assert payload == {"error": "UpstreamUnavailableError", "status": 503, "detail": "maintenance"}

    @pytest.mark.asyncio
    async def test_invalid_settings(self, capsys) -> None:
        def broken_settings() -> Settings:
            return Settings(_env_file=None, LOG_LEVEL="LOUD")

        with patch("signalscan.main.get_settings", side_effect=broken_settings):
            code = await cli.main(["scan", "BTC"])
        payload = _output(capsys)
        assert code == cli.EXIT_INVALID_REQUEST
        assert payload["error"] == "InvalidSettings"
