"""Tests for helper utilities."""

from __future__ import annotations

import math

import pytest

from signalscan.utils.helpers import (
    base_asset,
    is_leveraged_symbol,
    is_stablecoin_pair,
    normalize_symbol,
    round_to,
    to_float,
)


class TestNormalizeSymbol:
    @pytest.mark.parametrize(
        "raw, expected",
        [("btc", "BTCUSDT"), ("ETHUSDT", "ETHUSDT"), (" solusdt ", "SOLUSDT"), ("usdt", "USDTUSDT")],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_symbol(raw) == expected

    def test_custom_quote(self) -> None:
        assert normalize_symbol("eth", "btc") == "ETHBTC"

    @pytest.mark.parametrize("raw", ["", "   ", "BTC/USDT", "btc-usdt"])
    def test_rejects_invalid(self, raw: str) -> None:
        with pytest.raises(ValueError):
            normalize_symbol(raw)


class TestLeveragedTokens:
    @pytest.mark.parametrize(
        "symbol",
        ["BTCUPUSDT", "BTCDOWNUSDT", "ETH3LUSDT", "ETH3SUSDT", "XRPBULLUSDT", "EOSBEARUSDT"],
    )
    def test_leveraged(self, symbol: str) -> None:
        assert is_leveraged_symbol(symbol)

    @pytest.mark.parametrize("symbol", ["BTCUSDT", "JUPUSDT", "SUPERUSDT", "SYRUPUSDT"])
    def test_not_leveraged(self, symbol: str) -> None:
        assert not is_leveraged_symbol(symbol)


def test_base_asset() -> None:
    assert base_asset("BTCUSDT") == "BTC"
    assert base_asset("USDT") == "USDT"


def test_stablecoin_pairs() -> None:
    assert is_stablecoin_pair("USDCUSDT")
    assert is_stablecoin_pair("FDUSDUSDT")
    assert not is_stablecoin_pair("BTCUSDT")


class TestNumbers:
    def test_to_float(self) -> None:
        assert to_float("1.5") == 1.5
        assert to_float(None) == 0.0
        assert to_float("abc", default=-1.0) == -1.0
        assert to_float("nan") == 0.0
        assert to_float(float("inf"), default=2.0) == 2.0

    def test_round_to(self) -> None:
        assert round_to(1.23456) == 1.23
        assert math.isnan(round_to(float("nan")))
