"""Tests for the settings module."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from signalscan.config.settings import Settings, get_settings


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettingsDefaults:
    def test_defaults(self) -> None:
        settings = _settings()
        assert settings.QUOTE_ASSET == "USDT"
        assert settings.SCAN_MAX_CONCURRENCY == 10
        assert settings.SCAN_TASK_TIMEOUT_SECONDS == 10.0
        assert settings.SCAN_MIN_CANDLES == 50
        assert settings.TICKER_CACHE_TTL_SECONDS == 30.0
        assert settings.MOMENTUM_MIN_QUOTE_VOLUME == 3_000_000.0
        assert settings.TOP_PICKS_LIMIT == 15

    def test_get_settings_is_cached(self) -> None:
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestSymbolParsing:
    def test_comma_separated(self) -> None:
        assert _settings(SCAN_SYMBOLS="btcusdt, ethusdt").SCAN_SYMBOLS == ["BTCUSDT", "ETHUSDT"]

    def test_json_list(self) -> None:
        assert _settings(SCAN_SYMBOLS='["sol", "bnb"]').SCAN_SYMBOLS == ["SOL", "BNB"]

    def test_empty_string(self) -> None:
        assert _settings(SCAN_SYMBOLS="").SCAN_SYMBOLS == []

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCAN_SYMBOLS", "BTCUSDT,ETHUSDT")
        assert Settings(_env_file=None).SCAN_SYMBOLS == ["BTCUSDT", "ETHUSDT"]


class TestValidation:
    def test_invalid_interval(self) -> None:
        with pytest.raises(ValidationError):
            _settings(SCAN_INTERVAL="7m")

    def test_log_level_upper_cased(self) -> None:
        assert _settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValidationError):
            _settings(LOG_LEVEL="LOUD")

    def test_quote_asset(self) -> None:
        assert _settings(QUOTE_ASSET="usdc").QUOTE_ASSET == "USDC"
        with pytest.raises(ValidationError):
            _settings(QUOTE_ASSET="US-D")

    def test_min_candles_cannot_exceed_limit(self) -> None:
        with pytest.raises(ValidationError):
            _settings(SCAN_CANDLE_LIMIT=40, SCAN_MIN_CANDLES=50)

    def test_candle_limit_range(self) -> None:
        with pytest.raises(ValidationError):
            _settings(SCAN_CANDLE_LIMIT=1001)

    def test_concurrency_positive(self) -> None:
        with pytest.raises(ValidationError):
            _settings(SCAN_MAX_CONCURRENCY=0)

    def test_timeout_positive(self) -> None:
        with pytest.raises(ValidationError):
            _settings(SCAN_TASK_TIMEOUT_SECONDS=0)
