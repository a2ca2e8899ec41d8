"""Tests for signal normalisation and score aggregation."""

from __future__ import annotations

import json
import random
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from signalscan.data.indicators import candles_to_frame
from signalscan.models.scan import IndicatorResult, Recommendation, ScanResult, Signal
from signalscan.signals.aggregator import build_scan_result, recommendation_for, total_score
from signalscan.signals.normalizer import INDICATOR_KEYS, INDICATOR_RULES, MAX_ABS_SCORE, SignalNormalizer

FIXED_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def normalizer() -> SignalNormalizer:
    return SignalNormalizer()


class TestSignalNormalizer:
    """Tests for the indicator rules."""

    def test_every_indicator_reported_in_order(self, normalizer, uptrend_candles) -> None:
        result = normalizer.normalize(candles_to_frame(uptrend_candles))
        assert tuple(result) == INDICATOR_KEYS

    def test_scores_follow_tiers(self, normalizer, uptrend_candles) -> None:
        result = normalizer.normalize(candles_to_frame(uptrend_candles))
        for rule in INDICATOR_RULES:
            reading = result[rule.key]
            assert reading.tier == rule.tier
            assert reading.score in (rule.tier, -rule.tier, 0)

    def test_ascending_closes_are_overbought(self, normalizer, candle_factory) -> None:
        candles = candle_factory([float(c) for c in range(10, 101)])
        rsi = normalizer.normalize(candles_to_frame(candles))["rsi"]
        assert rsi.value == pytest.approx(100.0)
        assert rsi.signal is Signal.BEARISH
        assert rsi.score == -2
        assert "overbought" in rsi.description

    def test_oversold_rsi_is_bullish(self, normalizer, candle_factory) -> None:
        candles = candle_factory([float(c) for c in range(100, 60, -1)])
        rsi = normalizer.normalize(candles_to_frame(candles))["rsi"]
        assert rsi.signal is Signal.BULLISH
        assert rsi.score == 2
        assert rsi.description.startswith("RSI is 0.0 - oversold")

    def test_flat_candles_stochastic_neutral(self, normalizer, candle_factory) -> None:
        candles = candle_factory([100.0] * 20, spread=0.0)
        stoch = normalizer.normalize(candles_to_frame(candles))["stochastic"]
        assert stoch.value == pytest.approx(50.0)
        assert stoch.signal is Signal.NEUTRAL
        assert stoch.score == 0

    def test_short_history_degrades_to_null(self, normalizer, candle_factory) -> None:
        candles = candle_factory([100.0 + i for i in range(20)])
        result = normalizer.normalize(candles_to_frame(candles))
        for key in ("macd", "ema_crossover", "ema_trend", "adx", "obv", "volume"):
            assert result[key].value is None
            assert result[key].signal is Signal.NEUTRAL
            assert result[key].score == 0
            assert "Not enough data" in result[key].description
        assert result["rsi"].value is not None
        assert result["bollinger"].value is not None

    def test_ema_trend_needs_200_candles(self, normalizer, candle_factory) -> None:
        candles = candle_factory([100.0 * 1.01 ** i for i in range(199)])
        result = normalizer.normalize(candles_to_frame(candles))
        assert result["ema_trend"].value is None
        assert result["ema_crossover"].signal is Signal.BULLISH

    def test_uptrend_readings(self, normalizer, uptrend_candles) -> None:
        result = normalizer.normalize(candles_to_frame(uptrend_candles))
        assert result["ema_crossover"].signal is Signal.BULLISH
        assert result["ema_trend"].signal is Signal.BULLISH
        assert result["macd"].signal in (Signal.BULLISH, Signal.BEARISH)
        assert result["adx"].signal is Signal.BULLISH
        assert result["obv"].signal is Signal.BULLISH
        assert result["vwap"].signal is Signal.BULLISH

    def test_volume_spike_is_confirmation(self, normalizer, candle_factory) -> None:
        volumes = [1_000.0] * 29 + [5_000.0]
        candles = candle_factory([100.0] * 30, volumes=volumes)
        volume = normalizer.normalize(candles_to_frame(candles))["volume"]
        assert volume.value == pytest.approx(5.0)
        assert volume.signal is Signal.BULLISH
        assert volume.score == 2

    def test_volume_dry_up_is_bearish(self, normalizer, candle_factory) -> None:
        volumes = [1_000.0] * 29 + [100.0]
        candles = candle_factory([100.0] * 30, volumes=volumes)
        volume = normalizer.normalize(candles_to_frame(candles))["volume"]
        assert volume.signal is Signal.BEARISH
        assert volume.score == -2

    def test_price_below_lower_band_is_bullish(self, normalizer, candle_factory) -> None:
        closes = [100.0 + (i % 2) for i in range(30)] + [80.0]
        bollinger = normalizer.normalize(candles_to_frame(candle_factory(closes)))["bollinger"]
        assert bollinger.signal is Signal.BULLISH
        assert bollinger.value < 0

    def test_zero_volume_vwap_is_null(self, normalizer, candle_factory) -> None:
        candles = candle_factory([100.0] * 5, volumes=[0.0] * 5)
        vwap = normalizer.normalize(candles_to_frame(candles))["vwap"]
        assert vwap.value is None
        assert vwap.score == 0

    def test_empty_frame(self, normalizer) -> None:
        result = normalizer.normalize(candles_to_frame([]))
        assert all(r.value is None and r.score == 0 for r in result.values())


class TestAggregator:
    """Tests for total score and recommendation mapping."""

    @pytest.mark.parametrize(
        "score, expected",
        [
            (18, Recommendation.STRONG_BUY),
            (10, Recommendation.STRONG_BUY),
            (9, Recommendation.BUY),
            (4, Recommendation.BUY),
            (3, Recommendation.HOLD),
            (0, Recommendation.HOLD),
            (-3, Recommendation.HOLD),
            (-4, Recommendation.SELL),
            (-9, Recommendation.SELL),
            (-10, Recommendation.STRONG_SELL),
            (-18, Recommendation.STRONG_SELL),
        ],
    )
    def test_recommendation_thresholds(self, score: int, expected: Recommendation) -> None:
        assert recommendation_for(score) is expected

    def test_recommendation_monotonic(self) -> None:
        scores = range(-MAX_ABS_SCORE - 5, MAX_ABS_SCORE + 6)
        ranks = [recommendation_for(s).rank for s in scores]
        assert ranks == sorted(ranks)

    def test_total_score_is_sum_for_random_combinations(self) -> None:
        rng = random.Random(7)
        for _ in range(200):
            readings = {}
            for rule in INDICATOR_RULES:
                signal = rng.choice(list(Signal))
                score = {Signal.BULLISH: rule.tier, Signal.BEARISH: -rule.tier, Signal.NEUTRAL: 0}[signal]
                readings[rule.key] = IndicatorResult(
                    value=rng.random() * 100, signal=signal, score=score, tier=rule.tier
                )
            result = build_scan_result("BTCUSDT", 1.0, readings, FIXED_TIME)
            assert result.total_score == sum(r.score for r in readings.values())
            assert result.total_score == total_score(readings)
            assert result.recommendation is recommendation_for(result.total_score)

    def test_scan_result_rejects_wrong_total(self) -> None:
        reading = IndicatorResult(value=25.0, signal=Signal.BULLISH, score=2, tier=2)
        with pytest.raises(ValidationError):
            ScanResult(
                symbol="BTCUSDT",
                price=1.0,
                indicators={"rsi": reading},
                total_score=5,
                recommendation=Recommendation.BUY,
            )

    def test_pipeline_is_idempotent(self, normalizer, uptrend_candles) -> None:
        first = build_scan_result(
            "BTCUSDT", uptrend_candles[-1].close,
            normalizer.normalize(candles_to_frame(uptrend_candles)), FIXED_TIME,
        )
        second = build_scan_result(
            "BTCUSDT", uptrend_candles[-1].close,
            SignalNormalizer().normalize(candles_to_frame(uptrend_candles)), FIXED_TIME,
        )
        assert first == second
        assert json.dumps(first.to_dict()) == json.dumps(second.to_dict())
