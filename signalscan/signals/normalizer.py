"""Indicator-to-signal normalisation for signalscan.

Turns the latest indicator readings of one candle frame into a fixed set of
directional signals, each carrying a weighted score (bullish ``+tier``,
bearish ``-tier``, neutral ``0``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np
import pandas as pd

from signalscan.data import indicators
from signalscan.models.scan import IndicatorResult, Signal


@dataclass(frozen=True)
class IndicatorRule:
    """Weight and history requirement of one indicator."""

    key: str
    label: str
    tier: int
    min_candles: int


# Ordered; this is also the key order of every ScanResult.indicators dict
INDICATOR_RULES: tuple[IndicatorRule, ...] = (
    IndicatorRule("rsi", "RSI", tier=2, min_candles=15),
    IndicatorRule("macd", "MACD", tier=1, min_candles=35),
    IndicatorRule("ema_crossover", "EMA crossover", tier=1, min_candles=50),
    IndicatorRule("ema_trend", "EMA200 trend", tier=1, min_candles=200),
    IndicatorRule("stochastic", "Stochastic", tier=2, min_candles=16),
    IndicatorRule("volume", "Volume", tier=2, min_candles=21),
    IndicatorRule("adx", "ADX", tier=1, min_candles=28),
    IndicatorRule("bollinger", "Bollinger", tier=2, min_candles=20),
    IndicatorRule("obv", "OBV", tier=3, min_candles=21),
    IndicatorRule("vwap", "VWAP", tier=3, min_candles=1),
)

INDICATOR_KEYS = tuple(rule.key for rule in INDICATOR_RULES)
MAX_ABS_SCORE = sum(rule.tier for rule in INDICATOR_RULES)

RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0
STOCH_OVERSOLD = 20.0
STOCH_OVERBOUGHT = 80.0
VOLUME_HIGH_RATIO = 1.5
VOLUME_LOW_RATIO = 0.5
ADX_TREND_THRESHOLD = 25.0
OBV_SMA_PERIOD = 20


def _result(rule: IndicatorRule, value: float | None, signal: Signal, description: str) -> IndicatorResult:
    score = {Signal.BULLISH: rule.tier, Signal.BEARISH: -rule.tier, Signal.NEUTRAL: 0}[signal]
    return IndicatorResult(
        value=None if value is None else round(float(value), 4),
        signal=signal,
        score=score,
        tier=rule.tier,
        description=description,
    )


def _unavailable(rule: IndicatorRule, description: str | None = None) -> IndicatorResult:
    return _result(
        rule,
        None,
        Signal.NEUTRAL,
        description or f"Not enough data for {rule.label} (needs {rule.min_candles} candles)",
    )


class SignalNormalizer:
    """Apply the fixed signal rules to an OHLCV frame.

    The frame needs ``high``, ``low``, ``close`` and ``volume`` columns,
    oldest row first (as built by ``indicators.candles_to_frame``).
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[IndicatorRule, pd.DataFrame], IndicatorResult]] = {
            "rsi": self._rsi,
            "macd": self._macd,
            "ema_crossover": self._ema_crossover,
            "ema_trend": self._ema_trend,
            "stochastic": self._stochastic,
            "volume": self._volume,
            "adx": self._adx,
            "bollinger": self._bollinger,
            "obv": self._obv,
            "vwap": self._vwap,
        }

    def normalize(self, frame: pd.DataFrame) -> dict[str, IndicatorResult]:
        """Return one IndicatorResult per indicator key, in rule order."""
        results: dict[str, IndicatorResult] = {}
        for rule in INDICATOR_RULES:
            if len(frame) < rule.min_candles:
                results[rule.key] = _unavailable(rule)
            else:
                results[rule.key] = self._handlers[rule.key](rule, frame)
        return results

    # ── Momentum ──────────────────────────────────────────────────────────

    @staticmethod
    def _rsi(rule: IndicatorRule, frame: pd.DataFrame) -> IndicatorResult:
        series = indicators.rsi_series(frame["close"], 14)
        if series.size == 0:
            return _unavailable(rule)
        value = float(series[-1])
        if value < RSI_OVERSOLD:
            return _result(rule, value, Signal.BULLISH, f"RSI is {value:.1f} - oversold")
        if value > RSI_OVERBOUGHT:
            return _result(rule, value, Signal.BEARISH, f"RSI is {value:.1f} - overbought")
        return _result(rule, value, Signal.NEUTRAL, f"RSI is {value:.1f} - neutral")

    @staticmethod
    def _macd(rule: IndicatorRule, frame: pd.DataFrame) -> IndicatorResult:
        result = indicators.macd(frame["close"])
        if result.macd.size == 0:
            return _unavailable(rule)
        line, signal_line = float(result.macd[-1]), float(result.signal[-1])
        if line > signal_line:
            return _result(
                rule, line, Signal.BULLISH,
                f"MACD {line:.4f} above signal {signal_line:.4f}",
            )
        return _result(
            rule, line, Signal.BEARISH,
            f"MACD {line:.4f} at or below signal {signal_line:.4f}",
        )

    @staticmethod
    def _stochastic(rule: IndicatorRule, frame: pd.DataFrame) -> IndicatorResult:
        result = indicators.stochastic(frame["high"], frame["low"], frame["close"])
        if result.d.size == 0:
            return _unavailable(rule)
        k, d = float(result.k[-1]), float(result.d[-1])
        if k > STOCH_OVERBOUGHT and d > STOCH_OVERBOUGHT:
            return _result(rule, k, Signal.BEARISH, f"Stochastic %K {k:.1f} / %D {d:.1f} - overbought")
        if k < STOCH_OVERSOLD and d < STOCH_OVERSOLD:
            return _result(rule, k, Signal.BULLISH, f"Stochastic %K {k:.1f} / %D {d:.1f} - oversold")
        return _result(rule, k, Signal.NEUTRAL, f"Stochastic %K {k:.1f} / %D {d:.1f} - neutral")

    # ── Trend ─────────────────────────────────────────────────────────────

    @staticmethod
    def _ema_crossover(rule: IndicatorRule, frame: pd.DataFrame) -> IndicatorResult:
        fast = indicators.ema(frame["close"], 20)
        slow = indicators.ema(frame["close"], 50)
        if slow.size == 0:
            return _unavailable(rule)
        fast_v, slow_v = float(fast[-1]), float(slow[-1])
        if fast_v > slow_v:
            return _result(rule, fast_v, Signal.BULLISH, f"EMA20 {fast_v:.4f} above EMA50 {slow_v:.4f}")
        return _result(rule, fast_v, Signal.BEARISH, f"EMA20 {fast_v:.4f} at or below EMA50 {slow_v:.4f}")

    @staticmethod
    def _ema_trend(rule: IndicatorRule, frame: pd.DataFrame) -> IndicatorResult:
        long_ema = indicators.ema(frame["close"], 200)
        if long_ema.size == 0:
            return _unavailable(rule)
        price, level = float(frame["close"].iloc[-1]), float(long_ema[-1])
        if price > level:
            return _result(rule, level, Signal.BULLISH, f"Price above EMA200 ({level:.4f}) - uptrend")
        return _result(rule, level, Signal.BEARISH, f"Price at or below EMA200 ({level:.4f}) - downtrend")

    @staticmethod
    def _adx(rule: IndicatorRule, frame: pd.DataFrame) -> IndicatorResult:
        result = indicators.adx(frame["high"], frame["low"], frame["close"])
        if result.adx.size == 0:
            return _unavailable(rule)
        value = float(result.adx[-1])
        plus_di, minus_di = float(result.plus_di[-1]), float(result.minus_di[-1])
        if value <= ADX_TREND_THRESHOLD:
            return _result(rule, value, Signal.NEUTRAL, f"ADX {value:.1f} - weak trend")
        if plus_di > minus_di:
            return _result(rule, value, Signal.BULLISH, f"ADX {value:.1f} - strong uptrend (+DI {plus_di:.1f})")
        return _result(rule, value, Signal.BEARISH, f"ADX {value:.1f} - strong downtrend (-DI {minus_di:.1f})")

    # ── Volume ────────────────────────────────────────────────────────────

    @staticmethod
    def _volume(rule: IndicatorRule, frame: pd.DataFrame) -> IndicatorResult:
        ratio = indicators.volume_ratio(frame["volume"], 20)
        if ratio is None:
            return _unavailable(rule, "No volume baseline")
        if ratio > VOLUME_HIGH_RATIO:
            return _result(rule, ratio, Signal.BULLISH, f"Volume {ratio:.2f}x average - confirmation")
        if ratio < VOLUME_LOW_RATIO:
            return _result(rule, ratio, Signal.BEARISH, f"Volume {ratio:.2f}x average - weak conviction")
        return _result(rule, ratio, Signal.NEUTRAL, f"Volume {ratio:.2f}x average - normal")

    @staticmethod
    def _obv(rule: IndicatorRule, frame: pd.DataFrame) -> IndicatorResult:
        series = indicators.obv(frame["close"], frame["volume"])
        baseline = indicators.sma(series, OBV_SMA_PERIOD)
        if baseline.size == 0:
            return _unavailable(rule)
        value, avg = float(series[-1]), float(baseline[-1])
        if np.isclose(value, avg):
            return _result(rule, value, Signal.NEUTRAL, "OBV flat against its 20-bar average")
        if value > avg:
            return _result(rule, value, Signal.BULLISH, "OBV above its 20-bar average - accumulation")
        return _result(rule, value, Signal.BEARISH, "OBV below its 20-bar average - distribution")

    @staticmethod
    def _vwap(rule: IndicatorRule, frame: pd.DataFrame) -> IndicatorResult:
        series = indicators.vwap(frame["high"], frame["low"], frame["close"], frame["volume"])
        if series.size == 0:
            return _unavailable(rule, "No traded volume for VWAP")
        price, level = float(frame["close"].iloc[-1]), float(series[-1])
        if np.isclose(price, level):
            return _result(rule, level, Signal.NEUTRAL, f"Price at VWAP {level:.4f}")
        if price > level:
            return _result(rule, level, Signal.BULLISH, f"Price above VWAP {level:.4f}")
        return _result(rule, level, Signal.BEARISH, f"Price below VWAP {level:.4f}")

    # ── Volatility ────────────────────────────────────────────────────────

    @staticmethod
    def _bollinger(rule: IndicatorRule, frame: pd.DataFrame) -> IndicatorResult:
        bands = indicators.bollinger_bands(frame["close"], 20, 2.0)
        if bands.middle.size == 0:
            return _unavailable(rule)
        price = float(frame["close"].iloc[-1])
        upper, lower = float(bands.upper[-1]), float(bands.lower[-1])
        width = upper - lower
        percent_b = (price - lower) / width if width > 0 else 0.5
        if price < lower:
            return _result(rule, percent_b, Signal.BULLISH, f"Price below lower band (%B {percent_b:.2f})")
        if price > upper:
            return _result(rule, percent_b, Signal.BEARISH, f"Price above upper band (%B {percent_b:.2f})")
        return _result(rule, percent_b, Signal.NEUTRAL, f"Price inside the bands (%B {percent_b:.2f})")
