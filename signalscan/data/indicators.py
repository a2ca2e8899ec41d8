"""Technical indicators for signalscan.

Every function takes plain float sequences (lists, numpy arrays, pandas
Series) and returns numpy arrays. Short input never raises: the result is
simply empty, and callers check ``.size`` before reading the last value.
"""

from __future__ import annotations

from typing import NamedTuple, Sequence

import numpy as np
import pandas as pd

from signalscan.models.market import Candle

ArrayLike = Sequence[float] | np.ndarray | pd.Series

_EMPTY = np.empty(0, dtype=float)


class MACDResult(NamedTuple):
    macd: np.ndarray
    signal: np.ndarray
    histogram: np.ndarray


class StochasticResult(NamedTuple):
    k: np.ndarray
    d: np.ndarray


class ADXResult(NamedTuple):
    adx: np.ndarray
    plus_di: np.ndarray
    minus_di: np.ndarray


class BollingerResult(NamedTuple):
    upper: np.ndarray
    middle: np.ndarray
    lower: np.ndarray


def _as_array(values: ArrayLike) -> np.ndarray:
    return np.asarray(values, dtype=float).ravel()


# ── Moving averages ───────────────────────────────────────────────────────────


def sma(values: ArrayLike, period: int) -> np.ndarray:
    """Calculate Simple Moving Average with a running window sum.

    Args:
        values: Price (or any) series, oldest first.
        period: Window length.

    Returns:
        Array of length ``len(values) - period + 1``; empty when too short.
    """
    arr = _as_array(values)
    if period < 1 or arr.size < period:
        return _EMPTY.copy()
    csum = np.cumsum(np.insert(arr, 0, 0.0))
    return (csum[period:] - csum[:-period]) / period


def ema(values: ArrayLike, period: int) -> np.ndarray:
    """Calculate Exponential Moving Average seeded with the first SMA.

    Args:
        values: Price series, oldest first.
        period: Look-back period, smoothing ``k = 2 / (period + 1)``.

    Returns:
        Array of length ``len(values) - period + 1``; empty when too short.
    """
    arr = _as_array(values)
    if period < 1 or arr.size < period:
        return _EMPTY.copy()
    k = 2.0 / (period + 1)
    out = np.empty(arr.size - period + 1, dtype=float)
    out[0] = arr[:period].mean()
    for i, value in enumerate(arr[period:], start=1):
        out[i] = value * k + out[i - 1] * (1.0 - k)
    return out


# ── Oscillators ───────────────────────────────────────────────────────────────


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi_series(values: ArrayLike, period: int = 14) -> np.ndarray:
    """Calculate the Wilder-smoothed RSI series.

    Args:
        values: Closing prices, oldest first.
        period: Look-back period.

    Returns:
        Array of length ``len(values) - period`` with values in [0, 100];
        empty when fewer than ``period + 1`` values are given.
    """
    arr = _as_array(values)
    if period < 1 or arr.size < period + 1:
        return _EMPTY.copy()
    deltas = np.diff(arr)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = gains[:period].mean()
    avg_loss = losses[:period].mean()
    out = np.empty(deltas.size - period + 1, dtype=float)
    out[0] = _rsi_from_averages(avg_gain, avg_loss)
    for i in range(period, deltas.size):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        out[i - period + 1] = _rsi_from_averages(avg_gain, avg_loss)
    return out


def rsi(values: ArrayLike, period: int = 14, fallback: float = 50.0) -> float:
    """Latest Wilder RSI value, or ``fallback`` when there is too little data."""
    series = rsi_series(values, period)
    if series.size == 0:
        return fallback
    return float(series[-1])


def macd(
    values: ArrayLike,
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MACDResult:
    """Calculate MACD (Moving Average Convergence Divergence).

    The MACD line is the fast EMA minus the slow EMA, aligned on the slow
    EMA's tail. All three arrays are trimmed to the signal line's length.

    Args:
        values: Closing prices, oldest first.
        fast: Fast EMA period.
        slow: Slow EMA period.
        signal: Signal line EMA period.

    Returns:
        MACDResult of equal-length arrays; empty when fewer than
        ``slow + signal`` values are given.
    """
    arr = _as_array(values)
    if arr.size < slow + signal:
        return MACDResult(_EMPTY.copy(), _EMPTY.copy(), _EMPTY.copy())
    ema_fast = ema(arr, fast)
    ema_slow = ema(arr, slow)
    macd_line = ema_fast[-ema_slow.size:] - ema_slow
    signal_line = ema(macd_line, signal)
    macd_line = macd_line[-signal_line.size:]
    return MACDResult(macd_line, signal_line, macd_line - signal_line)


def stochastic(
    high: ArrayLike,
    low: ArrayLike,
    close: ArrayLike,
    period: int = 14,
    smooth_d: int = 3,
) -> StochasticResult:
    """Calculate the Stochastic oscillator.

    %K is 50 for windows whose high equals their low. %D is the SMA of %K.

    Args:
        high: Bar highs.
        low: Bar lows.
        close: Bar closes.
        period: %K look-back window.
        smooth_d: %D smoothing window.

    Returns:
        StochasticResult(k, d); ``d`` is shorter than ``k`` by ``smooth_d - 1``.
    """
    h, l, c = _as_array(high), _as_array(low), _as_array(close)
    n = min(h.size, l.size, c.size)
    if period < 1 or n < period:
        return StochasticResult(_EMPTY.copy(), _EMPTY.copy())
    h, l, c = h[-n:], l[-n:], c[-n:]

    highest = np.lib.stride_tricks.sliding_window_view(h, period).max(axis=1)
    lowest = np.lib.stride_tricks.sliding_window_view(l, period).min(axis=1)
    span = highest - lowest
    last_close = c[period - 1:]
    k = np.full(span.size, 50.0)
    np.divide((last_close - lowest) * 100.0, span, out=k, where=span != 0)
    return StochasticResult(k, sma(k, smooth_d))


# ── Trend strength ────────────────────────────────────────────────────────────


def _true_range(h: np.ndarray, l: np.ndarray, c: np.ndarray) -> np.ndarray:
    prev_close = c[:-1]
    return np.maximum.reduce([
        h[1:] - l[1:],
        np.abs(h[1:] - prev_close),
        np.abs(l[1:] - prev_close),
    ])


def _wilder_sum(values: np.ndarray, period: int) -> np.ndarray:
    out = np.empty(values.size - period + 1, dtype=float)
    out[0] = values[:period].sum()
    for i in range(period, values.size):
        j = i - period + 1
        out[j] = out[j - 1] - out[j - 1] / period + values[i]
    return out


def adx(
    high: ArrayLike,
    low: ArrayLike,
    close: ArrayLike,
    period: int = 14,
) -> ADXResult:
    """Calculate the Average Directional Index with +DI / -DI.

    Args:
        high: Bar highs.
        low: Bar lows.
        close: Bar closes.
        period: Wilder smoothing period.

    Returns:
        ADXResult of equal-length arrays; empty when fewer than
        ``2 * period`` bars are given.
    """
    h, l, c = _as_array(high), _as_array(low), _as_array(close)
    n = min(h.size, l.size, c.size)
    if period < 1 or n < 2 * period:
        return ADXResult(_EMPTY.copy(), _EMPTY.copy(), _EMPTY.copy())
    h, l, c = h[-n:], l[-n:], c[-n:]

    up_move = h[1:] - h[:-1]
    down_move = l[:-1] - l[1:]
    plus_dm = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)
    minus_dm = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)

    tr_smooth = _wilder_sum(_true_range(h, l, c), period)
    plus_smooth = _wilder_sum(plus_dm, period)
    minus_smooth = _wilder_sum(minus_dm, period)

    plus_di = np.zeros_like(tr_smooth)
    minus_di = np.zeros_like(tr_smooth)
    np.divide(plus_smooth * 100.0, tr_smooth, out=plus_di, where=tr_smooth != 0)
    np.divide(minus_smooth * 100.0, tr_smooth, out=minus_di, where=tr_smooth != 0)

    di_sum = plus_di + minus_di
    dx = np.zeros_like(di_sum)
    np.divide(np.abs(plus_di - minus_di) * 100.0, di_sum, out=dx, where=di_sum != 0)

    adx_line = np.empty(dx.size - period + 1, dtype=float)
    adx_line[0] = dx[:period].mean()
    for i in range(period, dx.size):
        j = i - period + 1
        adx_line[j] = (adx_line[j - 1] * (period - 1) + dx[i]) / period
    return ADXResult(adx_line, plus_di[-adx_line.size:], minus_di[-adx_line.size:])


def atr(
    high: ArrayLike,
    low: ArrayLike,
    close: ArrayLike,
    period: int = 14,
) -> np.ndarray:
    """Calculate Average True Range (Wilder).

    Returns:
        Array of length ``n - period``; empty when fewer than ``period + 1``
        bars are given.
    """
    h, l, c = _as_array(high), _as_array(low), _as_array(close)
    n = min(h.size, l.size, c.size)
    if period < 1 or n < period + 1:
        return _EMPTY.copy()
    tr = _true_range(h[-n:], l[-n:], c[-n:])
    out = np.empty(tr.size - period + 1, dtype=float)
    out[0] = tr[:period].mean()
    for i in range(period, tr.size):
        j = i - period + 1
        out[j] = (out[j - 1] * (period - 1) + tr[i]) / period
    return out


# ── Volume ────────────────────────────────────────────────────────────────────


def obv(close: ArrayLike, volume: ArrayLike) -> np.ndarray:
    """Calculate On-Balance Volume, starting at 0 on the first bar."""
    c, v = _as_array(close), _as_array(volume)
    n = min(c.size, v.size)
    if n == 0:
        return _EMPTY.copy()
    c, v = c[-n:], v[-n:]
    direction = np.sign(np.diff(c))
    return np.concatenate(([0.0], np.cumsum(direction * v[1:])))


def vwap(
    high: ArrayLike,
    low: ArrayLike,
    close: ArrayLike,
    volume: ArrayLike,
) -> np.ndarray:
    """Cumulative typical-price VWAP.

    Bars before the first traded volume carry their own typical price.

    Returns:
        Array of length ``n``; empty when the total volume is zero.
    """
    h, l, c, v = _as_array(high), _as_array(low), _as_array(close), _as_array(volume)
    n = min(h.size, l.size, c.size, v.size)
    if n == 0:
        return _EMPTY.copy()
    h, l, c, v = h[-n:], l[-n:], c[-n:], v[-n:]
    if v.sum() <= 0:
        return _EMPTY.copy()
    typical = (h + l + c) / 3.0
    cum_volume = np.cumsum(v)
    out = typical.copy()
    np.divide(np.cumsum(typical * v), cum_volume, out=out, where=cum_volume > 0)
    return out


def volume_ratio(volume: ArrayLike, lookback: int = 20) -> float | None:
    """Last bar's volume relative to the mean of the preceding ``lookback`` bars.

    Returns ``None`` with fewer than ``lookback + 1`` bars or a zero baseline.
    """
    v = _as_array(volume)
    if lookback < 1 or v.size < lookback + 1:
        return None
    baseline = v[-lookback - 1:-1].mean()
    if baseline <= 0:
        return None
    return float(v[-1] / baseline)


# ── Volatility ────────────────────────────────────────────────────────────────


def bollinger_bands(
    values: ArrayLike,
    period: int = 20,
    std_dev: float = 2.0,
) -> BollingerResult:
    """Calculate Bollinger Bands on the population standard deviation.

    Args:
        values: Closing prices, oldest first.
        period: SMA look-back period.
        std_dev: Number of standard deviations for upper/lower bands.

    Returns:
        BollingerResult(upper, middle, lower); empty when too short.
    """
    arr = _as_array(values)
    if period < 1 or arr.size < period:
        return BollingerResult(_EMPTY.copy(), _EMPTY.copy(), _EMPTY.copy())
    middle = sma(arr, period)
    rolling_std = np.lib.stride_tricks.sliding_window_view(arr, period).std(axis=1)
    return BollingerResult(
        middle + rolling_std * std_dev,
        middle,
        middle - rolling_std * std_dev,
    )


# ── Frames ────────────────────────────────────────────────────────────────────


def candles_to_frame(candles: Sequence[Candle]) -> pd.DataFrame:
    """Build an OHLCV DataFrame indexed by candle open time (UTC)."""
    columns = ["open", "high", "low", "close", "volume"]
    if not candles:
        return pd.DataFrame(columns=columns, dtype=float)
    frame = pd.DataFrame(
        [[c.open, c.high, c.low, c.close, c.volume] for c in candles],
        columns=columns,
        index=pd.to_datetime([c.open_time for c in candles], unit="ms", utc=True),
        dtype=float,
    )
    frame.index.name = "open_time"
    return frame
