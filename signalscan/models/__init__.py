"""Data models for signalscan."""

from signalscan.models.market import Candle, Ticker24h
from signalscan.models.scan import (
    IndicatorResult,
    Recommendation,
    RsiReading,
    ScanOk,
    ScanOutcome,
    ScanResult,
    ScanSkipped,
    Signal,
    SkipReason,
)
from signalscan.models.strategy import (
    GainerPick,
    HighPotentialPick,
    MomentumPick,
    RangePick,
    StrategyFilterConfig,
    StrategyResult,
    TopPick,
    TrendDip,
    VolumeSpike,
)

__all__ = [
    "Candle",
    "GainerPick",
    "HighPotentialPick",
    "IndicatorResult",
    "MomentumPick",
    "RangePick",
    "Recommendation",
    "RsiReading",
    "ScanOk",
    "ScanOutcome",
    "ScanResult",
    "ScanSkipped",
    "Signal",
    "SkipReason",
    "StrategyFilterConfig",
    "StrategyResult",
    "Ticker24h",
    "TopPick",
    "TrendDip",
    "VolumeSpike",
]
