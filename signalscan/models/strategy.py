"""Strategy configuration and result rows for signalscan."""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from signalscan.models.scan import Recommendation, Signal


class StrategyFilterConfig(BaseModel):
    """Knobs for one strategy run. Built from settings, overridable per call."""

    model_config = ConfigDict(frozen=True)

    min_quote_volume: float = Field(default=1_000_000.0, ge=0.0)
    min_change_pct: float | None = None
    max_change_pct: float | None = None
    exclude_leveraged: bool = True
    limit: int = Field(default=20, ge=1, le=1000)
    quote_asset: str = "USDT"

    # Strategy-specific
    mode: Literal["bounce", "breakout"] = "bounce"
    baseline_volume: float | None = None  # volume_spike; defaults to 2x the floor
    volume_cap: float = 50_000_000.0  # top_picks
    interval: str = "1d"  # high_potential

    @field_validator("quote_asset")
    @classmethod
    def upper_quote_asset(cls, v: str) -> str:
        return v.strip().upper()

    def with_overrides(self, **overrides: Any) -> "StrategyFilterConfig":
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        return self.model_validate({**self.model_dump(), **changes})


class _StrategyRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    price: float
    change_percent: float
    quote_volume: float

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class MomentumPick(_StrategyRow):
    momentum: Signal
    strength: float


class RangePick(_StrategyRow):
    high_24h: float
    low_24h: float
    position_in_range: float
    near_support: bool
    near_resistance: bool
    signal: Literal["bounce_candidate", "breakout_candidate", "neutral"]


class VolumeSpike(_StrategyRow):
    volume_ratio: float
    spike_level: Literal["extreme", "high", "moderate", "normal"]
    is_spike: bool


class TrendDip(_StrategyRow):
    high_24h: float
    dip_from_high: float
    dip_level: Literal["deep", "moderate", "shallow"]
    buy_score: float


class GainerPick(_StrategyRow):
    high_24h: float
    low_24h: float


class TopPick(_StrategyRow):
    score: int
    recommendation: Recommendation


class HighPotentialPick(_StrategyRow):
    total_score: int
    criteria_met: int
    category: Literal["breakout_zone", "oversold_recovery", "strong_momentum", "trending"]
    rsi: float | None = None
    adx: float | None = None
    volume_ratio: float | None = None


StrategyResult = Union[
    MomentumPick, RangePick, VolumeSpike, TrendDip, GainerPick, TopPick, HighPotentialPick
]
