"""Scan data models for signalscan: indicator readings and per-symbol results."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from signalscan.models.market import Candle


class Signal(str, Enum):
    """Direction an indicator points to."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class Recommendation(str, Enum):
    """Five-point discretisation of the aggregated score."""

    STRONG_SELL = "strong_sell"
    SELL = "sell"
    HOLD = "hold"
    BUY = "buy"
    STRONG_BUY = "strong_buy"

    @property
    def rank(self) -> int:
        """0 for strong_sell up to 4 for strong_buy."""
        return _RECOMMENDATION_RANK[self]


_RECOMMENDATION_RANK = {
    Recommendation.STRONG_SELL: 0,
    Recommendation.SELL: 1,
    Recommendation.HOLD: 2,
    Recommendation.BUY: 3,
    Recommendation.STRONG_BUY: 4,
}


class IndicatorResult(BaseModel):
    """Normalised reading of one indicator for one symbol."""

    model_config = ConfigDict(frozen=True)

    value: float | None
    signal: Signal = Signal.NEUTRAL
    score: int = 0
    tier: int = Field(ge=1, le=3)
    description: str = ""

    @model_validator(mode="after")
    def check_score_matches_signal(self) -> "IndicatorResult":
        """Score is +tier for bullish, -tier for bearish, 0 for neutral."""
        expected = {
            Signal.BULLISH: self.tier,
            Signal.BEARISH: -self.tier,
            Signal.NEUTRAL: 0,
        }[self.signal]
        if self.score != expected:
            raise ValueError(
                f"score {self.score} does not match {self.signal.value} at tier {self.tier}"
            )
        if self.value is None and self.signal is not Signal.NEUTRAL:
            raise ValueError("an indicator without a value must be neutral")
        return self

    @property
    def available(self) -> bool:
        """False when the series was too short to compute the indicator."""
        return self.value is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "signal": self.signal.value,
            "score": self.score,
            "tier": self.tier,
            "description": self.description,
        }


class ScanResult(BaseModel):
    """Scored snapshot of one symbol. Built once per scan, never mutated."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    price: float
    indicators: dict[str, IndicatorResult]
    total_score: int
    recommendation: Recommendation
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def check_total_score(self) -> "ScanResult":
        """The total must be exactly the sum of the indicator scores."""
        expected = sum(ind.score for ind in self.indicators.values())
        if self.total_score != expected:
            raise ValueError(
                f"total_score {self.total_score} != sum of indicator scores {expected}"
            )
        return self

    def to_dict(self) -> dict[str, Any]:
        """Render the payload shape the API layer serves."""
        return {
            "symbol": self.symbol,
            "price": self.price,
            "indicators": {name: ind.to_dict() for name, ind in self.indicators.items()},
            "totalScore": self.total_score,
            "recommendation": self.recommendation.value,
            "generatedAt": self.generated_at.isoformat(),
        }


class SkipReason(str, Enum):
    """Why a symbol was dropped from a scan."""

    FETCH_FAILED = "fetch_failed"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    TIMEOUT = "timeout"
    INSUFFICIENT_HISTORY = "insufficient_history"
    INVALID_DATA = "invalid_data"


class ScanOk(BaseModel):
    """A symbol that was scanned successfully.

    ``candles`` carries the scored series when the caller asked for it.
    """

    model_config = ConfigDict(frozen=True)

    result: ScanResult
    candles: tuple[Candle, ...] | None = None

    @property
    def symbol(self) -> str:
        return self.result.symbol


class ScanSkipped(BaseModel):
    """A symbol dropped from the result set, with the reason."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    reason: SkipReason
    detail: str = ""


ScanOutcome = Union[ScanOk, ScanSkipped]


class RsiReading(BaseModel):
    """One cell of the market RSI heatmap."""

    model_config = ConfigDict(frozen=True)

    symbol: str  # base asset, e.g. "BTC"
    rsi: float
    price: float
    change: float

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()
