"""Score aggregation for signalscan."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping

from signalscan.models.scan import IndicatorResult, Recommendation, ScanResult

# (minimum total score, recommendation), highest first
RECOMMENDATION_THRESHOLDS: tuple[tuple[int, Recommendation], ...] = (
    (10, Recommendation.STRONG_BUY),
    (4, Recommendation.BUY),
    (-3, Recommendation.HOLD),
    (-9, Recommendation.SELL),
)


def total_score(indicators: Mapping[str, IndicatorResult]) -> int:
    """Sum of the indicator scores."""
    return sum(result.score for result in indicators.values())


def recommendation_for(score: int) -> Recommendation:
    """Map a total score onto the five-point scale.

    ``>= 10`` strong_buy, ``4..9`` buy, ``-3..3`` hold, ``-9..-4`` sell,
    ``<= -10`` strong_sell.
    """
    for minimum, recommendation in RECOMMENDATION_THRESHOLDS:
        if score >= minimum:
            return recommendation
    return Recommendation.STRONG_SELL


def build_scan_result(
    symbol: str,
    price: float,
    indicators: Mapping[str, IndicatorResult],
    generated_at: datetime | None = None,
) -> ScanResult:
    """Assemble the ScanResult for one symbol from its indicator readings."""
    score = total_score(indicators)
    return ScanResult(
        symbol=symbol,
        price=price,
        indicators=dict(indicators),
        total_score=score,
        recommendation=recommendation_for(score),
        generated_at=generated_at or datetime.now(timezone.utc),
    )
