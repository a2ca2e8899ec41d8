"""High-potential shortlist: liquid pairs whose full indicator scan agrees.

Unlike the ticker strategies this one runs the indicator scan over the most
traded pairs and keeps those meeting most of the bullish criteria, then
buckets each survivor by the kind of setup it shows.
"""

from __future__ import annotations

from typing import Sequence

from loguru import logger

from signalscan.config.settings import Settings
from signalscan.data import indicators
from signalscan.data.market_data import MarketDataProvider
from signalscan.models.market import Candle, Ticker24h
from signalscan.models.scan import ScanOk, ScanResult, Signal
from signalscan.models.strategy import HighPotentialPick, StrategyFilterConfig
from signalscan.scanner.orchestrator import InvalidScanRequestError, ScanOrchestrator
from signalscan.strategies.base_strategy import BaseStrategy

HIGH_POTENTIAL_INTERVALS = ("1h", "4h", "1d")
MIN_CRITERIA = 3
RSI_HEALTHY = (40.0, 70.0)
ADX_TRENDING = 25.0

BREAKOUT_DISTANCE_PCT = 2.5
BREAKOUT_LOOKBACK = 20
BREAKOUT_VOLUME_RATIO = 1.5
RECOVERY_RSI = (30.0, 45.0)
MOMENTUM_RSI = (50.0, 65.0)
MOMENTUM_MIN_ADX = 18.0


def _value(result: ScanResult, key: str) -> float | None:
    reading = result.indicators.get(key)
    return reading.value if reading else None


def criteria_met(result: ScanResult) -> int:
    """Count the bullish criteria: EMA cross, healthy RSI, MACD, trending ADX."""
    count = 0
    ema_cross = result.indicators.get("ema_crossover")
    if ema_cross and ema_cross.signal is Signal.BULLISH:
        count += 1
    rsi_value = _value(result, "rsi")
    if rsi_value is not None and RSI_HEALTHY[0] <= rsi_value <= RSI_HEALTHY[1]:
        count += 1
    macd_reading = result.indicators.get("macd")
    if macd_reading and macd_reading.signal is Signal.BULLISH:
        count += 1
    adx_value = _value(result, "adx")
    if adx_value is not None and adx_value > ADX_TRENDING:
        count += 1
    return count


def classify_setup(result: ScanResult, candles: Sequence[Candle]) -> str:
    """Bucket a candidate as breakout_zone, oversold_recovery, strong_momentum or trending."""
    closes = [c.close for c in candles]
    if not closes:
        return "trending"
    price = closes[-1]

    recent_high = max(closes[-BREAKOUT_LOOKBACK:])
    volume_ratio = _value(result, "volume")
    if (
        recent_high > 0
        and (recent_high - price) / recent_high * 100 <= BREAKOUT_DISTANCE_PCT
        and volume_ratio is not None
        and volume_ratio >= BREAKOUT_VOLUME_RATIO
    ):
        return "breakout_zone"

    rsi_line = indicators.rsi_series(closes, 14)
    rising = rsi_line.size >= 2 and rsi_line[-1] > rsi_line[-2]
    rsi_value = float(rsi_line[-1]) if rsi_line.size else None
    if rsi_value is not None and rising and RECOVERY_RSI[0] <= rsi_value <= RECOVERY_RSI[1]:
        return "oversold_recovery"

    histogram = indicators.macd(closes).histogram
    adx_value = _value(result, "adx")
    if (
        rsi_value is not None
        and rising
        and MOMENTUM_RSI[0] <= rsi_value <= MOMENTUM_RSI[1]
        and histogram.size
        and histogram[-1] > 0
        and adx_value is not None
        and adx_value >= MOMENTUM_MIN_ADX
    ):
        return "strong_momentum"
    return "trending"


class HighPotentialStrategy(BaseStrategy):
    """Scan the top pairs by volume and shortlist the strongest setups."""

    def __init__(
        self,
        provider: MarketDataProvider,
        settings: Settings,
        orchestrator: ScanOrchestrator | None = None,
    ) -> None:
        super().__init__(provider, settings)
        self.orchestrator = orchestrator or ScanOrchestrator(provider, settings)

    @property
    def name(self) -> str:
        return "high_potential"

    def default_filters(self) -> StrategyFilterConfig:
        return StrategyFilterConfig(
            min_quote_volume=self.settings.HIGH_POTENTIAL_MIN_QUOTE_VOLUME,
            exclude_leveraged=self.settings.EXCLUDE_LEVERAGED,
            limit=self.settings.HIGH_POTENTIAL_LIMIT,
            quote_asset=self.settings.QUOTE_ASSET,
            interval=self.settings.HIGH_POTENTIAL_INTERVAL,
        )

    async def run(self, filters: StrategyFilterConfig | None = None) -> list[HighPotentialPick]:
        filters = filters or self.default_filters()
        if filters.interval not in HIGH_POTENTIAL_INTERVALS:
            raise InvalidScanRequestError(
                f"interval must be one of {HIGH_POTENTIAL_INTERVALS}, got '{filters.interval}'"
            )
        return await super().run(filters)

    async def evaluate(
        self, universe: list[Ticker24h], filters: StrategyFilterConfig
    ) -> list[HighPotentialPick]:
        ranked = sorted(universe, key=lambda t: t.quote_volume, reverse=True)
        candidates = {t.symbol: t for t in ranked[: self.settings.HIGH_POTENTIAL_UNIVERSE]}
        if not candidates:
            return []

        outcomes = await self.orchestrator.scan_outcomes(
            list(candidates),
            interval=filters.interval,
            filters=filters,
            sort_by="none",
            keep_candles=True,
        )
        min_score = self.settings.SCAN_HIGH_POTENTIAL_MIN_SCORE
        picks: list[HighPotentialPick] = []
        for outcome in outcomes:
            if not isinstance(outcome, ScanOk):
                continue
            result = outcome.result
            met = criteria_met(result)
            if met < MIN_CRITERIA or result.total_score <= min_score:
                continue
            ticker = candidates[result.symbol]
            picks.append(
                HighPotentialPick(
                    symbol=result.symbol,
                    price=result.price,
                    change_percent=ticker.price_change_percent,
                    quote_volume=ticker.quote_volume,
                    total_score=result.total_score,
                    criteria_met=met,
                    category=classify_setup(result, outcome.candles or ()),
                    rsi=_value(result, "rsi"),
                    adx=_value(result, "adx"),
                    volume_ratio=_value(result, "volume"),
                )
            )
        picks.sort(key=lambda p: p.total_score, reverse=True)
        logger.debug("High potential | {} of {} scanned passed", len(picks), len(outcomes))
        return picks
