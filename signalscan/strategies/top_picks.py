"""Top picks: liquid pairs scored on volume and momentum."""

from __future__ import annotations

from signalscan.models.market import Ticker24h
from signalscan.models.scan import Recommendation
from signalscan.models.strategy import StrategyFilterConfig, TopPick
from signalscan.strategies.base_strategy import TickerStrategy

VOLUME_WEIGHT = 0.4
MOMENTUM_WEIGHT = 0.6


def pick_score(quote_volume: float, change_pct: float, volume_cap: float) -> int:
    """Blend of liquidity and absolute move on a 0..100 scale."""
    volume_score = min(quote_volume / volume_cap, 1.0) if volume_cap > 0 else 1.0
    momentum_score = min(abs(change_pct) / 10, 1.0)
    return round((volume_score * VOLUME_WEIGHT + momentum_score * MOMENTUM_WEIGHT) * 100)


def pick_recommendation(change_pct: float) -> Recommendation:
    if change_pct > 3:
        return Recommendation.BUY
    if change_pct < -3:
        return Recommendation.SELL
    return Recommendation.HOLD


class TopPicksStrategy(TickerStrategy):
    @property
    def name(self) -> str:
        return "top_picks"

    def default_filters(self) -> StrategyFilterConfig:
        return StrategyFilterConfig(
            min_quote_volume=self.settings.TOP_PICKS_MIN_QUOTE_VOLUME,
            volume_cap=self.settings.TOP_PICKS_VOLUME_CAP,
            exclude_leveraged=self.settings.EXCLUDE_LEVERAGED,
            limit=self.settings.TOP_PICKS_LIMIT,
            quote_asset=self.settings.QUOTE_ASSET,
        )

    def select(
        self, universe: list[Ticker24h], filters: StrategyFilterConfig
    ) -> list[TopPick]:
        picks = [
            TopPick(
                symbol=t.symbol,
                price=t.last_price,
                change_percent=t.price_change_percent,
                quote_volume=t.quote_volume,
                score=pick_score(t.quote_volume, t.price_change_percent, filters.volume_cap),
                recommendation=pick_recommendation(t.price_change_percent),
            )
            for t in universe
        ]
        picks.sort(key=lambda p: p.score, reverse=True)
        return picks
