"""Trend dips: pairs down moderately on the day, a buy-the-dip watchlist."""

from __future__ import annotations

from signalscan.models.market import Ticker24h
from signalscan.models.strategy import StrategyFilterConfig, TrendDip
from signalscan.strategies.base_strategy import TickerStrategy
from signalscan.utils.helpers import round_to


def dip_level(dip_from_high: float) -> str:
    if dip_from_high > 10:
        return "deep"
    if dip_from_high > 5:
        return "moderate"
    return "shallow"


class TrendDipStrategy(TickerStrategy):
    """Keep pairs with ``min_change_pct < change < max_change_pct``, deepest first."""

    @property
    def name(self) -> str:
        return "trend_dip"

    def default_filters(self) -> StrategyFilterConfig:
        return StrategyFilterConfig(
            min_quote_volume=self.settings.TREND_DIP_MIN_QUOTE_VOLUME,
            min_change_pct=self.settings.TREND_DIP_MIN_CHANGE_PCT,
            max_change_pct=self.settings.TREND_DIP_MAX_CHANGE_PCT,
            exclude_leveraged=self.settings.EXCLUDE_LEVERAGED,
            limit=self.settings.TREND_DIP_LIMIT,
            quote_asset=self.settings.QUOTE_ASSET,
        )

    def select(
        self, universe: list[Ticker24h], filters: StrategyFilterConfig
    ) -> list[TrendDip]:
        lower = filters.min_change_pct if filters.min_change_pct is not None else -15.0
        upper = filters.max_change_pct if filters.max_change_pct is not None else -2.0
        dips: list[TrendDip] = []
        for t in universe:
            change = t.price_change_percent
            if not lower < change < upper:
                continue
            dip = (t.high_price - t.last_price) / t.high_price * 100 if t.high_price > 0 else 0.0
            dips.append(
                TrendDip(
                    symbol=t.symbol,
                    price=t.last_price,
                    change_percent=change,
                    quote_volume=t.quote_volume,
                    high_24h=t.high_price,
                    dip_from_high=round_to(dip, 2),
                    dip_level=dip_level(dip),
                    buy_score=min(abs(change) * 10, 100.0),
                )
            )
        dips.sort(key=lambda d: d.change_percent)
        return dips
