"""Momentum leaders: the biggest 24h movers in either direction."""

from __future__ import annotations

from signalscan.models.market import Ticker24h
from signalscan.models.scan import Signal
from signalscan.models.strategy import MomentumPick, StrategyFilterConfig
from signalscan.strategies.base_strategy import TickerStrategy
from signalscan.utils.helpers import round_to


class MomentumStrategy(TickerStrategy):
    """Keep pairs whose absolute 24h change exceeds ``min_change_pct``."""

    @property
    def name(self) -> str:
        return "momentum"

    def default_filters(self) -> StrategyFilterConfig:
        return StrategyFilterConfig(
            min_quote_volume=self.settings.MOMENTUM_MIN_QUOTE_VOLUME,
            min_change_pct=self.settings.MOMENTUM_MIN_CHANGE_PCT,
            exclude_leveraged=self.settings.EXCLUDE_LEVERAGED,
            limit=self.settings.MOMENTUM_LIMIT,
            quote_asset=self.settings.QUOTE_ASSET,
        )

    def select(
        self, universe: list[Ticker24h], filters: StrategyFilterConfig
    ) -> list[MomentumPick]:
        threshold = filters.min_change_pct if filters.min_change_pct is not None else 3.0
        picks = [
            MomentumPick(
                symbol=t.symbol,
                price=t.last_price,
                change_percent=t.price_change_percent,
                quote_volume=t.quote_volume,
                momentum=Signal.BULLISH if t.price_change_percent > 0 else Signal.BEARISH,
                strength=round_to(min(abs(t.price_change_percent) / 10, 1.0), 4),
            )
            for t in universe
            if abs(t.price_change_percent) > threshold
        ]
        picks.sort(key=lambda p: abs(p.change_percent), reverse=True)
        return picks
