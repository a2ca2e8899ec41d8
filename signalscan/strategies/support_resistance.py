"""Support bounces and resistance breakouts from the 24h range."""

from __future__ import annotations

from signalscan.models.market import Ticker24h
from signalscan.models.strategy import RangePick, StrategyFilterConfig
from signalscan.strategies.base_strategy import TickerStrategy
from signalscan.utils.helpers import round_to

NEAR_SUPPORT = 0.2
NEAR_RESISTANCE = 0.8
BOUNCE_CANDIDATE = 0.15
BREAKOUT_ZONE = 0.85
BREAKOUT_CANDIDATE = 0.9


class SupportResistanceStrategy(TickerStrategy):
    """Rank pairs by where the last price sits in the 24h low-high range.

    ``bounce`` mode keeps pairs hugging the low (position < 0.2), lowest
    first; ``breakout`` mode keeps pairs pressing the high (> 0.85),
    highest first.
    """

    @property
    def name(self) -> str:
        return "support_resistance"

    def default_filters(self) -> StrategyFilterConfig:
        return StrategyFilterConfig(
            min_quote_volume=self.settings.SUPPORT_RESISTANCE_MIN_QUOTE_VOLUME,
            exclude_leveraged=self.settings.EXCLUDE_LEVERAGED,
            limit=self.settings.SUPPORT_RESISTANCE_LIMIT,
            quote_asset=self.settings.QUOTE_ASSET,
            mode="bounce",
        )

    def select(
        self, universe: list[Ticker24h], filters: StrategyFilterConfig
    ) -> list[RangePick]:
        breakout = filters.mode == "breakout"
        picks: list[RangePick] = []
        for t in universe:
            position = t.position_in_range
            if breakout and not position > BREAKOUT_ZONE:
                continue
            if not breakout and not position < NEAR_SUPPORT:
                continue

            if breakout:
                label = "breakout_candidate" if position > BREAKOUT_CANDIDATE else "neutral"
            else:
                label = "bounce_candidate" if position < BOUNCE_CANDIDATE else "neutral"
            picks.append(
                RangePick(
                    symbol=t.symbol,
                    price=t.last_price,
                    change_percent=t.price_change_percent,
                    quote_volume=t.quote_volume,
                    high_24h=t.high_price,
                    low_24h=t.low_price,
                    position_in_range=round_to(position, 4),
                    near_support=position < NEAR_SUPPORT,
                    near_resistance=position > NEAR_RESISTANCE,
                    signal=label,
                )
            )
        picks.sort(key=lambda p: p.position_in_range, reverse=breakout)
        return picks
