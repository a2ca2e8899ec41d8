"""Top gainers: every live pair ranked by 24h change."""

from __future__ import annotations

from signalscan.models.market import Ticker24h
from signalscan.models.strategy import GainerPick, StrategyFilterConfig
from signalscan.strategies.base_strategy import TickerStrategy


class GainersStrategy(TickerStrategy):
    """Pairs that traded in the last 24h, best performers first.

    The shared universe filter already drops leveraged tokens and rows
    without a positive price or range; pairs with no quote volume are
    dropped here.
    """

    @property
    def name(self) -> str:
        return "gainers"

    def default_filters(self) -> StrategyFilterConfig:
        return StrategyFilterConfig(
            min_quote_volume=self.settings.GAINERS_MIN_QUOTE_VOLUME,
            exclude_leveraged=self.settings.EXCLUDE_LEVERAGED,
            limit=self.settings.GAINERS_LIMIT,
            quote_asset=self.settings.QUOTE_ASSET,
        )

    def select(
        self, universe: list[Ticker24h], filters: StrategyFilterConfig
    ) -> list[GainerPick]:
        picks = [
            GainerPick(
                symbol=t.symbol,
                price=t.last_price,
                change_percent=t.price_change_percent,
                quote_volume=t.quote_volume,
                high_24h=t.high_price,
                low_24h=t.low_price,
            )
            for t in universe
            if t.quote_volume > 0
        ]
        picks.sort(key=lambda p: p.change_percent, reverse=True)
        return picks
