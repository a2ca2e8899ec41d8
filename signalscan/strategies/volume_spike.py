"""Volume spikes: pairs trading far above a fixed quote-volume baseline."""

from __future__ import annotations

from signalscan.models.market import Ticker24h
from signalscan.models.strategy import StrategyFilterConfig, VolumeSpike
from signalscan.strategies.base_strategy import TickerStrategy
from signalscan.utils.helpers import round_to

MIN_RATIO = 1.5
SPIKE_RATIO = 2.0


def spike_level(ratio: float) -> str:
    if ratio > 5:
        return "extreme"
    if ratio > 3:
        return "high"
    if ratio > 2:
        return "moderate"
    return "normal"


class VolumeSpikeStrategy(TickerStrategy):
    """Keep pairs whose quote volume is more than 1.5x the baseline."""

    @property
    def name(self) -> str:
        return "volume_spike"

    def default_filters(self) -> StrategyFilterConfig:
        return StrategyFilterConfig(
            min_quote_volume=self.settings.VOLUME_SPIKE_MIN_QUOTE_VOLUME,
            baseline_volume=self.settings.VOLUME_SPIKE_BASELINE_VOLUME,
            exclude_leveraged=self.settings.EXCLUDE_LEVERAGED,
            limit=self.settings.VOLUME_SPIKE_LIMIT,
            quote_asset=self.settings.QUOTE_ASSET,
        )

    def select(
        self, universe: list[Ticker24h], filters: StrategyFilterConfig
    ) -> list[VolumeSpike]:
        baseline = filters.baseline_volume or filters.min_quote_volume * 2
        if baseline <= 0:
            return []
        spikes: list[VolumeSpike] = []
        for t in universe:
            ratio = t.quote_volume / baseline
            if ratio <= MIN_RATIO:
                continue
            spikes.append(
                VolumeSpike(
                    symbol=t.symbol,
                    price=t.last_price,
                    change_percent=t.price_change_percent,
                    quote_volume=t.quote_volume,
                    volume_ratio=round_to(ratio, 2),
                    spike_level=spike_level(ratio),
                    is_spike=ratio > SPIKE_RATIO,
                )
            )
        spikes.sort(key=lambda s: s.volume_ratio, reverse=True)
        return spikes
