"""Strategy registry and dispatch for signalscan.

Resolves a strategy by its key, merges per-call filter overrides onto the
strategy's settings-derived defaults and runs it.
"""

from __future__ import annotations

from typing import Any, Mapping

from loguru import logger
from pydantic import ValidationError

from signalscan.config.settings import Settings
from signalscan.data.market_data import MarketDataProvider
from signalscan.models.strategy import StrategyFilterConfig, StrategyResult
from signalscan.scanner.orchestrator import (
    InvalidScanRequestError,
    ScanOrchestrator,
    ScanRequestError,
)
from signalscan.strategies.base_strategy import BaseStrategy
from signalscan.strategies.gainers import GainersStrategy
from signalscan.strategies.high_potential import HighPotentialStrategy
from signalscan.strategies.momentum import MomentumStrategy
from signalscan.strategies.support_resistance import SupportResistanceStrategy
from signalscan.strategies.top_picks import TopPicksStrategy
from signalscan.strategies.trend_dip import TrendDipStrategy
from signalscan.strategies.volume_spike import VolumeSpikeStrategy

STRATEGIES: dict[str, type[BaseStrategy]] = {
    "momentum": MomentumStrategy,
    "support_resistance": SupportResistanceStrategy,
    "volume_spike": VolumeSpikeStrategy,
    "trend_dip": TrendDipStrategy,
    "gainers": GainersStrategy,
    "top_picks": TopPicksStrategy,
    "high_potential": HighPotentialStrategy,
}


class UnknownStrategyError(ScanRequestError):
    """Raised for a strategy name that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Unknown strategy '{name}'. Available: {', '.join(sorted(STRATEGIES))}"
        )
        self.name = name


def build_strategy(
    name: str,
    provider: MarketDataProvider,
    settings: Settings,
    orchestrator: ScanOrchestrator | None = None,
) -> BaseStrategy:
    """Instantiate the strategy registered under *name*."""
    key = (name or "").strip().lower()
    strategy_cls = STRATEGIES.get(key)
    if strategy_cls is None:
        raise UnknownStrategyError(name)
    if strategy_cls is HighPotentialStrategy:
        return HighPotentialStrategy(provider, settings, orchestrator)
    return strategy_cls(provider, settings)


def resolve_filters(
    strategy: BaseStrategy,
    filters: StrategyFilterConfig | Mapping[str, Any] | None,
) -> StrategyFilterConfig:
    """Merge *filters* onto the strategy defaults.

    A full ``StrategyFilterConfig`` is used as-is; a mapping only overrides
    the keys it names.
    """
    if isinstance(filters, StrategyFilterConfig):
        return filters
    defaults = strategy.default_filters()
    if not filters:
        return defaults
    unknown = set(filters) - set(StrategyFilterConfig.model_fields)
    if unknown:
        raise InvalidScanRequestError(f"Unknown filter keys: {sorted(unknown)}")
    try:
        return defaults.with_overrides(**filters)
    except ValidationError as exc:
        raise InvalidScanRequestError(f"Invalid filters: {exc}") from exc


async def run_strategy(
    name: str,
    provider: MarketDataProvider,
    settings: Settings,
    filters: StrategyFilterConfig | Mapping[str, Any] | None = None,
    orchestrator: ScanOrchestrator | None = None,
) -> list[StrategyResult]:
    """Run the named strategy and return its ranked rows.

    Raises:
        UnknownStrategyError: *name* is not registered (before any fetch).
        InvalidScanRequestError: *filters* do not validate (before any fetch).
        UpstreamUnavailableError: The ticker snapshot could not be fetched.
    """
    strategy = build_strategy(name, provider, settings, orchestrator)
    resolved = resolve_filters(strategy, filters)
    logger.debug("Running strategy {} with {}", strategy.name, resolved)
    return await strategy.run(resolved)
