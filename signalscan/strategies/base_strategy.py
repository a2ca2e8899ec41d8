"""Abstract base strategy for signalscan."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from loguru import logger

from signalscan.config.settings import Settings
from signalscan.data.market_data import MarketDataProvider, filter_universe
from signalscan.models.market import Ticker24h
from signalscan.models.strategy import StrategyFilterConfig, StrategyResult


class BaseStrategy(ABC):
    """Every strategy view must inherit from this class.

    The base class owns the shared universe filter (quote asset, leveraged
    tokens, volume floor); subclasses only decide which of the surviving
    tickers to keep and how to rank them.
    """

    def __init__(self, provider: MarketDataProvider, settings: Settings) -> None:
        self.provider = provider
        self.settings = settings

    # ── Abstract interface ────────────────────────────────────────────────────

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy key used by the selector."""
        ...

    @abstractmethod
    def default_filters(self) -> StrategyFilterConfig:
        """Filter defaults built from settings."""
        ...

    @abstractmethod
    async def evaluate(
        self, universe: list[Ticker24h], filters: StrategyFilterConfig
    ) -> list[StrategyResult]:
        """Rank the filtered universe. The result is truncated by :meth:`run`."""
        ...

    # ── Shared helpers ────────────────────────────────────────────────────────

    def universe(
        self, tickers: Sequence[Ticker24h], filters: StrategyFilterConfig
    ) -> list[Ticker24h]:
        """Apply the quote-asset, leveraged-token and volume-floor filters."""
        return filter_universe(
            tickers,
            quote_asset=filters.quote_asset,
            min_quote_volume=filters.min_quote_volume,
            exclude_leveraged=filters.exclude_leveraged,
            exclude_stablecoins=self.settings.EXCLUDE_STABLECOINS,
        )

    async def run(self, filters: StrategyFilterConfig | None = None) -> list[StrategyResult]:
        """Fetch the ticker snapshot and return the ranked rows.

        Raises:
            UpstreamUnavailableError: The ticker snapshot could not be fetched.
        """
        filters = filters or self.default_filters()
        tickers = await self.provider.get_tickers()
        universe = self.universe(tickers, filters)
        rows = (await self.evaluate(universe, filters))[: filters.limit]
        logger.info(
            "Strategy {} | universe={} | {} rows", self.name, len(universe), len(rows)
        )
        return rows


class TickerStrategy(BaseStrategy):
    """A strategy computed from the 24h ticker snapshot alone."""

    @abstractmethod
    def select(
        self, universe: list[Ticker24h], filters: StrategyFilterConfig
    ) -> list[StrategyResult]:
        """Pure transform: keep, annotate and sort the tickers."""
        ...

    async def evaluate(
        self, universe: list[Ticker24h], filters: StrategyFilterConfig
    ) -> list[StrategyResult]:
        return self.select(universe, filters)
