"""Abstract market data client interface for signalscan."""

from __future__ import annotations

from abc import ABC, abstractmethod

from signalscan.models.market import Candle, Ticker24h


class MarketDataError(Exception):
    """Raised when the upstream market data source rejects or fails a call.

    Attributes:
        status: HTTP-like status code (400 bad symbol, 429 rate limit, ...).
        detail: Human readable message from the upstream.
    """

    def __init__(self, status: int, detail: str) -> None:
        super().__init__(f"[{status}] {detail}")
        self.status = status
        self.detail = detail

    def to_dict(self) -> dict[str, object]:
        return {"error": type(self).__name__, "status": self.status, "detail": self.detail}


class UpstreamUnavailableError(MarketDataError):
    """The data source cannot be reached or answered with a server error."""


class BaseMarketDataClient(ABC):
    """Abstract base class that every market data adapter must implement."""

    @abstractmethod
    async def connect(self) -> None:
        """Establish the session to the data source."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Gracefully close the session."""
        ...

    @abstractmethod
    async def get_klines(
        self, symbol: str, interval: str, limit: int = 250
    ) -> list[Candle]:
        """Return up to *limit* candles for *symbol*, oldest first.

        Raises:
            MarketDataError: The upstream rejected the request.
            UpstreamUnavailableError: The upstream could not be reached.
        """
        ...

    @abstractmethod
    async def get_tickers_24h(self) -> list[Ticker24h]:
        """Return the 24h statistics snapshot for every listed symbol."""
        ...
