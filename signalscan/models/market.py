"""Market data models for signalscan: candles and 24h ticker rows."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from signalscan.utils.helpers import is_leveraged_symbol


class Candle(BaseModel):
    """One OHLCV kline. Immutable once fetched."""

    model_config = ConfigDict(frozen=True)

    open_time: int  # epoch milliseconds
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: int | None = None
    quote_volume: float | None = None


class Ticker24h(BaseModel):
    """Rolling 24h statistics for one symbol from the ticker snapshot."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    last_price: float
    price_change_percent: float = 0.0
    high_price: float = 0.0
    low_price: float = 0.0
    volume: float = 0.0
    quote_volume: float = Field(default=0.0, ge=0.0)

    @property
    def position_in_range(self) -> float:
        """Where the last price sits in the 24h low-high range (0..1).

        Returns 0.5 when the range is empty.
        """
        span = self.high_price - self.low_price
        if span <= 0:
            return 0.5
        return (self.last_price - self.low_price) / span

    def is_leveraged(self, quote_asset: str = "USDT") -> bool:
        """True for leveraged-token pairs (BTCUPUSDT, ETH3LUSDT ...)."""
        return is_leveraged_symbol(self.symbol, quote_asset)
