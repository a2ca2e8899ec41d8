"""Pydantic-based settings management for signalscan."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Any

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Kline intervals accepted by the upstream exchange
VALID_INTERVALS = (
    "1m", "3m", "5m", "15m", "30m",
    "1h", "2h", "4h", "6h", "8h", "12h",
    "1d", "3d", "1w", "1M",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file.

    signalscan ranks spot crypto pairs by a fixed battery of technical
    indicators and serves a handful of lighter-weight strategy views
    computed from the exchange's 24h ticker snapshot.
    """

    # ── Binance (public market data, keys optional) ───────────────────────────
    BINANCE_API_KEY: str = ""
    BINANCE_API_SECRET: str = ""
    BINANCE_TESTNET: bool = False
    BINANCE_REQUEST_TIMEOUT_SECONDS: float = 10.0

    # ── Universe ──────────────────────────────────────────────────────────────
    QUOTE_ASSET: str = "USDT"  # Pairs must end with this quote asset
    EXCLUDE_LEVERAGED: bool = True  # Drop UP/DOWN/BULL/BEAR/3L/3S tokens
    EXCLUDE_STABLECOINS: bool = True  # Drop USDC/USDT, FDUSD/USDT, ...

    # ── Scanner ───────────────────────────────────────────────────────────────
    SCAN_INTERVAL: str = "1h"  # Default kline interval
    SCAN_CANDLE_LIMIT: int = 250  # Candles per symbol (EMA200 needs 200)
    SCAN_MIN_CANDLES: int = 50  # Fewer candles than this = symbol skipped
    SCAN_TOP_N: int = 20  # Symbols picked in discovery mode
    SCAN_MIN_QUOTE_VOLUME: float = 1_000_000.0  # Discovery volume floor
    SCAN_MAX_CONCURRENCY: int = 10  # Simultaneous symbol fetches
    SCAN_TASK_TIMEOUT_SECONDS: float = 10.0  # Per-symbol kline fetch timeout (scoring is synchronous)
    SCAN_SYMBOLS: Annotated[list[str], NoDecode] = []  # Fixed list; empty = discover top-N
    SCAN_HIGH_POTENTIAL_MIN_SCORE: int = 6  # Min total score for high potential

    # ── Ticker snapshot cache ─────────────────────────────────────────────────
    TICKER_CACHE_TTL_SECONDS: float = 30.0

    # ── Momentum Strategy ─────────────────────────────────────────────────────
    MOMENTUM_MIN_QUOTE_VOLUME: float = 3_000_000.0
    MOMENTUM_MIN_CHANGE_PCT: float = 3.0
    MOMENTUM_LIMIT: int = 20

    # ── Support / Resistance Strategy ─────────────────────────────────────────
    SUPPORT_RESISTANCE_MIN_QUOTE_VOLUME: float = 2_000_000.0
    SUPPORT_RESISTANCE_LIMIT: int = 20

    # ── Volume Spike Strategy ─────────────────────────────────────────────────
    VOLUME_SPIKE_MIN_QUOTE_VOLUME: float = 2_000_000.0
    VOLUME_SPIKE_BASELINE_VOLUME: float = 4_000_000.0  # 2x the floor
    VOLUME_SPIKE_LIMIT: int = 20

    # ── Trend Dip Strategy ────────────────────────────────────────────────────
    TREND_DIP_MIN_QUOTE_VOLUME: float = 2_000_000.0
    TREND_DIP_MIN_CHANGE_PCT: float = -15.0
    TREND_DIP_MAX_CHANGE_PCT: float = -2.0
    TREND_DIP_LIMIT: int = 20

    # ── Gainers Strategy ──────────────────────────────────────────────────────
    GAINERS_MIN_QUOTE_VOLUME: float = 0.0  # Any pair that traded at all
    GAINERS_LIMIT: int = 120

    # ── Top Picks Strategy ────────────────────────────────────────────────────
    TOP_PICKS_MIN_QUOTE_VOLUME: float = 5_000_000.0
    TOP_PICKS_VOLUME_CAP: float = 50_000_000.0
    TOP_PICKS_LIMIT: int = 15

    # ── High Potential Strategy ───────────────────────────────────────────────
    HIGH_POTENTIAL_MIN_QUOTE_VOLUME: float = 2_000_000.0
    HIGH_POTENTIAL_INTERVAL: str = "1d"
    HIGH_POTENTIAL_UNIVERSE: int = 60  # Top-N by volume analysed
    HIGH_POTENTIAL_LIMIT: int = 10

    # ── Logging ───────────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/signalscan.log"
    LOG_JSON: bool = False  # Serialised JSON records on every sink

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # ── Validators ────────────────────────────────────────────────────────────

    @field_validator("SCAN_SYMBOLS", mode="before")
    @classmethod
    def parse_symbols(cls, v: Any) -> list[str]:
        """Accept JSON string, comma-separated string, or list for SCAN_SYMBOLS."""
        if isinstance(v, str):
            if not v.strip():
                return []
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [str(s).strip().upper() for s in parsed]
            except json.JSONDecodeError:
                return [s.strip().upper() for s in v.split(",") if s.strip()]
        if isinstance(v, list):
            return [str(s).strip().upper() for s in v]
        return v

    @field_validator("QUOTE_ASSET")
    @classmethod
    def validate_quote_asset(cls, v: str) -> str:
        """Quote asset is an upper-case alphanumeric ticker."""
        v = v.strip().upper()
        if not v.isalnum():
            raise ValueError(f"QUOTE_ASSET must be alphanumeric, got '{v}'")
        return v

    @field_validator("SCAN_INTERVAL", "HIGH_POTENTIAL_INTERVAL")
    @classmethod
    def validate_interval(cls, v: str) -> str:
        """Ensure the kline interval is one the exchange understands."""
        if v not in VALID_INTERVALS:
            raise ValueError(f"Interval must be one of {VALID_INTERVALS}, got '{v}'")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}, got '{v}'")
        return v.upper()

    @field_validator("SCAN_MAX_CONCURRENCY", "SCAN_TOP_N", "SCAN_MIN_CANDLES")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Counts must be at least 1."""
        if v < 1:
            raise ValueError(f"Value must be >= 1, got {v}")
        return v

    @model_validator(mode="after")
    def validate_candle_limit(self) -> "Settings":
        """The candle limit must cover the minimum history and fit the API cap."""
        if not 1 <= self.SCAN_CANDLE_LIMIT <= 1000:
            raise ValueError(
                f"SCAN_CANDLE_LIMIT must be within 1..1000, got {self.SCAN_CANDLE_LIMIT}"
            )
        if self.SCAN_MIN_CANDLES > self.SCAN_CANDLE_LIMIT:
            raise ValueError(
                "SCAN_MIN_CANDLES cannot exceed SCAN_CANDLE_LIMIT "
                f"({self.SCAN_MIN_CANDLES} > {self.SCAN_CANDLE_LIMIT})"
            )
        return self

    @model_validator(mode="after")
    def validate_timeout(self) -> "Settings":
        """Per-symbol timeout must be positive."""
        if self.SCAN_TASK_TIMEOUT_SECONDS <= 0:
            raise ValueError("SCAN_TASK_TIMEOUT_SECONDS must be positive")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance."""
    return Settings()
