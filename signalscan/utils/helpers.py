"""Utility / helper functions for signalscan."""

from __future__ import annotations

import math
import re
from typing import Any

# Leveraged-token markers, checked against the base asset
LEVERAGED_SUFFIX_PATTERNS = (
    re.compile(r"UP$"),
    re.compile(r"DOWN$"),
    re.compile(r"[1-5]L$"),
    re.compile(r"[1-5]S$"),
    re.compile(r"BULL$"),
    re.compile(r"BEAR$"),
)

STABLE_BASE_ASSETS = frozenset({
    "USDT", "USDC", "BUSD", "DAI", "TUSD", "FDUSD", "USDP", "EUR", "GBP",
})

# Bases that end in a leveraged marker but are ordinary coins
_LEVERAGED_FALSE_POSITIVES = frozenset({"JUP", "SUP", "SYRUP", "PUP"})


def normalize_symbol(symbol: str, quote_asset: str = "USDT") -> str:
    """Upper-case a symbol and append the quote asset when it is missing.

    Examples::

        normalize_symbol("btc")        -> "BTCUSDT"
        normalize_symbol(" ethusdt ")  -> "ETHUSDT"

    Raises:
        ValueError: If the symbol is empty or contains non-alphanumerics.
    """
    if symbol is None:
        raise ValueError("Symbol must not be empty")
    cleaned = str(symbol).strip().upper()
    if not cleaned:
        raise ValueError("Symbol must not be empty")
    if not cleaned.isalnum():
        raise ValueError(f"Symbol must be alphanumeric, got '{symbol}'")
    quote = quote_asset.upper()
    if cleaned == quote or not cleaned.endswith(quote):
        cleaned = f"{cleaned}{quote}"
    return cleaned


def base_asset(symbol: str, quote_asset: str = "USDT") -> str:
    """Strip the quote asset suffix: ``"BTCUSDT" -> "BTC"``."""
    quote = quote_asset.upper()
    upper = symbol.upper()
    if upper.endswith(quote) and len(upper) > len(quote):
        return upper[: -len(quote)]
    return upper


def is_leveraged_symbol(symbol: str, quote_asset: str = "USDT") -> bool:
    """True if the pair is a leveraged token (BTCUPUSDT, ETH3LUSDT, ...)."""
    base = base_asset(symbol, quote_asset)
    if base in _LEVERAGED_FALSE_POSITIVES:
        return False
    return any(pattern.search(base) for pattern in LEVERAGED_SUFFIX_PATTERNS)


def is_stablecoin_pair(symbol: str, quote_asset: str = "USDT") -> bool:
    """True if the base asset is itself a stablecoin or fiat (USDCUSDT)."""
    return base_asset(symbol, quote_asset) in STABLE_BASE_ASSETS


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce an exchange string/number to a finite float.

    Args:
        value: Raw value (``"1.23"``, ``1.23``, ``None`` ...).
        default: Returned when the value is missing or not finite.
    """
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if math.isfinite(result) else default


def round_to(value: float, ndigits: int = 2) -> float:
    """Round for payloads, leaving non-finite values untouched."""
    if not math.isfinite(value):
        return value
    return round(value, ndigits)
