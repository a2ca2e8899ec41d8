"""Indicator scanning package for signalscan.

Provides:
- ``ScanOrchestrator`` - bounded concurrent scan over many symbols
- ``InvalidScanRequestError`` - request rejected before any fetch
"""

from signalscan.scanner.orchestrator import (
    InvalidScanRequestError,
    ScanOrchestrator,
    ScanRequestError,
)

__all__ = ["InvalidScanRequestError", "ScanOrchestrator", "ScanRequestError"]
