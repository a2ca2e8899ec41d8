"""Signal normalisation and score aggregation for signalscan."""

from signalscan.signals.aggregator import build_scan_result, recommendation_for, total_score
from signalscan.signals.normalizer import INDICATOR_KEYS, INDICATOR_RULES, SignalNormalizer

__all__ = [
    "INDICATOR_KEYS",
    "INDICATOR_RULES",
    "SignalNormalizer",
    "build_scan_result",
    "recommendation_for",
    "total_score",
]
