"""Snapshot validation, derived metrics, guard rails and fallback signals."""

from aisignal.signals.base import (
    Indicators,
    MarketSnapshot,
    Ohlc,
    Signal,
)
from aisignal.signals.derived import DerivedMetrics, compute_derived, get_session_type
from aisignal.signals.fallback import generate_fallback_signal
from aisignal.signals.filter import SignalFilter
from aisignal.signals.validator import parse_snapshot, validate_snapshot

__all__ = [
    "DerivedMetrics",
    "Indicators",
    "MarketSnapshot",
    "Ohlc",
    "Signal",
    "SignalFilter",
    "compute_derived",
    "generate_fallback_signal",
    "get_session_type",
    "parse_snapshot",
    "validate_snapshot",
]
