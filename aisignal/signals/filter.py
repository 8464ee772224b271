"""Deterministic guard rails applied on top of the model's signal.

The filter only downgrades: a directional signal that breaks a rule becomes
hold with low confidence, and the rejection reason is appended to the
original explanation so the output stays auditable.
"""

from dataclasses import replace
from typing import Callable, Iterable, Optional

from aisignal.signals.base import MAX_EXPLANATION_LENGTH, MarketSnapshot, Signal
from aisignal.signals.derived import (
    ASIA_SESSION_ADX,
    ASIA_SESSION_VOLUME,
    CONFIRMING_VOLUME_RATIO,
    RSI_OVERBOUGHT,
    RSI_OVERSOLD,
    STRONG_ADX,
    DerivedMetrics,
)
from aisignal.utils.logger import get_logger

logger = get_logger(__name__)

# A rule returns a rejection reason, or None when the signal passes
FilterRule = Callable[[Signal, MarketSnapshot, DerivedMetrics], Optional[str]]

HTF_TREND_LABELS = ("strong_bullish", "bullish", "neutral", "bearish", "strong_bearish")


def _normalize_trend(label: Optional[str]) -> Optional[str]:
    if label is None:
        return None
    return label.strip().lower().replace(" ", "_").replace("-", "_")


def htf_trend_rule(
    signal: Signal, snapshot: MarketSnapshot, derived: DerivedMetrics
) -> Optional[str]:
    """Reject signals against a strong higher-timeframe trend."""
    htf = _normalize_trend(snapshot.htf_trend)
    if signal.signal == "buy" and htf == "strong_bearish":
        return "buy contradicts strong bearish higher-timeframe trend"
    if signal.signal == "sell" and htf == "strong_bullish":
        return "sell contradicts strong bullish higher-timeframe trend"
    return None


def momentum_volume_rule(
    signal: Signal, snapshot: MarketSnapshot, derived: DerivedMetrics
) -> Optional[str]:
    """Reject RSI extremes that lack volume confirmation."""
    rsi = snapshot.indicators.rsi
    if snapshot.volume_ratio >= CONFIRMING_VOLUME_RATIO:
        return None
    if signal.signal == "buy" and rsi > RSI_OVERBOUGHT:
        return (
            f"RSI {rsi:.2f} overbought without volume confirmation "
            f"(volume ratio {snapshot.volume_ratio:.2f} < {CONFIRMING_VOLUME_RATIO})"
        )
    if signal.signal == "sell" and rsi < RSI_OVERSOLD:
        return (
            f"RSI {rsi:.2f} oversold without volume confirmation "
            f"(volume ratio {snapshot.volume_ratio:.2f} < {CONFIRMING_VOLUME_RATIO})"
        )
    return None


def weak_trend_rule(
    signal: Signal, snapshot: MarketSnapshot, derived: DerivedMetrics
) -> Optional[str]:
    """Reject directional signals when trend strength is too low."""
    if derived.session_type == "ASIA":
        if snapshot.adx <= ASIA_SESSION_ADX or snapshot.volume_ratio <= ASIA_SESSION_VOLUME:
            return (
                f"Asia session requires ADX > {ASIA_SESSION_ADX} and "
                f"volume ratio > {ASIA_SESSION_VOLUME}"
            )
        return None
    if snapshot.adx < STRONG_ADX:
        return f"weak trend (ADX {snapshot.adx:.2f} < {STRONG_ADX})"
    return None


def invalid_pattern_rule(
    signal: Signal, snapshot: MarketSnapshot, derived: DerivedMetrics
) -> Optional[str]:
    """Reject directional signals backed by an unrecognized pattern."""
    if not derived.is_valid_pattern:
        return "unrecognized pattern"
    return None


RULES: dict[str, FilterRule] = {
    "htf_trend": htf_trend_rule,
    "momentum_volume": momentum_volume_rule,
    "weak_trend": weak_trend_rule,
    "invalid_pattern": invalid_pattern_rule,
}


def append_reason(explanation: str, reason: str) -> str:
    """Append a rejection note, keeping the note intact within the length cap."""
    note = f"Rejected: {reason}"
    if not explanation:
        return note[:MAX_EXPLANATION_LENGTH]
    room = MAX_EXPLANATION_LENGTH - len(note) - len(" | ")
    if room <= 0:
        return note[:MAX_EXPLANATION_LENGTH]
    return f"{explanation[:room]} | {note}"


class SignalFilter:
    """Apply a named set of guard rail rules to a signal.

    Rules run in the configured order; the first rejection wins.
    """

    def __init__(self, rules: Iterable[str] = ()) -> None:
        """Initialize the filter.

        Args:
            rules: Rule names from RULES

        Raises:
            ValueError: On an unknown rule name
        """
        self.rule_names = list(rules)
        unknown = [name for name in self.rule_names if name not in RULES]
        if unknown:
            raise ValueError(f"Unknown filter rules: {', '.join(unknown)}")
        self._rules = [RULES[name] for name in self.rule_names]

    def apply(
        self, signal: Signal, snapshot: MarketSnapshot, derived: DerivedMetrics
    ) -> Signal:
        """Downgrade the signal to hold if any rule rejects it.

        Args:
            signal: Interpreted signal
            snapshot: Request snapshot
            derived: Derived metrics for the snapshot

        Returns:
            The original signal, or a low-confidence hold with the reason appended
        """
        if not signal.is_directional:
            return signal

        for name, rule in zip(self.rule_names, self._rules):
            reason = rule(signal, snapshot, derived)
            if reason is None:
                continue

            logger.info(
                "Signal rejected by guard rail",
                rule=name,
                proposed=signal.signal,
                symbol=snapshot.symbol,
                reason=reason,
            )
            return replace(
                signal,
                signal="hold",
                confidence="low",
                explanation=append_reason(signal.explanation, reason),
                source="filter",
            )

        return signal
