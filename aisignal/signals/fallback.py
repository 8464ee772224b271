"""Deterministic EMA/RSI fallback used when the model gives nothing usable."""

import math
from typing import Any, Mapping, Optional

from aisignal.signals.base import Indicators, Signal


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value):
        return None
    return float(value)


def generate_fallback_signal(
    indicators: Indicators | Mapping[str, Any] | None = None,
) -> Signal:
    """Classify from EMA crossover and RSI alone.

    Never raises and never touches the network. Missing or non-numeric
    values make every comparison false, which yields hold.
    """
    if isinstance(indicators, Indicators):
        values: Mapping[str, Any] = indicators.model_dump()
    else:
        values = indicators or {}

    ema9 = _number(values.get("ema9"))
    ema21 = _number(values.get("ema21"))
    rsi = _number(values.get("rsi"))

    if ema9 is not None and ema21 is not None and rsi is not None:
        if ema9 > ema21 and rsi < 70:
            return Signal(
                signal="buy",
                explanation="Fallback: EMA bullish & RSI not overbought",
                confidence="low",
                source="fallback",
            )
        if ema9 < ema21 and rsi > 30:
            return Signal(
                signal="sell",
                explanation="Fallback: EMA bearish & RSI not oversold",
                confidence="low",
                source="fallback",
            )

    return Signal(
        signal="hold",
        explanation="Fallback: No clear trend",
        confidence="low",
        source="fallback",
    )
