"""Derived metrics computed from a validated snapshot."""

import math
from dataclasses import dataclass
from typing import Literal

from aisignal.signals.base import MarketSnapshot

SessionType = Literal["ASIA", "OVERLAP", "REGULAR"]
Trend = Literal["bullish", "bearish", "neutral"]
Momentum = Literal["overbought", "oversold", "neutral"]

# Thresholds shared by the prompt and the guard rails
TRADABLE_ATR = 0.002
STRONG_VOLUME_RATIO = 1.5
CONFIRMING_VOLUME_RATIO = 1.2
STRONG_ADX = 20
ASIA_SESSION_ADX = 28
ASIA_SESSION_VOLUME = 2.0
SUPPORT_RESISTANCE_DISTANCE_ATR = 1.5
MACD_HISTOGRAM_MIN_CHANGE = 0.0001
RSI_OVERBOUGHT = 70
RSI_OVERSOLD = 30

VALID_PATTERNS = frozenset(
    {
        "bullish engulfing",
        "bearish engulfing",
        "hammer",
        "shooting star",
        "double top",
        "double bottom",
    }
)


@dataclass(frozen=True)
class DerivedMetrics:
    """Values derived from a snapshot and the current UTC hour."""

    price: float
    hour_utc: int
    session_type: SessionType
    trend: Trend
    momentum: Momentum
    macd_trend: Literal["bullish", "bearish"]
    macd_hist_current: float
    is_macd_rising: bool
    support_distance_atr: float
    resistance_distance_atr: float
    is_near_support: bool
    is_near_resistance: bool
    is_valid_pattern: bool


def get_session_type(hour_utc: int) -> SessionType:
    """Classify the UTC hour into a trading session."""
    if 2 <= hour_utc < 5:
        return "ASIA"
    if 8 <= hour_utc < 12 or 14 <= hour_utc < 17:
        return "OVERLAP"
    return "REGULAR"


def classify_trend(ema9: float, ema21: float) -> Trend:
    if ema9 > ema21:
        return "bullish"
    if ema9 < ema21:
        return "bearish"
    return "neutral"


def classify_momentum(rsi: float) -> Momentum:
    if rsi > RSI_OVERBOUGHT:
        return "overbought"
    if rsi < RSI_OVERSOLD:
        return "oversold"
    return "neutral"


def is_valid_pattern(pattern: str) -> bool:
    return pattern.strip().lower() in VALID_PATTERNS


def _distance_in_atr(distance: float, atr: float) -> float:
    # Zero ATR means no volatility scale: treat every level as far away
    if atr <= 0:
        return math.inf
    return distance / atr


def compute_derived(snapshot: MarketSnapshot, hour_utc: int) -> DerivedMetrics:
    """Compute derived metrics.

    Args:
        snapshot: Validated snapshot
        hour_utc: Current hour (0-23, UTC)

    Returns:
        DerivedMetrics for prompt rendering and filtering
    """
    ind = snapshot.indicators
    price = snapshot.ohlc.close
    hist_current = ind.macd - ind.macd_signal

    support_distance = _distance_in_atr(price - snapshot.support, snapshot.atr)
    resistance_distance = _distance_in_atr(snapshot.resistance - price, snapshot.atr)

    return DerivedMetrics(
        price=price,
        hour_utc=hour_utc,
        session_type=get_session_type(hour_utc),
        trend=classify_trend(ind.ema9, ind.ema21),
        momentum=classify_momentum(ind.rsi),
        macd_trend="bullish" if ind.macd > ind.macd_signal else "bearish",
        macd_hist_current=hist_current,
        is_macd_rising=hist_current > snapshot.macd_hist_prev + MACD_HISTOGRAM_MIN_CHANGE,
        support_distance_atr=support_distance,
        resistance_distance_atr=resistance_distance,
        is_near_support=support_distance <= SUPPORT_RESISTANCE_DISTANCE_ATR,
        is_near_resistance=resistance_distance <= SUPPORT_RESISTANCE_DISTANCE_ATR,
        is_valid_pattern=is_valid_pattern(snapshot.pattern),
    )
