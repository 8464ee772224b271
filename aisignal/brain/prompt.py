"""Prompt rendering for the signal model."""

import re

from aisignal.signals.base import MarketSnapshot
from aisignal.signals.derived import (
    ASIA_SESSION_ADX,
    ASIA_SESSION_VOLUME,
    MACD_HISTOGRAM_MIN_CHANGE,
    STRONG_ADX,
    STRONG_VOLUME_RATIO,
    SUPPORT_RESISTANCE_DISTANCE_ATR,
    TRADABLE_ATR,
    DerivedMetrics,
)

# Characters that could break the prompt's JSON/tag delimiters
_PROMPT_UNSAFE = re.compile(r"[{}<>\[\]'\"`]")


# Prompt template for signal classification
ANALYSIS_PROMPT = """You are an expert algorithmic trader. Respond ONLY in valid JSON:
{{"signal": "buy|sell|hold", "confidence": "high|medium|low", "explanation": "short reason with data"}}

## Strict Trading Rules (violation = HOLD)
1. Trend Strength:
   - ADX < {strong_adx} -> HOLD (weak trend)
   - Asia Session? ADX must > {asia_adx} & volume_ratio > {asia_volume}

2. Momentum Filter:
   - RSI > 70 + Bullish -> HOLD (overbought)
   - RSI < 30 + Bearish -> HOLD (oversold)

3. Volume Confirmation:
   - volume_ratio < {strong_volume} -> HOLD (weak)
   - Asia Session: volume_ratio must > {asia_volume}

4. MACD Requirements:
   - Buy: Histogram RISING (current > previous by {macd_min_change})
   - Sell: Histogram FALLING (current < previous by {macd_min_change})

5. Price Position:
   - Near Support (<= {sr_distance}x ATR) + Valid Bullish Pattern -> Strong Buy
   - Near Resistance (<= {sr_distance}x ATR) + Valid Bearish Pattern -> Strong Sell

6. Session Constraints:
   - ASIA (2-5 UTC): Extra strict rules
   - OVERLAP (8-12/14-17 UTC): Higher ATR allowed
   - REGULAR: Standard rules

## Final Decision
- If ALL conditions pass -> give the signal
- If ANY single condition fails -> HOLD
- Do NOT guess!

## Analysis
- Symbol: {symbol}, TF: {tf}, Session: {session_type} (client hint: {session_hint})
- Price: {price:.5f} (Support: {support:.5f}, Resistance: {resistance:.5f})
- Trend: EMA9({ema9:.5f}) {trend} vs EMA21({ema21:.5f})
- Momentum: RSI({rsi:.2f}) = {momentum}
- MACD: {macd:.5f} vs Signal({macd_signal:.5f}) -> {macd_trend}
  Histogram: Current={hist_current:.5f}, Previous={hist_prev:.5f} -> {hist_direction}
- ADX: {adx:.2f} (>= {strong_adx} = strong)
- ATR: {atr:.5f} (>= {tradable_atr} = tradable)
- Volume Ratio: {volume_ratio:.2f} (>= {strong_volume} = strong)
- Pattern: {pattern} {pattern_status}
- Position:
  - Support: {support_position} ({support_distance:.1f}x ATR)
  - Resistance: {resistance_position} ({resistance_distance:.1f}x ATR)
{htf_line}
Respond in strict JSON only. No extra text. Example:
{{"signal":"buy","confidence":"medium","explanation":"bullish trend (ADX 26), MACD rising, volume strong, price at support with bullish engulfing"}}"""


def sanitize_for_prompt(text: object) -> str:
    """Strip delimiter characters from user-supplied text.

    This blunts prompt injection through the free-text fields; it is not
    full escaping.
    """
    return _PROMPT_UNSAFE.sub("", str(text))


def build_prompt(snapshot: MarketSnapshot, derived: DerivedMetrics) -> str:
    """Render the classification prompt.

    Args:
        snapshot: Validated snapshot
        derived: Metrics computed from the snapshot

    Returns:
        Prompt string (deterministic for identical inputs)
    """
    ind = snapshot.indicators

    htf_line = ""
    if snapshot.htf_trend:
        htf_line = f"- Higher Timeframe Trend: {sanitize_for_prompt(snapshot.htf_trend)}\n"

    return ANALYSIS_PROMPT.format(
        strong_adx=STRONG_ADX,
        asia_adx=ASIA_SESSION_ADX,
        asia_volume=ASIA_SESSION_VOLUME,
        strong_volume=STRONG_VOLUME_RATIO,
        macd_min_change=MACD_HISTOGRAM_MIN_CHANGE,
        sr_distance=SUPPORT_RESISTANCE_DISTANCE_ATR,
        tradable_atr=TRADABLE_ATR,
        symbol=sanitize_for_prompt(snapshot.symbol),
        tf=sanitize_for_prompt(snapshot.tf),
        session_type=derived.session_type,
        session_hint=sanitize_for_prompt(snapshot.session),
        price=derived.price,
        support=snapshot.support,
        resistance=snapshot.resistance,
        ema9=ind.ema9,
        ema21=ind.ema21,
        trend=derived.trend,
        rsi=ind.rsi,
        momentum=derived.momentum,
        macd=ind.macd,
        macd_signal=ind.macd_signal,
        macd_trend=derived.macd_trend,
        hist_current=derived.macd_hist_current,
        hist_prev=snapshot.macd_hist_prev,
        hist_direction="RISING" if derived.is_macd_rising else "FALLING",
        adx=snapshot.adx,
        atr=snapshot.atr,
        volume_ratio=snapshot.volume_ratio,
        pattern=sanitize_for_prompt(snapshot.pattern),
        pattern_status="(VALID)" if derived.is_valid_pattern else "(INVALID -> HOLD)",
        support_position="NEAR" if derived.is_near_support else "FAR",
        support_distance=derived.support_distance_atr,
        resistance_position="NEAR" if derived.is_near_resistance else "FAR",
        resistance_distance=derived.resistance_distance_atr,
        htf_line=htf_line,
    )
