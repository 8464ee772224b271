"""Core data types for signal classification."""

from dataclasses import dataclass, replace
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict

SignalValue = Literal["buy", "sell", "hold"]
Confidence = Literal["high", "medium", "low"]
SignalSource = Literal["model", "fallback", "cache", "filter"]

SIGNAL_VALUES: tuple[str, ...] = ("buy", "sell", "hold")
CONFIDENCE_VALUES: tuple[str, ...] = ("high", "medium", "low")
MAX_EXPLANATION_LENGTH = 500


def _require_number(value: Any) -> Any:
    # JSON numbers only: no numeric strings, no booleans
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    return value


Number = Annotated[float, BeforeValidator(_require_number)]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False, extra="ignore")


class Ohlc(_Frozen):
    """Price candle."""

    open: Number
    high: Number
    low: Number
    close: Number


class Indicators(_Frozen):
    """Indicator block sent with each snapshot."""

    rsi: Number
    ema9: Number
    ema21: Number
    macd: Number
    macd_signal: Number
    adx: Optional[Number] = None


class MarketSnapshot(_Frozen):
    """Market data for one request.

    Attributes:
        symbol: Instrument name (free text, sanitized before prompting)
        tf: Timeframe label (e.g. "M15")
        ohlc: Current candle
        indicators: RSI, EMA9/21 and MACD values
        adx: Trend strength (0-100)
        atr: Average true range, used to scale S/R distances
        volume_ratio: Current volume divided by average volume
        pattern: Candlestick pattern label (free text)
        session: Session hint from the client
        support: Nearest support level
        resistance: Nearest resistance level
        macd_hist_prev: Previous MACD histogram value
        htf_trend: Optional higher-timeframe trend label
    """

    symbol: str
    tf: str
    ohlc: Ohlc
    indicators: Indicators
    adx: Number
    atr: Number
    volume_ratio: Number
    pattern: str
    session: str
    support: Number
    resistance: Number
    macd_hist_prev: Number = 0.0
    htf_trend: Optional[str] = None


@dataclass(frozen=True)
class Signal:
    """Trading signal produced for one snapshot.

    Attributes:
        signal: buy, sell or hold
        explanation: Human-readable reason (max 500 chars)
        confidence: Optional high/medium/low
        source: Pipeline stage that produced the signal
    """

    signal: SignalValue
    explanation: str
    confidence: Optional[Confidence] = None
    source: SignalSource = "model"

    @property
    def is_directional(self) -> bool:
        return self.signal != "hold"

    def with_source(self, source: SignalSource) -> "Signal":
        return replace(self, source=source)

    def to_dict(self, include_confidence: bool = False) -> dict:
        """Serialize for the HTTP response."""
        if include_confidence:
            return {
                "signal": self.signal,
                "confidence": self.confidence,
                "explanation": self.explanation,
            }
        return {"signal": self.signal, "explanation": self.explanation}
