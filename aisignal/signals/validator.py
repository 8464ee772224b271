"""Input validation for market snapshots.

Validation runs before any derived computation or model call, so invalid
input never reaches the model gateway.
"""

import math
from typing import Any, Iterable

import pydantic

from aisignal.errors import ValidationError
from aisignal.signals.base import MarketSnapshot
from aisignal.utils.logger import get_logger

logger = get_logger(__name__)

PRICE_FIELDS = ("open", "high", "low", "close")


def parse_snapshot(payload: Any, required_fields: Iterable[str]) -> MarketSnapshot:
    """Build a MarketSnapshot from a decoded JSON body.

    Args:
        payload: Decoded request body
        required_fields: Top-level fields that must be present and non-null

    Returns:
        Immutable MarketSnapshot

    Raises:
        ValidationError: If a field is missing or has the wrong type
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON", field=None)

    for field in required_fields:
        if payload.get(field) is None:
            raise ValidationError(f"Missing {field}", field=field)

    try:
        return MarketSnapshot.model_validate(payload)
    except pydantic.ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        if error["type"] == "missing":
            raise ValidationError(f"Missing {field}", field=field) from None
        raise ValidationError(f"Invalid {field}: {error['msg']}", field=field) from None


def _check_range(value: float, low: float, high: float, name: str, field: str) -> None:
    if math.isnan(value) or value < low or value > high:
        if math.isinf(high):
            raise ValidationError(f"Invalid {name}: must be >= {low:g}", field=field)
        raise ValidationError(
            f"Invalid {name}: must be between {low:g}-{high:g}", field=field
        )


def validate_snapshot(snapshot: MarketSnapshot, allow_zero_prices: bool = False) -> None:
    """Reject out-of-range indicator and price data.

    Args:
        snapshot: Parsed snapshot
        allow_zero_prices: Lenient price policy; only negative prices fail.
            The strict policy (default) also rejects zero.

    Raises:
        ValidationError: Naming the offending field
    """
    _check_range(snapshot.indicators.rsi, 0, 100, "RSI", "rsi")
    _check_range(snapshot.adx, 0, 100, "ADX", "adx")
    _check_range(snapshot.atr, 0, math.inf, "ATR", "atr")

    ohlc = snapshot.ohlc
    if ohlc.high < ohlc.low:
        raise ValidationError("Invalid OHLC: High must be >= Low", field="ohlc")

    for name in PRICE_FIELDS:
        price = getattr(ohlc, name)
        if price < 0 or (price == 0 and not allow_zero_prices):
            requirement = "non-negative" if allow_zero_prices else "positive"
            raise ValidationError(
                f"Invalid OHLC {name}: price must be {requirement}",
                field=f"ohlc.{name}",
            )

    logger.debug("Snapshot validated", symbol=snapshot.symbol, tf=snapshot.tf)
