"""Tests for snapshot parsing and validation."""

from typing import Any

import pydantic
import pytest

from aisignal.errors import ValidationError
from aisignal.signals.base import MarketSnapshot
from aisignal.signals.validator import parse_snapshot, validate_snapshot
from aisignal.utils.config import REQUIRED_FIELDS


def _snapshot(payload: dict[str, Any]) -> MarketSnapshot:
    return parse_snapshot(payload, REQUIRED_FIELDS)


class TestParseSnapshot:
    """Tests for parse_snapshot."""

    def test_valid_payload(self, payload: dict[str, Any]) -> None:
        """Test parsing a complete payload."""
        snapshot = _snapshot(payload)

        assert snapshot.symbol == "EURUSD"
        assert snapshot.ohlc.close == 1.0870
        assert snapshot.indicators.rsi == 55.0
        assert snapshot.htf_trend is None

    def test_macd_hist_prev_defaults_to_zero(self, payload: dict[str, Any]) -> None:
        """Test that the previous histogram defaults to 0."""
        del payload["macd_hist_prev"]

        assert _snapshot(payload).macd_hist_prev == 0.0

    @pytest.mark.parametrize("field", REQUIRED_FIELDS)
    def test_missing_required_field(self, payload: dict[str, Any], field: str) -> None:
        """Test that each missing field is named in the error."""
        del payload[field]

        with pytest.raises(ValidationError) as exc_info:
            _snapshot(payload)

        assert exc_info.value.message == f"Missing {field}"
        assert exc_info.value.field == field

    def test_null_field_counts_as_missing(self, payload: dict[str, Any]) -> None:
        """Test that null is treated as missing."""
        payload["support"] = None

        with pytest.raises(ValidationError, match="Missing support"):
            _snapshot(payload)

    def test_zero_value_is_present(self, payload: dict[str, Any]) -> None:
        """Test that a falsy but present value is accepted."""
        payload["adx"] = 0

        assert _snapshot(payload).adx == 0.0

    def test_non_numeric_macd(self, payload: dict[str, Any]) -> None:
        """Test that a non-numeric MACD field is rejected."""
        payload["indicators"]["macd"] = "abc"

        with pytest.raises(ValidationError) as exc_info:
            _snapshot(payload)

        assert exc_info.value.field == "indicators.macd"
        assert exc_info.value.message.startswith("Invalid indicators.macd")

    @pytest.mark.parametrize(
        "block,field,value",
        [
            ("indicators", "macd", "0.0012"),
            ("indicators", "rsi", "55"),
            ("indicators", "macd_signal", True),
            (None, "atr", "0.002"),
            (None, "adx", False),
            ("ohlc", "close", "1.0870"),
        ],
    )
    def test_numeric_strings_and_bools_rejected(
        self, payload: dict[str, Any], block, field: str, value: Any
    ) -> None:
        """Test that only JSON numbers are accepted for numeric fields."""
        target = payload[block] if block else payload
        target[field] = value
        path = f"{block}.{field}" if block else field

        with pytest.raises(ValidationError) as exc_info:
            _snapshot(payload)

        assert exc_info.value.field == path
        assert "must be a number" in exc_info.value.message

    def test_integer_values_accepted(self, payload: dict[str, Any]) -> None:
        """Test that JSON integers still count as numbers."""
        payload["indicators"]["rsi"] = 55
        payload["adx"] = 26

        snapshot = _snapshot(payload)

        assert snapshot.indicators.rsi == 55.0
        assert snapshot.adx == 26.0

    def test_missing_nested_field(self, payload: dict[str, Any]) -> None:
        """Test that a missing nested indicator is reported by path."""
        del payload["indicators"]["macd_signal"]

        with pytest.raises(ValidationError, match="Missing indicators.macd_signal"):
            _snapshot(payload)

    def test_nan_rejected(self, payload: dict[str, Any]) -> None:
        """Test that NaN indicator values are rejected."""
        payload["indicators"]["rsi"] = float("nan")

        with pytest.raises(ValidationError) as exc_info:
            _snapshot(payload)

        assert exc_info.value.field == "indicators.rsi"

    def test_non_object_body(self) -> None:
        """Test that a JSON array body is rejected."""
        with pytest.raises(ValidationError, match="Invalid JSON"):
            parse_snapshot([1, 2, 3], REQUIRED_FIELDS)

    def test_snapshot_is_immutable(self, snapshot: MarketSnapshot) -> None:
        """Test that snapshots cannot be mutated."""
        with pytest.raises(pydantic.ValidationError):
            snapshot.symbol = "GBPUSD"


class TestValidateSnapshot:
    """Tests for validate_snapshot."""

    def test_valid_snapshot_passes(self, snapshot: MarketSnapshot) -> None:
        """Test that valid data passes silently."""
        assert validate_snapshot(snapshot) is None

    def test_high_below_low(self, payload: dict[str, Any]) -> None:
        """Test that high < low is rejected."""
        payload["ohlc"]["high"] = 1.0800
        payload["ohlc"]["low"] = 1.0900

        with pytest.raises(ValidationError) as exc_info:
            validate_snapshot(_snapshot(payload))

        assert exc_info.value.field == "ohlc"
        assert "High must be >= Low" in exc_info.value.message

    @pytest.mark.parametrize("name", ["open", "high", "low", "close"])
    def test_zero_price_rejected_strict(self, payload: dict[str, Any], name: str) -> None:
        """Test that the strict policy rejects zero prices."""
        payload["ohlc"] = {"open": 1.0, "high": 1.0, "low": 1.0, "close": 1.0}
        payload["ohlc"][name] = 0.0
        if name == "high":
            payload["ohlc"]["low"] = 0.0

        with pytest.raises(ValidationError) as exc_info:
            validate_snapshot(_snapshot(payload), allow_zero_prices=False)

        assert exc_info.value.field == f"ohlc.{name}"
        assert "positive" in exc_info.value.message

    def test_zero_price_allowed_lenient(self, payload: dict[str, Any]) -> None:
        """Test that the lenient policy accepts zero prices."""
        payload["ohlc"]["low"] = 0.0

        validate_snapshot(_snapshot(payload), allow_zero_prices=True)

    def test_negative_price_rejected_lenient(self, payload: dict[str, Any]) -> None:
        """Test that the lenient policy still rejects negative prices."""
        payload["ohlc"]["low"] = -1.0

        with pytest.raises(ValidationError) as exc_info:
            validate_snapshot(_snapshot(payload), allow_zero_prices=True)

        assert exc_info.value.field == "ohlc.low"
        assert "non-negative" in exc_info.value.message

    def test_rsi_out_of_range(self, payload: dict[str, Any]) -> None:
        """Test that RSI=150 is rejected."""
        payload["indicators"]["rsi"] = 150

        with pytest.raises(ValidationError) as exc_info:
            validate_snapshot(_snapshot(payload))

        assert exc_info.value.field == "rsi"
        assert exc_info.value.message == "Invalid RSI: must be between 0-100"

    def test_adx_negative(self, payload: dict[str, Any]) -> None:
        """Test that ADX=-1 is rejected."""
        payload["adx"] = -1

        with pytest.raises(ValidationError) as exc_info:
            validate_snapshot(_snapshot(payload))

        assert exc_info.value.field == "adx"
        assert exc_info.value.message == "Invalid ADX: must be between 0-100"

    def test_atr_negative(self, payload: dict[str, Any]) -> None:
        """Test that ATR=-0.001 is rejected."""
        payload["atr"] = -0.001

        with pytest.raises(ValidationError) as exc_info:
            validate_snapshot(_snapshot(payload))

        assert exc_info.value.field == "atr"
        assert exc_info.value.message == "Invalid ATR: must be >= 0"

    def test_errors_are_distinct(self, payload: dict[str, Any]) -> None:
        """Test that each failure names a different field."""
        cases = [
            ("indicators", {**payload["indicators"], "rsi": 150}),
            ("adx", -1),
            ("atr", -0.001),
            ("ohlc", {"open": 1.0, "high": 0.9, "low": 1.1, "close": 1.0}),
        ]
        fields = set()
        for key, value in cases:
            broken = {**payload, key: value}
            with pytest.raises(ValidationError) as exc_info:
                validate_snapshot(_snapshot(broken))
            fields.add(exc_info.value.field)

        assert fields == {"rsi", "adx", "atr", "ohlc"}

    def test_boundary_values_accepted(self, payload: dict[str, Any]) -> None:
        """Test that range boundaries are inclusive."""
        payload["indicators"]["rsi"] = 100
        payload["adx"] = 0
        payload["atr"] = 0

        validate_snapshot(_snapshot(payload))
