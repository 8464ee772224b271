"""Tests for the deterministic fallback signal."""

import itertools

import pytest

from aisignal.signals.base import Indicators
from aisignal.signals.fallback import generate_fallback_signal


class TestGenerateFallbackSignal:
    """Tests for generate_fallback_signal."""

    def test_buy(self) -> None:
        """Test bullish EMA with RSI below 70."""
        signal = generate_fallback_signal({"ema9": 1.1, "ema21": 1.0, "rsi": 55})

        assert signal.signal == "buy"
        assert signal.explanation.startswith("Fallback:")
        assert signal.confidence == "low"
        assert signal.source == "fallback"

    def test_sell(self) -> None:
        """Test bearish EMA with RSI above 30."""
        signal = generate_fallback_signal({"ema9": 1.0, "ema21": 1.1, "rsi": 45})

        assert signal.signal == "sell"

    def test_bullish_but_overbought_holds(self) -> None:
        """Test that RSI 70 blocks the buy."""
        signal = generate_fallback_signal({"ema9": 1.1, "ema21": 1.0, "rsi": 70})

        assert signal.signal == "hold"

    def test_bearish_but_oversold_holds(self) -> None:
        """Test that RSI 30 blocks the sell."""
        signal = generate_fallback_signal({"ema9": 1.0, "ema21": 1.1, "rsi": 30})

        assert signal.signal == "hold"

    def test_flat_emas_hold(self) -> None:
        """Test equal EMAs."""
        signal = generate_fallback_signal({"ema9": 1.0, "ema21": 1.0, "rsi": 50})

        assert signal.signal == "hold"
        assert signal.explanation == "Fallback: No clear trend"

    @pytest.mark.parametrize(
        "indicators",
        [None, {}, {"ema9": 1.1}, {"ema9": "x", "ema21": 1.0, "rsi": 50},
         {"ema9": True, "ema21": 0.5, "rsi": 50},
         {"ema9": float("nan"), "ema21": 1.0, "rsi": 50}],
    )
    def test_incomplete_data_holds(self, indicators) -> None:
        """Test that missing or non-numeric data never raises."""
        assert generate_fallback_signal(indicators).signal == "hold"

    def test_accepts_indicator_model(self) -> None:
        """Test that an Indicators model can be passed directly."""
        indicators = Indicators(rsi=40, ema9=1.2, ema21=1.1, macd=0.0, macd_signal=0.0)

        assert generate_fallback_signal(indicators).signal == "buy"

    def test_total_over_grid(self) -> None:
        """Test that every combination yields exactly one known signal."""
        values = [-1.0, 0.0, 1.0]
        rsis = [0, 29.9, 30, 50, 70, 70.1, 100]
        for ema9, ema21, rsi in itertools.product(values, values, rsis):
            signal = generate_fallback_signal({"ema9": ema9, "ema21": ema21, "rsi": rsi})
            assert signal.signal in ("buy", "sell", "hold")
