"""Shared fixtures for the signal pipeline tests."""

import copy
from typing import Any

import pytest

from aisignal.signals.base import MarketSnapshot
from aisignal.utils.config import Settings

VALID_PAYLOAD: dict[str, Any] = {
    "symbol": "EURUSD",
    "tf": "M15",
    "ohlc": {"open": 1.0850, "high": 1.0875, "low": 1.0840, "close": 1.0870},
    "indicators": {
        "rsi": 55.0,
        "adx": 26.0,
        "ema9": 1.0862,
        "ema21": 1.0851,
        "macd": 0.0012,
        "macd_signal": 0.0008,
    },
    "adx": 26.0,
    "atr": 0.0020,
    "volume_ratio": 1.6,
    "pattern": "Bullish Engulfing",
    "session": "london",
    "support": 1.0845,
    "resistance": 1.0920,
    "macd_hist_prev": 0.0002,
}


@pytest.fixture
def payload() -> dict[str, Any]:
    """Fresh copy of a valid request body."""
    return copy.deepcopy(VALID_PAYLOAD)


@pytest.fixture
def snapshot(payload: dict[str, Any]) -> MarketSnapshot:
    """Valid snapshot built from the payload."""
    return MarketSnapshot.model_validate(payload)


def _make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "env": "test",
        "pre_shared_token": "test-token",
        "model_api_key": "test-key",
        "profile": "guarded",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def make_settings():
    """Factory for Settings isolated from the environment's .env file."""
    return _make_settings


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock for TTL and rate-limit tests."""
    return FakeClock()
