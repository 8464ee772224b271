"""Short-lived result cache keyed by request identity."""

import json
import threading
import time
from typing import Callable, Optional

from cachetools import TTLCache

from aisignal.signals.base import MarketSnapshot, Signal


class ResultCache:
    """TTL cache of final signals.

    Expiry is lazy: TTLCache drops stale entries when they are looked up.
    A lock serializes access since TTLCache itself is not thread-safe.
    """

    DEFAULT_MAXSIZE = 256

    def __init__(
        self,
        ttl: float = 30.0,
        maxsize: int = DEFAULT_MAXSIZE,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = threading.Lock()

    @staticmethod
    def make_key(snapshot: MarketSnapshot) -> str:
        """Create cache key from symbol, timeframe and the OHLC candle.

        The candle is serialized as sorted-key JSON so the same candle always
        yields the same key.
        """
        candle = json.dumps(snapshot.ohlc.model_dump(), sort_keys=True)
        return f"{snapshot.symbol}|{snapshot.tf}|{candle}"

    def get(self, key: str) -> Optional[Signal]:
        with self._lock:
            return self._cache.get(key)

    def put(self, key: str, signal: Signal) -> None:
        with self._lock:
            self._cache[key] = signal

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
