"""Request orchestration for the signal pipeline.

Flow per request:
authenticate → rate-limit → validate → (cache | model → interpret) → filter
→ cache store → notify (background) → respond
"""

import asyncio
import hmac
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

from aisignal.brain.gateway import GatewayResult, ModelGateway
from aisignal.brain.interpreter import interpret_response
from aisignal.brain.prompt import build_prompt
from aisignal.errors import (
    AuthError,
    GatewayError,
    InternalError,
    RateLimitError,
    SignalServiceError,
)
from aisignal.risk.rate_limiter import RateLimiter
from aisignal.signals.base import MarketSnapshot, Signal
from aisignal.signals.derived import compute_derived
from aisignal.signals.fallback import generate_fallback_signal
from aisignal.signals.filter import SignalFilter
from aisignal.signals.validator import parse_snapshot, validate_snapshot
from aisignal.utils.cache import ResultCache
from aisignal.utils.config import Settings
from aisignal.utils.logger import get_logger, get_signal_logger

logger = get_logger(__name__)
signal_logger = get_signal_logger()


class Notifier(Protocol):
    """Best-effort alert channel."""

    async def notify_signal(self, snapshot: MarketSnapshot, signal: Signal) -> bool: ...

    async def close(self) -> None: ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SignalService:
    """Owns the shared state (rate limiter, cache) and runs the pipeline.

    Gateway and notifier failures are absorbed here: the caller always gets
    a signal. A failed model call falls back to the EMA/RSI rule and an
    unparseable reply falls back to hold.
    """

    def __init__(
        self,
        settings: Settings,
        gateway: ModelGateway,
        notifier: Optional[Notifier] = None,
        cache: Optional[ResultCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        signal_filter: Optional[SignalFilter] = None,
        utc_now: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the service.

        Args:
            settings: Application settings (profile, secrets, limits)
            gateway: Model gateway
            notifier: Alert channel (None = no notifications)
            cache: Result cache (default: built from settings if the profile caches)
            rate_limiter: Rate limiter (default: built from settings)
            signal_filter: Guard rails (default: the profile's rule set)
            utc_now: Wall clock used for session classification
        """
        self.settings = settings
        self.gateway = gateway
        self.notifier = notifier
        if cache is None and settings.cache_enabled:
            cache = ResultCache(ttl=settings.cache_ttl, maxsize=settings.cache_maxsize)
        self.cache = cache
        self.rate_limiter = rate_limiter or RateLimiter(settings.rate_limit_interval)
        self.signal_filter = signal_filter or SignalFilter(settings.active_filter_rules)
        self._utc_now = utc_now
        self._pending: set[asyncio.Task] = set()

        # Statistics
        self._total_requests = 0
        self._cache_hits = 0
        self._fallbacks = 0
        self._gateway_errors = 0
        self._filtered = 0

        logger.info(
            "SignalService initialized",
            profile=settings.profile,
            cache_enabled=self.cache is not None,
            filter_rules=self.signal_filter.rule_names,
        )

    def authenticate(self, token: Optional[str]) -> None:
        """Check the shared secret.

        Raises:
            AuthError: If the token is missing, wrong, or none is configured
        """
        expected = self.settings.pre_shared_token.get_secret_value()
        if not expected or not token:
            raise AuthError("Unauthorized")
        if not hmac.compare_digest(token.encode(), expected.encode()):
            raise AuthError("Unauthorized")

    def admit(self) -> None:
        """Apply the minimum request spacing.

        Raises:
            RateLimitError: If the request falls inside the cooldown
        """
        if not self.rate_limiter.try_accept():
            retry_after = self.rate_limiter.retry_after()
            logger.info("Request rate limited", retry_after=round(retry_after, 2))
            raise RateLimitError("Too many requests", retry_after=retry_after)

    async def _ask_model(self, prompt: str) -> GatewayResult:
        try:
            return await self.gateway.complete(prompt)
        except GatewayError as e:
            return GatewayResult(error=e)

    async def process(self, payload: Any) -> Signal:
        """Classify one snapshot.

        Args:
            payload: Decoded JSON body

        Returns:
            Final signal

        Raises:
            ValidationError: On missing or invalid fields
            InternalError: On any unexpected failure inside the pipeline
        """
        self._total_requests += 1

        try:
            return await self._run(payload)
        except SignalServiceError:
            raise
        except Exception as e:
            logger.exception("Pipeline failed", error=str(e))
            raise InternalError(str(e)) from e

    async def _run(self, payload: Any) -> Signal:
        snapshot = parse_snapshot(payload, self.settings.required_fields)
        validate_snapshot(snapshot, allow_zero_prices=self.settings.zero_prices_allowed)

        cache_key = None
        if self.cache is not None:
            cache_key = self.cache.make_key(snapshot)
            cached = self.cache.get(cache_key)
            if cached is not None:
                self._cache_hits += 1
                logger.debug("Result cache hit", key=cache_key)
                return cached.with_source("cache")

        derived = compute_derived(snapshot, self._utc_now().hour)
        prompt = build_prompt(snapshot, derived)

        result = await self._ask_model(prompt)
        if result.ok:
            signal = interpret_response(result.text)
        else:
            self._gateway_errors += 1
            logger.warning(
                "Model unavailable, using fallback",
                error=result.error.message if result.error else "empty response",
                symbol=snapshot.symbol,
            )
            signal = generate_fallback_signal(snapshot.indicators)

        if signal.source == "fallback":
            self._fallbacks += 1

        final = self.signal_filter.apply(signal, snapshot, derived)
        if final is not signal:
            self._filtered += 1

        if self.cache is not None:
            self.cache.put(cache_key, final)

        signal_logger.info(
            "Signal produced",
            symbol=snapshot.symbol,
            tf=snapshot.tf,
            signal=final.signal,
            confidence=final.confidence,
            source=final.source,
            session=derived.session_type,
        )

        self._schedule_notification(snapshot, final)
        return final

    def _schedule_notification(self, snapshot: MarketSnapshot, signal: Signal) -> None:
        if self.notifier is None:
            return
        task = asyncio.create_task(self._notify(snapshot, signal))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _notify(self, snapshot: MarketSnapshot, signal: Signal) -> None:
        try:
            sent = await self.notifier.notify_signal(snapshot, signal)
        except Exception as e:
            logger.error("Notification failed", error=str(e), symbol=snapshot.symbol)
            return
        if not sent:
            logger.debug("Notification not delivered", symbol=snapshot.symbol)

    async def wait_for_notifications(self) -> None:
        """Wait for in-flight notifications to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def response_body(self, signal: Signal) -> dict:
        """HTTP body for the active profile."""
        return signal.to_dict(include_confidence=self.settings.include_confidence)

    def get_stats(self) -> dict:
        """Get pipeline statistics.

        Returns:
            Dict with request, cache, fallback and filter counters
        """
        return {
            "total_requests": self._total_requests,
            "cache_hits": self._cache_hits,
            "fallbacks": self._fallbacks,
            "gateway_errors": self._gateway_errors,
            "filtered": self._filtered,
            "cache_size": len(self.cache) if self.cache is not None else 0,
            "profile": self.settings.profile,
        }

    async def close(self) -> None:
        """Flush notifications and close outbound sessions."""
        await self.wait_for_notifications()
        await self.gateway.close()
        if self.notifier is not None:
            await self.notifier.close()
        logger.info("SignalService stopped", **self.get_stats())
