"""Request admission control."""

from aisignal.risk.rate_limiter import RateLimiter

__all__ = ["RateLimiter"]
