"""Exception taxonomy for the signal pipeline.

Only ValidationError, AuthError, RateLimitError and InternalError reach the
HTTP boundary. GatewayError, ParseError and NotifierError are absorbed inside
the pipeline and replaced by a fallback or a log line.
"""


class SignalServiceError(Exception):
    """Base class for all pipeline errors."""

    status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SignalServiceError):
    """Malformed or out-of-range request data."""

    status = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class AuthError(SignalServiceError):
    """Missing or mismatched shared secret."""

    status = 401


class RateLimitError(SignalServiceError):
    """Request arrived inside the cooldown window."""

    status = 429

    def __init__(self, message: str, retry_after: float = 0.0) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class GatewayError(SignalServiceError):
    """Model call failed, timed out or returned a malformed envelope."""

    status = 502


class ParseError(SignalServiceError):
    """Model reply could not be coerced into a Signal."""

    status = 502


class NotifierError(SignalServiceError):
    """Messaging side channel failed."""


class InternalError(SignalServiceError):
    """Anything unexpected."""
