"""
Weather Tool Errors

Typed failures raised by weather providers. The façade re-raises these
unchanged after publishing its error event.
"""

from typing import Optional


class WeatherProviderError(Exception):
    """Base class for every failure surfaced by a weather provider."""


class InvalidArgumentError(WeatherProviderError, ValueError):
    """Missing or malformed input, detected before any network call."""


class OutOfRangeError(WeatherProviderError, ValueError):
    """Latitude or longitude outside the valid geographic bounds."""


class NotFoundError(WeatherProviderError):
    """Upstream reports no such place (HTTP 404)."""


class UnauthorizedError(WeatherProviderError):
    """Upstream rejected the credential (HTTP 401)."""


class RequestTimeoutError(WeatherProviderError, TimeoutError):
    """The outbound request exceeded the configured deadline."""


class UpstreamError(WeatherProviderError):
    """Any other non-success HTTP status."""

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        super().__init__(message or f"API error: {status}")


class TransportError(WeatherProviderError):
    """Network-level failure or an unreadable response body."""


__all__ = [
    "WeatherProviderError",
    "InvalidArgumentError",
    "OutOfRangeError",
    "NotFoundError",
    "UnauthorizedError",
    "RequestTimeoutError",
    "UpstreamError",
    "TransportError",
]
