"""Errors raised by the API clients."""

from typing import Any

import aiohttp


class APIError(aiohttp.ClientError):
    """The exchange answered with an HTTP error status."""

    def __init__(self, status: int, message: str, body: Any = None):
        super().__init__(f"API error {status}: {message}")
        self.status = status
        self.message = message
        self.body = body


class AuthenticationError(APIError):
    """Credentials were missing, invalid or lack the required permission."""


class RateLimitError(APIError):
    """Request was rejected by the exchange's rate limiter (HTTP 429)."""


def error_for_status(status: int, message: str, body: Any = None) -> APIError:
    """Build the most specific APIError for an HTTP status."""
    if status == 429:
        return RateLimitError(status, message, body)
    if status in (401, 403):
        return AuthenticationError(status, message, body)
    return APIError(status, message, body)
