"""
Async client for the GDAX (Coinbase Exchange) REST and WebSocket APIs.
"""

from .client import AuthenticatedClient, PublicClient, WebsocketClient
from .exceptions import APIError, AuthenticationError, RateLimitError
from .utils.config import Config

__version__ = "0.1.0"

__all__ = [
    "AuthenticatedClient",
    "PublicClient",
    "WebsocketClient",
    "APIError",
    "AuthenticationError",
    "RateLimitError",
    "Config",
]
