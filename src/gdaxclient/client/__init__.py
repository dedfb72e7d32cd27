"""Client modules for REST and WebSocket communication."""

from .auth import create_websocket_auth_fields, sign_request, sign_websocket_auth
from .authenticated import AuthenticatedClient
from .public import PublicClient
from .websocket import WebsocketClient

__all__ = [
    "AuthenticatedClient",
    "PublicClient",
    "WebsocketClient",
    "create_websocket_auth_fields",
    "sign_request",
    "sign_websocket_auth",
]
