"""Authentication and signing utilities for the GDAX API."""

import base64
import binascii
import hashlib
import hmac

from ..utils.timing import get_timestamp

WEBSOCKET_AUTH_PATH = "/users/self/verify"


def sign_request(
    secret: str,
    method: str,
    request_path: str,
    body: str = "",
    timestamp: str | None = None,
) -> tuple[str, str]:
    """
    Sign a REST API request using HMAC-SHA256.

    Args:
        secret: Base64 encoded API secret
        method: HTTP method (GET, POST, DELETE)
        request_path: Path including the query string (e.g., "/orders?limit=10")
        body: Request body as JSON string
        timestamp: Unix timestamp in seconds (auto-generated if None)

    Returns:
        Tuple of (base64 signature, timestamp)

    Raises:
        ValueError: If the secret is not valid base64
    """
    if timestamp is None:
        timestamp = get_timestamp()

    # Prehash string: timestamp + method + path + body
    # Example: "1510000000.123POST/orders{"size": "1.0", ...}"
    message = timestamp + method.upper() + request_path + (body or "")

    try:
        key = base64.b64decode(secret, validate=True)
    except binascii.Error as e:
        raise ValueError("API secret must be base64 encoded") from e

    digest = hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8"), timestamp


def get_auth_headers(
    key: str, passphrase: str, signature: str, timestamp: str
) -> dict[str, str]:
    """
    Get authentication headers for REST API requests.

    Args:
        key: API key
        passphrase: API passphrase chosen when the key was created
        signature: Base64 HMAC-SHA256 signature
        timestamp: Timestamp used in the signature

    Returns:
        Dictionary of headers
    """
    return {
        "CB-ACCESS-KEY": key,
        "CB-ACCESS-SIGN": signature,
        "CB-ACCESS-TIMESTAMP": timestamp,
        "CB-ACCESS-PASSPHRASE": passphrase,
    }


def sign_websocket_auth(secret: str, timestamp: str | None = None) -> tuple[str, str]:
    """
    Sign WebSocket authentication fields.

    The feed verifies the same signature as `GET /users/self/verify`.

    Returns:
        Tuple of (signature, timestamp)
    """
    return sign_request(secret, "GET", WEBSOCKET_AUTH_PATH, "", timestamp)


def create_websocket_auth_fields(
    key: str, secret: str, passphrase: str, timestamp: str | None = None
) -> dict[str, str]:
    """
    Create the fields merged into a subscribe message on authenticated feeds.

    Returns:
        Dict with key, signature, timestamp and passphrase
    """
    signature, timestamp = sign_websocket_auth(secret, timestamp)
    return {
        "key": key,
        "signature": signature,
        "timestamp": timestamp,
        "passphrase": passphrase,
    }
