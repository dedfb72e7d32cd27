"""Configuration management."""

import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Configuration for the GDAX API clients."""

    # Environment: ['live', 'sandbox']
    ENVIRONMENT: str = os.getenv("GDAX_ENVIRONMENT", "sandbox")

    # API credentials (secret is base64 encoded, as issued by the exchange)
    API_KEY: str = os.getenv("GDAX_API_KEY", "")
    API_SECRET: str = os.getenv("GDAX_API_SECRET", "")
    API_PASSPHRASE: str = os.getenv("GDAX_API_PASSPHRASE", "")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # REST API URLs
    REST_PRODUCTION_URL = "https://api.exchange.coinbase.com"
    REST_SANDBOX_URL = "https://api-public.sandbox.exchange.coinbase.com"

    # WebSocket URLs
    WS_PRODUCTION_URL = "wss://ws-feed.exchange.coinbase.com"
    WS_SANDBOX_URL = "wss://ws-feed-public.sandbox.exchange.coinbase.com"

    # Connection settings
    USER_AGENT = "gdaxclient/0.1.0"
    REST_TIMEOUT = 10  # seconds
    WS_PING_INTERVAL = 30  # seconds
    WS_RECONNECT_DELAY = 5  # seconds
    WS_MAX_RECONNECT_ATTEMPTS = 10
    WS_HEARTBEAT_TIMEOUT = 120  # seconds

    # Trade stream paging
    TRADE_STREAM_PAGE_SIZE = 100
    RATE_LIMIT_RETRY_DELAY = 0.9  # seconds

    @classmethod
    def get_rest_url(cls) -> str:
        """Get REST API URL based on environment."""
        return (
            cls.REST_SANDBOX_URL
            if cls.ENVIRONMENT == "sandbox"
            else cls.REST_PRODUCTION_URL
        )

    @classmethod
    def get_ws_url(cls) -> str:
        """Get WebSocket URL based on environment."""
        return (
            cls.WS_SANDBOX_URL if cls.ENVIRONMENT == "sandbox" else cls.WS_PRODUCTION_URL
        )

    @classmethod
    def is_sandbox(cls) -> bool:
        """Check if running against the sandbox."""
        return cls.ENVIRONMENT == "sandbox"

    @classmethod
    def validate(cls) -> bool:
        """Validate configuration."""
        if not cls.API_KEY or not cls.API_SECRET or not cls.API_PASSPHRASE:
            return False
        return True
