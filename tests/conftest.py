"""Pytest configuration and shared fixtures."""

import json
import os
from typing import Any

import pytest

from gdaxclient.client.authenticated import AuthenticatedClient
from gdaxclient.client.public import PublicClient
from gdaxclient.utils.config import Config

TEST_API_URI = "https://api.test"
TEST_KEY = "test-key"
TEST_SECRET = "c2VjcmV0LWtleQ=="  # base64 of b"secret-key"
TEST_PASSPHRASE = "test-passphrase"


class FakeResponse:
    """Stand-in for an aiohttp response used as an async context manager."""

    def __init__(
        self,
        payload: Any = None,
        status: int = 200,
        headers: dict[str, str] | None = None,
        text: str | None = None,
    ):
        self.status = status
        self.headers = headers or {}
        self._payload = payload
        self._text = text

    async def json(self):
        if self._text is not None:
            raise json.JSONDecodeError("Expecting value", self._text, 0)
        return self._payload

    async def text(self):
        return self._text if self._text is not None else json.dumps(self._payload)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """Records requests and replays queued responses in order."""

    def __init__(self, *responses: FakeResponse):
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []
        self.closed = False

    def queue(self, *responses: FakeResponse) -> None:
        self.responses.extend(responses)

    def request(self, method, url, data=None, headers=None):
        self.requests.append(
            {"method": method, "url": url, "data": data, "headers": headers}
        )
        return self.responses.pop(0)

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_session() -> FakeSession:
    """Empty fake session; tests queue responses on it."""
    return FakeSession()


@pytest.fixture
def response():
    """Factory for fake responses."""
    return FakeResponse


@pytest.fixture
def public_client(fake_session: FakeSession) -> PublicClient:
    """Public client wired to the fake session."""
    client = PublicClient(TEST_API_URI)
    client.session = fake_session
    return client


@pytest.fixture
def auth_client(fake_session: FakeSession) -> AuthenticatedClient:
    """Authenticated client with test credentials wired to the fake session."""
    client = AuthenticatedClient(TEST_KEY, TEST_SECRET, TEST_PASSPHRASE, TEST_API_URI)
    client.session = fake_session
    return client


@pytest.fixture
def test_credentials() -> dict[str, str]:
    return {"key": TEST_KEY, "secret": TEST_SECRET, "passphrase": TEST_PASSPHRASE}


@pytest.fixture
def no_config_credentials(monkeypatch):
    """Blank out credentials that may be present in the environment."""
    monkeypatch.setattr(Config, "API_KEY", "")
    monkeypatch.setattr(Config, "API_SECRET", "")
    monkeypatch.setattr(Config, "API_PASSPHRASE", "")


@pytest.fixture
def skip_if_not_live():
    """Skip test unless live sandbox tests are enabled."""
    if os.getenv("GDAX_LIVE_TESTS") != "1":
        pytest.skip("Set GDAX_LIVE_TESTS=1 to run against the sandbox")


@pytest.fixture
def skip_if_no_credentials():
    """Skip test if API credentials are not available."""
    if not Config.validate():
        pytest.skip("API credentials not available")


@pytest.fixture
def sample_order_result() -> dict:
    """POST /orders response for a limit buy."""
    return {
        "id": "d0c5340b-6d6c-49d9-b567-48c4bfca13d2",
        "price": "0.10000000",
        "size": "0.01000000",
        "product_id": "BTC-USD",
        "side": "buy",
        "stp": "dc",
        "type": "limit",
        "time_in_force": "GTC",
        "post_only": False,
        "created_at": "2016-12-08T20:02:28.53864Z",
        "fill_fees": "0.0000000000000000",
        "filled_size": "0.00000000",
        "executed_value": "0.0000000000000000",
        "status": "received",
        "settled": False,
    }


@pytest.fixture
def sample_order_info() -> dict:
    """GET /orders/{id} response for a filled market order."""
    return {
        "id": "68e6a28f-ae28-4788-8d4f-5ab4e5e5ae08",
        "size": "1.00000000",
        "product_id": "BTC-USD",
        "side": "buy",
        "stp": "dc",
        "funds": "9.9750623400000000",
        "specified_funds": "10.0000000000000000",
        "type": "market",
        "post_only": False,
        "created_at": "2016-12-08T20:09:05.508883Z",
        "done_at": "2016-12-08T20:09:05.527Z",
        "done_reason": "filled",
        "fill_fees": "0.0249376391550000",
        "filled_size": "0.01291771",
        "executed_value": "9.9750556620000000",
        "status": "done",
        "settled": True,
    }


@pytest.fixture
def sample_trades() -> list[dict]:
    """GET /products/BTC-USD/trades response, newest first."""
    return [
        {
            "time": "2014-11-07T22:19:28.578544Z",
            "trade_id": 74,
            "price": "10.00000000",
            "size": "0.01000000",
            "side": "buy",
        },
        {
            "time": "2014-11-07T01:08:43.642366Z",
            "trade_id": 73,
            "price": "100.00000000",
            "size": "0.01000000",
            "side": "sell",
        },
    ]


# Pytest configuration
def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line("markers", "live: mark test as requiring live connection")
    config.addinivalue_line(
        "markers", "credentials: mark test as requiring API credentials"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        if "integration_live" in item.nodeid:
            item.add_marker(pytest.mark.live)
