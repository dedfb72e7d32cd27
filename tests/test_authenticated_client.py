"""Unit tests for the authenticated REST client."""

import json
from decimal import Decimal

import pytest

from gdaxclient.client.auth import sign_request
from gdaxclient.client.authenticated import AuthenticatedClient
from gdaxclient.models.order import LimitOrder, MarketOrder, OrderInfo, OrderResult
from gdaxclient.models.pagination import PageArgs

from conftest import TEST_KEY, TEST_PASSPHRASE, TEST_SECRET

BASE = "https://api.test"


class TestCredentials:
    """Test suite for credential handling and signing."""

    def test_requires_all_credentials(self, no_config_credentials):
        with pytest.raises(ValueError, match="key, secret and passphrase"):
            AuthenticatedClient("key", "c2VjcmV0", None, BASE)

    def test_credentials_default_to_config(self, monkeypatch):
        from gdaxclient.utils.config import Config

        monkeypatch.setattr(Config, "API_KEY", "env-key")
        monkeypatch.setattr(Config, "API_SECRET", TEST_SECRET)
        monkeypatch.setattr(Config, "API_PASSPHRASE", "env-pass")

        client = AuthenticatedClient(api_uri=BASE)

        assert client.key == "env-key"
        assert client.passphrase == "env-pass"

    @pytest.mark.asyncio
    async def test_requests_are_signed(
        self, auth_client, fake_session, response, sample_order_result
    ):
        fake_session.queue(response(sample_order_result))

        await auth_client.place_order(
            LimitOrder(side="buy", product_id="BTC-USD", price="0.10", size="0.01")
        )

        request = fake_session.requests[0]
        headers = request["headers"]
        timestamp = headers["CB-ACCESS-TIMESTAMP"]
        expected, _ = sign_request(
            TEST_SECRET, "POST", "/orders", request["data"], timestamp=timestamp
        )
        assert headers["CB-ACCESS-KEY"] == TEST_KEY
        assert headers["CB-ACCESS-PASSPHRASE"] == TEST_PASSPHRASE
        assert headers["CB-ACCESS-SIGN"] == expected

    @pytest.mark.asyncio
    async def test_signed_path_includes_query(self, auth_client, fake_session, response):
        fake_session.queue(response([]))

        await auth_client.get_fills(product_id="BTC-USD")

        headers = fake_session.requests[0]["headers"]
        expected, _ = sign_request(
            TEST_SECRET,
            "GET",
            "/fills?product_id=BTC-USD",
            timestamp=headers["CB-ACCESS-TIMESTAMP"],
        )
        assert headers["CB-ACCESS-SIGN"] == expected


class TestAccounts:
    """Test suite for account endpoints."""

    @pytest.mark.asyncio
    async def test_get_accounts(self, auth_client, fake_session, response):
        fake_session.queue(
            response(
                [
                    {
                        "id": "71452118-efc7-4cc4-8780-a5e22d4baa53",
                        "currency": "BTC",
                        "balance": "0.0000000000000000",
                        "available": "0.0000000000000000",
                        "hold": "0.0000000000000000",
                        "profile_id": "75da88c5-05bf-4f54-bc85-5c775bd68254",
                    }
                ]
            )
        )

        accounts = await auth_client.get_accounts()

        assert fake_session.requests[0]["url"] == f"{BASE}/accounts"
        assert accounts[0].currency == "BTC"

    @pytest.mark.asyncio
    async def test_get_account(self, auth_client, fake_session, response):
        fake_session.queue(
            response(
                {
                    "id": "a1b2c3d4",
                    "balance": "1.100",
                    "hold": "0.100",
                    "available": "1.00",
                    "currency": "USD",
                    "profile_id": "p1",
                }
            )
        )

        account = await auth_client.get_account("a1b2c3d4")

        assert fake_session.requests[0]["url"] == f"{BASE}/accounts/a1b2c3d4"
        assert account.hold == Decimal("0.1")

    @pytest.mark.asyncio
    async def test_get_account_requires_id(self, auth_client):
        with pytest.raises(ValueError, match="account_id"):
            await auth_client.get_account("")

    @pytest.mark.asyncio
    async def test_get_coinbase_accounts(self, auth_client, fake_session, response):
        fake_session.queue(
            response(
                [
                    {
                        "id": "fc3a8a57",
                        "name": "BTC Wallet",
                        "balance": "0.00000000",
                        "currency": "BTC",
                        "type": "wallet",
                        "primary": True,
                        "active": True,
                    }
                ]
            )
        )

        accounts = await auth_client.get_coinbase_accounts()

        assert fake_session.requests[0]["url"] == f"{BASE}/coinbase-accounts"
        assert accounts[0].primary is True

    @pytest.mark.asyncio
    async def test_get_account_history_page(self, auth_client, fake_session, response):
        entry = {
            "id": "100",
            "created_at": "2014-11-07T08:19:27.028459Z",
            "amount": "0.001",
            "balance": "239.669",
            "type": "fee",
            "details": {"order_id": "d50ec984", "trade_id": "74", "product_id": "BTC-USD"},
        }
        fake_session.queue(response([entry], headers={"CB-AFTER": "100"}))

        page = await auth_client.get_account_history("a1", PageArgs(limit=1))

        assert fake_session.requests[0]["url"] == f"{BASE}/accounts/a1/ledger?limit=1"
        assert page.results == [entry]
        assert page.next_page_args() == PageArgs(after="100")

    @pytest.mark.asyncio
    async def test_get_account_holds(self, auth_client, fake_session, response):
        fake_session.queue(response([]))

        page = await auth_client.get_account_holds("a1")

        assert fake_session.requests[0]["url"] == f"{BASE}/accounts/a1/holds"
        assert len(page) == 0


class TestOrders:
    """Test suite for order endpoints."""

    @pytest.mark.asyncio
    async def test_place_limit_order(
        self, auth_client, fake_session, response, sample_order_result
    ):
        fake_session.queue(response(sample_order_result))

        result = await auth_client.place_order(
            LimitOrder(
                side="buy",
                product_id="BTC-USD",
                price="0.10",
                size="0.01",
                time_in_force="GTC",
            )
        )

        request = fake_session.requests[0]
        assert request["method"] == "POST"
        assert request["url"] == f"{BASE}/orders"
        assert json.loads(request["data"]) == {
            "side": "buy",
            "product_id": "BTC-USD",
            "type": "limit",
            "price": "0.10",
            "size": "0.01",
            "time_in_force": "GTC",
        }
        assert isinstance(result, OrderResult)
        assert result.status == "received"

    @pytest.mark.asyncio
    async def test_place_order_from_dict(
        self, auth_client, fake_session, response, sample_order_result
    ):
        fake_session.queue(response(sample_order_result))

        await auth_client.place_order(
            {"type": "market", "side": "sell", "product_id": "BTC-USD", "size": "1", "funds": None}
        )

        assert json.loads(fake_session.requests[0]["data"]) == {
            "type": "market",
            "side": "sell",
            "product_id": "BTC-USD",
            "size": "1",
        }

    @pytest.mark.asyncio
    async def test_invalid_order_is_not_sent(self, auth_client, fake_session):
        with pytest.raises(ValueError):
            await auth_client.place_order(
                {"type": "market", "side": "buy", "product_id": "BTC-USD", "price": "1"}
            )
        assert fake_session.requests == []

    @pytest.mark.asyncio
    async def test_unexpected_order_status_raises(
        self, auth_client, fake_session, response, sample_order_result
    ):
        sample_order_result["status"] = "rejected"
        fake_session.queue(response(sample_order_result))

        with pytest.raises(ValueError, match="status"):
            await auth_client.place_order(
                MarketOrder(side="buy", product_id="BTC-USD", funds="10")
            )

    @pytest.mark.asyncio
    async def test_buy_and_sell_force_side(
        self, auth_client, fake_session, response, sample_order_result
    ):
        fake_session.queue(response(sample_order_result), response(sample_order_result))
        order = MarketOrder(side="sell", product_id="BTC-USD", funds="10")

        await auth_client.buy(order)
        await auth_client.sell({"type": "market", "side": "buy", "product_id": "BTC-USD", "size": "1"})

        assert json.loads(fake_session.requests[0]["data"])["side"] == "buy"
        assert json.loads(fake_session.requests[1]["data"])["side"] == "sell"
        assert order.side == "sell"

    @pytest.mark.asyncio
    async def test_cancel_order(self, auth_client, fake_session, response):
        fake_session.queue(response(["c5ab5eae-76be-480e-8961-00792dc7e138"]))

        result = await auth_client.cancel_order("c5ab5eae-76be-480e-8961-00792dc7e138")

        request = fake_session.requests[0]
        assert request["method"] == "DELETE"
        assert request["url"] == f"{BASE}/orders/c5ab5eae-76be-480e-8961-00792dc7e138"
        assert result == ["c5ab5eae-76be-480e-8961-00792dc7e138"]

    @pytest.mark.asyncio
    async def test_cancel_order_requires_id(self, auth_client, fake_session):
        with pytest.raises(ValueError, match="order_id"):
            await auth_client.cancel_order(None)
        assert fake_session.requests == []

    @pytest.mark.asyncio
    async def test_cancel_all_orders_repeats_until_empty(
        self, auth_client, fake_session, response
    ):
        fake_session.queue(response(["a", "b"]), response(["c"]), response([]))

        cancelled = await auth_client.cancel_all_orders(product_id="BTC-USD")

        assert cancelled == ["a", "b", "c"]
        assert len(fake_session.requests) == 3
        assert all(
            r["method"] == "DELETE" and r["url"] == f"{BASE}/orders?product_id=BTC-USD"
            for r in fake_session.requests
        )

    @pytest.mark.asyncio
    async def test_cancel_all_orders_without_product(self, auth_client, fake_session, response):
        fake_session.queue(response([]))

        assert await auth_client.cancel_all_orders() == []
        assert fake_session.requests[0]["url"] == f"{BASE}/orders"

    @pytest.mark.asyncio
    async def test_get_orders(self, auth_client, fake_session, response, sample_order_info):
        pending = dict(sample_order_info, id="p1", status="pending")
        fake_session.queue(
            response([sample_order_info, pending], headers={"CB-BEFORE": "b", "CB-AFTER": "a"})
        )

        page = await auth_client.get_orders(
            PageArgs(limit=2), status=["done", "pending"], product_id="BTC-USD"
        )

        assert (
            fake_session.requests[0]["url"]
            == f"{BASE}/orders?status=done&status=pending&product_id=BTC-USD&limit=2"
        )
        assert [o.status for o in page] == ["done", "pending"]
        assert all(isinstance(o, OrderInfo) for o in page)
        assert (page.before, page.after) == ("b", "a")

    @pytest.mark.asyncio
    async def test_get_order(self, auth_client, fake_session, response, sample_order_info):
        fake_session.queue(response(sample_order_info))

        order = await auth_client.get_order("68e6a28f-ae28-4788-8d4f-5ab4e5e5ae08")

        assert order.specified_funds == Decimal("10")
        assert (
            fake_session.requests[0]["url"]
            == f"{BASE}/orders/68e6a28f-ae28-4788-8d4f-5ab4e5e5ae08"
        )

    @pytest.mark.asyncio
    async def test_get_fills(self, auth_client, fake_session, response):
        fill = {
            "trade_id": 74,
            "product_id": "BTC-USD",
            "price": "10.00",
            "size": "0.01",
            "order_id": "d50ec984-77a8-460a-b958-66f114b0de9b",
            "liquidity": "T",
            "fee": "0.00025",
            "settled": True,
            "side": "buy",
        }
        fake_session.queue(response([fill]))

        page = await auth_client.get_fills({"before": 70}, order_id="d50ec984")

        assert fake_session.requests[0]["url"] == f"{BASE}/fills?order_id=d50ec984&before=70"
        assert page.results == [fill]


class TestFundingAndTransfers:
    """Test suite for funding, margin and transfer endpoints."""

    @pytest.mark.asyncio
    async def test_get_fundings(self, auth_client, fake_session, response):
        fake_session.queue(response([]))

        await auth_client.get_fundings({"status": "outstanding", "limit": 10})

        assert fake_session.requests[0]["url"] == f"{BASE}/funding?status=outstanding&limit=10"

    @pytest.mark.asyncio
    async def test_repay(self, auth_client, fake_session, response):
        fake_session.queue(response({}))

        await auth_client.repay({"amount": "10.00", "currency": "USD"})

        request = fake_session.requests[0]
        assert request["url"] == f"{BASE}/funding/repay"
        assert json.loads(request["data"]) == {"amount": "10.00", "currency": "USD"}

    @pytest.mark.asyncio
    async def test_repay_requires_params(self, auth_client, fake_session):
        with pytest.raises(ValueError, match="currency"):
            await auth_client.repay({"amount": "10.00"})
        assert fake_session.requests == []

    @pytest.mark.asyncio
    async def test_margin_transfer(self, auth_client, fake_session, response):
        fake_session.queue(response({"id": "t1"}))
        params = {
            "margin_profile_id": "45fa9e3b-00ba-4631-b907-8a98cbdf21be",
            "type": "deposit",
            "currency": "USD",
            "amount": "2",
        }

        result = await auth_client.margin_transfer(params)

        assert fake_session.requests[0]["url"] == f"{BASE}/profiles/margin-transfer"
        assert result == {"id": "t1"}

    @pytest.mark.asyncio
    async def test_margin_transfer_type_checked(self, auth_client):
        with pytest.raises(ValueError, match="type"):
            await auth_client.margin_transfer(
                {"margin_profile_id": "m", "type": "borrow", "currency": "USD", "amount": "2"}
            )

    @pytest.mark.asyncio
    async def test_close_position(self, auth_client, fake_session, response):
        fake_session.queue(response({}))

        await auth_client.close_position({"repay_only": False})

        request = fake_session.requests[0]
        assert request["url"] == f"{BASE}/position/close"
        assert json.loads(request["data"]) == {"repay_only": False}

    @pytest.mark.asyncio
    async def test_deposit_and_withdraw_set_type(self, auth_client, fake_session, response):
        fake_session.queue(response({}), response({}))
        params = {"amount": "1.00", "coinbase_account_id": "c1"}

        await auth_client.deposit(params)
        await auth_client.withdraw(params)

        bodies = [json.loads(r["data"]) for r in fake_session.requests]
        assert all(r["url"] == f"{BASE}/transfers" for r in fake_session.requests)
        assert bodies[0]["type"] == "deposit"
        assert bodies[1]["type"] == "withdraw"
        assert "type" not in params

    @pytest.mark.asyncio
    async def test_transfer_requires_coinbase_account(self, auth_client):
        with pytest.raises(ValueError, match="coinbase_account_id"):
            await auth_client.deposit({"amount": "1.00"})

    @pytest.mark.asyncio
    async def test_withdraw_crypto(self, auth_client, fake_session, response):
        fake_session.queue(response({"id": "w1"}))

        await auth_client.withdraw_crypto(
            {"amount": "0.1", "currency": "BTC", "crypto_address": "1BvBMSEYstWetqTFn5Au4m4GFg7xJaNVN2"}
        )

        assert fake_session.requests[0]["url"] == f"{BASE}/withdrawals/crypto"

    @pytest.mark.asyncio
    async def test_get_trailing_volume(self, auth_client, fake_session, response):
        volume = [{"product_id": "BTC-USD", "exchange_volume": "11800.0", "volume": "100.0"}]
        fake_session.queue(response(volume))

        assert await auth_client.get_trailing_volume() == volume
        assert fake_session.requests[0]["url"] == f"{BASE}/users/self/trailing-volume"
