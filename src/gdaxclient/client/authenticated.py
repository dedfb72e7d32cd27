"""Authenticated REST client: accounts, orders, fills, funding and transfers."""

import dataclasses
from typing import Any

from ..models.account import Account, CoinbaseAccount
from ..models.enums import MarginTransferType, Side, check_choice
from ..models.order import OrderInfo, OrderParams, OrderResult, order_params_from_dict
from ..models.pagination import Page, PageArgs
from ..utils.config import Config
from ..utils.logger import logger
from .auth import get_auth_headers, sign_request
from .public import PublicClient


class AuthenticatedClient(PublicClient):
    """Async REST client that signs every request with API credentials."""

    def __init__(
        self,
        key: str | None = None,
        secret: str | None = None,
        passphrase: str | None = None,
        api_uri: str | None = None,
    ):
        super().__init__(api_uri)
        self.key = key if key is not None else Config.API_KEY
        self.secret = secret if secret is not None else Config.API_SECRET
        self.passphrase = passphrase if passphrase is not None else Config.API_PASSPHRASE

        if not self.key or not self.secret or not self.passphrase:
            raise ValueError(
                "AuthenticatedClient requires key, secret and passphrase"
            )

    def _get_auth_headers(
        self, method: str, request_path: str, body: str
    ) -> dict[str, str]:
        signature, timestamp = sign_request(self.secret, method, request_path, body)
        return get_auth_headers(self.key, self.passphrase, signature, timestamp)

    @staticmethod
    def _require_params(params: dict[str, Any] | None, required: list[str]) -> dict:
        """Check required keys are present and not None."""
        if params is None:
            raise ValueError(f"Missing required parameters: {', '.join(required)}")
        missing = [name for name in required if params.get(name) is None]
        if missing:
            raise ValueError(f"Missing required parameters: {', '.join(missing)}")
        return params

    @staticmethod
    def _require_id(value: Any, name: str) -> str:
        if not value:
            raise ValueError(f"{name} is required")
        return str(value)

    # Accounts

    async def get_coinbase_accounts(self) -> list[CoinbaseAccount]:
        """Get linked Coinbase wallets usable for deposits and withdrawals."""
        response = await self._request("GET", "/coinbase-accounts")
        return self._parse_list(
            response or [], CoinbaseAccount.from_api, "/coinbase-accounts"
        )

    async def get_accounts(self) -> list[Account]:
        """Get trading accounts, one per currency."""
        response = await self._request("GET", "/accounts")
        return self._parse_list(response or [], Account.from_api, "/accounts")

    async def get_account(self, account_id: str) -> Account:
        """Get a single trading account."""
        account_id = self._require_id(account_id, "account_id")
        response = await self._request("GET", f"/accounts/{account_id}")
        return Account.from_api(response)

    async def get_account_history(
        self, account_id: str, page_args: PageArgs | dict | None = None
    ) -> Page[dict[str, Any]]:
        """
        Get ledger entries (account activity), newest first.

        Args:
            account_id: Account ID
            page_args: Optional pagination arguments

        Returns:
            Page of ledger entry dicts
        """
        account_id = self._require_id(account_id, "account_id")
        return await self._request_page(
            f"/accounts/{account_id}/ledger", page_args=page_args
        )

    async def get_account_holds(
        self, account_id: str, page_args: PageArgs | dict | None = None
    ) -> Page[dict[str, Any]]:
        """
        Get holds placed on an account by open orders or pending withdrawals.

        Args:
            account_id: Account ID
            page_args: Optional pagination arguments

        Returns:
            Page of hold dicts
        """
        account_id = self._require_id(account_id, "account_id")
        return await self._request_page(
            f"/accounts/{account_id}/holds", page_args=page_args
        )

    # Orders

    async def place_order(self, params: OrderParams | dict[str, Any]) -> OrderResult:
        """
        Place a new order.

        Args:
            params: MarketOrder, LimitOrder or StopOrder, or a dict with a
                `type` discriminant

        Returns:
            OrderResult for the accepted order

        Raises:
            ValueError: If the parameters do not form a valid order
        """
        if isinstance(params, dict):
            params = order_params_from_dict(params)

        payload = params.to_api_payload()
        response = await self._request("POST", "/orders", data=payload)
        try:
            result = OrderResult.from_api(response)
        except (KeyError, TypeError, ValueError) as e:
            # The order exists on the exchange; keep its ID in the log
            logger.error(f"Order accepted but response not understood: {e} - {response}")
            raise
        logger.info(
            f"Order placed: {params.side} {params.type} {params.product_id} - ID: {result.id}"
        )
        return result

    async def buy(self, params: OrderParams | dict[str, Any]) -> OrderResult:
        """Place an order with side forced to "buy"."""
        return await self.place_order(self._with_side(params, "buy"))

    async def sell(self, params: OrderParams | dict[str, Any]) -> OrderResult:
        """Place an order with side forced to "sell"."""
        return await self.place_order(self._with_side(params, "sell"))

    @staticmethod
    def _with_side(params: OrderParams | dict[str, Any], side: Side):
        if isinstance(params, dict):
            return {**params, "side": side}
        return dataclasses.replace(params, side=side)

    async def cancel_order(self, order_id: str) -> Any:
        """
        Cancel an order.

        Args:
            order_id: Exchange order ID

        Returns:
            Cancellation response data
        """
        order_id = self._require_id(order_id, "order_id")
        response = await self._request("DELETE", f"/orders/{order_id}")
        logger.info(f"Order cancelled: {order_id}")
        return response

    async def cancel_all_orders(self, product_id: str | None = None) -> list[str]:
        """
        Cancel all open orders.

        The exchange cancels a bounded batch per request, so the request is
        repeated until it reports nothing left to cancel.

        Args:
            product_id: Optional product ID to restrict cancellation to

        Returns:
            IDs of every cancelled order
        """
        params = {"product_id": product_id}
        cancelled: list[str] = []
        while True:
            response = await self._request("DELETE", "/orders", params=params)
            if not response:
                break
            cancelled.extend(response)

        logger.info(f"Cancelled {len(cancelled)} orders for product_id={product_id}")
        return cancelled

    async def get_orders(
        self,
        page_args: PageArgs | dict | None = None,
        status: str | list[str] | None = None,
        product_id: str | None = None,
    ) -> Page[OrderInfo]:
        """
        List orders. The exchange returns open and pending orders by default.

        Args:
            page_args: Optional pagination arguments
            status: Status filter, one or several of "open", "pending",
                "active", "done" or "all"
            product_id: Optional product ID filter

        Returns:
            Page of OrderInfo objects
        """
        params = {"status": status, "product_id": product_id}
        return await self._request_page(
            "/orders", OrderInfo.from_api, page_args, params=params
        )

    async def get_order(self, order_id: str) -> OrderInfo:
        """Get a single order by exchange ID."""
        order_id = self._require_id(order_id, "order_id")
        response = await self._request("GET", f"/orders/{order_id}")
        return OrderInfo.from_api(response)

    # Fills

    async def get_fills(
        self,
        page_args: PageArgs | dict | None = None,
        order_id: str | None = None,
        product_id: str | None = None,
    ) -> Page[dict[str, Any]]:
        """
        List fills (partial or complete executions of your orders).

        Args:
            page_args: Optional pagination arguments
            order_id: Limit to fills of one order
            product_id: Limit to fills on one product

        Returns:
            Page of fill dicts
        """
        params = {"order_id": order_id, "product_id": product_id}
        return await self._request_page("/fills", page_args=page_args, params=params)

    # Funding and margin

    async def get_fundings(
        self, params: dict[str, Any] | None = None
    ) -> Page[dict[str, Any]]:
        """
        List margin funding records.

        Args:
            params: Optional filters ("status") and pagination keys

        Returns:
            Page of funding dicts
        """
        params = dict(params or {})
        page_args = {k: params.pop(k) for k in ("before", "after", "limit") if k in params}
        return await self._request_page(
            "/funding", page_args=page_args or None, params=params
        )

    async def repay(self, params: dict[str, Any]) -> Any:
        """Repay outstanding margin funding (amount, currency)."""
        self._require_params(params, ["amount", "currency"])
        return await self._request("POST", "/funding/repay", data=params)

    async def margin_transfer(self, params: dict[str, Any]) -> Any:
        """Move funds between a margin profile and the default profile."""
        self._require_params(
            params, ["margin_profile_id", "type", "currency", "amount"]
        )
        check_choice("type", params["type"], MarginTransferType)
        return await self._request("POST", "/profiles/margin-transfer", data=params)

    async def close_position(self, params: dict[str, Any]) -> Any:
        """Close the margin position (repay_only)."""
        self._require_params(params, ["repay_only"])
        return await self._request("POST", "/position/close", data=params)

    # Transfers

    async def deposit(self, params: dict[str, Any]) -> Any:
        """Deposit funds from a Coinbase account (amount, coinbase_account_id)."""
        return await self._transfer_funds({**params, "type": "deposit"})

    async def withdraw(self, params: dict[str, Any]) -> Any:
        """Withdraw funds to a Coinbase account (amount, coinbase_account_id)."""
        return await self._transfer_funds({**params, "type": "withdraw"})

    async def _transfer_funds(self, params: dict[str, Any]) -> Any:
        self._require_params(params, ["type", "amount", "coinbase_account_id"])
        response = await self._request("POST", "/transfers", data=params)
        logger.info(f"Transfer requested: {params['type']} {params['amount']}")
        return response

    async def withdraw_crypto(self, params: dict[str, Any]) -> Any:
        """Withdraw to a crypto address (amount, currency, crypto_address)."""
        self._require_params(params, ["amount", "currency", "crypto_address"])
        response = await self._request("POST", "/withdrawals/crypto", data=params)
        logger.info(f"Crypto withdrawal requested: {params['amount']} {params['currency']}")
        return response

    async def get_trailing_volume(self) -> list[dict[str, Any]]:
        """Get 30 day trailing volume per product."""
        return await self._request("GET", "/users/self/trailing-volume")
