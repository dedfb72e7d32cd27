"""Public (unauthenticated) REST client for GDAX market data."""

import asyncio
import json
from collections.abc import AsyncIterator, Callable, Mapping
from datetime import datetime
from typing import Any, TypeVar
from urllib.parse import urlencode

import aiohttp

from ..exceptions import RateLimitError, error_for_status
from ..models.orderbook import OrderBook
from ..models.pagination import Page, PageArgs
from ..models.product import CurrencyInfo, ProductInfo, ProductStats, ProductTicker
from ..models.trade import Candle, Trade
from ..utils.config import Config
from ..utils.logger import logger
from ..utils.timing import to_iso

T = TypeVar("T")

ORDER_BOOK_LEVELS = (1, 2, 3)


class PublicClient:
    """Async REST client for the public market data endpoints."""

    def __init__(self, api_uri: str | None = None):
        self.base_url = (api_uri or Config.get_rest_url()).rstrip("/")
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self):
        """Context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        await self.close()

    async def connect(self) -> None:
        """Create aiohttp session."""
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=Config.REST_TIMEOUT)
            self.session = aiohttp.ClientSession(timeout=timeout)
            logger.info(f"REST client connected to {self.base_url}")

    async def close(self) -> None:
        """Close aiohttp session."""
        if self.session and not self.session.closed:
            await self.session.close()
            logger.info("REST client closed")

    def _get_auth_headers(
        self, method: str, request_path: str, body: str
    ) -> dict[str, str]:
        """Headers that authenticate a request; none for public access."""
        return {}

    async def _request_raw(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        data: Any = None,
    ) -> tuple[Any, Mapping[str, str]]:
        """
        Make an HTTP request.

        Args:
            method: HTTP method
            path: API path
            params: Query parameters (None values are dropped)
            data: Request body, sent as JSON

        Returns:
            Tuple of (response JSON, response headers)

        Raises:
            APIError: On an HTTP error status
            aiohttp.ClientError: On transport failure
        """
        if self.session is None or self.session.closed:
            await self.connect()

        # The signed path must match the path sent byte for byte
        request_path = path
        if params:
            query = {k: v for k, v in params.items() if v is not None}
            if query:
                request_path = f"{path}?{urlencode(query, doseq=True)}"

        body = json.dumps(data) if data is not None else ""
        url = f"{self.base_url}{request_path}"

        headers = {
            "User-Agent": Config.USER_AGENT,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        headers.update(self._get_auth_headers(method.upper(), request_path, body))

        try:
            async with self.session.request(
                method=method.upper(),
                url=url,
                data=body or None,
                headers=headers,
            ) as response:
                logger.debug(f"REST request -> {method.upper()} {url} body: {body or '-'}")

                try:
                    response_data = await response.json()
                except (aiohttp.ContentTypeError, json.JSONDecodeError):
                    response_text = await response.text()
                    if response.status >= 400:
                        logger.error(
                            f"REST API error: {response.status} - Non-JSON response: {response_text[:200]}"
                        )
                        raise error_for_status(
                            response.status, response_text[:100], response_text
                        )
                    return {}, response.headers

                if response.status >= 400:
                    error_msg = "Unknown error"
                    if isinstance(response_data, dict):
                        error_msg = response_data.get("message", error_msg)
                    logger.error(
                        f"REST API error: {response.status} - {error_msg} - {response_data}"
                    )
                    raise error_for_status(response.status, error_msg, response_data)

                return response_data, response.headers

        except aiohttp.ClientError as e:
            logger.error(f"REST request failed: {method.upper()} {url} - {e}")
            raise

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        data: Any = None,
    ) -> Any:
        """Make an HTTP request and return the response JSON."""
        response_data, _ = await self._request_raw(method, path, params, data)
        return response_data

    async def _request_page(
        self,
        path: str,
        parser: Callable[[dict], T] | None = None,
        page_args: PageArgs | dict | None = None,
        params: dict[str, Any] | None = None,
    ) -> Page[T]:
        """GET a paginated list endpoint and read the cursor headers."""
        query = dict(params or {})
        page_args = PageArgs.coerce(page_args)
        if page_args is not None:
            query.update(page_args.to_params())

        response_data, headers = await self._request_raw("GET", path, params=query)
        items = response_data if isinstance(response_data, list) else []
        results = self._parse_list(items, parser, path) if parser else items
        return Page(
            results=results,
            before=headers.get("CB-BEFORE"),
            after=headers.get("CB-AFTER"),
            skipped=len(items) - len(results),
        )

    @staticmethod
    def _parse_list(items: list, parser: Callable[[Any], T], label: str) -> list[T]:
        """Parse each item, logging and skipping the ones that do not fit."""
        parsed = []
        for item in items:
            try:
                parsed.append(parser(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to parse item from {label}: {e}")
        return parsed

    # Market data

    async def get_products(self) -> list[ProductInfo]:
        """
        Get list of available currency pairs.

        Returns:
            List of ProductInfo objects
        """
        response = await self._request("GET", "/products")
        products = self._parse_list(response or [], ProductInfo.from_api, "/products")
        logger.info(f"Fetched {len(products)} products")
        return products

    async def get_product_order_book(self, product_id: str, level: int = 1) -> OrderBook:
        """
        Get order book snapshot.

        Args:
            product_id: Product ID (e.g., "BTC-USD")
            level: 1 for best bid/ask, 2 for top 50 aggregated levels,
                3 for the full non-aggregated book

        Returns:
            OrderBook snapshot
        """
        if level not in ORDER_BOOK_LEVELS:
            raise ValueError(f"level must be one of {ORDER_BOOK_LEVELS}")

        response = await self._request(
            "GET", f"/products/{product_id}/book", params={"level": level}
        )
        return OrderBook.from_api(product_id, response, level=level)

    async def get_product_ticker(self, product_id: str) -> ProductTicker:
        """Get snapshot of the last trade, best bid/ask and 24h volume."""
        response = await self._request("GET", f"/products/{product_id}/ticker")
        return ProductTicker.from_api(response)

    async def get_product_trades(
        self, product_id: str, page_args: PageArgs | dict | None = None
    ) -> Page[Trade]:
        """
        Get one page of recent trades, newest first.

        Args:
            product_id: Product ID
            page_args: Optional pagination arguments (trade ID cursors)

        Returns:
            Page of Trade objects
        """
        return await self._request_page(
            f"/products/{product_id}/trades", Trade.from_api, page_args
        )

    async def get_product_trade_stream(
        self,
        product_id: str,
        trades_from: int,
        trades_to: int | Callable[[Trade], bool] | None = None,
    ) -> AsyncIterator[Trade]:
        """
        Stream trades in ascending trade ID order.

        Trades are fetched page by page, starting at `trades_from` (inclusive).
        The stream ends before trade ID `trades_to`, when `trades_to` is a
        predicate that returns True for a trade (that trade is not yielded),
        or when the exchange has no newer trades.

        Args:
            product_id: Product ID
            trades_from: First trade ID
            trades_to: Trade ID to stop before, or a stop predicate

        Yields:
            Trade objects
        """
        should_stop = trades_to if callable(trades_to) else None
        end_id = None if callable(trades_to) else trades_to
        page_size = Config.TRADE_STREAM_PAGE_SIZE

        before = trades_from - 1
        while True:
            after = before + page_size + 1
            last_page = False
            if end_id is not None and end_id <= after:
                after = end_id
                last_page = True

            if after - before <= 1:
                return

            try:
                page = await self.get_product_trades(
                    product_id, PageArgs(before=before, after=after, limit=page_size)
                )
            except RateLimitError:
                logger.warning(
                    f"Rate limited streaming {product_id} trades, retrying in {Config.RATE_LIMIT_RETRY_DELAY}s"
                )
                await asyncio.sleep(Config.RATE_LIMIT_RETRY_DELAY)
                continue

            if not page and not page.skipped:
                return

            for trade in sorted(page, key=lambda t: t.trade_id):
                if should_stop and should_stop(trade):
                    return
                yield trade

            if last_page:
                return
            before += page_size

    async def get_product_historic_rates(
        self,
        product_id: str,
        start: datetime | str | None = None,
        end: datetime | str | None = None,
        granularity: int | None = None,
    ) -> list[Candle]:
        """
        Get historic rates (candles) for a product.

        Args:
            product_id: Product ID
            start: Start time (ISO 8601 or datetime)
            end: End time (ISO 8601 or datetime)
            granularity: Bucket size in seconds

        Returns:
            List of Candle objects, newest first
        """
        params = {
            "start": to_iso(start),
            "end": to_iso(end),
            "granularity": granularity,
        }
        response = await self._request(
            "GET", f"/products/{product_id}/candles", params=params
        )
        return self._parse_list(response or [], Candle.from_api, "candles")

    async def get_product_24hr_stats(self, product_id: str) -> ProductStats:
        """Get 24 hour open/high/low/volume statistics."""
        response = await self._request("GET", f"/products/{product_id}/stats")
        return ProductStats.from_api(response)

    async def get_currencies(self) -> list[CurrencyInfo]:
        """Get list of known currencies."""
        response = await self._request("GET", "/currencies")
        return self._parse_list(response or [], CurrencyInfo.from_api, "/currencies")

    async def get_time(self) -> dict[str, Any]:
        """
        Get the API server time.

        Returns:
            Dict with "iso" and "epoch" keys
        """
        return await self._request("GET", "/time")
