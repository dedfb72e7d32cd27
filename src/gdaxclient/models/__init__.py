"""Data models."""

from .account import Account, CoinbaseAccount
from .enums import (
    CancelAfter,
    CoinbaseAccountType,
    CurrencyType,
    MarginTransferType,
    OrderResultStatus,
    OrderStatus,
    OrderType,
    SelfTradePrevention,
    Side,
    TimeInForce,
)
from .order import (
    BaseOrder,
    BaseOrderInfo,
    LimitOrder,
    MarketOrder,
    OrderInfo,
    OrderParams,
    OrderResult,
    StopOrder,
    order_params_from_dict,
)
from .orderbook import OrderBook
from .pagination import Page, PageArgs
from .product import CurrencyInfo, ProductInfo, ProductStats, ProductTicker
from .trade import Candle, Trade

__all__ = [
    "Account",
    "CoinbaseAccount",
    "CancelAfter",
    "CoinbaseAccountType",
    "CurrencyType",
    "MarginTransferType",
    "OrderResultStatus",
    "OrderStatus",
    "OrderType",
    "SelfTradePrevention",
    "Side",
    "TimeInForce",
    "BaseOrder",
    "BaseOrderInfo",
    "LimitOrder",
    "MarketOrder",
    "OrderInfo",
    "OrderParams",
    "OrderResult",
    "StopOrder",
    "order_params_from_dict",
    "OrderBook",
    "Page",
    "PageArgs",
    "CurrencyInfo",
    "ProductInfo",
    "ProductStats",
    "ProductTicker",
    "Candle",
    "Trade",
]
