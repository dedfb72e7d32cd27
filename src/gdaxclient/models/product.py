"""Product, ticker, 24 hour stats and currency models."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from ..utils.timing import parse_time
from .enums import CurrencyType, check_choice, to_decimal


@dataclass
class ProductInfo:
    """A tradeable currency pair (e.g. BTC-USD)."""

    id: str
    base_currency: str
    quote_currency: str
    base_min_size: str
    base_max_size: str
    quote_increment: str
    display_name: str
    margin_enabled: bool = False

    @classmethod
    def from_api(cls, data: dict) -> "ProductInfo":
        """Create ProductInfo from API response."""
        return cls(
            id=data["id"],
            base_currency=data["base_currency"],
            quote_currency=data["quote_currency"],
            base_min_size=str(data.get("base_min_size", "")),
            base_max_size=str(data.get("base_max_size", "")),
            quote_increment=str(data.get("quote_increment", "")),
            display_name=data.get("display_name", data["id"]),
            margin_enabled=bool(data.get("margin_enabled", False)),
        )


@dataclass
class ProductTicker:
    """Snapshot of the last trade and best bid/ask for a product."""

    trade_id: str
    price: str
    size: str
    bid: str
    ask: str
    volume: str
    time: datetime

    @classmethod
    def from_api(cls, data: dict) -> "ProductTicker":
        """Create ProductTicker from API response."""
        return cls(
            trade_id=str(data["trade_id"]),
            price=str(data["price"]),
            size=str(data["size"]),
            bid=str(data["bid"]),
            ask=str(data["ask"]),
            volume=str(data["volume"]),
            time=parse_time(data["time"]),
        )

    @property
    def spread(self) -> Decimal:
        return Decimal(self.ask) - Decimal(self.bid)


@dataclass
class ProductStats:
    """24 hour statistics for a product."""

    open: Decimal
    high: Decimal
    low: Decimal
    volume: Decimal
    last: Decimal | None = None
    volume_30day: Decimal | None = None

    @classmethod
    def from_api(cls, data: dict) -> "ProductStats":
        """Create ProductStats from API response."""
        return cls(
            open=to_decimal(data["open"]),
            high=to_decimal(data["high"]),
            low=to_decimal(data["low"]),
            volume=to_decimal(data["volume"]),
            last=to_decimal(data.get("last")),
            volume_30day=to_decimal(data.get("volume_30day")),
        )


@dataclass
class CurrencyInfo:
    """Currency metadata."""

    id: CurrencyType
    name: str
    min_size: str

    def __post_init__(self):
        check_choice("id", self.id, CurrencyType)

    @classmethod
    def from_api(cls, data: dict) -> "CurrencyInfo":
        """Create CurrencyInfo from API response."""
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            min_size=str(data["min_size"]),
        )
