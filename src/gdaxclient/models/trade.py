"""Trade and candle models."""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from ..utils.timing import parse_time
from .enums import Side, check_choice, to_decimal


@dataclass
class Trade:
    """A public trade on a product.

    `side` is the maker order's side: "buy" means the taker sold into a
    resting bid.
    """

    trade_id: int
    price: Decimal
    size: Decimal
    side: Side
    time: datetime | None = None

    def __post_init__(self):
        check_choice("side", self.side, Side)

    @classmethod
    def from_api(cls, data: dict) -> "Trade":
        """Create Trade from API response."""
        return cls(
            trade_id=int(data["trade_id"]),
            price=to_decimal(data["price"]),
            size=to_decimal(data["size"]),
            side=data["side"],
            time=parse_time(data.get("time")),
        )

    def __repr__(self) -> str:
        return f"Trade({self.trade_id}, {self.side}, price={self.price}, size={self.size})"


@dataclass
class Candle:
    """One historic rate bucket."""

    time: datetime
    low: Decimal
    high: Decimal
    open: Decimal
    close: Decimal
    volume: Decimal

    @classmethod
    def from_api(cls, row: list) -> "Candle":
        """Create Candle from a [time, low, high, open, close, volume] row."""
        if len(row) < 6:
            raise ValueError(f"Candle row needs 6 values, got {len(row)}")
        ts, low, high, open_, close, volume = row[:6]
        return cls(
            time=datetime.fromtimestamp(int(ts), tz=timezone.utc),
            low=to_decimal(low),
            high=to_decimal(high),
            open=to_decimal(open_),
            close=to_decimal(close),
            volume=to_decimal(volume),
        )
