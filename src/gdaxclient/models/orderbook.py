"""Order book snapshot model."""

from dataclasses import dataclass, field
from decimal import Decimal

from .enums import to_decimal

# (price, size, num_orders) at levels 1 and 2, (price, size, order_id) at level 3
Level = tuple[Decimal, Decimal, int | str]


@dataclass
class OrderBook:
    """Order book snapshot from GET /products/{id}/book."""

    product_id: str
    sequence: int = 0
    level: int = 1
    bids: list[Level] = field(default_factory=list)
    asks: list[Level] = field(default_factory=list)

    @classmethod
    def from_api(cls, product_id: str, data: dict, level: int = 1) -> "OrderBook":
        """Create OrderBook from API response."""
        book = cls(
            product_id=product_id,
            sequence=int(data.get("sequence", 0)),
            level=level,
        )
        book.bids = [cls._parse_level(row, level) for row in data.get("bids", [])]
        book.asks = [cls._parse_level(row, level) for row in data.get("asks", [])]

        # Sort: bids descending, asks ascending
        book.bids.sort(reverse=True, key=lambda x: x[0])
        book.asks.sort(key=lambda x: x[0])
        return book

    @staticmethod
    def _parse_level(row: list, level: int) -> Level:
        price, size, extra = row[0], row[1], row[2]
        return (
            to_decimal(price),
            to_decimal(size),
            str(extra) if level == 3 else int(extra),
        )

    def get_best_bid(self) -> Level | None:
        """Get best bid (highest price)."""
        return self.bids[0] if self.bids else None

    def get_best_ask(self) -> Level | None:
        """Get best ask (lowest price)."""
        return self.asks[0] if self.asks else None

    def get_mid_price(self) -> Decimal | None:
        if not self.bids or not self.asks:
            return None
        return (self.bids[0][0] + self.asks[0][0]) / 2

    def get_spread(self) -> Decimal | None:
        if not self.bids or not self.asks:
            return None
        return self.asks[0][0] - self.bids[0][0]

    def __repr__(self) -> str:
        best_bid = self.get_best_bid()
        best_ask = self.get_best_ask()
        return f"OrderBook({self.product_id}, bid={best_bid}, ask={best_ask}, seq={self.sequence})"
