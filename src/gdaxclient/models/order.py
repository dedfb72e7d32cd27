"""Order parameter and order status models."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Union

from ..utils.timing import parse_time
from .enums import (
    CancelAfter,
    OrderResultStatus,
    OrderStatus,
    OrderType,
    SelfTradePrevention,
    Side,
    TimeInForce,
    check_choice,
    decimal_str,
    to_decimal,
)


@dataclass(kw_only=True)
class BaseOrder:
    """Fields shared by every order submission."""

    side: Side
    product_id: str
    client_oid: str | None = None
    stp: SelfTradePrevention | None = None

    def __post_init__(self):
        check_choice("side", self.side, Side)
        check_choice("stp", self.stp, SelfTradePrevention, optional=True)
        if not self.product_id:
            raise ValueError("product_id is required")

    def to_api_payload(self) -> dict[str, Any]:
        """Convert to the JSON body of POST /orders, dropping unset fields."""
        payload = {}
        for key, value in asdict(self).items():
            if value is None:
                continue
            if isinstance(value, (Decimal, float, int)) and not isinstance(value, bool):
                value = decimal_str(value)
            payload[key] = value
        return payload


@dataclass(kw_only=True)
class LimitOrder(BaseOrder):
    """Limit order: rests on the book at `price` until filled or cancelled."""

    type: Literal["limit"] = field(default="limit", init=False)
    price: str
    size: str
    time_in_force: TimeInForce | None = None
    cancel_after: CancelAfter | None = None
    post_only: bool | None = None

    def __post_init__(self):
        super().__post_init__()
        if self.price is None or self.size is None:
            raise ValueError("limit orders require price and size")
        check_choice("time_in_force", self.time_in_force, TimeInForce, optional=True)
        check_choice("cancel_after", self.cancel_after, CancelAfter, optional=True)
        if self.cancel_after is not None and self.time_in_force != "GTT":
            raise ValueError("cancel_after requires time_in_force='GTT'")
        if self.post_only and self.time_in_force in ("IOC", "FOK"):
            raise ValueError("post_only is invalid with time_in_force IOC or FOK")


@dataclass(kw_only=True)
class MarketOrder(BaseOrder):
    """Market order.

    Only one of `size` and `funds` is required, the other may be None.
    Supplying `funds` is advisable: without it the entire balance of the
    quote currency is placed on hold until the order is filled.
    """

    type: Literal["market"] = field(default="market", init=False)
    size: str | None = None
    funds: str | None = None

    def __post_init__(self):
        super().__post_init__()
        if self.size is None and self.funds is None:
            raise ValueError("market orders require size or funds")


@dataclass(kw_only=True)
class StopOrder(BaseOrder):
    """Stop order; `price` is the trigger price where the venue requires one."""

    type: Literal["stop"] = field(default="stop", init=False)
    size: str
    funds: str
    price: str | None = None

    def __post_init__(self):
        super().__post_init__()
        if self.size is None or self.funds is None:
            raise ValueError("stop orders require size and funds")


OrderParams = Union[MarketOrder, LimitOrder, StopOrder]

_ORDER_CLASSES: dict[str, type] = {
    "limit": LimitOrder,
    "market": MarketOrder,
    "stop": StopOrder,
}


def order_params_from_dict(data: dict[str, Any]) -> OrderParams:
    """Build order parameters from a plain dict, dispatching on `type`.

    Fields that do not belong to the order type (e.g. `price` on a market
    order) are rejected.
    """
    fields = dict(data)
    order_type = fields.pop("type", None)
    order_cls = _ORDER_CLASSES.get(order_type)
    if order_cls is None:
        raise ValueError(
            f"type must be one of {tuple(_ORDER_CLASSES)}, got {order_type!r}"
        )
    try:
        return order_cls(**fields)
    except TypeError as e:
        raise ValueError(f"invalid fields for {order_type} order: {e}") from e


@dataclass(kw_only=True)
class BaseOrderInfo:
    """Order state as reported by the exchange."""

    id: str
    product_id: str
    side: Side
    type: OrderType
    status: OrderStatus
    created_at: datetime | None = None
    price: Decimal | None = None
    size: Decimal | None = None
    stp: SelfTradePrevention | None = None
    post_only: bool = False
    fill_fees: Decimal = Decimal("0")
    filled_size: Decimal = Decimal("0")
    executed_value: Decimal = Decimal("0")
    settled: bool = False

    def __post_init__(self):
        check_choice("side", self.side, Side)
        check_choice("type", self.type, OrderType)
        check_choice("status", self.status, OrderStatus)
        check_choice("stp", self.stp, SelfTradePrevention, optional=True)

    @staticmethod
    def _common_fields(data: dict) -> dict[str, Any]:
        return {
            "id": data["id"],
            "product_id": data["product_id"],
            "side": data["side"],
            "type": data["type"],
            "status": data["status"],
            "created_at": parse_time(data.get("created_at")),
            "price": to_decimal(data.get("price")),
            "size": to_decimal(data.get("size")),
            "stp": data.get("stp"),
            "post_only": bool(data.get("post_only", False)),
            "fill_fees": to_decimal(data.get("fill_fees")) or Decimal("0"),
            "filled_size": to_decimal(data.get("filled_size")) or Decimal("0"),
            "executed_value": to_decimal(data.get("executed_value")) or Decimal("0"),
            "settled": bool(data.get("settled", False)),
        }

    @property
    def is_done(self) -> bool:
        return self.status == "done"


@dataclass(kw_only=True)
class OrderResult(BaseOrderInfo):
    """Response to an order submission; never in the `pending` state."""

    status: OrderResultStatus
    time_in_force: TimeInForce | None = None

    def __post_init__(self):
        super().__post_init__()
        check_choice("status", self.status, OrderResultStatus)
        check_choice("time_in_force", self.time_in_force, TimeInForce, optional=True)

    @classmethod
    def from_api(cls, data: dict) -> "OrderResult":
        """Create OrderResult from API response."""
        return cls(
            **cls._common_fields(data),
            time_in_force=data.get("time_in_force"),
        )


@dataclass(kw_only=True)
class OrderInfo(BaseOrderInfo):
    """Full order record from GET /orders."""

    funds: Decimal | None = None
    specified_funds: Decimal | None = None
    done_at: datetime | None = None
    done_reason: str | None = None

    @classmethod
    def from_api(cls, data: dict) -> "OrderInfo":
        """Create OrderInfo from API response."""
        return cls(
            **cls._common_fields(data),
            funds=to_decimal(data.get("funds")),
            specified_funds=to_decimal(data.get("specified_funds")),
            done_at=parse_time(data.get("done_at")),
            done_reason=data.get("done_reason"),
        )

    def __str__(self) -> str:
        price_str = f"{self.price}" if self.price is not None else "MARKET"
        return (
            f"Order[{self.status.upper()}]: "
            f"{self.side.upper()} {self.size} {self.product_id} @ {price_str} "
            f"(type={self.type}, filled={self.filled_size}, id={self.id})"
        )
