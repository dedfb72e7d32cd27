"""Enumerated wire values and small parsing helpers shared by the models."""

from decimal import Decimal, InvalidOperation
from typing import Any, Literal, get_args

Side = Literal["buy", "sell"]
SelfTradePrevention = Literal["dc", "co", "cn", "cb"]
OrderType = Literal["limit", "market", "stop"]
TimeInForce = Literal["GTC", "GTT", "IOC", "FOK"]
CancelAfter = Literal["min", "hour", "day"]
OrderStatus = Literal["received", "open", "done", "pending"]
OrderResultStatus = Literal["received", "open", "done"]
CurrencyType = Literal["USD", "BTC", "LTC", "ETH", "B2X"]
CoinbaseAccountType = Literal["wallet", "fiat"]
MarginTransferType = Literal["deposit", "withdraw"]


def check_choice(field_name: str, value: Any, choices: Any, optional: bool = False) -> None:
    """Raise ValueError if value is not one of the Literal's values."""
    if optional and value is None:
        return
    allowed = get_args(choices)
    if value not in allowed:
        raise ValueError(f"{field_name} must be one of {allowed}, got {value!r}")


def to_decimal(value: Any) -> Decimal | None:
    """Parse a decimal string or number from the API, keeping None."""
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid decimal value: {value!r}") from e


def decimal_str(value: Any) -> str | None:
    """Format an amount as the decimal string the API expects."""
    if value is None:
        return None
    if isinstance(value, float):
        # repr of a float is its shortest round-tripping form
        value = repr(value)
    return str(value)
