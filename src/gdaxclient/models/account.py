"""Account models."""

from dataclasses import dataclass
from decimal import Decimal

from .enums import CoinbaseAccountType, CurrencyType, check_choice, to_decimal


@dataclass
class Account:
    """Trading account holding one currency within a profile."""

    id: str
    profile_id: str
    currency: CurrencyType
    balance: Decimal
    available: Decimal
    hold: Decimal  # Reserved against open orders

    def __post_init__(self):
        check_choice("currency", self.currency, CurrencyType)

    @classmethod
    def from_api(cls, data: dict) -> "Account":
        """Create Account from API response."""
        return cls(
            id=data["id"],
            profile_id=data.get("profile_id", ""),
            currency=data["currency"],
            balance=to_decimal(data["balance"]),
            available=to_decimal(data["available"]),
            hold=to_decimal(data["hold"]),
        )


@dataclass
class CoinbaseAccount:
    """Linked Coinbase wallet or fiat account, usable for transfers."""

    id: str
    name: str
    balance: Decimal
    currency: CurrencyType
    type: CoinbaseAccountType
    primary: bool
    active: bool

    def __post_init__(self):
        check_choice("currency", self.currency, CurrencyType)
        check_choice("type", self.type, CoinbaseAccountType)

    @classmethod
    def from_api(cls, data: dict) -> "CoinbaseAccount":
        """Create CoinbaseAccount from API response."""
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            balance=to_decimal(data["balance"]),
            currency=data["currency"],
            type=data["type"],
            primary=bool(data.get("primary", False)),
            active=bool(data.get("active", False)),
        )
