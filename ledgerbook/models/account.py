"""
Account Model for Ledgerbook

An account is a named, currency-typed balance holder.

DESIGN DECISION: There is exactly one account shape, so there is no
subtype hierarchy. The model carries its own deposit/withdraw capability
and enforces the non-negative balance invariant at every mutation.

Balances are Decimal. Floats are rejected outright because monetary
sums must not drift.
"""

from datetime import datetime
from decimal import Decimal, Inexact, InvalidOperation, localcontext
from enum import Enum
from typing import Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ledgerbook.errors import InsufficientFundsError, ValidationError


# =============================================================================
# ENUMS
# =============================================================================

class AccountKind(str, Enum):
    """
    Supported account types.

    NONE is the "not selected" sentinel used by input forms.
    It is never stored on an account.
    """
    NONE = "none"
    SAVINGS = "savings"
    DEPOSIT = "deposit"

    @property
    def label(self) -> str:
        return _ACCOUNT_KIND_LABELS[self]


_ACCOUNT_KIND_LABELS = {
    AccountKind.NONE: "Unknown",
    AccountKind.SAVINGS: "Savings account",
    AccountKind.DEPOSIT: "Basic account",
}


class Currency(str, Enum):
    """
    Supported currencies.

    Only SEK exists today; NONE is the unset sentinel.
    """
    NONE = "none"
    SEK = "sek"

    @property
    def label(self) -> str:
        return "None" if self is Currency.NONE else self.name


MoneyLike = Union[Decimal, int, str]

# Digits kept by balance arithmetic
MONEY_PRECISION = 60


def to_money(value: MoneyLike, field: str = "amount") -> Decimal:
    """
    Convert caller input to an exact Decimal.

    Raises:
        ValidationError: for floats, unparseable strings, NaN or infinity
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(
            f"{field.capitalize()} must be an exact decimal, got {type(value).__name__}."
        )
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field.capitalize()} is not a valid number: {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"{field.capitalize()} must be a finite number.")
    return amount


# =============================================================================
# ACCOUNT
# =============================================================================

class Account(BaseModel):
    """
    A bank account.

    Serialized with camelCase property names so the persisted blob and
    the JSON export share one shape.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique account ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Display name (unique per account type, case-insensitive)"
    )
    account_kind: AccountKind = Field(
        ...,
        description="Account type"
    )
    currency: Currency = Field(
        ...,
        description="Account currency"
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Current balance"
    )
    last_updated: datetime = Field(
        default_factory=datetime.now,
        description="Last time the balance changed"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Account name is required")
        return v

    @field_validator("account_kind")
    @classmethod
    def validate_account_kind(cls, v: AccountKind) -> AccountKind:
        if v is AccountKind.NONE:
            raise ValueError("Account type must be selected")
        return v

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: Currency) -> Currency:
        if v is Currency.NONE:
            raise ValueError("Currency must be selected")
        return v

    @property
    def short_id(self) -> str:
        return short_id(self.id)

    def matches(self, name: str, account_kind: AccountKind) -> bool:
        """Identity check used for the (name, type) uniqueness rule."""
        return (
            self.account_kind == account_kind
            and self.name.casefold() == name.casefold()
        )

    def deposit(self, amount: MoneyLike) -> None:
        """
        Add money to the account.

        Raises:
            ValidationError: If amount is not positive
        """
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("Amount must be positive.")
        self.balance = _exact_sum(self.balance, amount)
        self.last_updated = datetime.now()

    def withdraw(self, amount: MoneyLike) -> None:
        """
        Take money out of the account.

        Raises:
            ValidationError: If amount is not positive
            InsufficientFundsError: If amount exceeds the balance
        """
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("Amount must be positive.")
        if amount > self.balance:
            raise InsufficientFundsError(
                f"Insufficient funds: balance {self.balance}, requested {amount}."
            )
        self.balance = _exact_sum(self.balance, -amount)
        self.last_updated = datetime.now()


def short_id(value: UUID) -> str:
    """First six hex digits of an id, for display."""
    return value.hex[:6]


def _exact_sum(balance: Decimal, delta: Decimal) -> Decimal:
    """Add without rounding; a result that needs more digits is rejected."""
    with localcontext() as ctx:
        ctx.prec = MONEY_PRECISION
        ctx.traps[Inexact] = True
        try:
            return balance + delta
        except Inexact:
            raise ValidationError("Amount exceeds the supported precision.")
