"""
Transaction Model for Ledgerbook

A transaction record is an immutable log entry describing one
balance-affecting event.

CRITICAL: Records are append-only. They are never mutated or deleted
once written.

DESIGN DECISION: Account name, type and currency are copied onto each
record when it is created. History must render correctly even if the
account is later renamed or removed, so these fields are never
re-derived from the account store.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ledgerbook.models.account import AccountKind, Currency


NIL_ACCOUNT_ID = UUID(int=0)


class TransactionKind(str, Enum):
    """What kind of balance change a record describes."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"

    @property
    def label(self) -> str:
        return self.name.capitalize()


class ExpenseCategory(str, Enum):
    """Optional spending category for withdrawals and transfers."""
    NONE = "none"
    FOOD = "food"
    RENT = "rent"
    TRANSPORT = "transport"

    @property
    def label(self) -> str:
        if self is ExpenseCategory.NONE:
            return "No category"
        return self.name.capitalize()


class Transaction(BaseModel):
    """
    One ledger record.

    Deposits reference only the destination account, withdrawals only
    the source. A transfer is written as two records (debit leg with a
    negative amount, credit leg with a positive amount) that both carry
    the source and destination ids.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID"
    )
    from_account_id: Optional[UUID] = Field(
        default=None,
        description="Source account (withdrawals, transfers)"
    )
    to_account_id: Optional[UUID] = Field(
        default=None,
        description="Destination account (deposits, transfers)"
    )

    # Snapshot of the affected account at creation time
    account_name: str = ""
    account_kind: AccountKind = AccountKind.NONE
    currency: Currency = Currency.NONE

    amount: Decimal = Field(
        ...,
        description="Signed amount (negative for the debit leg of a transfer)"
    )
    balance_after: Decimal = Field(
        ...,
        description="Balance of the affected account after this event"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now
    )
    kind: TransactionKind
    note: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    category: ExpenseCategory = ExpenseCategory.NONE

    @property
    def display_account_id(self) -> UUID:
        """
        The single account id that represents this row.

        Transfers show the source on the debit leg and the destination
        on the credit leg.
        """
        if self.kind is TransactionKind.DEPOSIT:
            return self.to_account_id or NIL_ACCOUNT_ID
        if self.kind is TransactionKind.WITHDRAWAL:
            return self.from_account_id or NIL_ACCOUNT_ID
        if self.kind is TransactionKind.TRANSFER:
            chosen = self.from_account_id if self.amount < 0 else self.to_account_id
            return chosen or NIL_ACCOUNT_ID
        return self.to_account_id or self.from_account_id or NIL_ACCOUNT_ID

    def involves(self, account_id: UUID) -> bool:
        return account_id in (self.from_account_id, self.to_account_id)
