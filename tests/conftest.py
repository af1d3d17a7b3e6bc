"""Shared fixtures: every store runs on a fresh in-memory backend."""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import pytest
import pytest_asyncio

from ledgerbook.audit import AuditLogger
from ledgerbook.ledger import LedgerEngine
from ledgerbook.models import (
    AccountKind,
    Currency,
    ExpenseCategory,
    Transaction,
    TransactionKind,
)
from ledgerbook.services import (
    AccountStore,
    InMemoryKeyValueStore,
    StorageError,
    TransactionLedger,
)


ACCOUNTS_KEY = "bankapp.accounts"
TRANSACTIONS_KEY = "bankapp_final.transactions"


class FailingWritesStore(InMemoryKeyValueStore):
    """In-memory store whose writes to the listed keys fail."""

    def __init__(self, failing_keys: set[str]):
        super().__init__()
        self.failing_keys = set(failing_keys)

    async def set_item(self, key: str, value: str) -> bool:
        if key in self.failing_keys:
            raise StorageError(f"Write to {key} failed")
        return await super().set_item(key, value)


class FailingReadsStore(InMemoryKeyValueStore):
    """In-memory store whose reads always fail."""

    async def get_item(self, key: str) -> Optional[str]:
        raise StorageError(f"Read of {key} failed")


@pytest.fixture
def storage() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest_asyncio.fixture
async def accounts(storage) -> AccountStore:
    store = AccountStore(storage, storage_key=ACCOUNTS_KEY)
    await store.initialize()
    return store


@pytest_asyncio.fixture
async def ledger(storage) -> TransactionLedger:
    transactions = TransactionLedger(storage, storage_key=TRANSACTIONS_KEY)
    await transactions.initialize()
    return transactions


@pytest.fixture
def engine(accounts, ledger) -> LedgerEngine:
    return LedgerEngine(accounts, ledger, audit_logger=AuditLogger())


def make_transaction(
    kind: TransactionKind = TransactionKind.DEPOSIT,
    amount: str = "10",
    balance_after: str = "10",
    timestamp: Optional[datetime] = None,
    account_id: Optional[UUID] = None,
    note: Optional[str] = None,
    category: ExpenseCategory = ExpenseCategory.NONE,
) -> Transaction:
    """Build a record with the id fields a real record of that kind carries."""
    account_id = account_id or uuid4()
    if kind is TransactionKind.DEPOSIT:
        ids = {"to_account_id": account_id}
    elif kind is TransactionKind.WITHDRAWAL:
        ids = {"from_account_id": account_id}
    elif Decimal(amount) < 0:
        ids = {"from_account_id": account_id, "to_account_id": uuid4()}
    else:
        ids = {"from_account_id": uuid4(), "to_account_id": account_id}
    return Transaction(
        **ids,
        account_name="Test",
        account_kind=AccountKind.DEPOSIT,
        currency=Currency.SEK,
        amount=Decimal(amount),
        balance_after=Decimal(balance_after),
        timestamp=timestamp or datetime(2024, 1, 1, 12, 0),
        kind=kind,
        note=note,
        category=category,
    )


def make_series(count: int, start: datetime = datetime(2024, 1, 1, 9, 0)) -> list[Transaction]:
    """count deposits, one minute apart, amount i and balance i for i = 1..count."""
    return [
        make_transaction(
            amount=str(i),
            balance_after=str(i),
            timestamp=start + timedelta(minutes=i),
        )
        for i in range(1, count + 1)
    ]
