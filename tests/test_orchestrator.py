"""Integration tests for the flows the front end calls."""

from decimal import Decimal
from uuid import uuid4

import pytest

from conftest import FailingReadsStore
from ledgerbook.audit import AuditLogger
from ledgerbook.errors import InsufficientFundsError, NotFoundError, ValidationError
from ledgerbook.ledger import LedgerEngine
from ledgerbook.models import (
    AccountKind,
    AuditEventType,
    Currency,
    ExpenseCategory,
    HistoryQuery,
    TransactionKind,
)
from ledgerbook.orchestrator import AccountFlow, HistoryFlow, create_app_components
from ledgerbook.services import (
    AccountStore,
    InMemoryKeyValueStore,
    PinLock,
    TransactionLedger,
)


class RecordingAuditLogger(AuditLogger):
    """Keeps every event it logs."""

    def __init__(self):
        super().__init__()
        self.events = []

    async def log(self, event):
        self.events.append(event)
        return await super().log(event)


@pytest.fixture
def components():
    return create_app_components(storage=InMemoryKeyValueStore())


class TestAccountFlow:
    """Tests for account management through the flow."""

    @pytest.mark.asyncio
    async def test_end_to_end(self, components):
        account_flow, history_flow, _ = components

        alice = await account_flow.create_account(
            "Alice", AccountKind.SAVINGS, Currency.SEK, "100"
        )
        bob = await account_flow.create_account("Bob", AccountKind.DEPOSIT, Currency.SEK)

        await account_flow.deposit(alice.id, "50")
        await account_flow.withdraw(alice.id, "30", ExpenseCategory.FOOD)
        await account_flow.transfer(alice.id, bob.id, "20", note="gift")

        balances = {a.name: a.balance for a in await account_flow.list_accounts()}
        assert balances == {"Alice": Decimal("100"), "Bob": Decimal("20")}

        page, error = await history_flow.get_page(HistoryQuery())
        assert error is None
        assert page.total_count == 4

        alice_history = await account_flow.account_history(alice.id)
        assert len(alice_history) == 4
        bob_history = await account_flow.account_history(bob.id)
        assert [r.kind for r in bob_history] == [TransactionKind.TRANSFER] * 2

    @pytest.mark.asyncio
    async def test_unknown_account_id(self, components):
        account_flow, _, _ = components
        with pytest.raises(NotFoundError):
            await account_flow.deposit(uuid4(), "10")

    @pytest.mark.asyncio
    async def test_transfer_unknown_target(self, components):
        account_flow, _, _ = components
        alice = await account_flow.create_account("Alice", AccountKind.SAVINGS, Currency.SEK)
        with pytest.raises(NotFoundError, match="To account"):
            await account_flow.transfer(alice.id, uuid4(), "1")

    @pytest.mark.asyncio
    async def test_rejections_propagate(self, components):
        account_flow, _, _ = components
        alice = await account_flow.create_account("Alice", AccountKind.SAVINGS, Currency.SEK)

        with pytest.raises(InsufficientFundsError):
            await account_flow.withdraw(alice.id, "1")
        with pytest.raises(ValidationError):
            await account_flow.create_account(" ", AccountKind.SAVINGS, Currency.SEK)

    @pytest.mark.asyncio
    async def test_export_import(self, components):
        account_flow, _, _ = components
        await account_flow.create_account("Alice", AccountKind.SAVINGS, Currency.SEK, "5")
        exported = await account_flow.export_json()

        other_flow, _, _ = create_app_components(storage=InMemoryKeyValueStore())
        assert await other_flow.import_json(exported) == []
        assert [a.name for a in await other_flow.list_accounts()] == ["Alice"]

    @pytest.mark.asyncio
    async def test_import_errors_are_returned(self, components):
        account_flow, _, _ = components
        assert await account_flow.import_json("not json")

    @pytest.mark.asyncio
    async def test_failed_replace_import_audits_nothing_added(self):
        audit_logger = RecordingAuditLogger()
        accounts = AccountStore(InMemoryKeyValueStore(), storage_key="accounts")
        ledger = TransactionLedger(InMemoryKeyValueStore(), storage_key="tx")
        flow = AccountFlow(LedgerEngine(accounts, ledger), audit_logger=audit_logger)
        await flow.create_account("Alice", AccountKind.SAVINGS, Currency.SEK)
        await flow.create_account("Bob", AccountKind.DEPOSIT, Currency.SEK)

        errors = await flow.import_json("not json", replace_existing=True)

        assert errors
        imported = [
            e for e in audit_logger.events
            if e.event_type == AuditEventType.ACCOUNTS_IMPORTED
        ]
        assert [e.details["added"] for e in imported] == [0]
        assert len(await flow.list_accounts()) == 2


class TestHistoryFlow:
    """Tests for history loading and queries."""

    @pytest.mark.asyncio
    async def test_load_failure_degrades_to_empty(self):
        flow = HistoryFlow(TransactionLedger(FailingReadsStore(), storage_key="tx"))

        transactions, error = await flow.load()

        assert transactions == []
        assert error.startswith("Failed to load transactions:")

    @pytest.mark.asyncio
    async def test_page_after_load_failure(self):
        flow = HistoryFlow(TransactionLedger(FailingReadsStore(), storage_key="tx"))

        page, error = await flow.get_page(HistoryQuery(page=3))

        assert error is not None
        assert page.is_empty
        assert page.page == 1
        assert page.total_pages == 1

    @pytest.mark.asyncio
    async def test_filters_through_flow(self, components):
        account_flow, history_flow, _ = components
        alice = await account_flow.create_account("Alice", AccountKind.SAVINGS, Currency.SEK)
        await account_flow.deposit(alice.id, "10")
        await account_flow.withdraw(alice.id, "4", ExpenseCategory.RENT)

        page, _ = await history_flow.get_page(HistoryQuery(category=ExpenseCategory.RENT))

        assert page.total_count == 1
        assert page.items[0].amount == Decimal("4")


class TestComponents:
    """Tests for the component factory."""

    def test_returns_wired_components(self, components):
        _, _, pin_lock = components
        assert isinstance(pin_lock, PinLock)

    @pytest.mark.asyncio
    async def test_shared_storage(self):
        storage = InMemoryKeyValueStore()
        account_flow, _, pin_lock = create_app_components(storage=storage)
        await account_flow.create_account("Alice", AccountKind.SAVINGS, Currency.SEK)
        await pin_lock.try_unlock("9867")

        assert set(storage.keys()) == {"bankapp.accounts", "IsUnlocked"}
