"""Tests for the account store."""

import json
from decimal import Decimal
from uuid import uuid4

import pytest

from conftest import ACCOUNTS_KEY
from ledgerbook.errors import (
    ConflictError,
    CurrencyMismatchError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)
from ledgerbook.models import AccountKind, Currency
from ledgerbook.services import AccountStore, CorruptDataError, InMemoryKeyValueStore


class TestCreateAccount:
    """Tests for account creation."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, accounts):
        account = await accounts.create_account(
            "Alice", AccountKind.DEPOSIT, Currency.SEK, Decimal("100")
        )

        listed = await accounts.list_accounts()
        assert [a.id for a in listed] == [account.id]
        assert listed[0].balance == Decimal("100")

    @pytest.mark.asyncio
    async def test_default_balance_is_zero(self, accounts):
        account = await accounts.create_account("Alice", AccountKind.SAVINGS, Currency.SEK)
        assert account.balance == Decimal("0")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name, kind, currency, balance",
        [
            ("", AccountKind.DEPOSIT, Currency.SEK, "0"),
            ("   ", AccountKind.DEPOSIT, Currency.SEK, "0"),
            ("Alice", AccountKind.NONE, Currency.SEK, "0"),
            ("Alice", AccountKind.DEPOSIT, Currency.NONE, "0"),
            ("Alice", AccountKind.DEPOSIT, Currency.SEK, "-1"),
        ],
    )
    async def test_invalid_input(self, accounts, name, kind, currency, balance):
        with pytest.raises(ValidationError):
            await accounts.create_account(name, kind, currency, balance)
        assert await accounts.list_accounts() == []

    @pytest.mark.asyncio
    async def test_same_name_and_kind_conflicts(self, accounts):
        await accounts.create_account("Bob", AccountKind.SAVINGS, Currency.SEK)
        with pytest.raises(ConflictError):
            await accounts.create_account("bob", AccountKind.SAVINGS, Currency.SEK)

    @pytest.mark.asyncio
    async def test_same_name_different_kind_allowed(self, accounts):
        await accounts.create_account("Bob", AccountKind.SAVINGS, Currency.SEK)
        await accounts.create_account("Bob", AccountKind.DEPOSIT, Currency.SEK)
        assert len(await accounts.list_accounts()) == 2


class TestLookups:
    """Tests for lookups and snapshot semantics."""

    @pytest.mark.asyncio
    async def test_get_by_id(self, accounts):
        account = await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK)
        assert (await accounts.get_by_id(account.id)).name == "Alice"
        assert await accounts.get_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_get_by_name_and_kind(self, accounts):
        await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK)
        assert await accounts.get_by_name_and_kind("ALICE", AccountKind.DEPOSIT) is not None
        assert await accounts.get_by_name_and_kind("Alice", AccountKind.SAVINGS) is None

    @pytest.mark.asyncio
    async def test_list_returns_copies(self, accounts):
        account = await accounts.create_account(
            "Alice", AccountKind.DEPOSIT, Currency.SEK, Decimal("100")
        )

        snapshot = await accounts.list_accounts()
        snapshot[0].balance = Decimal("999")
        snapshot.clear()

        fetched = await accounts.get_by_id(account.id)
        assert fetched.balance == Decimal("100")

    @pytest.mark.asyncio
    async def test_repeated_reads_are_identical(self, accounts):
        await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK)
        await accounts.create_account("Bob", AccountKind.SAVINGS, Currency.SEK)
        assert await accounts.list_accounts() == await accounts.list_accounts()


class TestBalanceMutations:
    """Tests for deposit, withdraw and transfer."""

    @pytest.mark.asyncio
    async def test_deposit(self, accounts):
        account = await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK)
        updated = await accounts.deposit(account.id, Decimal("50"))
        assert updated.balance == Decimal("50")

    @pytest.mark.asyncio
    async def test_deposit_unknown_account(self, accounts):
        with pytest.raises(NotFoundError):
            await accounts.deposit(uuid4(), Decimal("1"))

    @pytest.mark.asyncio
    async def test_deposit_non_positive(self, accounts):
        account = await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK)
        with pytest.raises(ValidationError):
            await accounts.deposit(account.id, Decimal("0"))

    @pytest.mark.asyncio
    async def test_withdraw_insufficient_funds_leaves_balance(self, accounts):
        account = await accounts.create_account(
            "Alice", AccountKind.DEPOSIT, Currency.SEK, Decimal("10")
        )
        with pytest.raises(InsufficientFundsError):
            await accounts.withdraw(account.id, Decimal("11"))
        assert (await accounts.get_by_id(account.id)).balance == Decimal("10")

    @pytest.mark.asyncio
    async def test_transfer_moves_money(self, accounts):
        bob = await accounts.create_account("Bob", AccountKind.SAVINGS, Currency.SEK, Decimal("100"))
        carol = await accounts.create_account("Carol", AccountKind.DEPOSIT, Currency.SEK)

        source, target = await accounts.transfer(bob.id, carol.id, Decimal("30"))

        assert source.balance == Decimal("70")
        assert target.balance == Decimal("30")

    @pytest.mark.asyncio
    async def test_transfer_to_same_account(self, accounts):
        bob = await accounts.create_account("Bob", AccountKind.SAVINGS, Currency.SEK, Decimal("100"))
        with pytest.raises(ValidationError, match="must be different"):
            await accounts.transfer(bob.id, bob.id, Decimal("1"))

    @pytest.mark.asyncio
    async def test_transfer_missing_accounts(self, accounts):
        bob = await accounts.create_account("Bob", AccountKind.SAVINGS, Currency.SEK, Decimal("100"))
        with pytest.raises(NotFoundError, match="To account"):
            await accounts.transfer(bob.id, uuid4(), Decimal("1"))
        with pytest.raises(NotFoundError, match="From account"):
            await accounts.transfer(uuid4(), bob.id, Decimal("1"))

    @pytest.mark.asyncio
    async def test_transfer_currency_mismatch(self, accounts):
        bob = await accounts.create_account("Bob", AccountKind.SAVINGS, Currency.SEK, Decimal("100"))
        carol = await accounts.create_account("Carol", AccountKind.DEPOSIT, Currency.SEK)
        # Only one real currency exists, so force a mismatch on the live record
        accounts._find(carol.id).currency = Currency.NONE

        with pytest.raises(CurrencyMismatchError):
            await accounts.transfer(bob.id, carol.id, Decimal("10"))
        assert (await accounts.get_by_id(bob.id)).balance == Decimal("100")

    @pytest.mark.asyncio
    async def test_transfer_insufficient_funds_changes_nothing(self, accounts):
        bob = await accounts.create_account("Bob", AccountKind.SAVINGS, Currency.SEK, Decimal("5"))
        carol = await accounts.create_account("Carol", AccountKind.DEPOSIT, Currency.SEK)

        with pytest.raises(InsufficientFundsError):
            await accounts.transfer(bob.id, carol.id, Decimal("6"))

        assert (await accounts.get_by_id(bob.id)).balance == Decimal("5")
        assert (await accounts.get_by_id(carol.id)).balance == Decimal("0")


class TestPersistence:
    """Tests for write-through persistence and hydration."""

    @pytest.mark.asyncio
    async def test_state_survives_new_instance(self, storage, accounts):
        alice = await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK)
        await accounts.deposit(alice.id, Decimal("12.34"))

        reloaded = AccountStore(storage, storage_key=ACCOUNTS_KEY)
        restored = await reloaded.get_by_id(alice.id)

        assert restored.balance == Decimal("12.34")
        assert restored.name == "Alice"

    @pytest.mark.asyncio
    async def test_persisted_blob_uses_camel_case(self, storage, accounts):
        await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK)
        blob = json.loads(await storage.get_item(ACCOUNTS_KEY))
        assert blob[0]["accountKind"] == "deposit"
        assert "lastUpdated" in blob[0]

    @pytest.mark.asyncio
    async def test_lazy_initialization(self, storage):
        store = AccountStore(storage, storage_key=ACCOUNTS_KEY)
        assert not store.is_initialized
        await store.list_accounts()
        assert store.is_initialized

    @pytest.mark.asyncio
    async def test_corrupt_blob(self):
        storage = InMemoryKeyValueStore({ACCOUNTS_KEY: "{not json"})
        store = AccountStore(storage, storage_key=ACCOUNTS_KEY)
        with pytest.raises(CorruptDataError):
            await store.initialize()


class TestExportImport:
    """Tests for JSON export and import."""

    @pytest.mark.asyncio
    async def test_export_then_import_into_empty_store(self, accounts):
        await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK, Decimal("10"))
        await accounts.create_account("Bob", AccountKind.SAVINGS, Currency.SEK, Decimal("20"))
        exported = await accounts.export_json()

        target = AccountStore(InMemoryKeyValueStore(), storage_key=ACCOUNTS_KEY)
        errors = await target.import_json(exported)

        assert errors == []
        assert await target.list_accounts() == await accounts.list_accounts()

    @pytest.mark.asyncio
    async def test_export_is_indented(self, accounts):
        await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK)
        exported = await accounts.export_json()
        assert exported.startswith("[\n  {")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "text, expected",
        [
            (None, "No JSON provided."),
            ("   ", "No JSON provided."),
            ("[]", "No accounts found in JSON."),
            ('{"name": "Alice"}', "Invalid JSON: expected an array of accounts."),
        ],
    )
    async def test_import_rejects_empty_or_malformed(self, accounts, text, expected):
        assert await accounts.import_json(text) == [expected]

    @pytest.mark.asyncio
    async def test_import_syntax_error_reports_position(self, accounts):
        errors = await accounts.import_json("[{")
        assert len(errors) == 1
        assert errors[0].startswith("Invalid JSON:")
        assert "line 1" in errors[0]

    @pytest.mark.asyncio
    async def test_import_merge_skips_existing_ids(self, accounts):
        alice = await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK)
        exported = await accounts.export_json()

        errors = await accounts.import_json(exported)

        assert errors == []
        assert [a.id for a in await accounts.list_accounts()] == [alice.id]

    @pytest.mark.asyncio
    async def test_import_reports_invalid_items(self, accounts):
        payload = json.dumps([
            {"name": "Alice", "accountKind": "deposit", "currency": "sek", "balance": "5"},
            {"name": "", "accountKind": "deposit", "currency": "sek"},
        ])

        errors = await accounts.import_json(payload)

        assert len(errors) == 1
        assert errors[0].startswith("Account #2:")
        assert [a.name for a in await accounts.list_accounts()] == ["Alice"]

    @pytest.mark.asyncio
    async def test_import_reports_name_conflicts(self, accounts):
        await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK)
        payload = json.dumps([
            {"name": "alice", "accountKind": "deposit", "currency": "sek"},
        ])

        errors = await accounts.import_json(payload)

        assert len(errors) == 1
        assert "same name and type" in errors[0]
        assert len(await accounts.list_accounts()) == 1

    @pytest.mark.asyncio
    async def test_import_replace_existing(self, accounts):
        await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK)
        payload = json.dumps([
            {"name": "Zed", "accountKind": "savings", "currency": "sek", "balance": "1.5"},
        ])

        errors = await accounts.import_json(payload, replace_existing=True)

        assert errors == []
        listed = await accounts.list_accounts()
        assert [a.name for a in listed] == ["Zed"]
        assert listed[0].balance == Decimal("1.5")

    @pytest.mark.asyncio
    async def test_import_accounts_reports_added_count(self, accounts):
        await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK)
        exported = await accounts.export_json()
        payload = json.dumps([
            {"name": "Bob", "accountKind": "savings", "currency": "sek"},
        ])

        assert await accounts.import_accounts(exported) == (0, [])
        assert await accounts.import_accounts(payload) == (1, [])
        added, errors = await accounts.import_accounts("{", replace_existing=True)
        assert added == 0
        assert len(errors) == 1
        assert len(await accounts.list_accounts()) == 2

    @pytest.mark.asyncio
    async def test_import_replace_with_no_valid_items_keeps_accounts(self, accounts):
        await accounts.create_account("Alice", AccountKind.DEPOSIT, Currency.SEK)
        payload = json.dumps([{"name": "", "accountKind": "none", "currency": "sek"}])

        errors = await accounts.import_json(payload, replace_existing=True)

        assert len(errors) == 1
        assert [a.name for a in await accounts.list_accounts()] == ["Alice"]
