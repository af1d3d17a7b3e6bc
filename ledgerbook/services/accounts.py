"""
Account Store

Owns the authoritative list of accounts.

DESIGN DECISION: The store is write-through. Every successful mutation
persists the whole account list to the key-value store immediately,
with no batching. Reads hand out copies so callers can never mutate
the live collection.

Hydration happens once per instance: either explicitly through
initialize() or on the first operation.
"""

import json
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from ledgerbook.audit import get_logger
from ledgerbook.config import get_settings
from ledgerbook.errors import (
    ConflictError,
    CurrencyMismatchError,
    NotFoundError,
    ValidationError,
)
from ledgerbook.models.account import (
    Account,
    AccountKind,
    Currency,
    MoneyLike,
    to_money,
)
from ledgerbook.services.storage import CorruptDataError, KeyValueStore


_ACCOUNT_LIST = TypeAdapter(list[Account])


def _describe_schema_error(error: SchemaError) -> str:
    """Flatten a pydantic error into one readable line."""
    parts = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    return "; ".join(parts)


class AccountStore:
    """
    In-memory account collection backed by a key-value store.

    All operations are coroutines. Callers await each one before
    issuing the next; the store does no locking of its own.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        storage_key: Optional[str] = None,
    ):
        self._storage = storage
        self._storage_key = storage_key or get_settings().storage.accounts_key
        self._accounts: list[Account] = []
        self._loaded = False
        self._logger = get_logger(__name__)

    @property
    def is_initialized(self) -> bool:
        return self._loaded

    async def initialize(self) -> None:
        """
        Load accounts from storage. Runs at most once per instance.

        Raises:
            StorageError: If the backend cannot be read
            CorruptDataError: If the stored blob cannot be decoded
        """
        if self._loaded:
            return

        raw = await self._storage.get_item(self._storage_key)
        accounts: list[Account] = []
        if raw:
            try:
                accounts = _ACCOUNT_LIST.validate_json(raw)
            except SchemaError as e:
                raise CorruptDataError(
                    f"Stored accounts under '{self._storage_key}' are invalid: "
                    f"{_describe_schema_error(e)}"
                ) from e

        self._accounts = accounts
        self._loaded = True
        self._logger.info("accounts_loaded", count=len(self._accounts))

    async def _save(self) -> None:
        payload = _ACCOUNT_LIST.dump_json(self._accounts, by_alias=True).decode("utf-8")
        self._logger.debug("accounts_saving", count=len(self._accounts))
        await self._storage.set_item(self._storage_key, payload)

    def _find(self, account_id: UUID) -> Optional[Account]:
        for account in self._accounts:
            if account.id == account_id:
                return account
        return None

    def _require(self, account_id: UUID, role: str = "Account") -> Account:
        account = self._find(account_id)
        if account is None:
            raise NotFoundError(f"{role} not found: {account_id}")
        return account

    # -------------------------------------------------------------------------
    # Creation and lookup
    # -------------------------------------------------------------------------

    async def create_account(
        self,
        name: str,
        account_kind: AccountKind,
        currency: Currency,
        initial_balance: MoneyLike = Decimal("0"),
    ) -> Account:
        """
        Create and persist a new account.

        Raises:
            ValidationError: Blank name, unset type/currency, negative balance
            ConflictError: Same name (case-insensitive) and type already exists
        """
        await self.initialize()
        self._logger.info(
            "create_account_requested",
            name=name,
            account_kind=getattr(account_kind, "value", account_kind),
            currency=getattr(currency, "value", currency),
            initial_balance=str(initial_balance),
        )

        if name is None or not name.strip():
            raise ValidationError("Account name is required.")
        if account_kind is None or account_kind == AccountKind.NONE:
            raise ValidationError("Select an account type.")
        if currency is None or currency == Currency.NONE:
            raise ValidationError("Select a currency.")
        balance = to_money(initial_balance, field="initial balance")
        if balance < 0:
            raise ValidationError("Initial balance cannot be negative.")

        if any(a.matches(name, account_kind) for a in self._accounts):
            self._logger.warning("create_account_conflict", name=name)
            raise ConflictError("An account with the same name and type already exists.")

        account = Account(
            name=name,
            account_kind=AccountKind(account_kind),
            currency=Currency(currency),
            balance=balance,
        )
        self._accounts.append(account)
        await self._save()

        self._logger.info(
            "account_created",
            account_id=str(account.id),
            name=account.name,
            balance=str(account.balance),
        )
        return account.model_copy()

    async def list_accounts(self) -> list[Account]:
        """Snapshot copy of all accounts, in creation order."""
        await self.initialize()
        return [account.model_copy() for account in self._accounts]

    async def get_by_id(self, account_id: UUID) -> Optional[Account]:
        """Return a copy of the account, or None if it does not exist."""
        await self.initialize()
        account = self._find(account_id)
        return account.model_copy() if account else None

    async def get_by_name_and_kind(
        self,
        name: str,
        account_kind: AccountKind,
    ) -> Optional[Account]:
        """Case-insensitive lookup by (name, type)."""
        await self.initialize()
        for account in self._accounts:
            if account.matches(name, account_kind):
                return account.model_copy()
        return None

    # -------------------------------------------------------------------------
    # Balance mutations
    # -------------------------------------------------------------------------

    async def deposit(self, account_id: UUID, amount: MoneyLike) -> Account:
        """
        Add money to an account and persist.

        Returns:
            Copy of the account after the deposit

        Raises:
            ValidationError: If amount is not positive
            NotFoundError: If the account does not exist
        """
        await self.initialize()
        self._logger.info("deposit_requested", account_id=str(account_id), amount=str(amount))

        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("Amount must be positive.")
        account = self._require(account_id)

        account.deposit(amount)
        await self._save()

        self._logger.info(
            "deposit_completed",
            account_id=str(account_id),
            new_balance=str(account.balance),
        )
        return account.model_copy()

    async def withdraw(self, account_id: UUID, amount: MoneyLike) -> Account:
        """
        Take money out of an account and persist.

        Raises:
            ValidationError: If amount is not positive
            NotFoundError: If the account does not exist
            InsufficientFundsError: If amount exceeds the balance
        """
        await self.initialize()
        self._logger.info("withdraw_requested", account_id=str(account_id), amount=str(amount))

        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("Amount must be positive.")
        account = self._require(account_id)

        account.withdraw(amount)
        await self._save()

        self._logger.info(
            "withdraw_completed",
            account_id=str(account_id),
            new_balance=str(account.balance),
        )
        return account.model_copy()

    async def transfer(
        self,
        from_account_id: UUID,
        to_account_id: UUID,
        amount: MoneyLike,
    ) -> tuple[Account, Account]:
        """
        Move money between two accounts of the same currency.

        Both legs are applied in memory before a single persist.

        Returns:
            (source, destination) copies after the transfer

        Raises:
            ValidationError: Same account on both sides, or bad amount
            NotFoundError: Either account missing
            CurrencyMismatchError: Currencies differ
            InsufficientFundsError: Source balance too low
        """
        await self.initialize()

        if from_account_id == to_account_id:
            raise ValidationError("From and To accounts must be different.")

        self._logger.info(
            "transfer_requested",
            from_account_id=str(from_account_id),
            to_account_id=str(to_account_id),
            amount=str(amount),
        )
        source = self._require(from_account_id, role="From account")
        target = self._require(to_account_id, role="To account")

        if source.currency != target.currency:
            raise CurrencyMismatchError(
                "Transfers between different currencies are not supported."
            )

        source_before = source.balance
        target_before = target.balance
        # withdraw validates the amount, so the deposit leg cannot fail after it
        source.withdraw(amount)
        target.deposit(amount)
        await self._save()

        self._logger.info(
            "transfer_completed",
            from_account_id=str(from_account_id),
            from_balance=f"{source_before}->{source.balance}",
            to_account_id=str(to_account_id),
            to_balance=f"{target_before}->{target.balance}",
        )
        return source.model_copy(), target.model_copy()

    # -------------------------------------------------------------------------
    # Export / import
    # -------------------------------------------------------------------------

    async def export_json(self) -> str:
        """All accounts as a pretty-printed JSON array (camelCase fields)."""
        await self.initialize()
        return _ACCOUNT_LIST.dump_json(
            self._accounts, indent=2, by_alias=True
        ).decode("utf-8")

    async def import_json(
        self,
        text: Optional[str],
        replace_existing: bool = False,
    ) -> list[str]:
        """
        Import accounts from an exported JSON array.

        With replace_existing the current accounts are discarded first.
        Otherwise incoming accounts whose id already exists are skipped.

        Returns:
            Human-readable error strings; empty means everything imported
        """
        _, errors = await self.import_accounts(text, replace_existing=replace_existing)
        return errors

    async def import_accounts(
        self,
        text: Optional[str],
        replace_existing: bool = False,
    ) -> tuple[int, list[str]]:
        """Same as import_json, but also returns how many accounts were added."""
        await self.initialize()

        if text is None or not text.strip():
            return 0, ["No JSON provided."]
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            return 0, [f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})."]
        if not isinstance(raw, list):
            return 0, ["Invalid JSON: expected an array of accounts."]
        if not raw:
            return 0, ["No accounts found in JSON."]

        errors: list[str] = []
        incoming: list[tuple[int, Account]] = []
        for position, item in enumerate(raw, start=1):
            try:
                incoming.append((position, Account.model_validate(item)))
            except SchemaError as e:
                errors.append(f"Account #{position}: {_describe_schema_error(e)}")

        if not incoming:
            return 0, errors

        accounts = [] if replace_existing else list(self._accounts)
        known_ids = {account.id for account in accounts}
        added = 0
        skipped = 0

        for position, account in incoming:
            if account.id in known_ids:
                if replace_existing:
                    errors.append(f"Account #{position}: duplicate id {account.id}.")
                else:
                    skipped += 1
                continue
            if any(a.matches(account.name, account.account_kind) for a in accounts):
                errors.append(
                    f"Account #{position} ('{account.name}'): an account with the "
                    "same name and type already exists."
                )
                continue
            accounts.append(account)
            known_ids.add(account.id)
            added += 1

        if replace_existing or added:
            self._accounts = accounts
            await self._save()

        self._logger.info(
            "accounts_imported",
            added=added,
            skipped=skipped,
            errors=len(errors),
            replace_existing=replace_existing,
        )
        return added, errors
