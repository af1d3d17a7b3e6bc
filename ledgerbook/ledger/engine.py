"""
Ledger Engine

Composes the account store and the transaction ledger into the three
compound operations the rest of the system uses: deposit, withdrawal
and transfer.

Each operation runs in two steps:
1. Mutate balances through the account store (validated, persisted)
2. Append transaction record(s) capturing the post-mutation state

FAILURE SEMANTICS:
- If step 1 fails, nothing is appended.
- If step 1 succeeds and step 2 fails to persist, the balance change is
  NOT rolled back. The two writes are independent, so a crash between
  them leaves the balance ahead of the log. This is a known gap that is
  acceptable for a single-user local ledger.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from ledgerbook.audit import AuditLogger
from ledgerbook.errors import LedgerError, ValidationError
from ledgerbook.models.account import Account, MoneyLike, to_money
from ledgerbook.models.transaction import (
    ExpenseCategory,
    Transaction,
    TransactionKind,
)
from ledgerbook.services.accounts import AccountStore
from ledgerbook.services.storage import StorageError
from ledgerbook.services.transactions import TransactionLedger


MAX_NOTE_LENGTH = 500


def _clean_note(note: Optional[str]) -> Optional[str]:
    """Blank notes become None; overlong notes are rejected before any mutation."""
    if note is None or not note.strip():
        return None
    note = note.strip()
    if len(note) > MAX_NOTE_LENGTH:
        raise ValidationError(f"Note cannot be longer than {MAX_NOTE_LENGTH} characters.")
    return note


def _to_category(category) -> ExpenseCategory:
    """Coerce a category before any mutation; unknown values are a ValidationError."""
    try:
        return ExpenseCategory(category)
    except ValueError:
        raise ValidationError(f"Unknown expense category: {category!r}")


class LedgerEngine:
    """Deposit, withdraw and transfer with a matching transaction log."""

    def __init__(
        self,
        accounts: AccountStore,
        ledger: TransactionLedger,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._accounts = accounts
        self._ledger = ledger
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def accounts(self) -> AccountStore:
        return self._accounts

    @property
    def ledger(self) -> TransactionLedger:
        return self._ledger

    async def initialize(self) -> None:
        """Hydrate both stores up front, accounts first."""
        await self._accounts.initialize()
        await self._ledger.initialize()

    async def _reject(
        self,
        operation: str,
        error: Exception,
        account_id: Optional[UUID],
        correlation_id: Optional[UUID],
    ) -> None:
        await self._audit_logger.log_rejected(
            operation=operation,
            error=error,
            account_id=account_id,
            correlation_id=correlation_id,
        )

    async def _append(
        self,
        records: list[Transaction],
        correlation_id: Optional[UUID],
    ) -> None:
        try:
            for record in records:
                await self._ledger.append(record)
        except StorageError as e:
            # Balances are already persisted at this point
            await self._audit_logger.log_storage_error(
                operation="append_transaction",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

    async def record_deposit(
        self,
        account: Account,
        amount: MoneyLike,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Deposit into an account and log one Deposit record.

        Raises:
            ValidationError, NotFoundError: From the account store
            StorageError: If either write fails
        """
        try:
            amount = to_money(amount)
            updated = await self._accounts.deposit(account.id, amount)
        except LedgerError as e:
            await self._reject("deposit", e, account.id, correlation_id)
            raise

        record = Transaction(
            to_account_id=updated.id,
            account_name=updated.name,
            account_kind=updated.account_kind,
            currency=updated.currency,
            amount=amount,
            balance_after=updated.balance,
            kind=TransactionKind.DEPOSIT,
        )
        await self._append([record], correlation_id)

        await self._audit_logger.log_deposit(
            account_id=updated.id,
            amount=str(amount),
            balance_after=str(updated.balance),
            correlation_id=correlation_id,
        )
        return record

    async def record_withdrawal(
        self,
        account: Account,
        amount: MoneyLike,
        category: ExpenseCategory = ExpenseCategory.NONE,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Withdraw from an account and log one Withdrawal record.

        The record stores the amount as a positive number.

        Raises:
            ValidationError, NotFoundError, InsufficientFundsError
            StorageError: If either write fails
        """
        try:
            amount = to_money(amount)
            category = _to_category(category)
            updated = await self._accounts.withdraw(account.id, amount)
        except LedgerError as e:
            await self._reject("withdrawal", e, account.id, correlation_id)
            raise

        record = Transaction(
            from_account_id=updated.id,
            account_name=updated.name,
            account_kind=updated.account_kind,
            currency=updated.currency,
            amount=amount,
            balance_after=updated.balance,
            kind=TransactionKind.WITHDRAWAL,
            category=category,
        )
        await self._append([record], correlation_id)

        await self._audit_logger.log_withdrawal(
            account_id=updated.id,
            amount=str(amount),
            balance_after=str(updated.balance),
            category=category.value,
            correlation_id=correlation_id,
        )
        return record

    async def record_transfer(
        self,
        from_account: Account,
        to_account: Account,
        amount: MoneyLike,
        note: Optional[str] = None,
        category: ExpenseCategory = ExpenseCategory.NONE,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Transaction, Transaction]:
        """
        Transfer between accounts and log a debit and a credit record.

        Returns:
            (debit, credit): debit has -amount against the source's new
            balance, credit has +amount against the destination's

        Raises:
            ValidationError, NotFoundError, CurrencyMismatchError,
            InsufficientFundsError
            StorageError: If any write fails
        """
        try:
            amount = to_money(amount)
            note = _clean_note(note)
            category = _to_category(category)
            source, target = await self._accounts.transfer(
                from_account.id, to_account.id, amount
            )
        except LedgerError as e:
            await self._reject("transfer", e, from_account.id, correlation_id)
            raise

        timestamp = datetime.now()

        debit = Transaction(
            from_account_id=source.id,
            to_account_id=target.id,
            account_name=source.name,
            account_kind=source.account_kind,
            currency=source.currency,
            amount=-amount,
            balance_after=source.balance,
            timestamp=timestamp,
            kind=TransactionKind.TRANSFER,
            note=note,
            category=category,
        )
        credit = Transaction(
            from_account_id=source.id,
            to_account_id=target.id,
            account_name=target.name,
            account_kind=target.account_kind,
            currency=target.currency,
            amount=amount,
            balance_after=target.balance,
            timestamp=timestamp,
            kind=TransactionKind.TRANSFER,
            note=note,
            category=category,
        )
        await self._append([debit, credit], correlation_id)

        await self._audit_logger.log_transfer(
            from_account_id=source.id,
            to_account_id=target.id,
            amount=str(amount),
            correlation_id=correlation_id,
        )
        return debit, credit
