"""
Main Orchestrator for Ledgerbook

This module ties the components together and defines the flows the
front end calls:
1. Accounts (create, list, deposit, withdraw, transfer, import/export)
2. History (load the ledger, run a history query)

DESIGN DECISION: The front end works with account ids and plain input
values. The flows resolve ids to accounts, tag each user action with a
correlation id and leave error handling to the caller, except for the
history load, which degrades to an empty list instead of failing.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from ledgerbook.audit import AuditLogger, configure_logging, create_correlation_id
from ledgerbook.config import Settings, get_settings
from ledgerbook.errors import LedgerError, NotFoundError
from ledgerbook.ledger import LedgerEngine
from ledgerbook.models.account import Account, AccountKind, Currency, MoneyLike
from ledgerbook.models.history import HistoryPage, HistoryQuery
from ledgerbook.models.transaction import ExpenseCategory, Transaction
from ledgerbook.queries import HistoryQueryEngine
from ledgerbook.services.accounts import AccountStore
from ledgerbook.services.gate import PinLock
from ledgerbook.services.storage import (
    KeyValueStore,
    StorageError,
    create_key_value_store,
)
from ledgerbook.services.transactions import TransactionLedger


class AccountFlow:
    """
    Account management and money movement.

    Every call gets its own correlation id unless one is passed in.
    """

    def __init__(
        self,
        engine: LedgerEngine,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._engine = engine
        self._accounts = engine.accounts
        self._audit_logger = audit_logger or AuditLogger()

    async def _resolve(self, account_id: UUID, role: str = "Account") -> Account:
        account = await self._accounts.get_by_id(account_id)
        if account is None:
            raise NotFoundError(f"{role} not found: {account_id}")
        return account

    async def create_account(
        self,
        name: str,
        account_kind: AccountKind,
        currency: Currency,
        initial_balance: MoneyLike = Decimal("0"),
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        correlation_id = correlation_id or create_correlation_id()
        try:
            account = await self._accounts.create_account(
                name, account_kind, currency, initial_balance
            )
        except LedgerError as e:
            await self._audit_logger.log_rejected(
                operation="create account",
                error=e,
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_account_created(
            account_id=account.id,
            name=account.name,
            account_kind=account.account_kind.value,
            initial_balance=str(account.balance),
            correlation_id=correlation_id,
        )
        return account

    async def list_accounts(self) -> list[Account]:
        return await self._accounts.list_accounts()

    async def deposit(
        self,
        account_id: UUID,
        amount: MoneyLike,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        account = await self._resolve(account_id)
        return await self._engine.record_deposit(
            account,
            amount,
            correlation_id=correlation_id or create_correlation_id(),
        )

    async def withdraw(
        self,
        account_id: UUID,
        amount: MoneyLike,
        category: ExpenseCategory = ExpenseCategory.NONE,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        account = await self._resolve(account_id)
        return await self._engine.record_withdrawal(
            account,
            amount,
            category=category,
            correlation_id=correlation_id or create_correlation_id(),
        )

    async def transfer(
        self,
        from_account_id: UUID,
        to_account_id: UUID,
        amount: MoneyLike,
        note: Optional[str] = None,
        category: ExpenseCategory = ExpenseCategory.NONE,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Transaction, Transaction]:
        source = await self._resolve(from_account_id, role="From account")
        target = await self._resolve(to_account_id, role="To account")
        return await self._engine.record_transfer(
            source,
            target,
            amount,
            note=note,
            category=category,
            correlation_id=correlation_id or create_correlation_id(),
        )

    async def account_history(self, account_id: UUID) -> list[Transaction]:
        return await self._engine.ledger.get_by_account(account_id)

    async def export_json(self) -> str:
        payload = await self._accounts.export_json()
        accounts = await self._accounts.list_accounts()
        await self._audit_logger.log_export(count=len(accounts))
        return payload

    async def import_json(
        self,
        text: Optional[str],
        replace_existing: bool = False,
    ) -> list[str]:
        added, errors = await self._accounts.import_accounts(
            text, replace_existing=replace_existing
        )
        await self._audit_logger.log_import(
            added=added,
            errors=errors,
            replace_existing=replace_existing,
        )
        return errors


class HistoryFlow:
    """
    Transaction history for the history view.

    A failed load never propagates: the view gets an empty list and an
    error message to show instead.
    """

    def __init__(
        self,
        ledger: TransactionLedger,
        query_engine: Optional[HistoryQueryEngine] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._query_engine = query_engine or HistoryQueryEngine()
        self._audit_logger = audit_logger or AuditLogger()

    async def load(self) -> tuple[list[Transaction], Optional[str]]:
        """
        Load every transaction, newest first.

        Returns:
            (transactions, error_message); error_message is None on success
        """
        try:
            return await self._ledger.get_all(), None
        except StorageError as e:
            await self._audit_logger.log_history_load_failed(error_message=str(e))
            return [], f"Failed to load transactions: {e}"

    async def get_page(
        self,
        query: HistoryQuery,
    ) -> tuple[HistoryPage, Optional[str]]:
        """Load the ledger and run the query over it."""
        transactions, error_message = await self.load()
        page = self._query_engine.execute(transactions, query)
        await self._audit_logger.log_history_query(
            result_count=page.total_count,
            page=page.page,
            query_description=page.query_description,
        )
        return page, error_message


def create_app_components(
    settings: Optional[Settings] = None,
    storage: Optional[KeyValueStore] = None,
) -> tuple[AccountFlow, HistoryFlow, PinLock]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use (defaults to get_settings())
        storage: Key-value store override, e.g. an in-memory store in tests

    Returns:
        (account_flow, history_flow, pin_lock)
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    storage_settings = settings.storage
    storage = storage or create_key_value_store(storage_settings)
    audit_logger = AuditLogger()

    accounts = AccountStore(storage, storage_key=storage_settings.accounts_key)
    ledger = TransactionLedger(storage, storage_key=storage_settings.transactions_key)
    engine = LedgerEngine(accounts, ledger, audit_logger=audit_logger)

    pin_lock = PinLock(
        storage,
        pin=settings.gate.pin,
        storage_key=storage_settings.gate_key,
        audit_logger=audit_logger,
    )

    account_flow = AccountFlow(engine, audit_logger=audit_logger)
    history_flow = HistoryFlow(ledger, audit_logger=audit_logger)

    return account_flow, history_flow, pin_lock
