"""
Transaction Ledger

Append-only collection of transaction records.

CRITICAL: Records are never mutated or removed. append() adds one and
persists the whole list; there is no update or delete.

The ledger does not validate record shape. The ledger engine is the
only writer and is responsible for correctness.
"""

from typing import Optional
from uuid import UUID

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from ledgerbook.audit import get_logger
from ledgerbook.config import get_settings
from ledgerbook.models.transaction import Transaction
from ledgerbook.services.storage import CorruptDataError, KeyValueStore


_TRANSACTION_LIST = TypeAdapter(list[Transaction])


def newest_first(records: list[Transaction]) -> list[Transaction]:
    return sorted(records, key=lambda r: r.timestamp, reverse=True)


class TransactionLedger:
    """In-memory record list backed by a key-value store."""

    def __init__(
        self,
        storage: KeyValueStore,
        storage_key: Optional[str] = None,
    ):
        self._storage = storage
        self._storage_key = storage_key or get_settings().storage.transactions_key
        self._records: list[Transaction] = []
        self._loaded = False
        self._logger = get_logger(__name__)

    @property
    def is_initialized(self) -> bool:
        return self._loaded

    async def initialize(self) -> None:
        """
        Load records from storage. Runs at most once per instance.

        Raises:
            StorageError: If the backend cannot be read
            CorruptDataError: If the stored blob cannot be decoded
        """
        if self._loaded:
            return

        raw = await self._storage.get_item(self._storage_key)
        records: list[Transaction] = []
        if raw:
            try:
                records = _TRANSACTION_LIST.validate_json(raw)
            except SchemaError as e:
                raise CorruptDataError(
                    f"Stored transactions under '{self._storage_key}' are invalid: "
                    f"{e.error_count()} error(s)"
                ) from e

        self._records = records
        self._loaded = True
        self._logger.info("transactions_loaded", count=len(self._records))

    async def _save(self) -> None:
        payload = _TRANSACTION_LIST.dump_json(self._records, by_alias=True).decode("utf-8")
        await self._storage.set_item(self._storage_key, payload)

    async def append(self, record: Transaction) -> None:
        """Add a record and persist the full list."""
        await self.initialize()
        self._logger.info(
            "transaction_adding",
            transaction_id=str(record.id),
            kind=record.kind.value,
            amount=str(record.amount),
            from_account_id=str(record.from_account_id) if record.from_account_id else None,
            to_account_id=str(record.to_account_id) if record.to_account_id else None,
            currency=record.currency.value,
        )
        self._records.append(record)
        await self._save()
        self._logger.info("transaction_stored", total=len(self._records))

    async def get_all(self) -> list[Transaction]:
        """All records, most recent first."""
        await self.initialize()
        return newest_first(self._records)

    async def get_by_account(self, account_id: UUID) -> list[Transaction]:
        """Records where the account is source or destination, most recent first."""
        await self.initialize()
        result = newest_first([r for r in self._records if r.involves(account_id)])
        self._logger.debug(
            "transactions_by_account",
            account_id=str(account_id),
            count=len(result),
        )
        return result

    async def count(self) -> int:
        await self.initialize()
        return len(self._records)
