"""Services package."""

from ledgerbook.services.storage import (
    ConnectionError,
    CorruptDataError,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    StorageError,
    create_key_value_store,
)
from ledgerbook.services.accounts import AccountStore
from ledgerbook.services.transactions import TransactionLedger
from ledgerbook.services.gate import PinLock

__all__ = [
    # Ledger stores
    "AccountStore",
    "TransactionLedger",
    # Access gate
    "PinLock",
    # Storage services
    "ConnectionError",
    "CorruptDataError",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "StorageError",
    "create_key_value_store",
]
