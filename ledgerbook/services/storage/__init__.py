"""
Storage Services Package

Provides the abstract key-value interface and its implementations.
The ledger never talks to a backend directly, so backends are swappable.
"""

from ledgerbook.config import StorageSettings
from ledgerbook.services.storage.interface import (
    ConnectionError,
    CorruptDataError,
    KeyValueStore,
    StorageError,
)
from ledgerbook.services.storage.json_file import JsonFileKeyValueStore
from ledgerbook.services.storage.memory import InMemoryKeyValueStore


def create_key_value_store(settings: StorageSettings) -> KeyValueStore:
    """Build the backend selected in the storage settings."""
    if settings.backend == "memory":
        return InMemoryKeyValueStore()
    return JsonFileKeyValueStore(settings.data_dir)


__all__ = [
    # Interface
    "KeyValueStore",
    "create_key_value_store",
    # Exceptions
    "ConnectionError",
    "CorruptDataError",
    "StorageError",
    # Implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
]
