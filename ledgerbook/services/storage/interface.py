"""
Abstract Key-Value Storage Interface

DESIGN DECISION: The ledger only needs a durable map from string keys
to serialized snapshots. Keeping the interface this small lets us:
1. Use an in-memory store for tests
2. Use a file-backed store for the local app
3. Swap in any other backend without touching the ledger

Values are opaque strings. Encoding and decoding is the job of the
stores that own each key.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """
    Abstract interface for key-value storage.

    Callers issue at most one outstanding read or write at a time;
    implementations do not need to lock.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: Storage key

        Returns:
            The stored value, or None if the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> bool:
        """
        Store a value under a key, replacing any previous value.

        Args:
            key: Storage key
            value: Serialized snapshot

        Returns:
            True if stored successfully

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass


class CorruptDataError(StorageError):
    """A stored value could not be decoded."""
    pass
