"""In-memory key-value store, used by tests and ephemeral sessions."""

from typing import Optional

from ledgerbook.services.storage.interface import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store. Contents vanish with the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> bool:
        self._items[key] = value
        return True

    def keys(self) -> list[str]:
        return list(self._items)
