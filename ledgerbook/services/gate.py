"""
Access Gate

A static-PIN lock in front of the ledger. The unlocked flag is
persisted in the same key-value store as the ledger, under its own key.

Listeners subscribe to a single boolean topic and are called with the
new state whenever it is (re)loaded, unlocked or locked.

This is a convenience lock for a single-user local tool, not an
authentication system.
"""

import hmac
import json
from typing import Callable, Optional

from pydantic import SecretStr

from ledgerbook.audit import AuditLogger, get_logger
from ledgerbook.config import get_settings
from ledgerbook.services.storage import KeyValueStore


GateListener = Callable[[bool], None]


class PinLock:
    """Boolean unlocked flag with initialize / try_unlock / lock."""

    def __init__(
        self,
        storage: KeyValueStore,
        pin: Optional[SecretStr] = None,
        storage_key: Optional[str] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        settings = get_settings()
        self._storage = storage
        self._pin = pin or settings.gate.pin
        self._storage_key = storage_key or settings.storage.gate_key
        self._audit_logger = audit_logger
        self._listeners: list[GateListener] = []
        self._unlocked = False
        self._logger = get_logger(__name__)

    @property
    def is_unlocked(self) -> bool:
        return self._unlocked

    def subscribe(self, listener: GateListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: GateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self) -> None:
        for listener in list(self._listeners):
            listener(self._unlocked)

    async def initialize(self) -> None:
        """Load the persisted flag. Anything but a stored true means locked."""
        raw = await self._storage.get_item(self._storage_key)
        try:
            stored = json.loads(raw) if raw else None
        except json.JSONDecodeError:
            self._logger.warning("gate_flag_unreadable", key=self._storage_key)
            stored = None
        self._unlocked = stored is True
        self._logger.info("gate_initialized", unlocked=self._unlocked)
        self._publish()

    async def try_unlock(self, pin: str) -> bool:
        """Unlock if the PIN matches. Returns whether it did."""
        expected = self._pin.get_secret_value()
        if not hmac.compare_digest(pin.encode("utf-8"), expected.encode("utf-8")):
            if self._audit_logger:
                await self._audit_logger.log_gate_unlock_failed()
            return False

        self._unlocked = True
        await self._storage.set_item(self._storage_key, json.dumps(True))
        if self._audit_logger:
            await self._audit_logger.log_gate_changed(unlocked=True)
        self._publish()
        return True

    async def lock(self) -> None:
        """Lock and persist the locked state."""
        self._unlocked = False
        await self._storage.set_item(self._storage_key, json.dumps(False))
        if self._audit_logger:
            await self._audit_logger.log_gate_changed(unlocked=False)
        self._publish()
