"""
Audit Logger

Every ledger-level action goes through here, on top of the
component-level structured logs each store writes.

The audit logger:
- Is async so it composes with the async stores
- Never raises (logging must not break a money operation)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from ledgerbook.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(format="%(message)s", level=log_level.upper())
    logging.getLogger("ledgerbook").setLevel(log_level.upper())


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class AuditLogger:
    """Central audit logging service."""

    def __init__(self, name: str = "ledgerbook.audit"):
        self._logger = get_logger(name)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True once the event has been handed to the log.
        """
        log_dict = event.to_log_dict()
        severity = event.severity.value

        if severity in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif severity == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif severity == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        return True

    async def log_account_created(
        self,
        account_id: UUID,
        name: str,
        account_kind: str,
        initial_balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log account creation."""
        event = AuditEventBuilder.account_created(
            account_id=account_id,
            name=name,
            account_kind=account_kind,
            initial_balance=initial_balance,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_deposit(
        self,
        account_id: UUID,
        amount: str,
        balance_after: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a recorded deposit."""
        event = AuditEventBuilder.deposit_recorded(
            account_id=account_id,
            amount=amount,
            balance_after=balance_after,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_withdrawal(
        self,
        account_id: UUID,
        amount: str,
        balance_after: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a recorded withdrawal."""
        event = AuditEventBuilder.withdrawal_recorded(
            account_id=account_id,
            amount=amount,
            balance_after=balance_after,
            category=category,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transfer(
        self,
        from_account_id: UUID,
        to_account_id: UUID,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a recorded transfer."""
        event = AuditEventBuilder.transfer_recorded(
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_rejected(
        self,
        operation: str,
        error: Exception,
        account_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an operation the ledger refused."""
        event = AuditEventBuilder.operation_rejected(
            operation=operation,
            error=error,
            account_id=account_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_import(
        self,
        added: int,
        errors: list[str],
        replace_existing: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.accounts_imported(
            added=added,
            errors=errors,
            replace_existing=replace_existing,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_export(
        self,
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.accounts_exported(
            count=count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_history_query(
        self,
        result_count: int,
        page: int,
        query_description: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.history_queried(
            result_count=result_count,
            page=page,
            query_description=query_description,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_history_load_failed(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.history_load_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_gate_changed(
        self,
        unlocked: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.gate_changed(
            unlocked=unlocked,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_gate_unlock_failed(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.gate_unlock_failed(correlation_id=correlation_id)
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a key-value store failure."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., a transfer form submit).
    """
    return uuid4()
