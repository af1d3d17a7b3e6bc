"""
Audit Models for Ledgerbook

Every ledger-level action is logged for traceability:
account creation, each deposit/withdrawal/transfer, rejected
operations, imports/exports and access gate changes.

DESIGN DECISION: Audit events are emitted to the structured log only.
They are not persisted and not tamper-protected.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNTS_IMPORTED = "accounts_imported"
    ACCOUNTS_EXPORTED = "accounts_exported"

    # Ledger operations
    DEPOSIT_RECORDED = "deposit_recorded"
    WITHDRAWAL_RECORDED = "withdrawal_recorded"
    TRANSFER_RECORDED = "transfer_recorded"
    OPERATION_REJECTED = "operation_rejected"

    # History
    HISTORY_QUERIED = "history_queried"
    HISTORY_LOAD_FAILED = "history_load_failed"

    # Access gate
    GATE_UNLOCKED = "gate_unlocked"
    GATE_UNLOCK_FAILED = "gate_unlock_failed"
    GATE_LOCKED = "gate_locked"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """A single audit event."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'transaction')"
    )
    entity_id: Optional[UUID] = None

    # Correlation - ties together the events of one user action
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.deposit_recorded(account_id, "50.00", "150.00")
    """

    @staticmethod
    def account_created(
        account_id: UUID,
        name: str,
        account_kind: str,
        initial_balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Account created: {name}",
            details={
                "name": name,
                "account_kind": account_kind,
                "initial_balance": initial_balance,
            },
            is_user_action=True,
        )

    @staticmethod
    def deposit_recorded(
        account_id: UUID,
        amount: str,
        balance_after: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEPOSIT_RECORDED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Deposit of {amount} recorded",
            details={
                "amount": amount,
                "balance_after": balance_after,
            },
            is_user_action=True,
        )

    @staticmethod
    def withdrawal_recorded(
        account_id: UUID,
        amount: str,
        balance_after: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WITHDRAWAL_RECORDED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Withdrawal of {amount} recorded",
            details={
                "amount": amount,
                "balance_after": balance_after,
                "category": category,
            },
            is_user_action=True,
        )

    @staticmethod
    def transfer_recorded(
        from_account_id: UUID,
        to_account_id: UUID,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSFER_RECORDED,
            entity_type="account",
            entity_id=from_account_id,
            correlation_id=correlation_id,
            description=f"Transfer of {amount} recorded",
            details={
                "from_account_id": str(from_account_id),
                "to_account_id": str(to_account_id),
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        error: Exception,
        account_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"{operation.capitalize()} rejected",
            error_code=type(error).__name__,
            error_message=str(error),
            details={"operation": operation},
        )

    @staticmethod
    def accounts_imported(
        added: int,
        errors: list[str],
        replace_existing: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNTS_IMPORTED,
            severity=AuditSeverity.WARNING if errors else AuditSeverity.INFO,
            entity_type="account",
            correlation_id=correlation_id,
            description=f"Imported {added} account(s) with {len(errors)} error(s)",
            details={
                "added": added,
                "errors": errors,
                "replace_existing": replace_existing,
            },
            is_user_action=True,
        )

    @staticmethod
    def accounts_exported(
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNTS_EXPORTED,
            entity_type="account",
            correlation_id=correlation_id,
            description=f"Exported {count} account(s)",
            details={"count": count},
            is_user_action=True,
        )

    @staticmethod
    def history_queried(
        result_count: int,
        page: int,
        query_description: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORY_QUERIED,
            severity=AuditSeverity.DEBUG,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"History query returned {result_count} result(s)",
            details={
                "page": page,
                "query": query_description,
            },
        )

    @staticmethod
    def history_load_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORY_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="transaction",
            correlation_id=correlation_id,
            description="Failed to load transaction history",
            error_message=error_message,
        )

    @staticmethod
    def gate_changed(
        unlocked: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.GATE_UNLOCKED if unlocked else AuditEventType.GATE_LOCKED
            ),
            entity_type="gate",
            correlation_id=correlation_id,
            description="Ledger unlocked" if unlocked else "Ledger locked",
            is_user_action=True,
        )

    @staticmethod
    def gate_unlock_failed(
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GATE_UNLOCK_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="gate",
            correlation_id=correlation_id,
            description="Unlock attempt with wrong PIN",
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )
