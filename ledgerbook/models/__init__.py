"""
Data Models Package

This package contains all Pydantic models used in Ledgerbook.
All data flowing through the system must conform to these schemas.
"""

from ledgerbook.models.account import (
    Account,
    AccountKind,
    Currency,
    short_id,
    to_money,
)
from ledgerbook.models.transaction import (
    NIL_ACCOUNT_ID,
    ExpenseCategory,
    Transaction,
    TransactionKind,
)
from ledgerbook.models.history import (
    HistoryPage,
    HistoryQuery,
    SortKey,
)
from ledgerbook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Account models
    "Account",
    "AccountKind",
    "Currency",
    "short_id",
    "to_money",
    # Transaction models
    "NIL_ACCOUNT_ID",
    "ExpenseCategory",
    "Transaction",
    "TransactionKind",
    # History models
    "HistoryPage",
    "HistoryQuery",
    "SortKey",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
