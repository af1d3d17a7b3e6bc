"""
Ledger Error Taxonomy

Every failure the account store or ledger engine can report is one of
these. They propagate to the immediate caller; only the presentation
flows turn them into messages.

Storage failures live with the storage interface
(see ledgerbook.services.storage.StorageError).
"""


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """Malformed caller input (non-positive amount, blank name, unset enum...)."""
    pass


class ConflictError(LedgerError):
    """An account with the same name and type already exists."""
    pass


class NotFoundError(LedgerError):
    """Referenced account does not exist."""
    pass


class InsufficientFundsError(LedgerError):
    """Withdrawal or transfer exceeds the available balance."""
    pass


class CurrencyMismatchError(LedgerError):
    """Transfer between accounts of different currencies."""
    pass
