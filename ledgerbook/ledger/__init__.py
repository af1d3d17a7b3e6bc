"""Ledger engine package."""

from ledgerbook.ledger.engine import LedgerEngine

__all__ = ["LedgerEngine"]
