"""
Ledgerbook - Source Package

A small personal bookkeeping tool: bank accounts, an immutable
transaction log, and a filterable transaction history behind a PIN gate.

DESIGN PRINCIPLES:
1. Money must balance - no negative balances, no float arithmetic
2. Fail early, fail visibly
3. Transactions are append-only
4. Every mutation is logged
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Ledgerbook Team"
