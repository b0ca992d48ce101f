"""
Ledgerbook - Source Package

A shared-expense tracker for a fixed group of friends who lend to,
borrow from and repay each other.

DESIGN PRINCIPLES:
1. The transaction log is the only source of truth
2. Balances are always re-derived, never cached
3. No silent corrections (validation reports, never fixes)
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Ledgerbook Team"
