"""
BOL — Ledger Errors
=====================
Root of the ledger-domain exception hierarchy.

Engine-specific errors live beside their engines:
    engines/accounting/errors.py  — period lock, balance, chart lookups
    engines/loyalty/errors.py     — recalculation failures

Store failures (core.store.errors) are NOT ledger errors; they
propagate unclassified unless an engine wraps them.
"""


class LedgerError(Exception):
    """Base error for ledger-domain operations."""
    pass
