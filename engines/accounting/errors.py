"""
BOL Accounting Engine — Errors
================================
PeriodLockedError is the one error surfaced directly to users.
The others appear only when the matching strictness setting is on.
"""

from decimal import Decimal

from core.errors import LedgerError


class PeriodLockedError(LedgerError):
    """Posting into a closed (year, month)."""

    def __init__(self, year: int, month: int):
        self.year = year
        self.month = month
        super().__init__(
            f"Accounting period {month}/{year} is closed; "
            f"entries dated in it cannot be posted."
        )


class UnbalancedEntryError(LedgerError):
    """Σdebit and Σcredit differ by more than the balance tolerance."""

    def __init__(self, total_debit: Decimal, total_credit: Decimal):
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            f"Journal entry unbalanced: debits ({total_debit}) "
            f"!= credits ({total_credit})."
        )


class MissingAccountError(LedgerError):
    """A chart-of-accounts code required by a posting rule is absent."""

    def __init__(self, code: str, event: str = ""):
        self.code = code
        self.event = event
        where = f" for {event}" if event else ""
        super().__init__(f"Account code '{code}' not found{where}.")


class JournalEntryNotFoundError(LedgerError):
    """Update or delete of an entry id that is not stored."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry '{entry_id}' not found.")
