"""
BOL Loyalty Engine — Errors
=============================
"""

from typing import Optional

from core.errors import LedgerError


class RecalculationFailure(LedgerError):
    """
    The recalculation batch write failed.

    Nothing in the batch was applied; every customer keeps the
    balance it had before the run.
    """

    def __init__(self, planned_changes: int, cause: Optional[BaseException] = None):
        self.planned_changes = planned_changes
        self.cause = cause
        super().__init__(
            f"Point recalculation failed; {planned_changes} planned "
            f"balance changes were not applied: {cause}"
        )


class InsufficientPointsError(LedgerError):
    """Redemption exceeds the balance, when the caller asked for the check."""

    def __init__(self, customer_id: str, balance: int, needed: int):
        self.customer_id = customer_id
        self.balance = balance
        self.needed = needed
        super().__init__(
            f"Customer '{customer_id}' has {balance} points, needs {needed}."
        )
