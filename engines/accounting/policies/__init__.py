"""
BOL Accounting Engine — Policies
==================================
Validation policies for journal posting.

Policies never raise. The journal ledger turns a rejection into
PeriodLockedError / UnbalancedEntryError.
"""

from __future__ import annotations

from typing import Optional, Sequence

from core.commands.rejection import ReasonCode, RejectionReason
from core.primitives.ledger import (
    BALANCE_TOLERANCE,
    JournalLine,
    sum_credits,
    sum_debits,
)


def period_open_policy(
    year: int, month: int, is_locked: bool,
) -> Optional[RejectionReason]:
    """Reject posting into a closed period."""
    if not is_locked:
        return None
    return RejectionReason(
        code=ReasonCode.PERIOD_LOCKED,
        message=f"Accounting period {month}/{year} is closed.",
        policy_name="period_open_policy",
        details={"year": year, "month": month},
    )


def balanced_entry_policy(
    lines: Sequence[JournalLine],
) -> Optional[RejectionReason]:
    """Reject if |Σdebit − Σcredit| exceeds the balance tolerance."""
    total_debits = sum_debits(tuple(lines))
    total_credits = sum_credits(tuple(lines))
    if abs(total_debits - total_credits) <= BALANCE_TOLERANCE:
        return None
    return RejectionReason(
        code=ReasonCode.UNBALANCED_ENTRY,
        message=(
            f"Journal entry unbalanced: debits ({total_debits}) "
            f"!= credits ({total_credits})."
        ),
        policy_name="balanced_entry_policy",
        details={
            "total_debit": str(total_debits),
            "total_credit": str(total_credits),
        },
    )

