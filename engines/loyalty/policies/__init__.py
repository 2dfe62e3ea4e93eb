"""
BOL Loyalty Engine — Policies
===============================
Redemption guards.

The point ledger itself does NOT reject over-redemption; callers
that want the guard evaluate sufficient_balance_policy first.
"""

from typing import Callable, Optional

from core.commands.rejection import ReasonCode, RejectionReason
from core.config.rules import LedgerConfig
from core.primitives.loyalty import PointTransactionType
from engines.loyalty.commands import PointAdjustRequest


def points_enabled_policy(config: LedgerConfig) -> Optional[RejectionReason]:
    """Earning requires points to be enabled with a positive earn rate."""
    if config.points_active:
        return None
    return RejectionReason(
        code=ReasonCode.POINTS_DISABLED,
        message="Loyalty points are disabled or the earn rate is not set.",
        policy_name="points_enabled_policy",
    )


def sufficient_balance_policy(
    request: PointAdjustRequest,
    balance_lookup: Optional[Callable[[str], int]] = None,
) -> Optional[RejectionReason]:
    """Customer must have enough points to redeem."""
    if balance_lookup is None:
        return None
    if request.transaction_type != PointTransactionType.REDEEM:
        return None
    needed = -request.delta
    balance = balance_lookup(request.customer_id)
    if balance < needed:
        return RejectionReason(
            code=ReasonCode.INSUFFICIENT_POINTS,
            message=f"Customer has {balance} points, needs {needed}.",
            policy_name="sufficient_balance_policy",
            details={"balance": balance, "needed": needed},
        )
    return None
