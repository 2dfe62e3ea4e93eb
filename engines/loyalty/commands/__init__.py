"""
BOL Loyalty Engine — Request Commands
=======================================
Typed requests accepted by the point ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.primitives.loyalty import PointTransactionType


@dataclass(frozen=True)
class PointAdjustRequest:
    """
    Signed change to a customer's point balance.

    delta is positive for earn, negative for redeem, either sign
    for adjust. Sign is not cross-checked against the type.
    """
    customer_id: str
    delta: int
    transaction_type: PointTransactionType
    note: str = ""
    related_id: Optional[str] = None

    def __post_init__(self):
        if not self.customer_id or not isinstance(self.customer_id, str):
            raise ValueError("customer_id must be a non-empty string.")
        if not isinstance(self.delta, int) or isinstance(self.delta, bool):
            raise ValueError(f"delta must be an int, got {self.delta!r}.")
        if not isinstance(self.transaction_type, PointTransactionType):
            object.__setattr__(
                self,
                "transaction_type",
                PointTransactionType(self.transaction_type),
            )

    @classmethod
    def redeem(
        cls, customer_id: str, points: int, *, note: str = "",
        related_id: Optional[str] = None,
    ) -> PointAdjustRequest:
        """Redemption of `points` (a positive count) stored as a negative delta."""
        if points <= 0:
            raise ValueError("points to redeem must be > 0.")
        return cls(
            customer_id=customer_id,
            delta=-points,
            transaction_type=PointTransactionType.REDEEM,
            note=note,
            related_id=related_id,
        )
