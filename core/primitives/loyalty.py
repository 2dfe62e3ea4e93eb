"""
BOL Loyalty Primitive — Point Transactions
============================================
Engine: Core Primitives
Consumed by: Loyalty Engine (point ledger, recalculation),
             Promotion Engine (tier lookup)

RULES:
- Point transactions are append-only
- points is a signed integer: earn > 0, redeem < 0, adjust either sign
- The customer record carries a denormalized balance (`points`);
  target invariant: points == Σ PointTransaction.points

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


class PointTransactionType(Enum):
    EARN = "earn"
    REDEEM = "redeem"
    ADJUST = "adjust"


@dataclass(frozen=True)
class PointTransaction:
    """
    One movement of a customer's point balance.

    related_id links the business record that caused it
    (purchase, payment, prescription).
    source marks system-generated movements (e.g. recalculation
    corrections); None for movements made by people or sales.
    """
    transaction_id: str
    customer_id: str
    date: str
    transaction_type: PointTransactionType
    points: int
    note: str = ""
    related_id: Optional[str] = None
    source: Optional[str] = None

    def __post_init__(self):
        if not self.transaction_id or not isinstance(self.transaction_id, str):
            raise ValueError("transaction_id must be a non-empty string.")
        if not self.customer_id or not isinstance(self.customer_id, str):
            raise ValueError("customer_id must be a non-empty string.")
        if not isinstance(self.transaction_type, PointTransactionType):
            raise ValueError(
                "transaction_type must be a PointTransactionType enum."
            )
        if not isinstance(self.points, int) or isinstance(self.points, bool):
            raise ValueError(f"points must be an int, got {self.points!r}.")

    @property
    def is_earn(self) -> bool:
        return self.transaction_type == PointTransactionType.EARN

    def to_dict(self) -> dict:
        data = {
            "id": self.transaction_id,
            "customer_id": self.customer_id,
            "date": self.date,
            "type": self.transaction_type.value,
            "points": self.points,
            "note": self.note,
        }
        if self.related_id is not None:
            data["related_id"] = self.related_id
        if self.source is not None:
            data["source"] = self.source
        return data

    @classmethod
    def from_dict(cls, data: dict) -> PointTransaction:
        return cls(
            transaction_id=data["id"],
            customer_id=str(data["customer_id"]),
            date=data.get("date", ""),
            transaction_type=PointTransactionType(data["type"]),
            points=int(data.get("points", 0)),
            note=data.get("note", ""),
            related_id=data.get("related_id"),
            source=data.get("source"),
        )


def customer_points(record: Optional[dict]) -> int:
    """Denormalized balance of a stored customer record (0 if absent)."""
    if not record:
        return 0
    return int(record.get("points") or 0)


RECALCULATION_NOTE_PREFIX = "System Recalculation"
RECALCULATION_SOURCE = "recalculation"


def is_recalculation_correction(transaction: PointTransaction) -> bool:
    return (
        transaction.transaction_type == PointTransactionType.ADJUST
        and transaction.source == RECALCULATION_SOURCE
    )


def non_sales_total(transactions: Iterable[PointTransaction]) -> int:
    """
    Σ points of redeem + adjust transactions.

    Earn transactions and earlier recalculation corrections are left
    out: both are what recalculation recomputes from spend.
    """
    return sum(
        t.points
        for t in transactions
        if not t.is_earn and not is_recalculation_correction(t)
    )
